from rustwrap.cli.app import main

main()

"""Registry providers (npm, Homebrew)."""

"""Wrap pre-built binary releases for npm and Homebrew distribution."""

__version__ = "0.3.0"

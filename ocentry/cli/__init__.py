"""Command-line entry point and built-in commands."""

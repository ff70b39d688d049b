"""Subcommand implementations, one module per command family."""

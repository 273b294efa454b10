"""Command-line entry point for cql-tui."""

"""Command-line interface for relnote."""

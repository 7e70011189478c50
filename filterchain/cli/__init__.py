"""Command line interface for filterchain."""

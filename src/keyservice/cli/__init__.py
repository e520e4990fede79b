"""Command line interface for the key service."""

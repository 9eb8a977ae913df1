"""Command-line interface for Foliot."""

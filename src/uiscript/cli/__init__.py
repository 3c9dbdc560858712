"""Command-line interface for uiscript."""

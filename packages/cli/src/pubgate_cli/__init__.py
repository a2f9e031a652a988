"""Command-line interface for pubgate."""

"""Command line interface for the Remi engine."""

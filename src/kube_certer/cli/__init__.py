"""Command line interface for certer."""

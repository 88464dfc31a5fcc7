"""Core configuration for certer."""

"""Command line interface for the world simulator."""

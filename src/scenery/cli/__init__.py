"""CLI module for scenery."""

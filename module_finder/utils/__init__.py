"""Shared helpers for the module-finder CLI."""

"""CLI commands for module-finder."""

__all__ = [
    "find",
    "inspect",
    "logs",
]

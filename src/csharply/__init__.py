"""
CSharply - Deterministic organizer for C# source files
"""

__version__ = "1.0.0"

from csharply.core.engine import reorganize_and_format

__all__ = ["__version__", "reorganize_and_format"]

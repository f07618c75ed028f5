"""Models package."""
from attestcheck.models.analysis import Analysis

__all__ = ["Analysis"]

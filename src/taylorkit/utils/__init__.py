"""Utility functions for taylorkit package."""

from .domain import DomainWarning
from .numerics import factorials, is_number

__all__ = [
    "DomainWarning",
    "factorials",
    "is_number",
]

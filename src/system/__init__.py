"""System — публичная поверхность stable token (context object)."""

from .stable_token import StableTokenSystem

__all__ = [
    "StableTokenSystem",
]

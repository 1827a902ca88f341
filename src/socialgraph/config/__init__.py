"""
Configuration layer for socialgraph.

Configuration is explicit (passed, not global) and immutable once built.
"""

from socialgraph.config.settings import (
    StoreConfig,
    CascadeConfig,
    SocialGraphConfig,
)

__all__ = [
    "StoreConfig",
    "CascadeConfig",
    "SocialGraphConfig",
]

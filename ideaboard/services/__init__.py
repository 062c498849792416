"""Service layer helpers for ideaboard."""

from .change_feed import change_feed, ChangeFeed, TOPICS  # noqa: F401

__all__ = [
    "change_feed",
    "ChangeFeed",
    "TOPICS",
]

"""Combination mode for batch authorization checks."""

from enum import Enum


class CheckMode(str, Enum):
    """How per-item results of a batch check are combined.

    ALL: every item must be allowed.
    ANY: at least one item must be allowed.
    """

    ALL = "ALL"
    ANY = "ANY"

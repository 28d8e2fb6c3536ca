"""Where an effective permission entry came from."""

from enum import Enum


class PermissionSource(str, Enum):
    """Source layer of an effective permission entry."""

    ROLE = "role"
    DIRECT = "direct"

"""Core enums package.

Usage:
    from gatekeeper.core.enums import ErrorCode, Environment
"""

from gatekeeper.core.enums.environment import Environment
from gatekeeper.core.enums.error_code import ErrorCode

__all__ = ["ErrorCode", "Environment"]

"""Core enums package.

Usage:
    from authguard.core.enums import ErrorCode, Environment
"""

from authguard.core.enums.environment import Environment
from authguard.core.enums.error_code import ErrorCode

__all__ = ["ErrorCode", "Environment"]

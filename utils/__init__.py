"""
Utils
通用工具
"""

from .auth import get_current_user, require_user

__all__ = ["get_current_user", "require_user"]

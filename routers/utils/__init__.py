"""
Utils layer
工具函数层
"""

from .validators import validate_id, validate_content

__all__ = ["validate_id", "validate_content"]

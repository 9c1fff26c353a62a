"""
请求参数校验工具函数
用于校验客户端传入的ID和文本内容
"""
# 标准库导包
from typing import Any, Optional


def validate_id(value: Any) -> Optional[int]:
    """
    校验ID：必须是正整数，或可以转换为正整数的字符串/数值

    Args:
        value: 原始值

    Returns:
        合法时返回整数ID，否则返回None
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None

    try:
        number = float(value)
    except (TypeError, ValueError):
        return None

    if not number.is_integer() or number <= 0:
        return None
    return int(number)


def validate_content(value: Any) -> Optional[str]:
    """
    校验文本内容：必须是去除首尾空白后非空的字符串

    Args:
        value: 原始值

    Returns:
        去除首尾空白后的内容，不合法时返回None
    """
    if not isinstance(value, str):
        return None
    content = value.strip()
    return content or None

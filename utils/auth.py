"""
认证工具
认证由上游服务完成，这里只从请求头读取用户标识
"""
# 标准库导包
from typing import Optional

# 第三方库导包
from fastapi import Depends, Header, HTTPException

# 项目内部导包
from models import UserInfo


async def get_current_user(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    x_user_name: Optional[str] = Header(None, alias="X-User-Name")
) -> Optional[UserInfo]:
    """
    获取当前用户

    上游认证服务通过 X-User-Id 传入用户ID，没有该Header视为未登录。

    Args:
        x_user_id: X-User-Id header值
        x_user_name: X-User-Name header值（可选）

    Returns:
        UserInfo对象，未登录返回None
    """
    if not x_user_id or not x_user_id.strip():
        return None

    return UserInfo(user_id=x_user_id.strip(), username=x_user_name)


async def require_user(
    user_info: Optional[UserInfo] = Depends(get_current_user)
) -> UserInfo:
    """要求已登录，未登录返回401"""
    if user_info is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user_info

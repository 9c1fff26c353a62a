"""
用户路由
提供用户资料查询、用户名可用性检查和头像地址解析API接口
"""
# 标准库导包
import logging
from typing import Optional

# 第三方库导包
from fastapi import APIRouter, HTTPException, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

# 项目内部导包
from models import (
    UserInfo,
    UserProfileResponse,
    UserProfileDetailResponse,
    UsernameAvailabilityResponse,
    AvatarUrlResponse
)
from storage.database import get_session
from routers.services.user_service import UserService, get_avatar_url
from utils import require_user

# 配置日志
logger = logging.getLogger(__name__)

# 创建路由器
router = APIRouter(
    prefix="/api/users",
    tags=["用户"]
)


def _user_to_response(user) -> UserProfileResponse:
    return UserProfileResponse(
        id=user.id,
        username=user.username,
        full_name=user.full_name,
        avatar_url=get_avatar_url(user.avatar_url, user.username),
        birthday=user.birthday,
        description=user.description
    )


@router.get("/me", response_model=UserProfileDetailResponse, summary="获取我的资料")
async def get_my_profile(
    user_info: UserInfo = Depends(require_user),
    session: AsyncSession = Depends(get_session)
):
    try:
        user = await UserService(session).get_user_profile(user_info.user_id)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")

        return UserProfileDetailResponse(data=_user_to_response(user))

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"获取用户资料失败: user_id={user_info.user_id}, error={str(e)}")
        raise HTTPException(status_code=500, detail="Failed to fetch user profile. Please try again later.")


@router.get("/username-available", response_model=UsernameAvailabilityResponse, summary="检查用户名是否可用")
async def check_username_available(
    username: str = Query(..., description="要检查的用户名"),
    session: AsyncSession = Depends(get_session)
):
    """空用户名视为不可用"""
    try:
        available = await UserService(session).is_username_available(username)
        return UsernameAvailabilityResponse(username=username.strip(), available=available)
    except Exception as e:
        logger.error(f"检查用户名失败: username={username}, error={str(e)}")
        raise HTTPException(status_code=500, detail="Failed to check username. Please try again later.")


@router.get("/avatar", response_model=AvatarUrlResponse, summary="解析头像地址")
async def resolve_avatar_url(
    avatar_url: Optional[str] = Query(None, description="保存的头像值（完整地址或文件名）"),
    username: Optional[str] = Query(None, description="用户名，没有头像时作为默认头像种子")
):
    return AvatarUrlResponse(url=get_avatar_url(avatar_url, username))


@router.get("/by-username/{username}", response_model=UserProfileDetailResponse, summary="按用户名获取用户资料")
async def get_profile_by_username(
    username: str,
    session: AsyncSession = Depends(get_session)
):
    try:
        user = await UserService(session).get_user_profile_by_username(username)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")

        return UserProfileDetailResponse(data=_user_to_response(user))

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"按用户名获取用户资料失败: username={username}, error={str(e)}")
        raise HTTPException(status_code=500, detail="Failed to fetch user profile. Please try again later.")


@router.get("/{user_id}", response_model=UserProfileDetailResponse, summary="按ID获取用户资料")
async def get_profile(
    user_id: str,
    session: AsyncSession = Depends(get_session)
):
    try:
        user = await UserService(session).get_user_profile(user_id)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")

        return UserProfileDetailResponse(data=_user_to_response(user))

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"获取用户资料失败: user_id={user_id}, error={str(e)}")
        raise HTTPException(status_code=500, detail="Failed to fetch user profile. Please try again later.")

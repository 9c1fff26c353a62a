"""
点赞路由
提供帖子点赞状态查询、点赞/取消点赞和点赞用户列表API接口
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
    ToggleLikeRequest,
    ToggleLikeResponse,
    LikeStatusResponse,
    LikedUserResponse,
    LikedUserListResponse
)
from storage.database import get_session
from routers.services.like_service import LikeService
from routers.utils.validators import validate_id
from utils import require_user

# 配置日志
logger = logging.getLogger(__name__)

# 创建路由器
router = APIRouter(
    prefix="/api/likes",
    tags=["点赞"]
)


@router.get("", response_model=LikeStatusResponse, summary="获取点赞状态")
async def get_like_status(
    post_id: Optional[str] = Query(None, description="帖子ID"),
    user_id: Optional[str] = Query(None, description="用户ID，提供时返回该用户是否已点赞"),
    session: AsyncSession = Depends(get_session)
):
    valid_post_id = validate_id(post_id)
    if not valid_post_id:
        raise HTTPException(status_code=400, detail="Valid post ID is required")

    try:
        like_service = LikeService(session)
        like_count = await like_service.get_like_count(valid_post_id)
        is_liked = await like_service.is_post_liked(valid_post_id, user_id) if user_id else False
        return LikeStatusResponse(like_count=like_count, is_liked=is_liked)
    except Exception as e:
        logger.error(f"获取点赞状态失败: post_id={valid_post_id}, error={str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("", response_model=ToggleLikeResponse, summary="点赞/取消点赞")
async def toggle_like(
    request: ToggleLikeRequest,
    user_info: UserInfo = Depends(require_user),
    session: AsyncSession = Depends(get_session)
):
    """
    切换当前用户对帖子的点赞状态

    返回切换后的状态和最新点赞数。
    """
    valid_post_id = validate_id(request.post_id)
    if not valid_post_id:
        raise HTTPException(status_code=400, detail="Invalid post ID")

    try:
        like_service = LikeService(session)
        result = await like_service.toggle_like(valid_post_id, user_info.user_id)
        if not result["success"]:
            raise HTTPException(status_code=500, detail="Failed to toggle like")

        like_count = await like_service.get_like_count(valid_post_id)
        return ToggleLikeResponse(is_liked=result["is_liked"], like_count=like_count)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"切换点赞状态失败: post_id={valid_post_id}, error={str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/users", response_model=LikedUserListResponse, summary="获取最近点赞的用户")
async def get_liked_users(
    post_id: Optional[str] = Query(None, description="帖子ID"),
    limit: Optional[int] = Query(None, ge=1, le=100),
    session: AsyncSession = Depends(get_session)
):
    valid_post_id = validate_id(post_id)
    if not valid_post_id:
        raise HTTPException(status_code=400, detail="Valid post ID is required")

    likes = await LikeService(session).get_liked_users(valid_post_id, limit)
    data = [
        LikedUserResponse(
            user_id=like.user_id,
            username=like.user.username if like.user else None,
            avatar_url=like.user.avatar_url if like.user else None,
            created_at=like.created_at
        )
        for like in likes
    ]
    return LikedUserListResponse(data=data, total=len(data))

"""
帖子路由
提供帖子的列表、详情、发布、编辑和删除API接口
"""
# 标准库导包
import logging
from typing import Optional, List

# 第三方库导包
from fastapi import APIRouter, HTTPException, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

# 项目内部导包
from cache import TTLCache, get_cache
from models import (
    UserInfo,
    PostResponse,
    PostListResponse,
    PostDetailResponse,
    CreatePostRequest,
    UpdatePostRequest,
    OperationResponse
)
from storage.database import get_session
from routers.services.post_service import PostService, get_post_tags, is_post_owner
from utils import require_user

# 配置日志
logger = logging.getLogger(__name__)

# 创建路由器
router = APIRouter(
    prefix="/api/posts",
    tags=["帖子"]
)


def _post_to_response(post) -> PostResponse:
    """
    将Post模型转换为PostResponse

    Args:
        post: Post模型实例（需已加载作者和标签）

    Returns:
        PostResponse对象
    """
    return PostResponse(
        id=post.id,
        user_id=post.user_id,
        title=post.title,
        content=post.content,
        post_views=post.post_views or 0,
        author_username=post.author.username if post.author else None,
        tags=sorted(get_post_tags(post)),
        created_at=post.created_at,
        updated_at=post.updated_at
    )


@router.get("", response_model=PostListResponse, summary="获取帖子列表")
async def list_posts(
    tags: Optional[List[str]] = Query(None, description="标签筛选，帖子包含任意一个即可"),
    q: Optional[str] = Query(None, description="按标题或作者用户名搜索"),
    user_id: Optional[str] = Query(None, description="只看某个用户的帖子"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session),
    cache: TTLCache = Depends(get_cache)
):
    try:
        posts = await PostService(session, cache).list_posts(
            user_id=user_id,
            selected_tags=tags,
            search_query=q,
            limit=limit,
            offset=offset
        )
        return PostListResponse(
            data=[_post_to_response(post) for post in posts],
            total=len(posts)
        )
    except Exception as e:
        logger.error(f"获取帖子列表失败: {str(e)}")
        raise HTTPException(status_code=500, detail=f"获取帖子列表失败: {str(e)}")


@router.get("/{post_id}", response_model=PostDetailResponse, summary="获取帖子详情")
async def get_post(
    post_id: int,
    session: AsyncSession = Depends(get_session),
    cache: TTLCache = Depends(get_cache)
):
    """获取帖子详情，同时浏览次数加一"""
    try:
        post_service = PostService(session, cache)
        await post_service.record_view(post_id)
        post = await post_service.get_post(post_id)
        if not post:
            raise HTTPException(status_code=404, detail="帖子不存在")

        return PostDetailResponse(data=_post_to_response(post))

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"获取帖子详情失败: post_id={post_id}, error={str(e)}")
        raise HTTPException(status_code=500, detail=f"获取帖子详情失败: {str(e)}")


@router.post("", response_model=PostDetailResponse, summary="发布帖子")
async def create_post(
    request: CreatePostRequest,
    user_info: UserInfo = Depends(require_user),
    session: AsyncSession = Depends(get_session),
    cache: TTLCache = Depends(get_cache)
):
    try:
        post = await PostService(session, cache).create_post(
            user_id=user_info.user_id,
            title=request.title,
            content=request.content,
            tags=request.tags
        )
        return PostDetailResponse(message="发布成功", data=_post_to_response(post))
    except Exception as e:
        logger.error(f"发布帖子失败: {str(e)}")
        raise HTTPException(status_code=500, detail=f"发布帖子失败: {str(e)}")


@router.put("/{post_id}", response_model=PostDetailResponse, summary="编辑帖子")
async def update_post(
    post_id: int,
    request: UpdatePostRequest,
    user_info: UserInfo = Depends(require_user),
    session: AsyncSession = Depends(get_session),
    cache: TTLCache = Depends(get_cache)
):
    """
    编辑帖子

    提供 tags 时按最小差异同步帖子标签，只有作者可以编辑。
    """
    try:
        post_service = PostService(session, cache)
        post = await post_service.get_post(post_id)
        if not post:
            raise HTTPException(status_code=404, detail="帖子不存在")
        if not is_post_owner(post, user_info.user_id):
            raise HTTPException(status_code=403, detail="无权编辑该帖子")

        updated = await post_service.update_post(
            post_id,
            title=request.title,
            content=request.content,
            tags=request.tags
        )
        if not updated:
            raise HTTPException(status_code=404, detail="帖子不存在")

        return PostDetailResponse(message="更新成功", data=_post_to_response(updated))

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"编辑帖子失败: post_id={post_id}, error={str(e)}")
        raise HTTPException(status_code=500, detail=f"编辑帖子失败: {str(e)}")


@router.delete("/{post_id}", response_model=OperationResponse, summary="删除帖子")
async def delete_post(
    post_id: int,
    user_info: UserInfo = Depends(require_user),
    session: AsyncSession = Depends(get_session),
    cache: TTLCache = Depends(get_cache)
):
    try:
        post_service = PostService(session, cache)
        post = await post_service.get_post(post_id)
        if not post:
            raise HTTPException(status_code=404, detail="帖子不存在")
        if not is_post_owner(post, user_info.user_id):
            raise HTTPException(status_code=403, detail="无权删除该帖子")

        await post_service.delete_post(post_id)
        return OperationResponse(message="删除成功")

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"删除帖子失败: post_id={post_id}, error={str(e)}")
        raise HTTPException(status_code=500, detail=f"删除帖子失败: {str(e)}")

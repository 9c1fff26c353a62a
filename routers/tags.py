"""
标签路由
提供帖子标签的查询和替换API接口
"""
# 标准库导包
import logging
from typing import Optional

# 第三方库导包
from fastapi import APIRouter, HTTPException, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

# 项目内部导包
from cache import TTLCache, get_cache
from models import (
    UserInfo,
    TagResponse,
    TagListResponse,
    NameListResponse,
    UpdateItemsRequest,
    OperationResponse
)
from storage.database import get_session
from routers.services.post_service import PostService, is_post_owner
from routers.services.taxonomy_service import TaxonomyService
from utils import require_user

# 配置日志
logger = logging.getLogger(__name__)

# 创建路由器
router = APIRouter(
    prefix="/api/tags",
    tags=["标签"]
)


@router.get("", response_model=TagListResponse, summary="获取全部标签")
async def list_tags(
    session: AsyncSession = Depends(get_session),
    cache: TTLCache = Depends(get_cache)
):
    """获取全部标签（ID和名称），按名称排序"""
    try:
        items = await TaxonomyService.for_tags(session, cache).list_items()
        return TagListResponse(
            data=[TagResponse(id=item.id, tag_name=item.name) for item in items],
            total=len(items)
        )
    except Exception as e:
        logger.error(f"获取标签列表失败: {str(e)}")
        raise HTTPException(status_code=500, detail=f"获取标签列表失败: {str(e)}")


@router.get("/names", response_model=NameListResponse, summary="获取全部标签名称")
async def list_tag_names(
    session: AsyncSession = Depends(get_session),
    cache: TTLCache = Depends(get_cache)
):
    """
    获取全部标签名称

    结果会在进程内缓存一段时间，查询失败时返回空列表。
    """
    names = await TaxonomyService.for_tags(session, cache).list_names()
    return NameListResponse(data=names, total=len(names))


@router.get("/most-used", response_model=NameListResponse, summary="获取最常用标签")
async def get_most_used_tags(
    limit: Optional[int] = Query(None, ge=1, le=100, description="返回数量"),
    session: AsyncSession = Depends(get_session),
    cache: TTLCache = Depends(get_cache)
):
    """获取被帖子使用次数最多的标签"""
    names = await TaxonomyService.for_tags(session, cache).most_used(limit)
    return NameListResponse(data=names, total=len(names))


@router.get("/posts/{post_id}", response_model=NameListResponse, summary="获取帖子的标签")
async def get_post_tags(
    post_id: int,
    session: AsyncSession = Depends(get_session),
    cache: TTLCache = Depends(get_cache)
):
    try:
        names = await TaxonomyService.for_tags(session, cache).names_for_entity(post_id)
        return NameListResponse(data=names, total=len(names))
    except Exception as e:
        logger.error(f"获取帖子标签失败: post_id={post_id}, error={str(e)}")
        raise HTTPException(status_code=500, detail=f"获取帖子标签失败: {str(e)}")


@router.put("/posts/{post_id}", response_model=OperationResponse, summary="替换帖子的标签")
async def replace_post_tags(
    post_id: int,
    request: UpdateItemsRequest,
    atomic: Optional[bool] = Query(None, description="是否使用数据库端原子更新，默认按配置"),
    user_info: UserInfo = Depends(require_user),
    session: AsyncSession = Depends(get_session),
    cache: TTLCache = Depends(get_cache)
):
    """
    把帖子标签替换为请求中的完整列表

    只有帖子作者可以操作，空列表表示清空标签。
    """
    try:
        post = await PostService(session, cache).get_post(post_id)
        if not post:
            raise HTTPException(status_code=404, detail="帖子不存在")
        if not is_post_owner(post, user_info.user_id):
            raise HTTPException(status_code=403, detail="无权修改该帖子")

        result = await TaxonomyService.for_tags(session, cache).replace_entity_items(
            post_id, request.names, atomic=atomic
        )
        if not result.ok:
            raise HTTPException(status_code=500, detail=f"更新帖子标签失败: {str(result.error)}")

        return OperationResponse(message="标签已更新")

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"更新帖子标签失败: post_id={post_id}, error={str(e)}")
        raise HTTPException(status_code=500, detail=f"更新帖子标签失败: {str(e)}")

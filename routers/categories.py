"""
服务分类路由
提供服务分类的查询和替换API接口
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
    CategoryResponse,
    CategoryListResponse,
    NameListResponse,
    UpdateItemsRequest,
    OperationResponse
)
from storage.database import get_session
from routers.services.marketplace_service import MarketplaceService, is_service_owner
from routers.services.studio_service import StudioService
from routers.services.taxonomy_service import TaxonomyService
from utils import require_user

# 配置日志
logger = logging.getLogger(__name__)

# 创建路由器
router = APIRouter(
    prefix="/api/categories",
    tags=["服务分类"]
)


@router.get("", response_model=CategoryListResponse, summary="获取全部服务分类")
async def list_categories(
    session: AsyncSession = Depends(get_session),
    cache: TTLCache = Depends(get_cache)
):
    try:
        items = await TaxonomyService.for_service_categories(session, cache).list_items()
        return CategoryListResponse(
            data=[CategoryResponse(id=item.id, category_name=item.name) for item in items],
            total=len(items)
        )
    except Exception as e:
        logger.error(f"获取服务分类列表失败: {str(e)}")
        raise HTTPException(status_code=500, detail=f"获取服务分类列表失败: {str(e)}")


@router.get("/names", response_model=NameListResponse, summary="获取全部服务分类名称")
async def list_category_names(
    session: AsyncSession = Depends(get_session),
    cache: TTLCache = Depends(get_cache)
):
    names = await TaxonomyService.for_service_categories(session, cache).list_names()
    return NameListResponse(data=names, total=len(names))


@router.get("/most-used", response_model=NameListResponse, summary="获取最常用服务分类")
async def get_most_used_categories(
    limit: Optional[int] = Query(None, ge=1, le=100, description="返回数量"),
    session: AsyncSession = Depends(get_session),
    cache: TTLCache = Depends(get_cache)
):
    names = await TaxonomyService.for_service_categories(session, cache).most_used(limit)
    return NameListResponse(data=names, total=len(names))


@router.get("/services/{service_id}", response_model=NameListResponse, summary="获取服务的分类")
async def get_service_categories(
    service_id: int,
    session: AsyncSession = Depends(get_session),
    cache: TTLCache = Depends(get_cache)
):
    try:
        names = await TaxonomyService.for_service_categories(session, cache).names_for_entity(service_id)
        return NameListResponse(data=names, total=len(names))
    except Exception as e:
        logger.error(f"获取服务分类失败: service_id={service_id}, error={str(e)}")
        raise HTTPException(status_code=500, detail=f"获取服务分类失败: {str(e)}")


@router.put("/services/{service_id}", response_model=OperationResponse, summary="替换服务的分类")
async def replace_service_categories(
    service_id: int,
    request: UpdateItemsRequest,
    user_info: UserInfo = Depends(require_user),
    session: AsyncSession = Depends(get_session),
    cache: TTLCache = Depends(get_cache)
):
    """
    把服务分类替换为请求中的完整列表

    只有发布该服务的工作室可以操作。
    """
    try:
        marketplace_service = MarketplaceService(session, cache)
        service = await marketplace_service.get_service(service_id)
        if not service:
            raise HTTPException(status_code=404, detail="服务不存在")

        studio = await StudioService(session).get_user_studio(user_info.user_id)
        if not is_service_owner(service, studio.id if studio else None):
            raise HTTPException(status_code=403, detail="无权修改该服务")

        result = await marketplace_service.update_categories(service_id, request.names)
        if not result.ok:
            raise HTTPException(status_code=500, detail=f"更新服务分类失败: {str(result.error)}")

        return OperationResponse(message="分类已更新")

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"更新服务分类失败: service_id={service_id}, error={str(e)}")
        raise HTTPException(status_code=500, detail=f"更新服务分类失败: {str(e)}")

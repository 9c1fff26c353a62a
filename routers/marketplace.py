"""
服务市场路由
提供服务列表、服务详情和发布服务API接口
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
    ServiceResponse,
    ServiceListResponse,
    ServiceDetailResponse,
    CreateServiceRequest
)
from storage.database import get_session
from routers.services.marketplace_service import (
    MarketplaceService,
    get_service_categories,
    get_service_category_count,
    format_service_price
)
from routers.services.studio_service import StudioService
from utils import require_user

# 配置日志
logger = logging.getLogger(__name__)

# 创建路由器
router = APIRouter(
    prefix="/api/services",
    tags=["服务市场"]
)


def _service_to_response(service) -> ServiceResponse:
    """
    将Service模型转换为ServiceResponse

    Args:
        service: Service模型实例（需已加载工作室和分类）

    Returns:
        ServiceResponse对象
    """
    return ServiceResponse(
        id=service.id,
        name=service.name,
        price=service.price,
        formatted_price=format_service_price(service.price),
        description=service.description,
        cover_url=service.cover_url,
        service_type=service.service_type,
        status=service.status,
        created_by=service.created_by,
        studio_name=service.studio.name if service.studio else None,
        categories=sorted(get_service_categories(service)),
        category_count=get_service_category_count(service),
        created_at=service.created_at
    )


@router.get("", response_model=ServiceListResponse, summary="获取服务列表")
async def list_services(
    categories: Optional[List[str]] = Query(None, description="分类筛选，服务属于任意一个即可"),
    q: Optional[str] = Query(None, description="按服务名称、服务类型或工作室名称搜索"),
    session: AsyncSession = Depends(get_session),
    cache: TTLCache = Depends(get_cache)
):
    try:
        services = await MarketplaceService(session, cache).list_services(
            selected_categories=categories,
            search_query=q
        )
        return ServiceListResponse(
            data=[_service_to_response(service) for service in services],
            total=len(services)
        )
    except Exception as e:
        logger.error(f"获取服务列表失败: {str(e)}")
        raise HTTPException(status_code=500, detail=f"获取服务列表失败: {str(e)}")


@router.get("/{service_id}", response_model=ServiceDetailResponse, summary="获取服务详情")
async def get_service(
    service_id: int,
    session: AsyncSession = Depends(get_session),
    cache: TTLCache = Depends(get_cache)
):
    try:
        service = await MarketplaceService(session, cache).get_service(service_id)
        if not service:
            raise HTTPException(status_code=404, detail="服务不存在")

        return ServiceDetailResponse(data=_service_to_response(service))

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"获取服务详情失败: service_id={service_id}, error={str(e)}")
        raise HTTPException(status_code=500, detail=f"获取服务详情失败: {str(e)}")


@router.post("", response_model=ServiceDetailResponse, summary="发布服务")
async def create_service(
    request: CreateServiceRequest,
    user_info: UserInfo = Depends(require_user),
    session: AsyncSession = Depends(get_session),
    cache: TTLCache = Depends(get_cache)
):
    """只有审核通过的工作室可以发布服务"""
    try:
        access = await StudioService(session).check_dashboard_access(user_info.user_id)
        if not access["is_approved"]:
            raise HTTPException(status_code=403, detail="只有审核通过的工作室可以发布服务")

        service = await MarketplaceService(session, cache).create_service(
            studio_id=access["studio"].id,
            name=request.name,
            price=request.price,
            service_type=request.service_type,
            description=request.description,
            cover_url=request.cover_url,
            categories=request.categories
        )
        return ServiceDetailResponse(message="发布成功", data=_service_to_response(service))

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"发布服务失败: user_id={user_info.user_id}, error={str(e)}")
        raise HTTPException(status_code=500, detail=f"发布服务失败: {str(e)}")

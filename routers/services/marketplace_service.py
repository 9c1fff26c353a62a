"""
服务市场服务类
处理工作室发布的服务及其分类
"""
# 标准库导包
import logging
from typing import Optional, List, Iterable

# 第三方库导包
from sqlalchemy.ext.asyncio import AsyncSession

# 项目内部导包
from cache import TTLCache
from storage.models.service import Service
from storage.repositories.service_repository import ServiceRepository
from storage.repositories.relationship_repository import RelationshipResult
from routers.services.taxonomy_service import TaxonomyService

# 配置日志
logger = logging.getLogger(__name__)


def get_service_categories(service: Service) -> List[str]:
    """获取服务的分类名称（需已加载 category_links）"""
    return [
        link.category.category_name
        for link in service.category_links
        if link.category is not None and link.category.category_name
    ]


def get_service_category_count(service: Service) -> int:
    return len(service.category_links or [])


def format_service_price(price: float) -> str:
    """格式化价格，例如 12.5 -> $12.50"""
    return f"${float(price):.2f}"


def is_service_owner(service: Service, studio_id: Optional[int]) -> bool:
    return studio_id is not None and service.created_by == studio_id


def filter_services(
    services: Iterable[Service],
    selected_categories: Optional[List[str]] = None,
    search_query: Optional[str] = None
) -> List[Service]:
    """
    按分类和关键词筛选服务

    Args:
        services: 服务列表（需已加载工作室和分类）
        selected_categories: 服务至少属于其中一个分类才保留，为空时不按分类筛选
        search_query: 服务名称、服务类型或工作室名称包含该关键词（不区分大小写）才保留

    Returns:
        筛选后的服务列表，保持原有顺序
    """
    filtered = list(services)

    if selected_categories:
        wanted = set(selected_categories)
        filtered = [
            service for service in filtered
            if any(category in wanted for category in get_service_categories(service))
        ]

    if search_query:
        query = search_query.lower()
        filtered = [
            service for service in filtered
            if query in (service.name or "").lower()
            or query in (service.service_type or "").lower()
            or (service.studio is not None and query in (service.studio.name or "").lower())
        ]

    return filtered


class MarketplaceService:
    """服务市场服务类"""

    def __init__(self, session: AsyncSession, cache: Optional[TTLCache] = None):
        """
        初始化服务市场服务

        Args:
            session: 数据库会话
            cache: 进程内缓存，分类写入后用于失效分类列表
        """
        self.session = session
        self.service_repo = ServiceRepository(session)
        self.category_service = TaxonomyService.for_service_categories(session, cache)

    async def list_services(
        self,
        selected_categories: Optional[List[str]] = None,
        search_query: Optional[str] = None
    ) -> List[Service]:
        """获取上架中的服务并按条件筛选"""
        services = await self.service_repo.list_with_relations(status="active")
        return filter_services(
            services,
            selected_categories=selected_categories,
            search_query=search_query
        )

    async def get_service(self, service_id: int) -> Optional[Service]:
        return await self.service_repo.get_with_relations(service_id)

    async def create_service(
        self,
        studio_id: int,
        name: str,
        price: float,
        service_type: str,
        description: Optional[str] = None,
        cover_url: Optional[str] = None,
        categories: Optional[List[str]] = None
    ) -> Service:
        """
        发布服务并关联分类

        分类写入失败只记录警告，服务本身仍然发布成功。

        Args:
            studio_id: 发布工作室ID
            name: 服务名称
            price: 价格
            service_type: 服务类型
            description: 描述
            cover_url: 封面地址
            categories: 分类名称列表

        Returns:
            服务详情（包含工作室和分类）
        """
        service = await self.service_repo.create(
            name=name.strip(),
            price=price,
            service_type=service_type.strip(),
            description=description,
            cover_url=cover_url,
            created_by=studio_id,
        )
        logger.info(f"发布服务: service_id={service.id}, studio_id={studio_id}")

        if categories:
            result = await self.category_service.replace_entity_items(service.id, categories)
            if not result.ok:
                logger.warning(f"服务分类写入失败: service_id={service.id}, error={str(result.error)}")

        return await self.service_repo.get_with_relations(service.id)

    async def update_categories(self, service_id: int, categories: List[str]) -> RelationshipResult:
        """把服务分类同步为目标列表"""
        return await self.category_service.replace_entity_items(service_id, categories)

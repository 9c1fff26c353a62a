"""
ServiceRepository - 服务市场Repository
"""
# 标准库导包
from typing import Optional, List

# 第三方库导包
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

# 项目内部导包
from storage.models.service import Service, ServiceCategoryRel
from storage.repositories.base import BaseRepository


class ServiceRepository(BaseRepository[Service]):
    """服务Repository"""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Service)

    def _with_relations(self):
        """服务查询，预加载工作室和分类"""
        return select(Service).options(
            selectinload(Service.studio),
            selectinload(Service.category_links).selectinload(ServiceCategoryRel.category)
        ).execution_options(populate_existing=True)

    async def get_with_relations(self, service_id: int) -> Optional[Service]:
        """获取服务详情，包含工作室和分类"""
        result = await self.session.execute(
            self._with_relations().where(Service.id == service_id)
        )
        return result.scalar_one_or_none()

    async def list_with_relations(self, status: Optional[str] = "active") -> List[Service]:
        """
        获取服务列表（按创建时间倒序）

        Args:
            status: 服务状态过滤，None表示不过滤

        Returns:
            服务列表
        """
        query = self._with_relations().order_by(Service.created_at.desc(), Service.id.desc())
        if status is not None:
            query = query.where(Service.status == status)

        result = await self.session.execute(query)
        return list(result.scalars().all())

"""
StudioRepository - 工作室Repository
"""
# 标准库导包
from typing import Optional, List

# 第三方库导包
from sqlalchemy.ext.asyncio import AsyncSession

# 项目内部导包
from storage.models.studio import Studio
from storage.repositories.base import BaseRepository


class StudioRepository(BaseRepository[Studio]):
    """工作室Repository"""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Studio)

    async def get_approved(self) -> List[Studio]:
        """获取已审核通过的工作室（按创建时间倒序）"""
        return await self.query_by_filters(
            filters={"status": "approved"},
            order_by="created_at",
            order_desc=True
        )

    async def get_by_user_id(self, user_id: str) -> Optional[Studio]:
        """
        获取用户的工作室

        Args:
            user_id: 用户ID

        Returns:
            工作室实例或None
        """
        results = await self.query_by_filters(filters={"user_id": user_id}, limit=1)
        return results[0] if results else None

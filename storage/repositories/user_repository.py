"""
UserRepository - 用户资料Repository
"""
# 标准库导包
from typing import Optional

# 第三方库导包
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

# 项目内部导包
from storage.models.user import User
from storage.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """用户资料Repository"""

    def __init__(self, session: AsyncSession):
        super().__init__(session, User)

    async def get_by_username(self, username: str) -> Optional[User]:
        """按用户名精确查找用户"""
        result = await self.session.execute(
            select(User).where(User.username == username)
        )
        return result.scalar_one_or_none()

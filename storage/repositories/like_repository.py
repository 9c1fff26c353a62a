"""
LikeRepository - 帖子点赞Repository
"""
# 标准库导包
from typing import Optional, List

# 第三方库导包
from sqlalchemy import select, delete, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

# 项目内部导包
from storage.models.post_like import PostLike
from storage.repositories.base import BaseRepository


class LikeRepository(BaseRepository[PostLike]):
    """帖子点赞Repository"""

    def __init__(self, session: AsyncSession):
        super().__init__(session, PostLike)

    async def count_by_post(self, post_id: int) -> int:
        """统计帖子的点赞数"""
        return await self.count(post_id=post_id)

    async def get_by_post_and_user(self, post_id: int, user_id: str) -> Optional[PostLike]:
        """
        获取用户对帖子的点赞记录

        Args:
            post_id: 帖子ID
            user_id: 用户ID

        Returns:
            点赞记录或None
        """
        results = await self.query_by_filters(
            filters={"post_id": post_id, "user_id": user_id},
            limit=1
        )
        return results[0] if results else None

    async def delete_by_post_and_user(self, post_id: int, user_id: str) -> bool:
        """
        取消点赞

        Returns:
            是否删除了记录
        """
        result = await self.session.execute(
            delete(PostLike).where(
                and_(
                    PostLike.post_id == post_id,
                    PostLike.user_id == user_id
                )
            )
        )
        return result.rowcount > 0

    async def get_recent_likes(self, post_id: int, limit: int) -> List[PostLike]:
        """
        获取最近的点赞记录，包含点赞用户

        Args:
            post_id: 帖子ID
            limit: 返回数量

        Returns:
            点赞记录列表（按时间倒序）
        """
        query = select(PostLike).options(
            selectinload(PostLike.user)
        ).where(
            PostLike.post_id == post_id
        ).order_by(
            PostLike.created_at.desc(), PostLike.id.desc()
        ).limit(limit)

        result = await self.session.execute(query)
        return list(result.scalars().all())

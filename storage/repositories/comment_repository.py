"""
CommentRepository - 帖子评论Repository
"""
# 标准库导包
from typing import Optional, List, Dict

# 第三方库导包
from sqlalchemy import select, update, func, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

# 项目内部导包
from storage.models.post_comment import PostComment
from storage.repositories.base import BaseRepository


class CommentRepository(BaseRepository[PostComment]):
    """帖子评论Repository"""

    def __init__(self, session: AsyncSession):
        super().__init__(session, PostComment)

    async def get_with_user(self, comment_id: int) -> Optional[PostComment]:
        """获取评论及其作者"""
        query = select(PostComment).options(
            selectinload(PostComment.user)
        ).where(
            PostComment.id == comment_id
        ).execution_options(populate_existing=True)

        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_top_level(self, post_id: int, limit: int, offset: int) -> List[PostComment]:
        """
        获取帖子的顶级评论（未删除，按时间倒序）

        Args:
            post_id: 帖子ID
            limit: 每页数量
            offset: 偏移量

        Returns:
            评论列表
        """
        query = select(PostComment).options(
            selectinload(PostComment.user)
        ).where(
            and_(
                PostComment.post_id == post_id,
                PostComment.parent_id.is_(None),
                PostComment.is_deleted.is_(False)
            )
        ).order_by(
            PostComment.created_at.desc(), PostComment.id.desc()
        ).offset(offset).limit(limit)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_replies(self, comment_ids: List[int]) -> Dict[int, int]:
        """
        批量统计评论的未删除回复数

        Args:
            comment_ids: 评论ID列表

        Returns:
            {评论ID: 回复数}，没有回复的评论不在结果中
        """
        if not comment_ids:
            return {}

        query = select(
            PostComment.parent_id,
            func.count(PostComment.id)
        ).where(
            and_(
                PostComment.parent_id.in_(comment_ids),
                PostComment.is_deleted.is_(False)
            )
        ).group_by(PostComment.parent_id)

        result = await self.session.execute(query)
        return {parent_id: count for parent_id, count in result.all()}

    async def get_replies(self, comment_id: int) -> List[PostComment]:
        """获取评论的未删除回复（按时间正序）"""
        query = select(PostComment).options(
            selectinload(PostComment.user)
        ).where(
            and_(
                PostComment.parent_id == comment_id,
                PostComment.is_deleted.is_(False)
            )
        ).order_by(
            PostComment.created_at.asc(), PostComment.id.asc()
        )

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def soft_delete(self, comment_id: int) -> bool:
        """
        软删除评论

        Returns:
            是否找到并标记了评论
        """
        result = await self.session.execute(
            update(PostComment)
            .where(PostComment.id == comment_id)
            .values(is_deleted=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

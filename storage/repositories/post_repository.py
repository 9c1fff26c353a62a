"""
PostRepository - 帖子Repository
"""
# 标准库导包
from typing import Optional, List

# 第三方库导包
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

# 项目内部导包
from storage.models.post import Post
from storage.models.post_tag import PostTagRel
from storage.repositories.base import BaseRepository


class PostRepository(BaseRepository[Post]):
    """帖子Repository"""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Post)

    def _with_relations(self):
        """帖子查询，预加载作者和标签"""
        return select(Post).options(
            selectinload(Post.author),
            selectinload(Post.tag_links).selectinload(PostTagRel.tag)
        )

    async def get_with_relations(self, post_id: int) -> Optional[Post]:
        """
        获取帖子详情，包含作者和标签

        Args:
            post_id: 帖子ID

        Returns:
            帖子实例或None
        """
        query = self._with_relations().where(Post.id == post_id).execution_options(populate_existing=True)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list_with_relations(
        self,
        user_id: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None
    ) -> List[Post]:
        """
        获取帖子列表（按创建时间倒序），包含作者和标签

        Args:
            user_id: 只返回该用户的帖子（可选）
            limit: 限制返回数量
            offset: 偏移量

        Returns:
            帖子列表
        """
        query = self._with_relations().order_by(Post.created_at.desc(), Post.id.desc())

        if user_id:
            query = query.where(Post.user_id == user_id)
        if offset:
            query = query.offset(offset)
        if limit:
            query = query.limit(limit)

        result = await self.session.execute(query.execution_options(populate_existing=True))
        return list(result.scalars().all())

    async def increment_views(self, post_id: int) -> None:
        """浏览次数加一"""
        await self.session.execute(
            update(Post)
            .where(Post.id == post_id)
            .values(post_views=Post.post_views + 1)
            .execution_options(synchronize_session=False)
        )

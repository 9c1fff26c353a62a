"""
评论服务类
处理帖子评论的分页、回复、创建、修改和软删除
"""
# 标准库导包
import logging
from typing import Optional, List, Tuple

# 第三方库导包
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

# 项目内部导包
from config import settings
from storage.models.post_comment import PostComment
from storage.repositories.comment_repository import CommentRepository

# 配置日志
logger = logging.getLogger(__name__)


class CommentService:
    """评论服务类"""

    def __init__(self, session: AsyncSession):
        """
        初始化评论服务

        Args:
            session: 数据库会话
        """
        self.session = session
        self.comment_repo = CommentRepository(session)

    async def get_comments(
        self,
        post_id: int,
        page: int = 1,
        limit: Optional[int] = None
    ) -> List[Tuple[PostComment, int]]:
        """
        分页获取帖子的顶级评论及其回复数

        Args:
            post_id: 帖子ID
            page: 页码（从1开始）
            limit: 每页数量，默认 settings.COMMENTS_PAGE_SIZE

        Returns:
            (评论, 未删除回复数) 列表，按创建时间倒序
        """
        if limit is None:
            limit = settings.COMMENTS_PAGE_SIZE
        if post_id <= 0 or page < 1 or limit < 1:
            return []

        offset = (page - 1) * limit
        try:
            comments = await self.comment_repo.get_top_level(post_id, limit=limit, offset=offset)
            reply_counts = await self.comment_repo.count_replies([comment.id for comment in comments])
        except SQLAlchemyError as e:
            logger.error(f"获取评论失败: post_id={post_id}, error={str(e)}")
            return []

        return [(comment, reply_counts.get(comment.id, 0)) for comment in comments]

    async def get_replies(self, comment_id: int) -> List[PostComment]:
        """获取评论的回复，按创建时间正序"""
        if comment_id <= 0:
            return []

        try:
            return await self.comment_repo.get_replies(comment_id)
        except SQLAlchemyError as e:
            logger.error(f"获取回复失败: comment_id={comment_id}, error={str(e)}")
            return []

    async def get_comment_owner(self, comment_id: int) -> Optional[str]:
        """获取评论作者ID，评论不存在返回None"""
        comment = await self.comment_repo.get_by_id(comment_id)
        return comment.user_id if comment else None

    async def create_comment(
        self,
        post_id: int,
        user_id: str,
        content: str,
        parent_id: Optional[int] = None
    ) -> Optional[PostComment]:
        """
        创建评论

        Args:
            post_id: 帖子ID
            user_id: 评论者ID
            content: 评论内容（已校验）
            parent_id: 被回复的评论ID，为None表示顶级评论

        Returns:
            创建的评论（已加载作者），失败返回None
        """
        if post_id <= 0 or not content or not content.strip():
            return None

        try:
            comment = await self.comment_repo.create(
                post_id=post_id,
                user_id=user_id,
                content=content.strip(),
                parent_id=parent_id or None
            )
            logger.info(f"创建评论: comment_id={comment.id}, post_id={post_id}, parent_id={parent_id}")
            return await self.comment_repo.get_with_user(comment.id)
        except SQLAlchemyError as e:
            logger.error(f"创建评论失败: post_id={post_id}, error={str(e)}")
            await self.session.rollback()
            return None

    async def update_comment(self, comment_id: int, content: str) -> Optional[PostComment]:
        """
        修改评论内容

        Returns:
            修改后的评论（已加载作者），失败返回None
        """
        if comment_id <= 0 or not content or not content.strip():
            return None

        try:
            updated = await self.comment_repo.update_by_id(comment_id, content=content.strip())
            if not updated:
                return None
            return await self.comment_repo.get_with_user(comment_id)
        except SQLAlchemyError as e:
            logger.error(f"修改评论失败: comment_id={comment_id}, error={str(e)}")
            await self.session.rollback()
            return None

    async def delete_comment(self, comment_id: int) -> bool:
        """软删除评论"""
        if comment_id <= 0:
            return False

        try:
            deleted = await self.comment_repo.soft_delete(comment_id)
        except SQLAlchemyError as e:
            logger.error(f"删除评论失败: comment_id={comment_id}, error={str(e)}")
            await self.session.rollback()
            return False

        if deleted:
            logger.info(f"删除评论: comment_id={comment_id}")
        return deleted

"""
点赞服务类
处理帖子点赞相关的业务逻辑
"""
# 标准库导包
import logging
from typing import Any, Dict, List, Optional

# 第三方库导包
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

# 项目内部导包
from config import settings
from routers.utils.validators import validate_id
from storage.models.post_like import PostLike
from storage.repositories.like_repository import LikeRepository

# 配置日志
logger = logging.getLogger(__name__)


class LikeService:
    """
    点赞服务类

    帖子ID不合法时直接返回默认值（0 / False / 空列表），不访问数据库。
    """

    def __init__(self, session: AsyncSession):
        """
        初始化点赞服务

        Args:
            session: 数据库会话
        """
        self.session = session
        self.like_repo = LikeRepository(session)

    async def get_like_count(self, post_id: Any) -> int:
        """获取帖子点赞数，查询失败返回0"""
        valid_post_id = validate_id(post_id)
        if not valid_post_id:
            return 0

        try:
            return await self.like_repo.count_by_post(valid_post_id)
        except SQLAlchemyError as e:
            logger.error(f"获取点赞数失败: post_id={valid_post_id}, error={str(e)}")
            return 0

    async def is_post_liked(self, post_id: Any, user_id: str) -> bool:
        """判断用户是否已点赞，查询失败返回False"""
        valid_post_id = validate_id(post_id)
        if not valid_post_id or not user_id:
            return False

        try:
            like = await self.like_repo.get_by_post_and_user(valid_post_id, user_id)
        except SQLAlchemyError as e:
            logger.error(f"查询点赞状态失败: post_id={valid_post_id}, error={str(e)}")
            return False
        return like is not None

    async def toggle_like(self, post_id: Any, user_id: str) -> Dict[str, bool]:
        """
        点赞或取消点赞

        Args:
            post_id: 帖子ID
            user_id: 用户ID

        Returns:
            {"success": 是否成功, "is_liked": 操作后的点赞状态}
        """
        valid_post_id = validate_id(post_id)
        if not valid_post_id or not user_id:
            return {"success": False, "is_liked": False}

        is_liked = await self.is_post_liked(valid_post_id, user_id)

        if is_liked:
            try:
                await self.like_repo.delete_by_post_and_user(valid_post_id, user_id)
            except SQLAlchemyError as e:
                logger.error(f"取消点赞失败: post_id={valid_post_id}, error={str(e)}")
                await self.session.rollback()
                return {"success": False, "is_liked": True}
            logger.info(f"取消点赞: post_id={valid_post_id}, user_id={user_id}")
            return {"success": True, "is_liked": False}

        try:
            await self.like_repo.create(post_id=valid_post_id, user_id=user_id)
        except SQLAlchemyError as e:
            logger.error(f"点赞失败: post_id={valid_post_id}, error={str(e)}")
            await self.session.rollback()
            return {"success": False, "is_liked": False}
        logger.info(f"点赞: post_id={valid_post_id}, user_id={user_id}")
        return {"success": True, "is_liked": True}

    async def get_liked_users(self, post_id: Any, limit: Optional[int] = None) -> List[PostLike]:
        """
        获取最近点赞的用户

        Args:
            post_id: 帖子ID
            limit: 返回数量，默认 settings.LIKED_USERS_LIMIT

        Returns:
            点赞记录列表（已加载用户），按时间倒序
        """
        if limit is None:
            limit = settings.LIKED_USERS_LIMIT

        valid_post_id = validate_id(post_id)
        if not valid_post_id or limit < 1:
            return []

        try:
            return await self.like_repo.get_recent_likes(valid_post_id, limit)
        except SQLAlchemyError as e:
            logger.error(f"获取点赞用户失败: post_id={valid_post_id}, error={str(e)}")
            return []

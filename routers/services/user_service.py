"""
用户服务类
处理用户资料查询、用户名可用性检查和头像地址解析
"""
# 标准库导包
import logging
from typing import Optional
from urllib.parse import quote

# 第三方库导包
from sqlalchemy.ext.asyncio import AsyncSession

# 项目内部导包
from config import settings
from storage.models.user import User
from storage.repositories.user_repository import UserRepository

# 配置日志
logger = logging.getLogger(__name__)


def get_avatar_url(avatar_url: Optional[str], username: Optional[str] = None) -> str:
    """
    解析用于展示的头像地址

    - 以 http 开头的完整地址原样返回
    - 文件名拼接到存储的 avatars/ 目录下；未配置存储地址时原样返回文件名
    - 没有头像时返回以用户名为种子的默认头像

    Args:
        avatar_url: 用户保存的头像值
        username: 用户名，用作默认头像的种子

    Returns:
        头像地址
    """
    if avatar_url:
        if avatar_url.startswith("http"):
            return avatar_url

        if settings.AVATAR_STORAGE_BASE_URL:
            base_url = settings.AVATAR_STORAGE_BASE_URL.rstrip("/")
            return f"{base_url}/avatars/{avatar_url.lstrip('/')}"

        return avatar_url

    seed = quote(username, safe="") if username else "default"
    return f"{settings.DEFAULT_AVATAR_URL}?seed={seed}"


class UserService:
    """
    用户服务类

    查询不到或参数为空时返回None/False，数据库异常直接抛出。
    """

    def __init__(self, session: AsyncSession):
        """
        初始化用户服务

        Args:
            session: 数据库会话
        """
        self.session = session
        self.user_repo = UserRepository(session)

    async def get_user_profile(self, user_id: str) -> Optional[User]:
        """
        按用户ID获取用户资料

        Args:
            user_id: 用户ID

        Returns:
            用户资料，不存在时返回None
        """
        if not user_id or not user_id.strip():
            return None
        return await self.user_repo.get_by_id(user_id.strip())

    async def get_user_profile_by_username(self, username: str) -> Optional[User]:
        """按用户名获取用户资料，不存在时返回None"""
        if not username or not username.strip():
            return None
        return await self.user_repo.get_by_username(username.strip())

    async def is_username_available(self, username: str) -> bool:
        """
        检查用户名是否可用

        空用户名不可用；用户名按原样精确比较。
        """
        if not username or not username.strip():
            return False

        taken = await self.user_repo.exists(username=username.strip())
        if taken:
            logger.debug(f"用户名已被占用: {username.strip()}")
        return not taken

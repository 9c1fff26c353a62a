"""
帖子服务类
处理帖子的创建、编辑、删除、列表筛选和浏览计数
"""
# 标准库导包
import logging
from typing import Optional, List, Iterable

# 第三方库导包
from sqlalchemy.ext.asyncio import AsyncSession

# 项目内部导包
from cache import TTLCache
from storage.models.post import Post
from storage.repositories.post_repository import PostRepository
from routers.services.taxonomy_service import TaxonomyService

# 配置日志
logger = logging.getLogger(__name__)


def get_post_tags(post: Post) -> List[str]:
    """获取帖子的标签名称（需已加载 tag_links）"""
    return [link.tag.tag_name for link in post.tag_links if link.tag is not None]


def is_post_owner(post: Post, user_id: Optional[str]) -> bool:
    return bool(user_id) and post.user_id == user_id


def filter_posts(
    posts: Iterable[Post],
    selected_tags: Optional[List[str]] = None,
    search_query: Optional[str] = None
) -> List[Post]:
    """
    按标签和关键词筛选帖子

    Args:
        posts: 帖子列表（需已加载作者和标签）
        selected_tags: 帖子至少包含其中一个标签才保留，为空时不按标签筛选
        search_query: 标题或作者用户名包含该关键词（不区分大小写）才保留

    Returns:
        筛选后的帖子列表，保持原有顺序
    """
    filtered = list(posts)

    if selected_tags:
        wanted = set(selected_tags)
        filtered = [
            post for post in filtered
            if any(tag in wanted for tag in get_post_tags(post))
        ]

    if search_query:
        query = search_query.lower()
        filtered = [
            post for post in filtered
            if query in (post.title or "").lower()
            or (post.author is not None and query in (post.author.username or "").lower())
        ]

    return filtered


class PostService:
    """帖子服务类"""

    def __init__(self, session: AsyncSession, cache: Optional[TTLCache] = None):
        """
        初始化帖子服务

        Args:
            session: 数据库会话
            cache: 进程内缓存，标签写入后用于失效标签列表
        """
        self.session = session
        self.post_repo = PostRepository(session)
        self.tag_service = TaxonomyService.for_tags(session, cache)

    async def get_post(self, post_id: int) -> Optional[Post]:
        """获取帖子详情（包含作者和标签）"""
        return await self.post_repo.get_with_relations(post_id)

    async def list_posts(
        self,
        user_id: Optional[str] = None,
        selected_tags: Optional[List[str]] = None,
        search_query: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0
    ) -> List[Post]:
        """
        获取帖子列表，先筛选再分页

        Args:
            user_id: 只返回该用户的帖子（可选）
            selected_tags: 标签筛选
            search_query: 关键词筛选
            limit: 返回数量
            offset: 偏移量

        Returns:
            帖子列表（按创建时间倒序）
        """
        posts = await self.post_repo.list_with_relations(user_id=user_id)
        posts = filter_posts(posts, selected_tags=selected_tags, search_query=search_query)

        if limit is None:
            return posts[offset:]
        return posts[offset:offset + limit]

    async def create_post(
        self,
        user_id: str,
        title: str,
        content: Optional[str] = None,
        tags: Optional[List[str]] = None
    ) -> Post:
        """
        创建帖子并关联标签

        标签写入失败只记录警告，帖子本身仍然创建成功。

        Args:
            user_id: 作者ID
            title: 标题
            content: 正文
            tags: 标签名称列表

        Returns:
            帖子详情（包含作者和标签）
        """
        post = await self.post_repo.create(user_id=user_id, title=title.strip(), content=content)
        logger.info(f"创建帖子: post_id={post.id}, user_id={user_id}")

        if tags:
            result = await self.tag_service.replace_entity_items(post.id, tags)
            if not result.ok:
                logger.warning(f"帖子标签写入失败: post_id={post.id}, error={str(result.error)}")

        return await self.post_repo.get_with_relations(post.id)

    async def update_post(
        self,
        post_id: int,
        title: Optional[str] = None,
        content: Optional[str] = None,
        tags: Optional[List[str]] = None
    ) -> Optional[Post]:
        """
        编辑帖子，未提供的字段保持不变

        tags 不为None时把帖子标签同步为该列表（空列表表示清空标签）。

        Returns:
            更新后的帖子详情，帖子不存在时返回None
        """
        values = {}
        if title is not None:
            values["title"] = title.strip()
        if content is not None:
            values["content"] = content

        if values:
            updated = await self.post_repo.update_by_id(post_id, **values)
            if not updated:
                return None
        elif not await self.post_repo.exists(id=post_id):
            return None

        if tags is not None:
            result = await self.tag_service.replace_entity_items(post_id, tags)
            if not result.ok:
                logger.warning(f"帖子标签同步失败: post_id={post_id}, error={str(result.error)}")

        return await self.post_repo.get_with_relations(post_id)

    async def delete_post(self, post_id: int) -> bool:
        """
        删除帖子及其标签关联

        Returns:
            是否删除了帖子
        """
        result = await self.tag_service.clear_entity_items(post_id)
        if not result.ok:
            logger.warning(f"清空帖子标签失败: post_id={post_id}, error={str(result.error)}")

        deleted = await self.post_repo.delete_by_id(post_id)
        if deleted:
            logger.info(f"删除帖子: post_id={post_id}")
        return deleted

    async def record_view(self, post_id: int) -> None:
        """浏览次数加一"""
        await self.post_repo.increment_views(post_id)

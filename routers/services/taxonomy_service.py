"""
分类体系服务类
处理帖子标签、服务分类这类"实体-名称项"多对多关系的业务逻辑
"""
# 标准库导包
import logging
from typing import Optional, List, Iterable

# 第三方库导包
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession

# 项目内部导包
from cache import TTLCache
from config import settings
from storage.relationship_config import (
    RelationshipConfig,
    AtomicProcedure,
    TAG_CONFIG,
    SERVICE_CATEGORY_CONFIG,
    TAG_SYNC_PROCEDURE,
    clean_item_name,
    is_valid_item_name,
)
from storage.repositories.relationship_repository import (
    RelationshipRepository,
    RelationshipResult,
    ItemOutcome,
    Item,
)

# 配置日志
logger = logging.getLogger(__name__)


class TaxonomyService:
    """
    分类体系服务类

    在 RelationshipRepository 之上负责名称清洗、校验和去重，
    写入成功后使对应的缓存失效。
    """

    def __init__(
        self,
        session: AsyncSession,
        config: RelationshipConfig,
        cache: Optional[TTLCache] = None,
        procedure: Optional[AtomicProcedure] = None
    ):
        """
        初始化分类体系服务

        Args:
            session: 数据库会话
            config: 关系配置
            cache: 进程内缓存
            procedure: 数据库端原子更新过程，为None时不支持原子更新
        """
        self.session = session
        self.config = config
        self.cache = cache
        self.procedure = procedure
        self.repo = RelationshipRepository(session, config, cache=cache)

    @classmethod
    def for_tags(cls, session: AsyncSession, cache: Optional[TTLCache] = None) -> "TaxonomyService":
        """帖子标签服务"""
        return cls(session, TAG_CONFIG, cache=cache, procedure=TAG_SYNC_PROCEDURE)

    @classmethod
    def for_service_categories(cls, session: AsyncSession, cache: Optional[TTLCache] = None) -> "TaxonomyService":
        """服务分类服务"""
        return cls(session, SERVICE_CATEGORY_CONFIG, cache=cache)

    def prepare_names(self, raw_names: Iterable[str]) -> List[str]:
        """
        清洗、校验并去重名称

        不合法的名称会被丢弃并记录警告，保持首次出现的顺序。

        Args:
            raw_names: 原始名称列表

        Returns:
            可直接写入的名称列表
        """
        names = []
        for raw_name in raw_names:
            if not is_valid_item_name(raw_name):
                logger.warning(f"忽略不合法的{self.config.items_table}名称: {raw_name!r}")
                continue
            names.append(clean_item_name(raw_name))
        return list(dict.fromkeys(names))

    def invalidate_cache(self) -> None:
        """
        使全部名称和最常用排行的缓存失效

        立即失效一次，会话提交后再失效一次：
        提交前并发读取可能把未提交前的旧列表重新写入缓存。
        """
        if self.cache is None:
            return
        self._drop_cached_lists()
        if self.session is not None:
            event.listen(self.session.sync_session, "after_commit", self._on_commit, once=True)

    def _drop_cached_lists(self) -> None:
        self.cache.invalidate(self.config.cache_key)
        self.cache.invalidate(self.config.most_used_cache_key)

    def _on_commit(self, session) -> None:
        self._drop_cached_lists()

    # ========== 查询 ==========

    async def list_items(self) -> List[Item]:
        return await self.repo.list_items()

    async def list_names(self) -> List[str]:
        return await self.repo.list_all_item_names()

    async def most_used(self, limit: Optional[int] = None) -> List[str]:
        return await self.repo.get_most_used_items(limit or settings.MOST_USED_LIMIT)

    async def names_for_entity(self, entity_id: int) -> List[str]:
        """
        获取实体关联的名称，按名称排序

        Args:
            entity_id: 实体ID

        Returns:
            名称列表
        """
        rows = await self.repo.list_items_for_entity(entity_id)
        return sorted(row["item_name"] for row in rows if row["item_name"])

    # ========== 写操作 ==========

    async def ensure_items(self, raw_names: Iterable[str]) -> List[ItemOutcome]:
        """
        确保名称项存在（用于初始化默认标签/分类）

        Args:
            raw_names: 原始名称列表

        Returns:
            每个名称的处理结果
        """
        outcomes = await self.repo.ensure_items_exist(self.prepare_names(raw_names))
        if any(outcome.created for outcome in outcomes):
            self.invalidate_cache()
        return outcomes

    async def replace_entity_items(
        self,
        entity_id: int,
        raw_names: Iterable[str],
        atomic: Optional[bool] = None
    ) -> RelationshipResult:
        """
        将实体的名称项替换为目标列表

        Args:
            entity_id: 实体ID
            raw_names: 目标名称列表（会先清洗和校验）
            atomic: 是否使用数据库端原子过程，None时使用 settings.USE_ATOMIC_TAG_SYNC

        Returns:
            RelationshipResult
        """
        names = self.prepare_names(raw_names)
        if atomic is None:
            atomic = settings.USE_ATOMIC_TAG_SYNC and self.procedure is not None

        if atomic:
            if self.procedure is None:
                error = NotImplementedError(f"{self.config.items_table} 未配置数据库端原子过程")
                logger.warning(str(error))
                return RelationshipResult(error=error)
            result = await self.repo.sync_entity_items_atomic(entity_id, names, self.procedure)
        else:
            result = await self.repo.sync_entity_items(entity_id, names)

        if result.ok:
            self.invalidate_cache()
        return result

    async def clear_entity_items(self, entity_id: int) -> RelationshipResult:
        """删除实体的全部关联"""
        result = await self.repo.unlink_all_from_entity(entity_id)
        if result.ok:
            self.invalidate_cache()
        return result

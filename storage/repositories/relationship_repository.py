"""
RelationshipRepository - 通用多对多关系Repository

按 RelationshipConfig 描述的表结构维护"实体-名称项"关联，
帖子-标签和服务-分类共用同一套实现。
"""
# 标准库导包
import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Iterable

# 第三方库导包
from sqlalchemy import select, insert, delete, text, table, column, func
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

# 项目内部导包
from cache import TTLCache
from config import settings
from storage.relationship_config import RelationshipConfig, AtomicProcedure

# 配置日志
logger = logging.getLogger(__name__)

# 支持 "冲突时不插入" 语法的数据库
_UPSERT_DIALECTS = ("postgresql", "sqlite", "mysql", "mariadb")


@dataclass(frozen=True)
class Item:
    """名称项（标签/分类）"""
    id: int
    name: str


@dataclass
class RelationshipResult:
    """写操作结果，error为None表示成功"""
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ItemOutcome:
    """ensure_items_exist 中单个名称的处理结果"""
    name: str
    created: bool = False
    error: Optional[Exception] = None


@dataclass
class SyncPlan:
    """同步计划：需要新增和需要移除的名称"""
    to_add: List[str] = field(default_factory=list)
    to_remove: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.to_add and not self.to_remove


def compute_sync_plan(current: Iterable[str], target: Iterable[str]) -> SyncPlan:
    """
    计算最小差异：to_add = target - current，to_remove = current - target

    按名称做集合差，结果保持输入中的首次出现顺序。
    """
    current_names = list(dict.fromkeys(current))
    target_names = list(dict.fromkeys(target))
    current_set = set(current_names)
    target_set = set(target_names)

    return SyncPlan(
        to_add=[name for name in target_names if name not in current_set],
        to_remove=[name for name in current_names if name not in target_set],
    )


def rank_most_used(names: Iterable[Optional[str]], limit: Optional[int] = 5) -> List[str]:
    """
    按出现次数降序排列名称

    次数相同的名称按首次出现的顺序排列。关联表扫描本身没有固定的次序，
    因此除非数据库保证行顺序，并列名称之间的先后是不确定的。

    Args:
        names: 关联表扫描得到的名称序列
        limit: 返回数量上限，None表示全部

    Returns:
        名称列表
    """
    counts = Counter(name for name in names if name)
    return [name for name, _ in counts.most_common(limit)]


class RelationshipRepository:
    """
    通用多对多关系Repository

    所有查询都通过SQLAlchemy查询构造器生成，表名和列名来自已校验的配置，
    参数值全部以绑定参数传递。

    写操作不捕获 "不存在" 或 "已存在" 这类情况，它们都是幂等的空操作；
    只有数据库异常会被记录日志并通过 RelationshipResult.error 返回。
    """

    def __init__(
        self,
        session: AsyncSession,
        config: RelationshipConfig,
        cache: Optional[TTLCache] = None,
        cache_ttl: Optional[float] = None
    ):
        """
        初始化Repository

        Args:
            session: 数据库会话
            config: 关系配置
            cache: 进程内缓存，用于全部名称和最常用排行等聚合查询
            cache_ttl: 缓存时间（秒），None表示使用缓存默认值
        """
        self.session = session
        self.config = config
        self.cache = cache
        self.cache_ttl = cache_ttl

        self._items = table(
            config.items_table,
            column("id"),
            column(config.item_name_column),
        )
        self._relations = table(
            config.relations_table,
            column(config.entity_id_column),
            column(config.item_id_column),
        )
        self._items_alias = self._items.alias(config.foreign_table_alias)

    # ========== 列访问 ==========

    @property
    def _item_name(self):
        return self._items.c[self.config.item_name_column]

    @property
    def _rel_entity_id(self):
        return self._relations.c[self.config.entity_id_column]

    @property
    def _rel_item_id(self):
        return self._relations.c[self.config.item_id_column]

    def _dialect_name(self) -> str:
        return self.session.get_bind().dialect.name

    def _name_matches(self, names: List[str]):
        """名称匹配条件；不区分大小写时比较 lower(名称列)"""
        name_column = self._item_name if self.config.case_sensitive else func.lower(self._item_name)
        return name_column.in_(names)

    def _unique_names(self, names: Iterable[str]) -> List[str]:
        """按大小写配置规范化并去重，保持原有顺序"""
        return list(dict.fromkeys(
            self.config.normalize(name) for name in names if name
        ))

    # ========== 查询 ==========

    async def _fetch_all_item_names(self) -> List[str]:
        query = select(self._item_name).order_by(self._item_name.asc())
        result = await self.session.execute(query)
        return [name for name in result.scalars().all() if name]

    async def list_all_item_names(self) -> List[str]:
        """
        获取全部名称，按名称升序

        配置了缓存时通过缓存读取。数据库异常记录日志后返回空列表，
        异常结果不会写入缓存。

        Returns:
            名称列表
        """
        try:
            if self.cache is None:
                names = await self._fetch_all_item_names()
            else:
                names = await self.cache.get_or_fetch(
                    self.config.cache_key,
                    self.cache_ttl,
                    self._fetch_all_item_names
                )
        except SQLAlchemyError as e:
            logger.error(f"获取{self.config.items_table}全部名称失败: {str(e)}")
            return []

        return list(names)

    async def list_items(self) -> List[Item]:
        """
        获取全部名称项（ID和名称），按名称升序，不走缓存

        Returns:
            名称项列表
        """
        query = select(self._items.c.id, self._item_name).order_by(self._item_name.asc())
        result = await self.session.execute(query)
        return [Item(id=row[0], name=row[1]) for row in result.all()]

    async def list_items_for_entity(self, entity_id: int) -> List[Dict[str, Any]]:
        """
        获取实体当前关联的名称项

        通过 foreign_table_alias 别名关联名称项表，不保证顺序。

        Args:
            entity_id: 实体ID

        Returns:
            列表，每个元素包含 item_id 和 item_name
        """
        alias = self._items_alias
        query = select(
            self._rel_item_id.label("item_id"),
            alias.c[self.config.item_name_column].label("item_name"),
        ).join_from(
            self._relations, alias, self._rel_item_id == alias.c.id
        ).where(
            self._rel_entity_id == entity_id
        )

        result = await self.session.execute(query)
        return [
            {"item_id": row.item_id, "item_name": row.item_name}
            for row in result.all()
        ]

    async def get_most_used_items(self, limit: Optional[int] = None) -> List[str]:
        """
        获取使用次数最多的名称

        需要扫描整个关联表，完整排行通过缓存保存在 most_used_cache_key 下，
        返回时再按limit截取。数据库异常记录日志后返回空列表。

        Args:
            limit: 返回数量，默认 settings.MOST_USED_LIMIT

        Returns:
            名称列表，按使用次数降序
        """
        if limit is None:
            limit = settings.MOST_USED_LIMIT

        async def fetch_ranking() -> List[str]:
            alias = self._items_alias
            query = select(alias.c[self.config.item_name_column]).select_from(
                self._relations.join(alias, self._rel_item_id == alias.c.id)
            )
            result = await self.session.execute(query)
            return rank_most_used(result.scalars().all(), limit=None)

        try:
            if self.cache is None:
                ranking = await fetch_ranking()
            else:
                ranking = await self.cache.get_or_fetch(
                    self.config.most_used_cache_key,
                    self.cache_ttl,
                    fetch_ranking
                )
        except SQLAlchemyError as e:
            logger.error(f"获取{self.config.relations_table}最常用名称失败: {str(e)}")
            return []

        return list(ranking[:limit])

    # ========== 写操作 ==========

    async def _insert_item_if_absent(self, name: str) -> bool:
        """
        按名称插入名称项，名称冲突时不做任何操作，返回是否新建

        唯一约束只保证精确匹配，不区分大小写时先按 lower(名称) 查重。
        """
        values = {self.config.item_name_column: name}
        dialect = self._dialect_name()

        if not self.config.case_sensitive or dialect not in _UPSERT_DIALECTS:
            existing = await self.session.execute(
                select(self._items.c.id).where(self._name_matches([name])).limit(1)
            )
            if existing.first() is not None:
                return False

        if dialect == "postgresql":
            stmt = postgresql.insert(self._items).values(**values).on_conflict_do_nothing(
                index_elements=[self.config.item_name_column]
            )
        elif dialect == "sqlite":
            stmt = sqlite.insert(self._items).values(**values).on_conflict_do_nothing(
                index_elements=[self.config.item_name_column]
            )
        elif dialect in ("mysql", "mariadb"):
            stmt = mysql.insert(self._items).values(**values).prefix_with("IGNORE")
        else:
            stmt = insert(self._items).values(**values)

        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def ensure_items_exist(self, item_names: Iterable[str]) -> List[ItemOutcome]:
        """
        确保名称项存在：不存在则插入，已存在则跳过

        每个名称在独立的保存点中处理，单个名称失败只回滚自己的保存点，
        不影响其他名称（PostgreSQL 在语句失败后会中止整个事务）。
        大小写规范化由调用方负责，或通过 RelationshipConfig.case_sensitive 配置。

        Args:
            item_names: 名称列表

        Returns:
            每个名称的处理结果
        """
        outcomes = []
        for name in self._unique_names(item_names):
            try:
                async with self.session.begin_nested():
                    created = await self._insert_item_if_absent(name)
                outcomes.append(ItemOutcome(name=name, created=created))
            except SQLAlchemyError as e:
                logger.warning(f"创建{self.config.items_table}名称项失败: name={name}, error={str(e)}")
                outcomes.append(ItemOutcome(name=name, error=e))

        created_count = sum(1 for outcome in outcomes if outcome.created)
        if created_count:
            logger.info(f"{self.config.items_table} 新建名称项 {created_count} 个")
        return outcomes

    async def link_items_to_entity(self, entity_id: int, item_names: Iterable[str]) -> RelationshipResult:
        """
        将名称项关联到实体

        名称需已存在（先调用 ensure_items_exist），不存在的名称会被忽略。
        已存在的关联会被跳过，重复调用结果相同。

        Args:
            entity_id: 实体ID
            item_names: 名称列表

        Returns:
            RelationshipResult
        """
        names = self._unique_names(item_names)
        if not names:
            return RelationshipResult()

        try:
            async with self.session.begin_nested():
                id_result = await self.session.execute(
                    select(self._items.c.id).where(self._name_matches(names))
                )
                item_ids = list(dict.fromkeys(id_result.scalars().all()))
                if not item_ids:
                    return RelationshipResult()

                existing_result = await self.session.execute(
                    select(self._rel_item_id).where(
                        self._rel_entity_id == entity_id,
                        self._rel_item_id.in_(item_ids)
                    )
                )
                existing_ids = set(existing_result.scalars().all())

                rows = [
                    {
                        self.config.entity_id_column: entity_id,
                        self.config.item_id_column: item_id,
                    }
                    for item_id in item_ids
                    if item_id not in existing_ids
                ]
                if rows:
                    await self.session.execute(insert(self._relations).values(rows))

            return RelationshipResult()

        except SQLAlchemyError as e:
            logger.error(f"关联{self.config.items_table}失败: entity_id={entity_id}, error={str(e)}")
            return RelationshipResult(error=e)

    async def _unlink_items(self, entity_id: int, item_ids: List[int]) -> RelationshipResult:
        """删除实体与指定名称项ID的关联"""
        try:
            async with self.session.begin_nested():
                await self.session.execute(
                    delete(self._relations).where(
                        self._rel_entity_id == entity_id,
                        self._rel_item_id.in_(item_ids)
                    )
                )
            return RelationshipResult()
        except SQLAlchemyError as e:
            logger.error(f"移除{self.config.items_table}关联失败: entity_id={entity_id}, error={str(e)}")
            return RelationshipResult(error=e)

    async def unlink_all_from_entity(self, entity_id: int) -> RelationshipResult:
        """
        删除实体的全部关联，没有关联时为空操作

        Args:
            entity_id: 实体ID

        Returns:
            RelationshipResult
        """
        try:
            async with self.session.begin_nested():
                await self.session.execute(
                    delete(self._relations).where(self._rel_entity_id == entity_id)
                )
            return RelationshipResult()
        except SQLAlchemyError as e:
            logger.error(f"清空{self.config.items_table}关联失败: entity_id={entity_id}, error={str(e)}")
            return RelationshipResult(error=e)

    async def sync_entity_items(self, entity_id: int, target_item_names: Iterable[str]) -> RelationshipResult:
        """
        将实体的关联同步为目标名称列表（最小差异）

        步骤：
            1. 读取实体当前关联的名称
            2. 计算需要新增和需要移除的名称
            3. 只删除被移除名称对应的关联
            4. 只为新增名称执行 ensure_items_exist 和 link_items_to_entity

        始终先删除后新增。删除和新增各自在独立的保存点中执行，一步失败不会
        中止另一步，但会留下部分应用的结果（例如已删除但未新增），返回遇到的
        第一个错误，由调用方决定是否视为失败。

        并发说明：读取与写入之间没有锁，同一实体的两次同步并发执行会互相覆盖
        （丢失更新）。需要无竞争的更新时使用 sync_entity_items_atomic。

        目标列表为空时会移除全部关联。

        Args:
            entity_id: 实体ID
            target_item_names: 目标名称列表

        Returns:
            RelationshipResult
        """
        target = self._unique_names(target_item_names)

        try:
            current_rows = await self.list_items_for_entity(entity_id)
        except SQLAlchemyError as e:
            logger.error(f"读取{self.config.items_table}现有关联失败: entity_id={entity_id}, error={str(e)}")
            return RelationshipResult(error=e)

        ids_by_name: Dict[str, List[int]] = {}
        for row in current_rows:
            if row["item_name"]:
                name = self.config.normalize(row["item_name"])
                ids_by_name.setdefault(name, []).append(row["item_id"])

        plan = compute_sync_plan(ids_by_name.keys(), target)
        if plan.is_empty:
            return RelationshipResult()

        first_error: Optional[Exception] = None

        if plan.to_remove:
            remove_ids = [item_id for name in plan.to_remove for item_id in ids_by_name[name]]
            remove_result = await self._unlink_items(entity_id, remove_ids)
            # 移除失败时继续新增
            first_error = remove_result.error

        if plan.to_add:
            outcomes = await self.ensure_items_exist(plan.to_add)
            ensure_error = next((outcome.error for outcome in outcomes if outcome.error), None)
            link_result = await self.link_items_to_entity(entity_id, plan.to_add)
            first_error = first_error or ensure_error or link_result.error

        logger.info(
            f"同步{self.config.items_table}: entity_id={entity_id}, "
            f"新增={plan.to_add}, 移除={plan.to_remove}, 成功={first_error is None}"
        )
        return RelationshipResult(error=first_error)

    async def sync_entity_items_atomic(
        self,
        entity_id: int,
        target_item_names: Iterable[str],
        procedure: AtomicProcedure
    ) -> RelationshipResult:
        """
        通过数据库端过程一次性替换实体的全部关联

        读取和写入在数据库内的同一事务中完成，没有 sync_entity_items 的并发竞争问题。
        PostgreSQL 以命名参数调用函数，MySQL 以 CALL 调用存储过程（名称列表编码为JSON）。

        Args:
            entity_id: 实体ID
            target_item_names: 完整的目标名称列表
            procedure: 数据库端过程引用

        Returns:
            RelationshipResult
        """
        names = self._unique_names(target_item_names)
        dialect = self._dialect_name()

        if dialect == "postgresql":
            stmt = text(
                f"SELECT {procedure.name}("
                f"{procedure.entity_id_param} => :entity_id, "
                f"{procedure.item_names_param} => :item_names)"
            )
            params = {"entity_id": entity_id, "item_names": names}
        elif dialect in ("mysql", "mariadb"):
            stmt = text(f"CALL {procedure.name}(:entity_id, :item_names)")
            params = {"entity_id": entity_id, "item_names": json.dumps(names, ensure_ascii=False)}
        else:
            error = NotImplementedError(f"{dialect} 不支持数据库端过程 {procedure.name}")
            logger.warning(str(error))
            return RelationshipResult(error=error)

        try:
            await self.session.execute(stmt, params)
            return RelationshipResult()
        except SQLAlchemyError as e:
            logger.error(f"调用{procedure.name}失败: entity_id={entity_id}, error={str(e)}")
            return RelationshipResult(error=e)

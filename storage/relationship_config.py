"""
多对多关系配置
描述"条目-名称项"关联（帖子-标签、服务-分类）所用的表名和列名
"""
# 标准库导包
import re
from dataclasses import dataclass, fields

# 项目内部导包
from config import settings

# 合法的SQL标识符：字母或下划线开头，只包含字母、数字、下划线
_IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")
_WHITESPACE_PATTERN = re.compile(r"\s+")


def _check_identifier(owner: str, field_name: str, value: str) -> None:
    if not isinstance(value, str) or not _IDENTIFIER_PATTERN.match(value):
        raise ValueError(f"{owner}.{field_name} 不是合法的SQL标识符: {value!r}")


@dataclass(frozen=True)
class RelationshipConfig:
    """
    多对多关系配置（不可变）

    构造时校验所有表名、列名、别名，之后只通过SQLAlchemy查询构造器使用，
    不会被拼接进原始SQL字符串。

    Attributes:
        items_table: 名称项表，例如 post_tags
        relations_table: 关联表，例如 posts_tags_rel
        item_id_column: 关联表中名称项ID列，例如 tag_id
        item_name_column: 名称项表中的名称列，例如 tag_name
        entity_id_column: 关联表中实体ID列，例如 post_id
        foreign_table_alias: 关联查询时名称项表的别名
        cache_key: "全部名称项"的缓存键
        most_used_cache_key: "最常用名称项"的缓存键
        case_sensitive: 名称是否区分大小写；为False时所有名称先转为小写再使用
    """
    items_table: str
    relations_table: str
    item_id_column: str
    item_name_column: str
    entity_id_column: str
    foreign_table_alias: str
    cache_key: str
    most_used_cache_key: str
    case_sensitive: bool = True

    def __post_init__(self):
        for f in fields(self):
            if f.name in ("cache_key", "most_used_cache_key", "case_sensitive"):
                continue
            _check_identifier("RelationshipConfig", f.name, getattr(self, f.name))

        if not self.cache_key or not self.most_used_cache_key:
            raise ValueError("RelationshipConfig 的缓存键不能为空")
        if self.cache_key == self.most_used_cache_key:
            raise ValueError("cache_key 与 most_used_cache_key 不能相同")

    def normalize(self, name: str) -> str:
        """按大小写配置规范化名称"""
        return name if self.case_sensitive else name.lower()


@dataclass(frozen=True)
class AtomicProcedure:
    """
    数据库端原子更新过程的引用

    Attributes:
        name: 存储过程/函数名，例如 update_post_tags
        entity_id_param: 实体ID参数名
        item_names_param: 名称列表参数名
    """
    name: str
    entity_id_param: str
    item_names_param: str

    def __post_init__(self):
        for f in fields(self):
            _check_identifier("AtomicProcedure", f.name, getattr(self, f.name))


def clean_item_name(item_name: str) -> str:
    """
    清洗名称：去除首尾空白、转小写、内部空白替换为连字符

    Args:
        item_name: 原始名称

    Returns:
        清洗后的名称
    """
    return _WHITESPACE_PATTERN.sub("-", item_name.strip().lower())


def is_valid_item_name(item_name: str) -> bool:
    """名称去除首尾空白后长度需在 1 到 ITEM_NAME_MAX_LENGTH 之间"""
    if not isinstance(item_name, str):
        return False
    length = len(item_name.strip())
    return 0 < length <= settings.ITEM_NAME_MAX_LENGTH


# 帖子标签
TAG_CONFIG = RelationshipConfig(
    items_table="post_tags",
    relations_table="posts_tags_rel",
    item_id_column="tag_id",
    item_name_column="tag_name",
    entity_id_column="post_id",
    foreign_table_alias="post_tags",
    cache_key="all_tags",
    most_used_cache_key="mostUsedTags",
)

# 服务分类
SERVICE_CATEGORY_CONFIG = RelationshipConfig(
    items_table="services_category",
    relations_table="services_category_rel",
    item_id_column="category_id",
    item_name_column="category_name",
    entity_id_column="service_id",
    foreign_table_alias="services_category",
    cache_key="all_categories",
    most_used_cache_key="mostUsedCategories",
)

# 帖子标签原子更新函数
TAG_SYNC_PROCEDURE = AtomicProcedure(
    name="update_post_tags",
    entity_id_param="post_id_param",
    item_names_param="tag_names",
)

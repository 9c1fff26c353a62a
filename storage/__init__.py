"""
Storage层包
提供数据库连接、模型、关系配置和Repository的统一访问接口
"""
# 项目内部导包
from .database import (
    get_session,
    init_db,
    cleanup_db,
    Base,
    engine,
    async_session_factory
)
from .models import (
    User,
    Post,
    PostTag,
    PostTagRel,
    PostLike,
    PostComment,
    Studio,
    Service,
    ServiceCategory,
    ServiceCategoryRel
)
from .relationship_config import (
    RelationshipConfig,
    AtomicProcedure,
    TAG_CONFIG,
    SERVICE_CATEGORY_CONFIG,
    TAG_SYNC_PROCEDURE,
    clean_item_name,
    is_valid_item_name
)
from .repositories import (
    BaseRepository,
    RelationshipRepository,
    PostRepository,
    LikeRepository,
    CommentRepository,
    StudioRepository,
    ServiceRepository
)

__all__ = [
    # 数据库连接相关
    "get_session",
    "init_db",
    "cleanup_db",
    "Base",
    "engine",
    "async_session_factory",

    # 模型相关
    "User",
    "Post",
    "PostTag",
    "PostTagRel",
    "PostLike",
    "PostComment",
    "Studio",
    "Service",
    "ServiceCategory",
    "ServiceCategoryRel",

    # 关系配置相关
    "RelationshipConfig",
    "AtomicProcedure",
    "TAG_CONFIG",
    "SERVICE_CATEGORY_CONFIG",
    "TAG_SYNC_PROCEDURE",
    "clean_item_name",
    "is_valid_item_name",

    # Repository相关
    "BaseRepository",
    "RelationshipRepository",
    "PostRepository",
    "LikeRepository",
    "CommentRepository",
    "StudioRepository",
    "ServiceRepository",
]

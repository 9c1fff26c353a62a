"""
Storage repositories package.
"""
# 项目内部导包
from .base import BaseRepository
from .relationship_repository import (
    RelationshipRepository,
    RelationshipResult,
    ItemOutcome,
    Item,
    SyncPlan,
    compute_sync_plan,
    rank_most_used
)
from .post_repository import PostRepository
from .like_repository import LikeRepository
from .comment_repository import CommentRepository
from .studio_repository import StudioRepository
from .service_repository import ServiceRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "RelationshipRepository",
    "RelationshipResult",
    "ItemOutcome",
    "Item",
    "SyncPlan",
    "compute_sync_plan",
    "rank_most_used",
    "PostRepository",
    "LikeRepository",
    "CommentRepository",
    "StudioRepository",
    "ServiceRepository",
    "UserRepository",
]

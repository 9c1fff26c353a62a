"""
Services layer
业务逻辑层
"""

from .taxonomy_service import TaxonomyService
from .post_service import PostService
from .like_service import LikeService
from .comment_service import CommentService
from .studio_service import StudioService, StudioApplicationError
from .marketplace_service import MarketplaceService
from .user_service import UserService, get_avatar_url

__all__ = [
    "TaxonomyService",
    "PostService",
    "LikeService",
    "CommentService",
    "StudioService",
    "StudioApplicationError",
    "MarketplaceService",
    "UserService",
    "get_avatar_url"
]

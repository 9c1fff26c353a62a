"""
Storage models package.
"""
# 项目内部导包
from .user import User
from .post import Post
from .post_tag import PostTag, PostTagRel
from .post_like import PostLike
from .post_comment import PostComment
from .studio import Studio, STUDIO_STATUSES
from .service import Service, ServiceCategory, ServiceCategoryRel

__all__ = [
    "User",
    "Post",
    "PostTag",
    "PostTagRel",
    "PostLike",
    "PostComment",
    "Studio",
    "STUDIO_STATUSES",
    "Service",
    "ServiceCategory",
    "ServiceCategoryRel",
]

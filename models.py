"""
数据模型定义
"""
# 标准库导包
from typing import Optional, Any, List, Literal
from datetime import datetime, date

# 第三方库导包
from pydantic import BaseModel, Field


class UserInfo(BaseModel):
    """用户信息模型，由上游认证服务通过请求头传入"""
    user_id: str
    username: Optional[str] = None


class OperationResponse(BaseModel):
    """通用操作响应模型"""
    success: bool = True
    message: str = "操作成功"


# ========== 标签/分类模块相关模型 ==========

class TagResponse(BaseModel):
    """标签响应模型"""
    id: int
    tag_name: str


class TagListResponse(BaseModel):
    """标签列表响应模型"""
    success: bool = True
    message: str = "获取成功"
    data: List[TagResponse]
    total: int


class CategoryResponse(BaseModel):
    """服务分类响应模型"""
    id: int
    category_name: str


class CategoryListResponse(BaseModel):
    """服务分类列表响应模型"""
    success: bool = True
    message: str = "获取成功"
    data: List[CategoryResponse]
    total: int


class NameListResponse(BaseModel):
    """名称列表响应模型（全部名称、最常用名称、实体关联名称）"""
    success: bool = True
    message: str = "获取成功"
    data: List[str]
    total: int


class UpdateItemsRequest(BaseModel):
    """替换实体标签/分类请求模型"""
    names: List[str] = Field(default_factory=list, description="完整的目标名称列表，空列表表示清空")


# ========== Post模块相关模型 ==========

class CreatePostRequest(BaseModel):
    """创建帖子请求模型"""
    title: str = Field(..., min_length=1, max_length=200, description="标题")
    content: Optional[str] = Field(None, description="正文")
    tags: List[str] = Field(default_factory=list, description="标签名称列表")


class UpdatePostRequest(BaseModel):
    """更新帖子请求模型，未提供的字段保持不变"""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = None
    tags: Optional[List[str]] = Field(None, description="标签名称列表，提供时替换全部标签")


class PostResponse(BaseModel):
    """帖子响应模型"""
    id: int
    user_id: str
    title: str
    content: Optional[str] = None
    post_views: int = 0
    author_username: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class PostListResponse(BaseModel):
    """帖子列表响应模型"""
    success: bool = True
    message: str = "获取成功"
    data: List[PostResponse]
    total: int


class PostDetailResponse(BaseModel):
    """帖子详情响应模型"""
    success: bool = True
    message: str = "获取成功"
    data: PostResponse


# ========== Like模块相关模型 ==========

class ToggleLikeRequest(BaseModel):
    """点赞/取消点赞请求模型"""
    post_id: Any = None


class ToggleLikeResponse(BaseModel):
    """点赞/取消点赞响应模型"""
    success: bool = True
    is_liked: bool
    like_count: int


class LikeStatusResponse(BaseModel):
    """点赞状态响应模型"""
    like_count: int
    is_liked: bool


class LikedUserResponse(BaseModel):
    """点赞用户响应模型"""
    user_id: str
    username: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: datetime


class LikedUserListResponse(BaseModel):
    """点赞用户列表响应模型"""
    success: bool = True
    message: str = "获取成功"
    data: List[LikedUserResponse]
    total: int


# ========== Comment模块相关模型 ==========

class CommentUserResponse(BaseModel):
    """评论作者响应模型"""
    username: str
    avatar_url: Optional[str] = None
    full_name: Optional[str] = None


class CommentResponse(BaseModel):
    """评论响应模型"""
    id: int
    post_id: int
    user_id: str
    parent_id: Optional[int] = None
    content: str
    is_deleted: bool = False
    user: Optional[CommentUserResponse] = None
    reply_count: int = 0
    created_at: datetime
    updated_at: datetime


class CommentListResponse(BaseModel):
    """评论列表响应模型"""
    success: bool = True
    message: str = "获取成功"
    data: List[CommentResponse]
    total: int


class CommentDetailResponse(BaseModel):
    """评论详情响应模型"""
    success: bool = True
    message: str = "操作成功"
    data: CommentResponse


class CreateCommentRequest(BaseModel):
    """创建评论请求模型"""
    post_id: Any = None
    content: Any = None
    parent_id: Any = None


class UpdateCommentRequest(BaseModel):
    """更新评论请求模型"""
    comment_id: Any = None
    content: Any = None


class DeleteCommentRequest(BaseModel):
    """删除评论请求模型"""
    comment_id: Any = None


# ========== Studio模块相关模型 ==========

StudioStatus = Literal["applied", "approved", "rejected"]


class StudioPublicResponse(BaseModel):
    """公开展示的工作室信息"""
    id: int
    name: str
    description: Optional[str] = None


class StudioResponse(StudioPublicResponse):
    """工作室完整信息（本人可见）"""
    status: str
    contact_phone: Optional[str] = None
    salary_expectation: Optional[float] = None


class StudioListResponse(BaseModel):
    """工作室列表响应模型"""
    success: bool = True
    message: str = "获取成功"
    data: List[StudioPublicResponse]
    total: int


class StudioDetailResponse(BaseModel):
    """工作室详情响应模型"""
    success: bool = True
    message: str = "获取成功"
    data: Optional[StudioResponse] = None


class StudioApplicationRequest(BaseModel):
    """工作室申请请求模型"""
    name: str = Field(..., min_length=1, max_length=100, description="工作室名称")
    description: Optional[str] = Field(None, max_length=2000)
    contact_phone: Optional[str] = Field(None, max_length=30)
    salary_expectation: Optional[float] = Field(None, ge=0, description="期望报酬")


class StudioStatusUpdateRequest(BaseModel):
    """工作室状态更新请求模型"""
    status: StudioStatus


class StudioAccessResponse(BaseModel):
    """工作室后台访问权限响应模型"""
    has_access: bool
    is_approved: bool
    studio: Optional[StudioResponse] = None


# ========== Marketplace模块相关模型 ==========

class ServiceResponse(BaseModel):
    """服务响应模型"""
    id: int
    name: str
    price: float
    formatted_price: str
    description: Optional[str] = None
    cover_url: Optional[str] = None
    service_type: str
    status: str
    created_by: int
    studio_name: Optional[str] = None
    categories: List[str] = Field(default_factory=list)
    category_count: int = 0
    created_at: datetime


class ServiceListResponse(BaseModel):
    """服务列表响应模型"""
    success: bool = True
    message: str = "获取成功"
    data: List[ServiceResponse]
    total: int


class ServiceDetailResponse(BaseModel):
    """服务详情响应模型"""
    success: bool = True
    message: str = "获取成功"
    data: ServiceResponse


class CreateServiceRequest(BaseModel):
    """发布服务请求模型"""
    name: str = Field(..., min_length=1, max_length=200)
    price: float = Field(..., ge=0)
    description: Optional[str] = None
    cover_url: Optional[str] = Field(None, max_length=500)
    service_type: str = Field(..., min_length=1, max_length=50)
    categories: List[str] = Field(default_factory=list, description="分类名称列表")


# ========== User模块相关模型 ==========

class UserProfileResponse(BaseModel):
    """用户资料响应模型，avatar_url 为解析后可直接展示的地址"""
    id: str
    username: str
    full_name: Optional[str] = None
    avatar_url: str
    birthday: Optional[date] = None
    description: Optional[str] = None


class UserProfileDetailResponse(BaseModel):
    """用户资料详情响应模型"""
    success: bool = True
    message: str = "获取成功"
    data: UserProfileResponse


class UsernameAvailabilityResponse(BaseModel):
    """用户名可用性响应模型"""
    username: str
    available: bool


class AvatarUrlResponse(BaseModel):
    """头像地址解析响应模型"""
    url: str

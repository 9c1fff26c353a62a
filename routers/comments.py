"""
评论路由
提供帖子评论的分页查询、回复查询、发表、修改和删除API接口
"""
# 标准库导包
import logging
from typing import Optional

# 第三方库导包
from fastapi import APIRouter, HTTPException, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

# 项目内部导包
from models import (
    UserInfo,
    CommentUserResponse,
    CommentResponse,
    CommentListResponse,
    CommentDetailResponse,
    CreateCommentRequest,
    UpdateCommentRequest,
    DeleteCommentRequest,
    OperationResponse
)
from storage.database import get_session
from routers.services.comment_service import CommentService
from routers.utils.validators import validate_id, validate_content
from utils import require_user

# 配置日志
logger = logging.getLogger(__name__)

# 创建路由器
router = APIRouter(
    prefix="/api/comments",
    tags=["评论"]
)


def _comment_to_response(comment, reply_count: int = 0) -> CommentResponse:
    """
    将PostComment模型转换为CommentResponse

    Args:
        comment: PostComment模型实例（需已加载作者）
        reply_count: 未删除回复数

    Returns:
        CommentResponse对象
    """
    user = None
    if comment.user:
        user = CommentUserResponse(
            username=comment.user.username,
            avatar_url=comment.user.avatar_url,
            full_name=comment.user.full_name
        )

    return CommentResponse(
        id=comment.id,
        post_id=comment.post_id,
        user_id=comment.user_id,
        parent_id=comment.parent_id,
        content=comment.content,
        is_deleted=comment.is_deleted,
        user=user,
        reply_count=reply_count,
        created_at=comment.created_at,
        updated_at=comment.updated_at
    )


async def _check_comment_owner(comment_service: CommentService, comment_id: int, user_id: str) -> None:
    """评论不存在或不属于当前用户时返回403"""
    owner_id = await comment_service.get_comment_owner(comment_id)
    if not owner_id or owner_id != user_id:
        raise HTTPException(status_code=403, detail="Unauthorized")


@router.get("", response_model=CommentListResponse, summary="分页获取帖子评论")
async def list_comments(
    post_id: Optional[str] = Query(None, description="帖子ID"),
    page: int = Query(1, ge=1, description="页码"),
    limit: Optional[int] = Query(None, ge=1, le=100, description="每页数量"),
    session: AsyncSession = Depends(get_session)
):
    """获取帖子的顶级评论（按时间倒序），每条附带回复数"""
    valid_post_id = validate_id(post_id)
    if not valid_post_id:
        raise HTTPException(status_code=400, detail="Invalid post ID")

    comments = await CommentService(session).get_comments(valid_post_id, page=page, limit=limit)
    data = [_comment_to_response(comment, reply_count) for comment, reply_count in comments]
    return CommentListResponse(data=data, total=len(data))


@router.get("/{comment_id}/replies", response_model=CommentListResponse, summary="获取评论的回复")
async def list_replies(
    comment_id: int,
    session: AsyncSession = Depends(get_session)
):
    replies = await CommentService(session).get_replies(comment_id)
    data = [_comment_to_response(reply) for reply in replies]
    return CommentListResponse(data=data, total=len(data))


@router.post("", response_model=CommentDetailResponse, summary="发表评论")
async def create_comment(
    request: CreateCommentRequest,
    user_info: UserInfo = Depends(require_user),
    session: AsyncSession = Depends(get_session)
):
    """
    发表评论或回复

    parent_id 不为空时作为对该评论的回复。
    """
    valid_post_id = validate_id(request.post_id)
    valid_content = validate_content(request.content)
    valid_parent_id = validate_id(request.parent_id) if request.parent_id else None

    if not valid_post_id:
        raise HTTPException(status_code=400, detail="Invalid post ID")
    if not valid_content:
        raise HTTPException(status_code=400, detail="Content is required")

    try:
        comment = await CommentService(session).create_comment(
            post_id=valid_post_id,
            user_id=user_info.user_id,
            content=valid_content,
            parent_id=valid_parent_id
        )
        if not comment:
            raise HTTPException(status_code=500, detail="Failed to create comment")

        return CommentDetailResponse(message="评论成功", data=_comment_to_response(comment))

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"发表评论失败: post_id={valid_post_id}, error={str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("", response_model=CommentDetailResponse, summary="修改评论")
async def update_comment(
    request: UpdateCommentRequest,
    user_info: UserInfo = Depends(require_user),
    session: AsyncSession = Depends(get_session)
):
    valid_comment_id = validate_id(request.comment_id)
    valid_content = validate_content(request.content)

    if not valid_comment_id:
        raise HTTPException(status_code=400, detail="Invalid comment ID")
    if not valid_content:
        raise HTTPException(status_code=400, detail="Content is required")

    try:
        comment_service = CommentService(session)
        await _check_comment_owner(comment_service, valid_comment_id, user_info.user_id)

        comment = await comment_service.update_comment(valid_comment_id, valid_content)
        if not comment:
            raise HTTPException(status_code=500, detail="Failed to update comment")

        return CommentDetailResponse(message="修改成功", data=_comment_to_response(comment))

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"修改评论失败: comment_id={valid_comment_id}, error={str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("", response_model=OperationResponse, summary="删除评论")
async def delete_comment(
    request: DeleteCommentRequest,
    user_info: UserInfo = Depends(require_user),
    session: AsyncSession = Depends(get_session)
):
    """软删除评论，只有评论作者可以删除"""
    valid_comment_id = validate_id(request.comment_id)
    if not valid_comment_id:
        raise HTTPException(status_code=400, detail="Invalid comment ID")

    try:
        comment_service = CommentService(session)
        await _check_comment_owner(comment_service, valid_comment_id, user_info.user_id)

        if not await comment_service.delete_comment(valid_comment_id):
            raise HTTPException(status_code=500, detail="Failed to delete comment")

        return OperationResponse(message="删除成功")

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"删除评论失败: comment_id={valid_comment_id}, error={str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")

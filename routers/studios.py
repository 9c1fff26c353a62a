"""
工作室路由
提供工作室公开列表、申请、审核和后台访问权限API接口
"""
# 标准库导包
import logging

# 第三方库导包
from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.ext.asyncio import AsyncSession

# 项目内部导包
from config import settings
from models import (
    UserInfo,
    StudioPublicResponse,
    StudioResponse,
    StudioListResponse,
    StudioDetailResponse,
    StudioApplicationRequest,
    StudioStatusUpdateRequest,
    StudioAccessResponse
)
from storage.database import get_session
from routers.services.studio_service import StudioService, StudioApplicationError
from utils import require_user

# 配置日志
logger = logging.getLogger(__name__)

# 创建路由器
router = APIRouter(
    prefix="/api/studios",
    tags=["工作室"]
)


def _studio_to_response(studio) -> StudioResponse:
    return StudioResponse(
        id=studio.id,
        name=studio.name,
        description=studio.description,
        status=studio.status,
        contact_phone=studio.contact_phone,
        salary_expectation=studio.salary_expectation
    )


@router.get("", response_model=StudioListResponse, summary="获取已通过审核的工作室")
async def list_approved_studios(
    session: AsyncSession = Depends(get_session)
):
    try:
        studios = await StudioService(session).get_approved_studios()
        data = [
            StudioPublicResponse(id=studio.id, name=studio.name, description=studio.description)
            for studio in studios
        ]
        return StudioListResponse(data=data, total=len(data))
    except Exception as e:
        logger.error(f"获取工作室列表失败: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to fetch studios. Please try again later.")


@router.get("/me", response_model=StudioDetailResponse, summary="获取我的工作室")
async def get_my_studio(
    user_info: UserInfo = Depends(require_user),
    session: AsyncSession = Depends(get_session)
):
    """获取当前用户的工作室，用户不是工作室时 data 为空"""
    try:
        studio = await StudioService(session).get_user_studio(user_info.user_id)
        return StudioDetailResponse(data=_studio_to_response(studio) if studio else None)
    except Exception as e:
        logger.error(f"获取用户工作室失败: user_id={user_info.user_id}, error={str(e)}")
        raise HTTPException(status_code=500, detail="Failed to fetch studio information. Please try again later.")


@router.post("/apply", response_model=StudioDetailResponse, summary="申请成为工作室")
async def apply_studio(
    request: StudioApplicationRequest,
    user_info: UserInfo = Depends(require_user),
    session: AsyncSession = Depends(get_session)
):
    """
    提交工作室申请

    每个用户只能申请一次，重复申请返回409。
    """
    try:
        studio = await StudioService(session).create_application(
            user_info.user_id,
            **request.model_dump()
        )
        return StudioDetailResponse(message="申请已提交", data=_studio_to_response(studio))

    except StudioApplicationError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"提交工作室申请失败: user_id={user_info.user_id}, error={str(e)}")
        raise HTTPException(status_code=500, detail="Failed to submit studio application. Please try again later.")


@router.patch("/{studio_id}/status", response_model=StudioDetailResponse, summary="更新工作室审核状态")
async def update_studio_status(
    studio_id: int,
    request: StudioStatusUpdateRequest,
    user_info: UserInfo = Depends(require_user),
    session: AsyncSession = Depends(get_session)
):
    """只有 STUDIO_ADMIN_USER_IDS 中的用户可以审核"""
    if user_info.user_id not in settings.STUDIO_ADMIN_USER_IDS:
        raise HTTPException(status_code=403, detail="无权审核工作室")

    try:
        studio = await StudioService(session).update_status(studio_id, request.status)
        if not studio:
            raise HTTPException(status_code=404, detail="工作室不存在")

        return StudioDetailResponse(message="状态已更新", data=_studio_to_response(studio))

    except HTTPException:
        raise
    except StudioApplicationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"更新工作室状态失败: studio_id={studio_id}, error={str(e)}")
        raise HTTPException(status_code=500, detail="Failed to update studio status. Please try again later.")


@router.get("/dashboard/access", response_model=StudioAccessResponse, summary="检查工作室后台访问权限")
async def check_dashboard_access(
    user_info: UserInfo = Depends(require_user),
    session: AsyncSession = Depends(get_session)
):
    try:
        access = await StudioService(session).check_dashboard_access(user_info.user_id)
        studio = access["studio"]
        return StudioAccessResponse(
            has_access=access["has_access"],
            is_approved=access["is_approved"],
            studio=_studio_to_response(studio) if studio else None
        )
    except Exception as e:
        logger.error(f"检查工作室后台权限失败: user_id={user_info.user_id}, error={str(e)}")
        raise HTTPException(status_code=500, detail="Failed to check dashboard access. Please try again later.")

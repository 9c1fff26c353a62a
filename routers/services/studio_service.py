"""
工作室服务类
处理工作室申请、审核状态和后台访问权限
"""
# 标准库导包
import logging
from typing import Optional, List, Dict, Any

# 第三方库导包
from sqlalchemy.ext.asyncio import AsyncSession

# 项目内部导包
from storage.models.studio import Studio, STUDIO_STATUSES
from storage.repositories.studio_repository import StudioRepository

# 配置日志
logger = logging.getLogger(__name__)

# 可以进入工作室后台的状态
DASHBOARD_STATUSES = ("applied", "approved")


class StudioApplicationError(Exception):
    """工作室申请流程中的业务冲突（重复申请、非法状态等）"""


class StudioService:
    """
    工作室服务类

    数据库异常直接抛出，由路由层统一转换为500响应。
    """

    def __init__(self, session: AsyncSession):
        """
        初始化工作室服务

        Args:
            session: 数据库会话
        """
        self.session = session
        self.studio_repo = StudioRepository(session)

    async def get_approved_studios(self) -> List[Studio]:
        """获取已审核通过的工作室，用于公开展示"""
        return await self.studio_repo.get_approved()

    async def get_user_studio(self, user_id: str) -> Optional[Studio]:
        """获取用户的工作室，用户不是工作室时返回None"""
        return await self.studio_repo.get_by_user_id(user_id)

    async def has_user_applied(self, user_id: str) -> bool:
        """用户是否已经提交过工作室申请"""
        return await self.studio_repo.exists(user_id=user_id)

    async def create_application(self, user_id: str, **studio_data) -> Studio:
        """
        提交工作室申请

        每个用户只能申请一次，新申请的状态固定为 applied。

        Args:
            user_id: 申请用户ID
            **studio_data: name、description、contact_phone、salary_expectation

        Returns:
            创建的工作室

        Raises:
            StudioApplicationError: 用户已经申请过
        """
        if await self.has_user_applied(user_id):
            raise StudioApplicationError("该用户已经申请过工作室")

        studio_data.pop("user_id", None)
        studio_data.pop("status", None)
        studio = await self.studio_repo.create(user_id=user_id, status="applied", **studio_data)
        logger.info(f"工作室申请已提交: studio_id={studio.id}, user_id={user_id}")
        return studio

    async def update_status(self, studio_id: int, status: str) -> Optional[Studio]:
        """
        更新工作室审核状态

        Args:
            studio_id: 工作室ID
            status: 新状态（applied/approved/rejected）

        Returns:
            更新后的工作室，不存在时返回None

        Raises:
            StudioApplicationError: 状态不合法
        """
        if status not in STUDIO_STATUSES:
            raise StudioApplicationError(f"不支持的工作室状态: {status}")

        studio = await self.studio_repo.update_by_id(studio_id, status=status)
        if studio:
            logger.info(f"工作室状态已更新: studio_id={studio_id}, status={status}")
        return studio

    async def check_dashboard_access(self, user_id: str) -> Dict[str, Any]:
        """
        检查用户是否可以进入工作室后台

        applied 和 approved 状态的工作室可以进入后台，只有 approved 视为已审核通过。

        Returns:
            {"has_access": bool, "is_approved": bool, "studio": Studio或None}
        """
        studio = await self.studio_repo.get_by_user_id(user_id)
        if not studio:
            return {"has_access": False, "is_approved": False, "studio": None}

        return {
            "has_access": studio.status in DASHBOARD_STATUSES,
            "is_approved": studio.status == "approved",
            "studio": studio,
        }

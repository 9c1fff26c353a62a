"""
Studio模型 - 工作室申请/审核表
"""
# 标准库导包
from datetime import datetime
from typing import Optional

# 第三方库导包
from sqlalchemy import String, Text, Integer, Numeric, DateTime, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column

# 项目内部导包
from storage.database import Base

# 工作室状态
STUDIO_STATUSES = ("applied", "approved", "rejected")


class Studio(Base):
    """工作室表，每个用户最多一条申请"""

    __tablename__ = "studios"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="applied", comment="状态：applied/approved/rejected")
    contact_phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    salary_expectation: Mapped[Optional[float]] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=True, comment="期望报酬")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())

    def __repr__(self):
        return f"<Studio(id={self.id}, name={self.name}, status={self.status})>"

"""
User模型 - 用户资料表
"""
# 标准库导包
from datetime import datetime, date
from typing import Optional

# 第三方库导包
from sqlalchemy import String, Text, Date, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

# 项目内部导包
from storage.database import Base


class User(Base):
    """用户资料表，ID由外部认证服务分配"""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    username: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    full_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True, comment="头像地址")
    birthday: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True, comment="个人简介")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username})>"

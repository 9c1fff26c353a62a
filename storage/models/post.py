"""
Post模型 - 帖子表
"""
# 标准库导包
from datetime import datetime
from typing import Optional

# 第三方库导包
from sqlalchemy import String, Text, Integer, DateTime, ForeignKey, Index, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

# 项目内部导包
from storage.database import Base


class Post(Base):
    """帖子表"""

    __tablename__ = "posts"

    # 核心字段
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True, comment="正文内容")
    post_views: Mapped[int] = mapped_column(Integer, nullable=False, default=0, comment="浏览次数")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    # 关系定义
    author: Mapped["User"] = relationship("User")
    tag_links: Mapped[list["PostTagRel"]] = relationship("PostTagRel", back_populates="post", cascade="all, delete-orphan")

    # 复合索引
    __table_args__ = (
        Index("idx_post_user_created", "user_id", "created_at"),
    )

    def __repr__(self):
        return f"<Post(id={self.id}, user_id={self.user_id}, title={self.title})>"

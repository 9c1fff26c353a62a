"""
PostTag模型 - 帖子标签表及帖子标签关联表
"""
# 标准库导包
from datetime import datetime

# 第三方库导包
from sqlalchemy import String, Integer, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

# 项目内部导包
from storage.database import Base


class PostTag(Base):
    """帖子标签表"""

    __tablename__ = "post_tags"

    # 核心字段
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tag_name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, comment="标签名称，全表唯一")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())

    # 关系定义
    post_links: Mapped[list["PostTagRel"]] = relationship("PostTagRel", back_populates="tag", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<PostTag(id={self.id}, tag_name={self.tag_name})>"


class PostTagRel(Base):
    """帖子标签关联表"""

    __tablename__ = "posts_tags_rel"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    tag_id: Mapped[int] = mapped_column(Integer, ForeignKey("post_tags.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())

    # 关系定义
    post: Mapped["Post"] = relationship("Post", back_populates="tag_links")
    tag: Mapped["PostTag"] = relationship("PostTag", back_populates="post_links")

    # 唯一索引
    __table_args__ = (
        UniqueConstraint("post_id", "tag_id", name="uq_post_tag"),
    )

    def __repr__(self):
        return f"<PostTagRel(id={self.id}, post_id={self.post_id}, tag_id={self.tag_id})>"

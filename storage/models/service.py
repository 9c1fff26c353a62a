"""
Service模型 - 服务市场的服务表、服务分类表及服务分类关联表
"""
# 标准库导包
from datetime import datetime
from typing import Optional

# 第三方库导包
from sqlalchemy import String, Text, Integer, Numeric, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

# 项目内部导包
from storage.database import Base


class Service(Base):
    """服务表，由工作室发布"""

    __tablename__ = "services"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    price: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cover_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    service_type: Mapped[str] = mapped_column(String(50), nullable=False, comment="服务类型")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    created_by: Mapped[int] = mapped_column(Integer, ForeignKey("studios.id", ondelete="CASCADE"), nullable=False, index=True, comment="发布工作室ID")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())

    # 关系定义
    studio: Mapped["Studio"] = relationship("Studio")
    category_links: Mapped[list["ServiceCategoryRel"]] = relationship("ServiceCategoryRel", back_populates="service", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Service(id={self.id}, name={self.name}, service_type={self.service_type})>"


class ServiceCategory(Base):
    """服务分类表"""

    __tablename__ = "services_category"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category_name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())

    def __repr__(self):
        return f"<ServiceCategory(id={self.id}, category_name={self.category_name})>"


class ServiceCategoryRel(Base):
    """服务分类关联表"""

    __tablename__ = "services_category_rel"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    service_id: Mapped[int] = mapped_column(Integer, ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id: Mapped[int] = mapped_column(Integer, ForeignKey("services_category.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())

    # 关系定义
    service: Mapped["Service"] = relationship("Service", back_populates="category_links")
    category: Mapped["ServiceCategory"] = relationship("ServiceCategory")

    __table_args__ = (
        UniqueConstraint("service_id", "category_id", name="uq_service_category"),
    )

    def __repr__(self):
        return f"<ServiceCategoryRel(id={self.id}, service_id={self.service_id}, category_id={self.category_id})>"

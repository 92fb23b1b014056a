"""
Database models for the operations store.

Holds the per-entity counts the automation score is computed from:
adopted tools, SOPs, tool integrations and module processes, plus the
persisted status of recommendations and the activity feed.
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    Boolean, DateTime, Float, ForeignKey, Integer, JSON, String, Text, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from src.core.database import Base
from src.core.models import DataFlow, IntegrationStatus, ProcessHandler


class BusinessEntity(Base):
    """A tenant: an e-commerce brand, agency or retail chain."""
    __tablename__ = "business_entities"
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    industry: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    tools: Mapped[List["Tool"]] = relationship(back_populates="entity", cascade="all, delete-orphan")
    sops: Mapped[List["Sop"]] = relationship(back_populates="entity", cascade="all, delete-orphan")


class Category(Base):
    """Business category (Accounting, Email Marketing, ...) grouped under a module."""
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    module_id: Mapped[str] = mapped_column(String(50), index=True)


class Tool(Base):
    """A tool adopted by an entity (one row per tech-stack entry)."""
    __tablename__ = "tools"
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    entity_id: Mapped[int] = mapped_column(ForeignKey("business_entities.id"), index=True)
    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id"), index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    tier_slug: Mapped[str] = mapped_column(String(50), default="free")
    monthly_price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    active_since: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    entity: Mapped["BusinessEntity"] = relationship(back_populates="tools")
    category: Mapped["Category"] = relationship()


class Sop(Base):
    """Standard Operating Procedure with ordered steps."""
    __tablename__ = "sops"
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    entity_id: Mapped[int] = mapped_column(ForeignKey("business_entities.id"), index=True)
    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id"), index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    steps: Mapped[List[dict]] = mapped_column(JSON, default=list)
    is_ai_generated: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    entity: Mapped["BusinessEntity"] = relationship(back_populates="sops")
    category: Mapped["Category"] = relationship()


class ToolIntegrationRecord(Base):
    """A data connection between two adopted tools."""
    __tablename__ = "tool_integrations"
    __table_args__ = (
        UniqueConstraint("source_tool_id", "target_tool_id", name="uq_tool_integration_pair"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    entity_id: Mapped[int] = mapped_column(ForeignKey("business_entities.id"), index=True)
    source_tool_id: Mapped[int] = mapped_column(ForeignKey("tools.id", ondelete="CASCADE"))
    target_tool_id: Mapped[int] = mapped_column(ForeignKey("tools.id", ondelete="CASCADE"))
    status: Mapped[str] = mapped_column(String(20), default=IntegrationStatus.ACTIVE.value)
    data_flow: Mapped[str] = mapped_column(String(20), default=DataFlow.ONE_WAY.value)

    source_tool: Mapped["Tool"] = relationship(foreign_keys=[source_tool_id])
    target_tool: Mapped["Tool"] = relationship(foreign_keys=[target_tool_id])


class ModuleProcess(Base):
    """A business process inside a module, run by AI, a hybrid, or the team."""
    __tablename__ = "module_processes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    entity_id: Mapped[int] = mapped_column(ForeignKey("business_entities.id"), index=True)
    module_id: Mapped[str] = mapped_column(String(50), index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    handled_by: Mapped[str] = mapped_column(String(20), default=ProcessHandler.TEAM.value)


class RecommendationStatus(Base):
    """Implemented / in-progress flags that survive recomputation."""
    __tablename__ = "recommendation_status"
    __mapper_args__ = {"eager_defaults": True}
    __table_args__ = (
        UniqueConstraint("entity_id", "recommendation_id", name="uq_recommendation_status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    entity_id: Mapped[int] = mapped_column(ForeignKey("business_entities.id"), index=True)
    recommendation_id: Mapped[str] = mapped_column(String(100))
    title: Mapped[str] = mapped_column(String(255))
    implemented: Mapped[bool] = mapped_column(Boolean, default=False)
    in_progress: Mapped[bool] = mapped_column(Boolean, default=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())


class Activity(Base):
    """Activity feed entry (e.g. "Implemented automation: ...")."""
    __tablename__ = "activities"
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    entity_id: Mapped[Optional[int]] = mapped_column(ForeignKey("business_entities.id"), nullable=True, index=True)
    type: Mapped[str] = mapped_column(String(50))
    description: Mapped[str] = mapped_column(Text)
    metadata_json: Mapped[Optional[dict]] = mapped_column("metadata", JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

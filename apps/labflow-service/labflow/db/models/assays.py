import uuid
from sqlalchemy import Column, String, Text, Integer, DateTime, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc
from ..types import JSONDocument


class Assay(Base):
    __tablename__ = 'assays'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    protocol = Column(Text, nullable=False)
    # Lists of AssayMaterial / AssayParameter documents
    materials = Column(JSONDocument, nullable=False, default=list)
    parameters = Column(JSONDocument, nullable=False, default=list)
    estimated_time = Column(String(100), nullable=True)
    owner_user_id = Column(UUID(as_uuid=True), ForeignKey('users.id'), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    steps = relationship(
        "Step",
        back_populates="assay",
        order_by="Step.order_index",
        cascade="all, delete-orphan",
    )
    workflow_links = relationship("WorkflowAssay", back_populates="assay", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_assays_title', 'title'),
    )


class Step(Base):
    __tablename__ = 'steps'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    assay_id = Column(UUID(as_uuid=True), ForeignKey('assays.id', ondelete='CASCADE'), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default='')
    estimated_time = Column(String(100), nullable=False, default='')
    warning = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    order_index = Column(Integer, nullable=False, default=0)
    calculation_dependencies = Column(JSONDocument, nullable=True)
    calculation_formula = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    assay = relationship("Assay", back_populates="steps")

    __table_args__ = (
        Index('idx_steps_assay_id_order', 'assay_id', 'order_index'),
    )

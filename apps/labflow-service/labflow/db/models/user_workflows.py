import uuid
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc
from ..types import JSONDocument


class UserWorkflow(Base):
    __tablename__ = 'user_workflows'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_id = Column(UUID(as_uuid=True), ForeignKey('projects.id'), nullable=True)
    workflow_id = Column(UUID(as_uuid=True), ForeignKey('workflows.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id'), nullable=False)
    started_at = Column(DateTime(timezone=True), default=now_utc)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    current_assay_id = Column(UUID(as_uuid=True), ForeignKey('assays.id', ondelete='SET NULL'), nullable=True)
    current_step_id = Column(UUID(as_uuid=True), ForeignKey('steps.id', ondelete='SET NULL'), nullable=True)
    parameters = Column(JSONDocument, nullable=False, default=dict)
    status = Column(String(20), nullable=False, default='in-progress')
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    workflow = relationship("Workflow")

    __table_args__ = (
        Index('idx_user_workflows_user_id', 'user_id'),
        Index('idx_user_workflows_workflow_id', 'workflow_id'),
        CheckConstraint("status in ('in-progress','completed','abandoned')", name='ck_user_workflows_status'),
    )

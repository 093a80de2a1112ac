import uuid
from sqlalchemy import (
    Column,
    String,
    Text,
    Integer,
    DateTime,
    ForeignKey,
    Index,
    CheckConstraint,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class Workflow(Base):
    __tablename__ = 'workflows'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_id = Column(UUID(as_uuid=True), ForeignKey('projects.id'), nullable=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default='')
    hypothesis = Column(Text, nullable=False, default='')
    category = Column(String(255), nullable=False, default='')
    difficulty = Column(String(20), nullable=False, default='beginner')
    estimated_total_time = Column(String(100), nullable=True)
    # Only 'published' workflows are visible outside the admin surface
    status = Column(String(20), nullable=False, default='draft')
    owner_user_id = Column(UUID(as_uuid=True), ForeignKey('users.id'), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    project = relationship("Project", back_populates="workflows")
    workflow_assays = relationship(
        "WorkflowAssay",
        back_populates="workflow",
        order_by="WorkflowAssay.position",
        cascade="all, delete-orphan",
    )
    dependencies = relationship(
        "AssayDependency",
        back_populates="workflow",
        cascade="all, delete-orphan",
    )

    @property
    def assay_ids(self):
        return [link.assay_id for link in self.workflow_assays]

    __table_args__ = (
        Index('idx_workflows_project_id', 'project_id'),
        Index('idx_workflows_status', 'status'),
        CheckConstraint("difficulty in ('beginner','intermediate','advanced')", name='ck_workflows_difficulty'),
        CheckConstraint("status in ('draft','published','archived')", name='ck_workflows_status'),
    )


class WorkflowAssay(Base):
    __tablename__ = 'workflow_assays'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    workflow_id = Column(UUID(as_uuid=True), ForeignKey('workflows.id', ondelete='CASCADE'), nullable=False)
    assay_id = Column(UUID(as_uuid=True), ForeignKey('assays.id', ondelete='CASCADE'), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    workflow = relationship("Workflow", back_populates="workflow_assays")
    assay = relationship("Assay", back_populates="workflow_links")

    __table_args__ = (
        UniqueConstraint('workflow_id', 'assay_id', name='uq_workflow_assays_pair'),
        Index('idx_workflow_assays_workflow_id', 'workflow_id'),
    )


class AssayDependency(Base):
    __tablename__ = 'assay_dependencies'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    workflow_id = Column(UUID(as_uuid=True), ForeignKey('workflows.id', ondelete='CASCADE'), nullable=False)
    from_assay_id = Column(UUID(as_uuid=True), ForeignKey('assays.id', ondelete='CASCADE'), nullable=False)
    to_assay_id = Column(UUID(as_uuid=True), ForeignKey('assays.id', ondelete='CASCADE'), nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    workflow = relationship("Workflow", back_populates="dependencies")

    __table_args__ = (
        UniqueConstraint('workflow_id', 'from_assay_id', 'to_assay_id', name='uq_assay_dependencies_edge'),
        Index('idx_assay_dependencies_workflow_id', 'workflow_id'),
        CheckConstraint("from_assay_id <> to_assay_id", name='ck_assay_dependencies_no_self_loop'),
    )

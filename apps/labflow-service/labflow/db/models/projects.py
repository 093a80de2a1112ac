import uuid
from sqlalchemy import Column, String, Text, Date, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class Project(Base):
    __tablename__ = 'projects'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default='')
    objective = Column(Text, nullable=False, default='')
    start_date = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default='active')
    owner_user_id = Column(UUID(as_uuid=True), ForeignKey('users.id'), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    workflows = relationship("Workflow", back_populates="project")

    __table_args__ = (
        Index('idx_projects_owner_user_id', 'owner_user_id'),
        CheckConstraint("status in ('active','completed','archived')", name='ck_projects_status'),
    )

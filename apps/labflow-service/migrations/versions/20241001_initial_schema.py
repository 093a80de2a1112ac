"""
Initial labflow schema.

Creates users, projects, workflows, assays, steps, the workflow graph tables
(workflow_assays, assay_dependencies) and user_workflows.
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = 'initial_20241001'
down_revision = None
branch_labels = None
depends_on = None


def _uuid():
    return postgresql.UUID(as_uuid=True)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('display_name', sa.String(), nullable=True),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='user'),
        *_timestamps(),
        sa.CheckConstraint("role in ('admin','user')", name='ck_users_role'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'projects',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('objective', sa.Text(), nullable=False, server_default=''),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('owner_user_id', _uuid(), sa.ForeignKey('users.id'), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("status in ('active','completed','archived')", name='ck_projects_status'),
    )
    op.create_index('idx_projects_owner_user_id', 'projects', ['owner_user_id'])

    op.create_table(
        'workflows',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('project_id', _uuid(), sa.ForeignKey('projects.id'), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('hypothesis', sa.Text(), nullable=False, server_default=''),
        sa.Column('category', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('difficulty', sa.String(length=20), nullable=False, server_default='beginner'),
        sa.Column('estimated_total_time', sa.String(length=100), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='draft'),
        sa.Column('owner_user_id', _uuid(), sa.ForeignKey('users.id'), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("difficulty in ('beginner','intermediate','advanced')", name='ck_workflows_difficulty'),
        sa.CheckConstraint("status in ('draft','published','archived')", name='ck_workflows_status'),
    )
    op.create_index('idx_workflows_project_id', 'workflows', ['project_id'])
    op.create_index('idx_workflows_status', 'workflows', ['status'])

    op.create_table(
        'assays',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('protocol', sa.Text(), nullable=False),
        sa.Column('materials', postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('parameters', postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('estimated_time', sa.String(length=100), nullable=True),
        sa.Column('owner_user_id', _uuid(), sa.ForeignKey('users.id'), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_assays_title', 'assays', ['title'])

    op.create_table(
        'steps',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('assay_id', _uuid(), sa.ForeignKey('assays.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('estimated_time', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('warning', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('order_index', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('calculation_dependencies', postgresql.JSONB(), nullable=True),
        sa.Column('calculation_formula', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_steps_assay_id_order', 'steps', ['assay_id', 'order_index'])

    op.create_table(
        'workflow_assays',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('workflow_id', _uuid(), sa.ForeignKey('workflows.id', ondelete='CASCADE'), nullable=False),
        sa.Column('assay_id', _uuid(), sa.ForeignKey('assays.id', ondelete='CASCADE'), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('workflow_id', 'assay_id', name='uq_workflow_assays_pair'),
    )
    op.create_index('idx_workflow_assays_workflow_id', 'workflow_assays', ['workflow_id'])

    op.create_table(
        'assay_dependencies',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('workflow_id', _uuid(), sa.ForeignKey('workflows.id', ondelete='CASCADE'), nullable=False),
        sa.Column('from_assay_id', _uuid(), sa.ForeignKey('assays.id', ondelete='CASCADE'), nullable=False),
        sa.Column('to_assay_id', _uuid(), sa.ForeignKey('assays.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('workflow_id', 'from_assay_id', 'to_assay_id', name='uq_assay_dependencies_edge'),
        sa.CheckConstraint("from_assay_id <> to_assay_id", name='ck_assay_dependencies_no_self_loop'),
    )
    op.create_index('idx_assay_dependencies_workflow_id', 'assay_dependencies', ['workflow_id'])

    op.create_table(
        'user_workflows',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('project_id', _uuid(), sa.ForeignKey('projects.id'), nullable=True),
        sa.Column('workflow_id', _uuid(), sa.ForeignKey('workflows.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', _uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('current_assay_id', _uuid(), sa.ForeignKey('assays.id', ondelete='SET NULL'), nullable=True),
        sa.Column('current_step_id', _uuid(), sa.ForeignKey('steps.id', ondelete='SET NULL'), nullable=True),
        sa.Column('parameters', postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='in-progress'),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("status in ('in-progress','completed','abandoned')", name='ck_user_workflows_status'),
    )
    op.create_index('idx_user_workflows_user_id', 'user_workflows', ['user_id'])
    op.create_index('idx_user_workflows_workflow_id', 'user_workflows', ['workflow_id'])


def downgrade() -> None:
    op.drop_index('idx_user_workflows_workflow_id', table_name='user_workflows')
    op.drop_index('idx_user_workflows_user_id', table_name='user_workflows')
    op.drop_table('user_workflows')
    op.drop_index('idx_assay_dependencies_workflow_id', table_name='assay_dependencies')
    op.drop_table('assay_dependencies')
    op.drop_index('idx_workflow_assays_workflow_id', table_name='workflow_assays')
    op.drop_table('workflow_assays')
    op.drop_index('idx_steps_assay_id_order', table_name='steps')
    op.drop_table('steps')
    op.drop_index('idx_assays_title', table_name='assays')
    op.drop_table('assays')
    op.drop_index('idx_workflows_status', table_name='workflows')
    op.drop_index('idx_workflows_project_id', table_name='workflows')
    op.drop_table('workflows')
    op.drop_index('idx_projects_owner_user_id', table_name='projects')
    op.drop_table('projects')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')

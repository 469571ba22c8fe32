"""Initial schema with workspaces, objectives and chat sessions.

Revision ID: 001
Revises:
Create Date: 2026-09-14

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create workspaces table
    op.create_table(
        'workspaces',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('owner_id', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text),
        sa.Column('domain_id', sa.String(50), nullable=False, server_default='sales'),
        sa.Column('created_at', sa.DateTime, nullable=False, server_default=sa.text('NOW()')),
        sa.Column('deleted_at', sa.DateTime),
    )
    op.create_index('ix_workspaces_owner_id_id', 'workspaces', ['owner_id', 'id'])
    op.create_index('ix_workspaces_domain_id', 'workspaces', ['domain_id'])

    # Create objectives table (enum will be created automatically)
    op.create_table(
        'objectives',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('workspace_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('workspaces.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text),
        sa.Column('status', sa.Enum('open', 'published', name='objectivestatus'), nullable=False, server_default='open'),
        sa.Column('created_by_user_id', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=False, server_default=sa.text('NOW()')),
    )
    op.create_index('ix_objectives_workspace_id', 'objectives', ['workspace_id'])
    op.create_index('ix_objectives_status', 'objectives', ['status'])

    # Create chat_sessions table
    op.create_table(
        'chat_sessions',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('objective_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('objectives.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.String(255), nullable=False),
        sa.Column('title', sa.String(255), nullable=False, server_default='New chat'),
        sa.Column('created_at', sa.DateTime, nullable=False, server_default=sa.text('NOW()')),
    )
    op.create_index('ix_chat_sessions_objective_id', 'chat_sessions', ['objective_id'])


def downgrade() -> None:
    # Drop tables
    op.drop_table('chat_sessions')
    op.drop_table('objectives')
    op.drop_table('workspaces')

    # Drop enums
    op.execute('DROP TYPE IF EXISTS objectivestatus')

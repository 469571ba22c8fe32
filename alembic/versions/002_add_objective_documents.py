"""Add objective documents, versions and session binding.

Revision ID: 002
Revises: 001
Create Date: 2026-09-21

Documents are envelopes with a per-document version_counter; content lives on
objective_document_versions rows ordered by version_number.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '002'
down_revision: Union[str, None] = '001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Document envelopes
    op.create_table(
        'objective_documents',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('workspace_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('workspaces.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('version_counter', sa.Integer, nullable=False, server_default='0'),
        sa.Column('created_by_user_id', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=False, server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.DateTime, nullable=False, server_default=sa.text('NOW()')),
        sa.CheckConstraint('version_counter >= 0', name='ck_document_version_counter_non_negative'),
    )
    op.create_index('ix_objective_documents_workspace_id', 'objective_documents', ['workspace_id'])
    op.create_index('ix_objective_documents_updated_at', 'objective_documents', ['updated_at'], postgresql_ops={'updated_at': 'DESC'})

    # Version snapshots
    op.create_table(
        'objective_document_versions',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('document_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('objective_documents.id', ondelete='CASCADE'), nullable=False),
        sa.Column('version_number', sa.Integer, nullable=False),
        sa.Column('content', sa.Text, nullable=False, server_default=''),
        sa.Column('content_hash', sa.String(64), nullable=False),
        sa.Column('punchlist', sa.Text),
        sa.Column('goal', sa.Text),
        sa.Column('metadata', postgresql.JSONB),
        sa.Column('created_by_user_id', sa.String(255), nullable=False),
        sa.Column('session_id', postgresql.UUID(as_uuid=True)),
        sa.Column('created_at', sa.DateTime, nullable=False, server_default=sa.text('NOW()')),
        sa.UniqueConstraint('document_id', 'version_number', name='uq_document_version_number'),
        sa.CheckConstraint('version_number >= 1', name='ck_document_version_number_positive'),
    )
    op.create_index('ix_document_versions_document_number', 'objective_document_versions', ['document_id', 'version_number'])
    op.create_index('ix_objective_document_versions_session_id', 'objective_document_versions', ['session_id'])

    # Objective -> document pointer
    op.add_column('objectives', sa.Column('document_id', postgresql.UUID(as_uuid=True), nullable=True))
    op.create_foreign_key(
        'fk_objectives_document_id', 'objectives', 'objective_documents',
        ['document_id'], ['id'], ondelete='SET NULL'
    )
    op.create_index('ix_objectives_document_id', 'objectives', ['document_id'])

    # Session -> version binding
    op.add_column('chat_sessions', sa.Column('bound_version_id', postgresql.UUID(as_uuid=True), nullable=True))
    op.create_foreign_key(
        'fk_chat_sessions_bound_version_id', 'chat_sessions', 'objective_document_versions',
        ['bound_version_id'], ['id'], ondelete='SET NULL'
    )
    op.create_index('ix_chat_sessions_bound_version_id', 'chat_sessions', ['bound_version_id'])


def downgrade() -> None:
    op.drop_index('ix_chat_sessions_bound_version_id', 'chat_sessions')
    op.drop_constraint('fk_chat_sessions_bound_version_id', 'chat_sessions', type_='foreignkey')
    op.drop_column('chat_sessions', 'bound_version_id')

    op.drop_index('ix_objectives_document_id', 'objectives')
    op.drop_constraint('fk_objectives_document_id', 'objectives', type_='foreignkey')
    op.drop_column('objectives', 'document_id')

    op.drop_table('objective_document_versions')
    op.drop_table('objective_documents')

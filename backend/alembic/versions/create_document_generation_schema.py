"""Create contract generation tables

Revision ID: create_document_generation_schema
Revises: 
Create Date: 2026-10-17

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'create_document_generation_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Per (owner, period) contract number counters
    op.create_table(
        'sequence_counters',
        sa.Column('id', sa.Uuid, primary_key=True),
        sa.Column('owner_key', sa.String(64), nullable=False),
        sa.Column('period', sa.String(16), nullable=False),
        sa.Column('count', sa.Integer, nullable=False, server_default='0'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('owner_key', 'period', name='uq_sequence_counter_owner_period'),
    )

    # Templates and their ordered fields
    op.create_table(
        'contract_templates',
        sa.Column('id', sa.Uuid, primary_key=True),
        sa.Column('name', sa.Text, nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('category', sa.String(64), nullable=True),
        sa.Column('content', sa.Text, nullable=False, server_default=''),
        sa.Column('source_path', sa.Text, nullable=True),
        sa.Column('source_filename', sa.Text, nullable=True),
        sa.Column('active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('owner_id', sa.Uuid, nullable=True),
        sa.Column('created_by', sa.Uuid, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_table(
        'template_fields',
        sa.Column('id', sa.Uuid, primary_key=True),
        sa.Column('template_id', sa.Uuid, sa.ForeignKey('contract_templates.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('label', sa.Text, nullable=False),
        sa.Column('field_type', sa.String(32), nullable=False, server_default='text'),
        sa.Column('required', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('repeatable', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('repeat_source', sa.String(255), nullable=True),
        sa.Column('marker_pattern', sa.Text, nullable=True),
        sa.Column('display_order', sa.Integer, nullable=False, server_default='0'),
    )
    op.create_index('ix_template_fields_template_id', 'template_fields', ['template_id'])

    # Contracts and their version chains
    op.create_table(
        'contracts',
        sa.Column('id', sa.Uuid, primary_key=True),
        sa.Column('contract_number', sa.String(50), nullable=False, unique=True),
        sa.Column('template_id', sa.Uuid, sa.ForeignKey('contract_templates.id'), nullable=False),
        sa.Column('title', sa.Text, nullable=True),
        sa.Column('content', sa.Text, nullable=False),
        sa.Column('docx_path', sa.Text, nullable=True),
        sa.Column('pdf_path', sa.Text, nullable=True),
        sa.Column('status', sa.String(32), nullable=False, server_default='active'),
        sa.Column('generated_by', sa.Uuid, nullable=False),
        sa.Column('owner_id', sa.Uuid, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_table(
        'document_versions',
        sa.Column('id', sa.Uuid, primary_key=True),
        sa.Column('contract_id', sa.Uuid, sa.ForeignKey('contracts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('version', sa.Integer, nullable=False),
        sa.Column('content', sa.Text, nullable=False),
        sa.Column('editable_content', sa.Text, nullable=True),
        sa.Column('docx_path', sa.Text, nullable=True),
        sa.Column('pdf_path', sa.Text, nullable=True),
        sa.Column('created_by', sa.Uuid, nullable=False),
        sa.Column('change_description', sa.Text, nullable=False),
        sa.Column('is_current', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('contract_id', 'version', name='uq_document_version_number'),
    )
    op.create_index('ix_document_versions_contract_id', 'document_versions', ['contract_id'])
    op.create_index(
        'uq_document_versions_one_current',
        'document_versions',
        ['contract_id'],
        unique=True,
        postgresql_where=sa.text('is_current'),
        sqlite_where=sa.text('is_current'),
    )

    # Audit trail
    op.create_table(
        'activity_logs',
        sa.Column('id', sa.Uuid, primary_key=True),
        sa.Column('user_id', sa.Uuid, nullable=True),
        sa.Column('action', sa.String(64), nullable=False),
        sa.Column('entity_type', sa.String(64), nullable=False),
        sa.Column('entity_id', sa.Uuid, nullable=True),
        sa.Column('details', sa.JSON, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_activity_logs_entity_id', 'activity_logs', ['entity_id'])


def downgrade() -> None:
    op.drop_index('ix_activity_logs_entity_id', table_name='activity_logs')
    op.drop_table('activity_logs')
    op.drop_index('uq_document_versions_one_current', table_name='document_versions')
    op.drop_index('ix_document_versions_contract_id', table_name='document_versions')
    op.drop_table('document_versions')
    op.drop_table('contracts')
    op.drop_index('ix_template_fields_template_id', table_name='template_fields')
    op.drop_table('template_fields')
    op.drop_table('contract_templates')
    op.drop_table('sequence_counters')

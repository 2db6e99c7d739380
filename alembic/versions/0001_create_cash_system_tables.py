"""Create catalog, cash_registers, cash_movements and audit tables

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # ── movement_types ────────────────────────────────
    op.create_table(
        'movement_types',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.String(255), nullable=True),
        sa.Column('operation_type', sa.Enum('entrada', 'salida', name='operation_type'), nullable=False),
        sa.Column('origin', sa.Enum('manual', 'automatic', name='movement_origin'), nullable=False),
        sa.Column('is_cash_movement', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_current_account_movement', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index('ix_movement_types_id', 'movement_types', ['id'])
    op.create_index('ix_movement_types_name', 'movement_types', ['name'], unique=True)
    op.create_index('ix_movement_types_active', 'movement_types', ['active'])

    # ── payment_methods ───────────────────────────────
    op.create_table(
        'payment_methods',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('is_cash', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index('ix_payment_methods_id', 'payment_methods', ['id'])
    op.create_index('ix_payment_methods_name', 'payment_methods', ['name'], unique=True)
    op.create_index('ix_payment_methods_is_active', 'payment_methods', ['is_active'])

    # ── cash_registers ────────────────────────────────
    op.create_table(
        'cash_registers',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('branch_id', UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', UUID(as_uuid=True), nullable=False),
        sa.Column(
            'status',
            sa.Enum('open', 'closed', name='cash_register_status'),
            nullable=False,
            server_default='open',
        ),
        sa.Column('initial_amount', sa.Numeric(15, 2), nullable=False),
        sa.Column('final_amount', sa.Numeric(15, 2), nullable=True),
        sa.Column('opened_at', sa.DateTime(), nullable=False),
        sa.Column('closed_at', sa.DateTime(), nullable=True),
        sa.Column('closed_by', UUID(as_uuid=True), nullable=True),
        sa.Column('opening_notes', sa.Text(), nullable=True),
        sa.Column('closing_notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('initial_amount >= 0', name='ck_cash_registers_initial_amount'),
        sa.CheckConstraint(
            "(status = 'open' AND final_amount IS NULL AND closed_at IS NULL) OR "
            "(status = 'closed' AND final_amount IS NOT NULL AND closed_at IS NOT NULL)",
            name='ck_cash_registers_status_fields',
        ),
    )
    op.create_index('ix_cash_registers_branch_id', 'cash_registers', ['branch_id'])
    op.create_index('ix_cash_registers_user_id', 'cash_registers', ['user_id'])
    op.create_index('ix_cash_registers_status', 'cash_registers', ['status'])
    op.create_index('idx_cash_registers_branch_opened', 'cash_registers', ['branch_id', 'opened_at'])
    # Una sola caja abierta por sucursal
    op.create_index(
        'uq_cash_registers_branch_open', 'cash_registers', ['branch_id'],
        unique=True,
        postgresql_where=sa.text("status = 'open'"),
    )

    # ── cash_movements ────────────────────────────────
    op.create_table(
        'cash_movements',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('cash_register_id', UUID(as_uuid=True), sa.ForeignKey('cash_registers.id'), nullable=False),
        sa.Column('movement_type_id', sa.Integer(), sa.ForeignKey('movement_types.id'), nullable=False),
        sa.Column('payment_method_id', sa.Integer(), sa.ForeignKey('payment_methods.id'), nullable=False),
        sa.Column('amount', sa.Numeric(15, 2), nullable=False),
        sa.Column('description', sa.String(255), nullable=False),
        sa.Column('sale_id', UUID(as_uuid=True), nullable=True),
        sa.Column('purchase_order_id', UUID(as_uuid=True), nullable=True),
        sa.Column('affects_balance', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('user_id', UUID(as_uuid=True), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('amount > 0', name='ck_cash_movements_amount_positive'),
        sa.CheckConstraint(
            'sale_id IS NULL OR purchase_order_id IS NULL',
            name='ck_cash_movements_single_reference',
        ),
    )
    op.create_index('ix_cash_movements_cash_register_id', 'cash_movements', ['cash_register_id'])
    op.create_index('ix_cash_movements_movement_type_id', 'cash_movements', ['movement_type_id'])
    op.create_index('ix_cash_movements_payment_method_id', 'cash_movements', ['payment_method_id'])
    op.create_index('ix_cash_movements_sale_id', 'cash_movements', ['sale_id'])
    op.create_index('ix_cash_movements_purchase_order_id', 'cash_movements', ['purchase_order_id'])
    op.create_index('ix_cash_movements_created_at', 'cash_movements', ['created_at'])
    op.create_index('idx_cash_movements_register_created', 'cash_movements', ['cash_register_id', 'created_at'])

    # ── cash_movement_audits ──────────────────────────
    op.create_table(
        'cash_movement_audits',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('movement_id', UUID(as_uuid=True), nullable=False),
        sa.Column('cash_register_id', UUID(as_uuid=True), sa.ForeignKey('cash_registers.id'), nullable=False),
        sa.Column('action', sa.String(20), nullable=False),
        sa.Column('snapshot', sa.JSON(), nullable=False),
        sa.Column('register_status', sa.String(20), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('performed_by', UUID(as_uuid=True), nullable=False),
        sa.Column('performed_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_cash_movement_audits_movement_id', 'cash_movement_audits', ['movement_id'])
    op.create_index('ix_cash_movement_audits_cash_register_id', 'cash_movement_audits', ['cash_register_id'])


def downgrade() -> None:
    op.drop_table('cash_movement_audits')
    op.drop_table('cash_movements')
    op.drop_table('cash_registers')
    op.drop_table('payment_methods')
    op.drop_table('movement_types')

    # Limpiar enums
    op.execute("DROP TYPE IF EXISTS cash_register_status")
    op.execute("DROP TYPE IF EXISTS movement_origin")
    op.execute("DROP TYPE IF EXISTS operation_type")

"""create_mes_tables

Revision ID: 3b1f6c2d9a47
Revises:
Create Date: 2026-10-19 09:12:41.508213

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b1f6c2d9a47'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
    ]


def _timestamp_indexes(table):
    op.create_index(f'ix_{table}_created_at', table, ['created_at'])
    op.create_index(f'ix_{table}_deleted_at', table, ['deleted_at'])


def upgrade() -> None:
    """Upgrade schema - Create users, master data, orders, ledger, quality and equipment tables."""

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.String(length=50), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=100), nullable=True),
        sa.Column('real_name', sa.String(length=50), nullable=True),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('status', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username'),
        sa.UniqueConstraint('email'),
    )
    _timestamp_indexes('users')

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('unit', sa.String(length=20), nullable=True),
        sa.Column('price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('status', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code'),
    )
    _timestamp_indexes('products')

    op.create_table(
        'document_sequences',
        sa.Column('prefix', sa.String(length=32), nullable=False),
        sa.Column('last_value', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('prefix'),
    )

    op.create_table(
        'production_orders',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('order_no', sa.String(length=50), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('produced', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('priority', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.DateTime(), nullable=True),
        sa.Column('end_date', sa.DateTime(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('produced >= 0', name='ck_production_orders_produced_non_negative'),
        sa.CheckConstraint('produced <= quantity', name='ck_production_orders_produced_within_quantity'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_no'),
    )
    _timestamp_indexes('production_orders')
    op.create_index('ix_production_orders_product_id', 'production_orders', ['product_id'])
    op.create_index('ix_production_orders_status', 'production_orders', ['status'])
    op.create_index('ix_production_orders_created_by', 'production_orders', ['created_by'])

    op.create_table(
        'materials',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=True),
        sa.Column('unit', sa.String(length=20), nullable=True),
        sa.Column('price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('min_stock', sa.Integer(), nullable=False),
        sa.Column('max_stock', sa.Integer(), nullable=False),
        sa.Column('current_stock', sa.Integer(), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('status', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('current_stock >= 0', name='ck_materials_current_stock_non_negative'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code'),
    )
    _timestamp_indexes('materials')
    op.create_index('ix_materials_type', 'materials', ['type'])

    op.create_table(
        'material_transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('material_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('total_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('supplier', sa.String(length=100), nullable=True),
        sa.Column('production_order_id', sa.Integer(), nullable=True),
        sa.Column('remark', sa.String(length=500), nullable=True),
        sa.Column('operator_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('quantity > 0', name='ck_material_transactions_quantity_positive'),
        sa.CheckConstraint("type IN ('in', 'out')", name='ck_material_transactions_type'),
        sa.ForeignKeyConstraint(['material_id'], ['materials.id']),
        sa.ForeignKeyConstraint(['production_order_id'], ['production_orders.id']),
        sa.ForeignKeyConstraint(['operator_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_material_transactions_material_id', 'material_transactions', ['material_id'])
    op.create_index(
        'ix_material_transactions_production_order_id', 'material_transactions', ['production_order_id']
    )
    op.create_index('ix_material_transactions_created_at', 'material_transactions', ['created_at'])

    op.create_table(
        'quality_standards',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('min_value', sa.Float(), nullable=False),
        sa.Column('max_value', sa.Float(), nullable=False),
        sa.Column('target_value', sa.Float(), nullable=False),
        sa.Column('unit', sa.String(length=20), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('product_id', 'name', name='uq_quality_standards_product_name'),
    )
    _timestamp_indexes('quality_standards')
    op.create_index('ix_quality_standards_product_id', 'quality_standards', ['product_id'])

    op.create_table(
        'quality_inspections',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('inspection_no', sa.String(length=50), nullable=False),
        sa.Column('production_order_id', sa.Integer(), nullable=False),
        sa.Column('quality_standard_id', sa.Integer(), nullable=False),
        sa.Column('inspector_id', sa.Integer(), nullable=False),
        sa.Column('actual_value', sa.Float(), nullable=False),
        sa.Column('result', sa.String(length=20), nullable=False),
        sa.Column('remark', sa.Text(), nullable=True),
        sa.Column('inspection_time', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['production_order_id'], ['production_orders.id']),
        sa.ForeignKeyConstraint(['quality_standard_id'], ['quality_standards.id']),
        sa.ForeignKeyConstraint(['inspector_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('inspection_no'),
    )
    _timestamp_indexes('quality_inspections')
    op.create_index('ix_quality_inspections_production_order_id', 'quality_inspections', ['production_order_id'])
    op.create_index('ix_quality_inspections_quality_standard_id', 'quality_inspections', ['quality_standard_id'])
    op.create_index('ix_quality_inspections_inspector_id', 'quality_inspections', ['inspector_id'])
    op.create_index('ix_quality_inspections_inspection_time', 'quality_inspections', ['inspection_time'])

    op.create_table(
        'equipment',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=True),
        sa.Column('model', sa.String(length=50), nullable=True),
        sa.Column('manufacturer', sa.String(length=100), nullable=True),
        sa.Column('location', sa.String(length=100), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('purchase_date', sa.DateTime(), nullable=True),
        sa.Column('warranty_date', sa.DateTime(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code'),
    )
    _timestamp_indexes('equipment')
    op.create_index('ix_equipment_type', 'equipment', ['type'])

    op.create_table(
        'maintenance_records',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('equipment_id', sa.Integer(), nullable=False),
        sa.Column('maintainer_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=True),
        sa.Column('cost', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('parts_replaced', sa.Text(), nullable=True),
        sa.Column('result', sa.String(length=200), nullable=True),
        sa.Column('next_maintenance', sa.DateTime(), nullable=True),
        sa.Column('remark', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['equipment_id'], ['equipment.id']),
        sa.ForeignKeyConstraint(['maintainer_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    _timestamp_indexes('maintenance_records')
    op.create_index('ix_maintenance_records_equipment_id', 'maintenance_records', ['equipment_id'])
    op.create_index('ix_maintenance_records_maintainer_id', 'maintenance_records', ['maintainer_id'])
    op.create_index('ix_maintenance_records_next_maintenance', 'maintenance_records', ['next_maintenance'])


def downgrade() -> None:
    """Downgrade schema."""
    for table in (
        'maintenance_records',
        'equipment',
        'quality_inspections',
        'quality_standards',
        'material_transactions',
        'materials',
        'production_orders',
        'document_sequences',
        'products',
        'users',
    ):
        op.drop_table(table)

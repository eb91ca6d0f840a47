"""create coupons, tax rates, orders and coupon redemptions; seed VAT12

Revision ID: 002
Revises: 001
Create Date: 2025-03-05 09:30:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql
import uuid

# revision identifiers, used by Alembic.
revision = '002'
down_revision = '001'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'coupons',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('code', sa.String(50), nullable=False, unique=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('discount_type', sa.String(20), nullable=False),
        sa.Column('discount_value', sa.Numeric(12, 2), nullable=False),
        sa.Column('min_purchase_amount', sa.Numeric(12, 2)),
        sa.Column('max_discount_amount', sa.Numeric(12, 2)),
        sa.Column('usage_limit', sa.Integer()),
        sa.Column('usage_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('per_user_limit', sa.Integer()),
        sa.Column('valid_from', sa.DateTime(timezone=True)),
        sa.Column('valid_until', sa.DateTime(timezone=True)),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            "discount_type IN ('PERCENTAGE', 'FIXED_AMOUNT', 'FREE_SHIPPING')",
            name='discount_type_valid'
        ),
    )

    op.create_table(
        'tax_rates',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('code', sa.String(20), nullable=False, unique=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('rate', sa.Numeric(5, 2), nullable=False),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'orders',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('order_number', sa.String(30), nullable=False, unique=True),
        sa.Column('user_id', sa.String(255)),
        sa.Column('status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('subtotal', sa.Numeric(12, 2), nullable=False),
        sa.Column('discount_amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('shipping_amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('tax_amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('tax_code', sa.String(20)),
        sa.Column('tax_rate', sa.Numeric(5, 2)),
        sa.Column('coupon_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('coupons.id')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'coupon_redemptions',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('coupon_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('coupons.id'), nullable=False),
        sa.Column('order_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('orders.id'), nullable=False),
        sa.Column('user_id', sa.String(255)),
        sa.Column('discount_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('idx_redemption_coupon_user', 'coupon_redemptions', ['coupon_id', 'user_id'])

    # Standard Philippine VAT as the default rate
    connection = op.get_bind()
    connection.execute(
        sa.text("""
            INSERT INTO tax_rates (id, code, name, rate, is_default, is_active, created_at)
            VALUES (:id, :code, :name, :rate, TRUE, TRUE, NOW())
        """),
        {
            'id': str(uuid.uuid4()),
            'code': 'VAT12',
            'name': 'VAT 12%',
            'rate': 12.00
        }
    )


def downgrade() -> None:
    op.drop_index('idx_redemption_coupon_user', table_name='coupon_redemptions')
    op.drop_table('coupon_redemptions')
    op.drop_table('orders')
    op.drop_table('tax_rates')
    op.drop_table('coupons')

"""create_sales_and_report_tables

Revision ID: 4c1f8e2a9b7d
Revises:
Create Date: 2026-10-18 09:12:44.318205

"""
from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '4c1f8e2a9b7d'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


finance_record_type = postgresql.ENUM('income', 'expense', name='finance_record_type', create_type=False)


def _money(name: str) -> sa.Column:
    return sa.Column(name, sa.Numeric(14, 2), nullable=False, server_default='0')


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    finance_record_type.create(op.get_bind(), checkfirst=True)

    op.create_table(
        'sales',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('car_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('buyer_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('sale_price', sa.Numeric(14, 2), nullable=False),
        sa.Column('purchase_cost', sa.Numeric(14, 2), nullable=False),
        sa.Column('profit_loss', sa.Numeric(14, 2), nullable=False),
        sa.Column('sale_date', sa.Date(), nullable=False),
        sa.Column('notes', sa.String(500), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_sales_car_id'), 'sales', ['car_id'], unique=False)
    op.create_index(op.f('ix_sales_buyer_id'), 'sales', ['buyer_id'], unique=False)
    op.create_index(op.f('ix_sales_sale_date'), 'sales', ['sale_date'], unique=False)

    op.create_table(
        'finance_records',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('type', finance_record_type, nullable=False),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('cost', sa.Numeric(14, 2), nullable=False),
        sa.Column('record_date', sa.Date(), nullable=False),
        sa.Column('description', sa.String(255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_finance_records_type'), 'finance_records', ['type'], unique=False)
    op.create_index(
        op.f('ix_finance_records_record_date'), 'finance_records', ['record_date'], unique=False
    )

    op.create_table(
        'daily_sales_reports',
        sa.Column('report_date', sa.Date(), nullable=False),
        sa.Column('total_sales', sa.Integer(), nullable=False, server_default='0'),
        _money('total_revenue'),
        _money('total_profit'),
        _money('avg_profit_per_sale'),
        sa.Column('most_profitable_car_id', postgresql.UUID(as_uuid=True), nullable=True),
        _money('highest_single_profit'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('report_date'),
    )

    op.create_table(
        'monthly_sales_reports',
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('total_sales', sa.Integer(), nullable=False, server_default='0'),
        _money('total_revenue'),
        _money('total_profit'),
        _money('avg_daily_profit'),
        sa.Column('best_day', sa.Date(), nullable=True),
        _money('best_day_profit'),
        sa.Column('profit_margin', sa.Numeric(10, 2), nullable=False, server_default='0'),
        _money('finance_cost'),
        _money('total_finance_cost'),
        _money('net_profit'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('year', 'month'),
        sa.CheckConstraint('month >= 1 AND month <= 12', name='ck_monthly_sales_reports_month'),
    )

    op.create_table(
        'yearly_sales_reports',
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('total_sales', sa.Integer(), nullable=False, server_default='0'),
        _money('total_revenue'),
        _money('total_profit'),
        _money('avg_monthly_profit'),
        sa.Column('best_month', sa.Integer(), nullable=True),
        _money('best_month_profit'),
        sa.Column('profit_margin', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('yoy_growth', sa.Numeric(10, 2), nullable=False, server_default='0'),
        _money('total_finance_cost'),
        _money('total_net_profit'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('year'),
    )

    op.create_table(
        'report_generation_tracker',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('last_daily_report_date', sa.Date(), nullable=True),
        sa.Column('last_monthly_report_year', sa.Integer(), nullable=True),
        sa.Column('last_monthly_report_month', sa.Integer(), nullable=True),
        sa.Column('last_yearly_report_year', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade() -> None:
    op.drop_table('report_generation_tracker')
    op.drop_table('yearly_sales_reports')
    op.drop_table('monthly_sales_reports')
    op.drop_table('daily_sales_reports')
    op.drop_index(op.f('ix_finance_records_record_date'), table_name='finance_records')
    op.drop_index(op.f('ix_finance_records_type'), table_name='finance_records')
    op.drop_table('finance_records')
    op.drop_index(op.f('ix_sales_sale_date'), table_name='sales')
    op.drop_index(op.f('ix_sales_buyer_id'), table_name='sales')
    op.drop_index(op.f('ix_sales_car_id'), table_name='sales')
    op.drop_table('sales')
    finance_record_type.drop(op.get_bind(), checkfirst=True)

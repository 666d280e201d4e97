"""create_shift_setup_tables

Revision ID: c1d2e3f4a5b6
Revises:
Create Date: 2026-10-18 09:00:00.000000

매장, 역할, 사용자 디렉터리, 주간 스케줄 문서, 기본 포지션 카탈로그 테이블 생성.
Create stores, roles, users, schedules (JSONB week document) and
default_positions (per-store weekday/period catalog).
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID


# revision identifiers, used by Alembic.
revision: str = 'c1d2e3f4a5b6'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # stores — 매장 (테넌트 경계, tenant boundary)
    op.create_table(
        'stores',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # roles — 매장 내 역할 (1=owner ~ 4=staff)
    op.create_table(
        'roles',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('store_id', UUID(as_uuid=True), sa.ForeignKey('stores.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('store_id', 'name', name='uq_role_store_name'),
    )

    # users — 사용자 계정 겸 직원 디렉터리 (Accounts and employee directory)
    op.create_table(
        'users',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('store_id', UUID(as_uuid=True), sa.ForeignKey('stores.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role_id', UUID(as_uuid=True), sa.ForeignKey('roles.id'), nullable=False),
        sa.Column('username', sa.String(100), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('department', sa.String(10), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('store_id', 'username', name='uq_user_store_username'),
    )

    # schedules — 주간 포지션 스케줄, days는 7일 문서 (One row per week, days as a document)
    op.create_table(
        'schedules',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('store_id', UUID(as_uuid=True), sa.ForeignKey('stores.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(255), server_default='Position Setup', nullable=False),
        sa.Column('week_start_date', sa.Date(), nullable=False),
        sa.Column('week_end_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(20), server_default='draft', nullable=False),
        sa.Column('is_template', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('schema_version', sa.Integer(), server_default='1', nullable=False),
        sa.Column('days', JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column('uploaded_employees', JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column('version', sa.Integer(), server_default='1', nullable=False),
        sa.Column('created_by', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # 인덱스 — Indexes
    op.create_index('ix_schedules_store_week', 'schedules', ['store_id', 'week_start_date'])
    op.create_index('ix_schedules_store_template', 'schedules', ['store_id', 'is_template'])

    # default_positions — (매장, 요일, 시간대)별 시드 포지션 (Seed positions per store/weekday/period)
    op.create_table(
        'default_positions',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('store_id', UUID(as_uuid=True), sa.ForeignKey('stores.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('weekday', sa.Integer(), nullable=False),
        sa.Column('period', sa.String(20), nullable=False),
        sa.Column('positions', JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column('created_by', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('store_id', 'weekday', 'period', name='uq_default_positions_store_day_period'),
        sa.CheckConstraint('weekday BETWEEN 0 AND 6', name='ck_default_positions_weekday'),
    )


def downgrade() -> None:
    op.drop_table('default_positions')
    op.drop_index('ix_schedules_store_template', table_name='schedules')
    op.drop_index('ix_schedules_store_week', table_name='schedules')
    op.drop_table('schedules')
    op.drop_table('users')
    op.drop_table('roles')
    op.drop_table('stores')

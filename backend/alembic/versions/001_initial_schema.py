"""Initial schema with users and sleep entries

Revision ID: 001
Revises: 
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Users table
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), unique=True, nullable=False, index=True),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('display_name', sa.String(32), nullable=False),
        sa.Column('phone_code', sa.String(5), nullable=True),
        sa.Column('phone_number', sa.String(20), nullable=True),
        sa.Column('photo_url', sa.String(500), nullable=True),
        sa.Column('city', sa.String(50), nullable=True),
        sa.Column('state', sa.String(50), nullable=True),
        sa.Column('country', sa.String(50), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now(), onupdate=sa.func.now()),
    )

    # Sleep entries table
    op.create_table(
        'sleep_entries',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('username', sa.String(32), nullable=False, index=True),
        sa.Column('changes', sa.JSON(), nullable=False),
        sa.Column('struggle_min', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('struggle_max', sa.Integer(), nullable=False, server_default='2'),
        sa.Column('bed_time', sa.String(5), nullable=False),
        sa.Column('wake_time', sa.String(5), nullable=False),
        sa.Column('sleep_duration', sa.Float(), nullable=False),
        sa.Column('sleep_quality', sa.Integer(), nullable=False, server_default='5', index=True),
        sa.Column('sleep_efficiency', sa.Float(), nullable=False, server_default='0'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now(), index=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now(), onupdate=sa.func.now()),
        sa.CheckConstraint('struggle_min < struggle_max', name='ck_sleep_entries_struggle_range'),
    )
    op.create_index('ix_sleep_entries_user_created', 'sleep_entries', ['user_id', 'created_at'])


def downgrade() -> None:
    op.drop_index('ix_sleep_entries_user_created', table_name='sleep_entries')
    op.drop_table('sleep_entries')
    op.drop_table('users')

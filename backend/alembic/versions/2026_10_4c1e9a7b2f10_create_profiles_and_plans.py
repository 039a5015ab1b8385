"""create user_profiles and meal_plans

Revision ID: 4c1e9a7b2f10
Revises: 
Create Date: 2026-10-19 09:12:44.318205

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '4c1e9a7b2f10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON_DOCUMENT = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        'user_profiles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('owner_id', sa.String(length=64), nullable=False),
        sa.Column('sex', sa.String(length=16), nullable=True),
        sa.Column('birth_date', sa.Date(), nullable=True),
        sa.Column('height_cm', sa.Float(), nullable=True),
        sa.Column('weight_kg', sa.Float(), nullable=True),
        sa.Column('job_level', sa.Integer(), nullable=True),
        sa.Column('weekly_active_minutes', sa.Integer(), nullable=True),
        sa.Column('goal_level', sa.Integer(), nullable=True),
        sa.Column('active_level', sa.Integer(), nullable=True),
        sa.Column('recommended_kcal_override', sa.Float(), nullable=True),
        sa.Column('macro_overrides', JSON_DOCUMENT, nullable=True, comment='e.g. { protein_g: 150 }'),
        sa.Column('micro_overrides', JSON_DOCUMENT, nullable=True, comment='e.g. { iron_mg: 18 }'),
        sa.Column('cached_targets', JSON_DOCUMENT, nullable=True),
        sa.Column('timezone', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.Column('last_physical_update', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_user_profiles_id'), 'user_profiles', ['id'], unique=False)
    op.create_index(op.f('ix_user_profiles_owner_id'), 'user_profiles', ['owner_id'], unique=True)

    op.create_table(
        'meal_plans',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('owner_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=25), nullable=False),
        sa.Column('length_days', sa.Integer(), nullable=False),
        sa.Column('meals_per_day', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('meal_names', JSON_DOCUMENT, nullable=False, comment='Ordered meal names, one per slot of the day'),
        sa.Column('schedule_weekly', JSON_DOCUMENT, nullable=True),
        sa.Column('schedule_flat', JSON_DOCUMENT, nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_meal_plans_id'), 'meal_plans', ['id'], unique=False)
    op.create_index(op.f('ix_meal_plans_owner_id'), 'meal_plans', ['owner_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_meal_plans_owner_id'), table_name='meal_plans')
    op.drop_index(op.f('ix_meal_plans_id'), table_name='meal_plans')
    op.drop_table('meal_plans')
    op.drop_index(op.f('ix_user_profiles_owner_id'), table_name='user_profiles')
    op.drop_index(op.f('ix_user_profiles_id'), table_name='user_profiles')
    op.drop_table('user_profiles')

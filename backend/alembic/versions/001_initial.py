"""Initial migration - create all tables

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create run_timeline table (single row)
    op.create_table(
        'run_timeline',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('start_date', sa.String(10), nullable=False),
        sa.Column('start_time', sa.String(16), nullable=False),
        sa.Column('finish_date', sa.String(10), nullable=False),
        sa.Column('finish_time', sa.String(16), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    # Create location_fixes table
    op.create_table(
        'location_fixes',
        sa.Column('id', sa.String(128), primary_key=True),
        sa.Column('lat', sa.Float(), nullable=False),
        sa.Column('lng', sa.Float(), nullable=False),
        sa.Column('timestamp', sa.BigInteger(), nullable=False),
        sa.Column('accuracy', sa.Float(), nullable=True),
        sa.Column('elevation', sa.Float(), nullable=True),
        sa.Column('source', sa.String(50), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_location_fixes_timestamp', 'location_fixes', ['timestamp'])

    # Create trail_progress table (single row)
    op.create_table(
        'trail_progress',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('completed_distance', sa.Float(), nullable=False),
        sa.Column('completed_elevation_gain', sa.Float(), nullable=False),
        sa.Column('progress_percentage', sa.Float(), nullable=False),
        sa.Column('last_location', sa.JSON(), nullable=True),
        sa.Column('completed_segments', sa.JSON(), nullable=False),
        sa.Column('estimated_completion', sa.BigInteger(), nullable=True),
        sa.Column('last_updated', sa.BigInteger(), nullable=False),
    )

    # Create waypoints table
    op.create_table(
        'waypoints',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('lat', sa.Float(), nullable=False),
        sa.Column('lng', sa.Float(), nullable=False),
        sa.Column('is_completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('completed_at', sa.BigInteger(), nullable=True),
        sa.Column('completed_by', sa.String(10), nullable=True),
        sa.Column('created_by', sa.String(100), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    # Create waypoint_completions audit table
    op.create_table(
        'waypoint_completions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('waypoint_id', sa.String(64), nullable=False),
        sa.Column('is_completed', sa.Boolean(), nullable=False),
        sa.Column('completed_at', sa.BigInteger(), nullable=False),
        sa.Column('completed_by', sa.String(10), nullable=False),
        sa.Column('run_period', sa.String(50), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_waypoint_completions_waypoint_id', 'waypoint_completions', ['waypoint_id'])

    # Create precalculated_data table
    op.create_table(
        'precalculated_data',
        sa.Column('key', sa.String(50), primary_key=True),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('computed_at', sa.BigInteger(), nullable=False),
        sa.Column('scope', sa.String(64), nullable=True),
    )


def downgrade() -> None:
    op.drop_table('precalculated_data')
    op.drop_index('ix_waypoint_completions_waypoint_id', table_name='waypoint_completions')
    op.drop_table('waypoint_completions')
    op.drop_table('waypoints')
    op.drop_table('trail_progress')
    op.drop_index('ix_location_fixes_timestamp', table_name='location_fixes')
    op.drop_table('location_fixes')
    op.drop_table('run_timeline')

"""create league tables

Revision ID: 3e1f0c9a7d21
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3e1f0c9a7d21'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'seasons',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('start_at', sa.BigInteger(), nullable=False),
        sa.Column('end_at', sa.BigInteger(), nullable=True),
        sa.Column('is_active', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('end_at IS NULL OR start_at <= end_at', name='ck_season_bounds'),
    )
    op.create_index('ix_seasons_id', 'seasons', ['id'])

    op.create_table(
        'weeks',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('season_id', sa.Integer(), sa.ForeignKey('seasons.id'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('target_segment_id', sa.BigInteger(), nullable=False),
        sa.Column('required_repetitions', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('start_at', sa.BigInteger(), nullable=False),
        sa.Column('end_at', sa.BigInteger(), nullable=False),
        sa.Column('multiplier', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('required_repetitions >= 1', name='ck_week_reps'),
        sa.CheckConstraint('start_at <= end_at', name='ck_week_bounds'),
    )
    op.create_index('ix_weeks_id', 'weeks', ['id'])
    op.create_index('ix_weeks_season_id', 'weeks', ['season_id'])

    op.create_table(
        'participants',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'participant_tokens',
        sa.Column('participant_id', sa.BigInteger(), sa.ForeignKey('participants.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('access_token', sa.String(), nullable=False),
        sa.Column('refresh_token', sa.String(), nullable=False),
        sa.Column('expires_at', sa.BigInteger(), nullable=False),
        sa.Column('scope', sa.String(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'activities',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('week_id', sa.Integer(), sa.ForeignKey('weeks.id'), nullable=False),
        sa.Column('participant_id', sa.BigInteger(), sa.ForeignKey('participants.id'), nullable=False),
        sa.Column('external_id', sa.BigInteger(), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('occurred_at', sa.BigInteger(), nullable=False),
        sa.Column('device_name', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('week_id', 'participant_id', name='uq_activity_week_participant'),
    )
    op.create_index('ix_activities_id', 'activities', ['id'])
    op.create_index('ix_activities_week_id', 'activities', ['week_id'])
    op.create_index('ix_activities_participant_id', 'activities', ['participant_id'])
    op.create_index('ix_activities_external_id', 'activities', ['external_id'])

    op.create_table(
        'segment_efforts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('activity_id', sa.Integer(), sa.ForeignKey('activities.id', ondelete='CASCADE'), nullable=False),
        sa.Column('segment_id', sa.BigInteger(), nullable=False),
        sa.Column('external_id', sa.BigInteger(), nullable=True),
        sa.Column('effort_index', sa.Integer(), nullable=False),
        sa.Column('lap_index', sa.Integer(), nullable=False),
        sa.Column('elapsed_seconds', sa.Integer(), nullable=False),
        sa.Column('occurred_at', sa.BigInteger(), nullable=False),
        sa.Column('pr_achieved', sa.Boolean(), nullable=False, server_default='0'),
    )
    op.create_index('ix_segment_efforts_id', 'segment_efforts', ['id'])
    op.create_index('ix_segment_efforts_activity_id', 'segment_efforts', ['activity_id'])

    op.create_table(
        'results',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('week_id', sa.Integer(), sa.ForeignKey('weeks.id'), nullable=False),
        sa.Column('participant_id', sa.BigInteger(), sa.ForeignKey('participants.id'), nullable=False),
        sa.Column('activity_id', sa.Integer(), sa.ForeignKey('activities.id', ondelete='CASCADE'), nullable=False),
        sa.Column('total_time_seconds', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('week_id', 'participant_id', name='uq_result_week_participant'),
    )
    op.create_index('ix_results_id', 'results', ['id'])
    op.create_index('ix_results_week_id', 'results', ['week_id'])
    op.create_index('ix_results_participant_id', 'results', ['participant_id'])

    op.create_table(
        'webhook_events',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('object_type', sa.String(20), nullable=False),
        sa.Column('aspect_type', sa.String(20), nullable=False),
        sa.Column('object_id', sa.BigInteger(), nullable=False),
        sa.Column('owner_id', sa.BigInteger(), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('processed', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('error_message', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_webhook_events_id', 'webhook_events', ['id'])
    op.create_index('ix_webhook_events_owner_id', 'webhook_events', ['owner_id'])
    op.create_index('ix_webhook_events_created_at', 'webhook_events', ['created_at'])


def downgrade() -> None:
    for table in (
        'webhook_events',
        'results',
        'segment_efforts',
        'activities',
        'participant_tokens',
        'participants',
        'weeks',
        'seasons',
    ):
        op.execute(f'DROP TABLE IF EXISTS {table}')

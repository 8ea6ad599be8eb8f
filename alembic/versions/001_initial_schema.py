"""Initial schema: users, trips, trip days and their content

Revision ID: 001_initial_schema
Revises:
Create Date: 2025-05-01 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    ]


def _location() -> list:
    return [
        sa.Column('location_lat', sa.Float(), nullable=True),
        sa.Column('location_lng', sa.Float(), nullable=True),
        sa.Column('location_label', sa.String(200), nullable=True),
    ]


def upgrade() -> None:
    # Trip owners
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('display_name', sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'trips',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(120), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('hero_image_url', sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_trips_user_id', 'trips', ['user_id'])

    # One row per calendar date of a trip
    op.create_table(
        'trip_days',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('trip_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('trips.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('day_index', sa.Integer(), nullable=False),
        sa.Column('image_url', sa.String(), nullable=True),
        sa.Column('note', sa.String(280), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('trip_id', 'day_index', name='uq_trip_days_trip_day_index'),
        sa.UniqueConstraint('trip_id', 'date', name='uq_trip_days_trip_date'),
    )
    op.create_index('ix_trip_days_trip_id', 'trip_days', ['trip_id'])

    op.create_table(
        'accommodations',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('trip_day_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('trip_days.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(32), nullable=False, server_default='planned'),
        sa.Column('cost_cents', sa.Integer(), nullable=True),
        sa.Column('link', sa.String(2000), nullable=True),
        sa.Column('check_in_time', sa.String(5), nullable=True),
        sa.Column('check_out_time', sa.String(5), nullable=True),
        *_location(),
        *_timestamps(),
    )

    op.create_table(
        'day_plan_items',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('trip_day_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('trip_days.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(200), nullable=True),
        sa.Column('content_json', sa.Text(), nullable=False),
        sa.Column('from_time', sa.String(5), nullable=True),
        sa.Column('to_time', sa.String(5), nullable=True),
        sa.Column('cost_cents', sa.Integer(), nullable=True),
        sa.Column('link_url', sa.String(2000), nullable=True),
        *_location(),
        *_timestamps(),
    )
    op.create_index('ix_day_plan_items_trip_day_id', 'day_plan_items', ['trip_day_id'])

    # Anchor ids are polymorphic (accommodation or day plan item), so no foreign keys
    op.create_table(
        'travel_segments',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('trip_day_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('trip_days.id', ondelete='CASCADE'), nullable=False),
        sa.Column('from_item_type', sa.String(32), nullable=False),
        sa.Column('from_item_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('to_item_type', sa.String(32), nullable=False),
        sa.Column('to_item_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('transport_type', sa.String(32), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('distance_km', sa.Float(), nullable=True),
        sa.Column('link_url', sa.String(2000), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint(
            'trip_day_id', 'from_item_type', 'from_item_id', 'to_item_type', 'to_item_id',
            name='uq_travel_segments_day_from_to',
        ),
    )
    op.create_index('ix_travel_segments_trip_day_id', 'travel_segments', ['trip_day_id'])
    op.create_index('ix_travel_segments_from_item_id', 'travel_segments', ['from_item_id'])
    op.create_index('ix_travel_segments_to_item_id', 'travel_segments', ['to_item_id'])


def downgrade() -> None:
    op.drop_table('travel_segments')
    op.drop_table('day_plan_items')
    op.drop_table('accommodations')
    op.drop_table('trip_days')
    op.drop_table('trips')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')

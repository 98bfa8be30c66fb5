"""initial rideshare schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


CITIES = [
    # name, name_sq, name_en, lat, lng, is_popular
    ("Tirana", "Tirana", "Tirana", 41.3275, 19.8187, True),
    ("Durres", "Durrës", "Durres", 41.3246, 19.4565, True),
    ("Vlore", "Vlorë", "Vlora", 40.4667, 19.4897, True),
    ("Shkoder", "Shkodër", "Shkodra", 42.0693, 19.5033, True),
    ("Elbasan", "Elbasan", "Elbasan", 41.1125, 20.0822, True),
    ("Korce", "Korçë", "Korce", 40.6186, 20.7808, True),
    ("Fier", "Fier", "Fier", 40.7239, 19.5567, True),
    ("Berat", "Berat", "Berat", 40.7058, 19.9522, True),
    ("Gjirokaster", "Gjirokastër", "Gjirokastra", 40.0758, 20.1389, True),
    ("Sarande", "Sarandë", "Saranda", 39.8661, 20.0050, True),
    ("Lushnje", "Lushnjë", "Lushnja", 40.9419, 19.7050, False),
    ("Pogradec", "Pogradec", "Pogradec", 40.9025, 20.6525, False),
    ("Kukes", "Kukës", "Kukes", 42.0767, 20.4219, False),
    ("Lezhe", "Lezhë", "Lezha", 41.7836, 19.6436, False),
    ("Kavaje", "Kavajë", "Kavaja", 41.1856, 19.5569, False),
]


def upgrade():
    op.create_table('users',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('locale', sa.String(length=8), nullable=False, server_default='sq'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    cities = op.create_table('cities',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('name_en', sa.String(length=128), nullable=False),
        sa.Column('name_sq', sa.String(length=128), nullable=False),
        sa.Column('lat', sa.Float(), nullable=True),
        sa.Column('lng', sa.Float(), nullable=True),
        sa.Column('is_popular', sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index('ix_cities_name', 'cities', ['name'], unique=True)
    op.create_index('ix_cities_is_popular', 'cities', ['is_popular'], unique=False)

    op.create_table('rides',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('driver_id', sa.String(length=32), nullable=False),
        sa.Column('origin_city', sa.String(length=128), nullable=False),
        sa.Column('destination_city', sa.String(length=128), nullable=False),
        sa.Column('departure_time', sa.DateTime(), nullable=False),
        sa.Column('price_per_seat', sa.Integer(), nullable=False),
        sa.Column('total_seats', sa.Integer(), nullable=False),
        sa.Column('available_seats', sa.Integer(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='ACTIVE'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['driver_id'], ['users.id'], ondelete='CASCADE'),
        sa.CheckConstraint('price_per_seat > 0', name='ck_ride_price_positive'),
        sa.CheckConstraint('total_seats >= 1 AND total_seats <= 8', name='ck_ride_total_seats_range'),
        sa.CheckConstraint('available_seats >= 0 AND available_seats <= total_seats', name='ck_ride_available_seats_bounds'),
    )
    op.create_index('ix_rides_driver_id', 'rides', ['driver_id'], unique=False)
    op.create_index('ix_rides_origin_city', 'rides', ['origin_city'], unique=False)
    op.create_index('ix_rides_destination_city', 'rides', ['destination_city'], unique=False)
    op.create_index('ix_rides_departure_time', 'rides', ['departure_time'], unique=False)
    op.create_index('ix_rides_status', 'rides', ['status'], unique=False)
    op.create_index('ix_ride_search', 'rides', ['status', 'departure_time'], unique=False)

    op.create_table('bookings',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('ride_id', sa.String(length=32), nullable=False),
        sa.Column('rider_id', sa.String(length=32), nullable=False),
        sa.Column('seats_requested', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='PENDING'),
        sa.Column('payment_method', sa.String(length=16), nullable=False, server_default='CASH'),
        sa.Column('message', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['ride_id'], ['rides.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['rider_id'], ['users.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('ride_id', 'rider_id', name='uq_booking_ride_rider'),
        sa.CheckConstraint('seats_requested >= 1', name='ck_booking_seats_requested_positive'),
    )
    op.create_index('ix_bookings_ride_id', 'bookings', ['ride_id'], unique=False)
    op.create_index('ix_bookings_rider_id', 'bookings', ['rider_id'], unique=False)
    op.create_index('ix_bookings_status', 'bookings', ['status'], unique=False)

    op.create_table('search_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('origin_city', sa.String(length=128), nullable=False),
        sa.Column('destination_city', sa.String(length=128), nullable=False),
        sa.Column('search_date', sa.DateTime(), nullable=False),
        sa.Column('user_id', sa.String(length=32), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
    )
    op.create_index('ix_search_logs_user_id', 'search_logs', ['user_id'], unique=False)
    op.create_index('ix_search_logs_created_at', 'search_logs', ['created_at'], unique=False)
    op.create_index('ix_search_log_route', 'search_logs', ['origin_city', 'destination_city'], unique=False)

    op.bulk_insert(cities, [
        {'name': n, 'name_sq': sq, 'name_en': en, 'lat': lat, 'lng': lng, 'is_popular': popular}
        for n, sq, en, lat, lng, popular in CITIES
    ])


def downgrade():
    op.drop_table('search_logs')
    op.drop_table('bookings')
    op.drop_table('rides')
    op.drop_table('cities')
    op.drop_table('users')

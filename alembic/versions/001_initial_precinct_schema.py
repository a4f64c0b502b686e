"""Initial precinct locator schema

Revision ID: 001
Revises:
Create Date: 2026-01-05 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Precincts and sectors
    op.create_table('zones',
        sa.Column('zone_id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('address', sa.String(length=200), nullable=False),
        sa.Column('phone', sa.String(length=30), nullable=False),
        sa.Column('borough', sa.String(length=30), nullable=True),
        sa.Column('boundary_json', sa.Text(), nullable=False),
        sa.Column('centroid_lat', sa.Float(), nullable=False),
        sa.Column('centroid_lng', sa.Float(), nullable=False),
        sa.Column('bounding_box_json', sa.Text(), nullable=False),
        sa.Column('opening_hours_json', sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint('zone_id')
    )
    op.create_index('ix_zones_borough', 'zones', ['borough'], unique=False)

    # zone_id is deliberately not a foreign key: sectors reseed independently
    op.create_table('sub_zones',
        sa.Column('zone_id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('sub_zone_id', sa.String(length=20), nullable=False),
        sa.Column('boundary_json', sa.Text(), nullable=False),
        sa.Column('bounding_box_json', sa.Text(), nullable=False),
        sa.Column('derived', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('zone_id', 'sub_zone_id')
    )
    op.create_index('idx_sub_zones_zone', 'sub_zones', ['zone_id'], unique=False)

    # Squads and duty schedules
    op.create_table('squads',
        sa.Column('squad_id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('display_order', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('squad_id')
    )

    op.create_table('schedules',
        sa.Column('schedule_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('squad_id', sa.Integer(), nullable=False),
        sa.Column('kind', sa.String(length=10), nullable=False),
        sa.Column('cycle_length', sa.Integer(), nullable=False),
        sa.Column('pattern_json', sa.Text(), nullable=False),
        sa.Column('anchor_date', sa.Date(), nullable=False),
        sa.Column('squad_offset', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['squad_id'], ['squads.squad_id'], ),
        sa.PrimaryKeyConstraint('schedule_id'),
        sa.UniqueConstraint('squad_id')
    )

    # Reference-text library
    op.create_table('law_categories',
        sa.Column('category_id', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('display_order', sa.Integer(), nullable=False),
        sa.Column('entry_count', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('category_id'),
        sa.UniqueConstraint('name')
    )

    op.create_table('law_entries',
        sa.Column('entry_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('category_id', sa.String(length=50), nullable=False),
        sa.Column('section_number', sa.String(length=30), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('body_text', sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(['category_id'], ['law_categories.category_id'], ),
        sa.PrimaryKeyConstraint('entry_id')
    )
    op.create_index('idx_law_entries_category', 'law_entries', ['category_id'], unique=False)

    # Dataset versions
    op.create_table('dataset_versions',
        sa.Column('dataset_key', sa.String(length=32), nullable=False),
        sa.Column('version', sa.String(length=64), nullable=False),
        sa.Column('last_synced_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('dataset_key')
    )


def downgrade() -> None:
    op.drop_table('dataset_versions')
    op.drop_index('idx_law_entries_category', table_name='law_entries')
    op.drop_table('law_entries')
    op.drop_table('law_categories')
    op.drop_table('schedules')
    op.drop_table('squads')
    op.drop_index('idx_sub_zones_zone', table_name='sub_zones')
    op.drop_table('sub_zones')
    op.drop_index('ix_zones_borough', table_name='zones')
    op.drop_table('zones')

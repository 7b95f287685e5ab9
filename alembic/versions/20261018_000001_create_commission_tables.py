"""Create commission manager tables.

Revision ID: 20261018_000001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from commission_manager.models.types import MoneyType


# revision identifiers, used by Alembic.
revision: str = '20261018_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


PROPERTY_TYPES = ('residential', 'commercial', 'industrial', 'land', 'luxury')


def upgrade() -> None:
    """Create people, properties, levels and the commission ledger."""

    op.create_table(
        'people',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.String(50), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('referred_by', sa.Integer(), nullable=True),
        sa.Column('referral_level', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.CheckConstraint('referral_level >= 1', name='ck_people_referral_level_positive'),
        sa.CheckConstraint('referred_by IS NULL OR referred_by <> id', name='ck_people_no_self_referral'),
        sa.ForeignKeyConstraint(['referred_by'], ['people.id'], name='fk_people_referred_by_people', ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name='pk_people'),
    )
    op.create_index('ix_people_username', 'people', ['username'], unique=True)
    op.create_index('ix_people_referred_by', 'people', ['referred_by'])

    op.create_table(
        'properties',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('property_name', sa.String(255), nullable=False, server_default=''),
        sa.Column('property_type', sa.Enum(*PROPERTY_TYPES, name='property_type'), nullable=False),
        sa.Column('address', sa.String(500), nullable=False, server_default=''),
        sa.Column('price', MoneyType, nullable=False),
        sa.Column('sold_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.CheckConstraint('price >= 0', name='ck_properties_price_non_negative'),
        sa.ForeignKeyConstraint(['sold_by'], ['people.id'], name='fk_properties_sold_by_people', ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name='pk_properties'),
    )
    op.create_index('ix_properties_sold_by', 'properties', ['sold_by'])

    op.create_table(
        'levels',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('level_order', sa.Integer(), nullable=False),
        sa.Column('commission_percentage', sa.DECIMAL(5, 2), nullable=False, server_default='0'),
        sa.Column('property_id', sa.Integer(), nullable=True, comment='NULL for the global schedule'),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default='false', comment='Seeded bootstrap value'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.CheckConstraint('level_order >= 1', name='ck_levels_level_order_positive'),
        sa.CheckConstraint(
            'commission_percentage >= 0 AND commission_percentage <= 100',
            name='ck_levels_commission_percentage_range',
        ),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], name='fk_levels_property_id_properties', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_levels'),
        sa.UniqueConstraint('property_id', 'level_order', name='uq_levels_property_order'),
    )
    op.create_index('ix_levels_property_id', 'levels', ['property_id'])
    op.create_index(
        'uq_levels_global_order',
        'levels',
        ['level_order'],
        unique=True,
        postgresql_where=sa.text('property_id IS NULL'),
    )

    op.create_table(
        'level_people',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('level_id', sa.Integer(), nullable=False),
        sa.Column('person_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['level_id'], ['levels.id'], name='fk_level_people_level_id_levels', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['person_id'], ['people.id'], name='fk_level_people_person_id_people', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_level_people'),
        sa.UniqueConstraint('level_id', 'person_id', name='uq_level_people_level_person'),
    )
    op.create_index('ix_level_people_level_id', 'level_people', ['level_id'])
    op.create_index('ix_level_people_person_id', 'level_people', ['person_id'])

    op.create_table(
        'referral_levels',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('level', sa.Integer(), nullable=False, comment='Referral level key (depth + offset)'),
        sa.Column('commission_percentage', sa.DECIMAL(5, 2), nullable=False, server_default='0'),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.CheckConstraint('level >= 1', name='ck_referral_levels_level_positive'),
        sa.CheckConstraint(
            'commission_percentage >= 0 AND commission_percentage <= 100',
            name='ck_referral_levels_commission_percentage_range',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_referral_levels'),
    )
    op.create_index('ix_referral_levels_level', 'referral_levels', ['level'], unique=True)

    op.create_table(
        'commission_events',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('seller_id', sa.Integer(), nullable=False),
        sa.Column('revision', sa.Integer(), nullable=False, comment='1 for the first commit, +1 per override'),
        sa.Column('is_override', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('property_price', MoneyType, nullable=False, comment='Price the batch was computed from'),
        sa.Column('total_amount', MoneyType, nullable=False),
        sa.Column('calculated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.CheckConstraint('revision >= 1', name='ck_commission_events_revision_positive'),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], name='fk_commission_events_property_id_properties', ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['seller_id'], ['people.id'], name='fk_commission_events_seller_id_people', ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id', name='pk_commission_events'),
        sa.UniqueConstraint('property_id', 'revision', name='uq_commission_events_property_revision'),
    )
    op.create_index('ix_commission_events_property_id', 'commission_events', ['property_id'])

    op.create_table(
        'commissions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('person_id', sa.Integer(), nullable=False),
        sa.Column('level_id', sa.Integer(), nullable=True),
        sa.Column('level_order', sa.Integer(), nullable=False),
        sa.Column('commission_percentage', sa.DECIMAL(5, 2), nullable=False),
        sa.Column('commission_amount', MoneyType, nullable=False),
        sa.Column('entry_type', sa.String(20), nullable=False, server_default='calculation'),
        sa.Column('calculated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.CheckConstraint(
            'commission_percentage >= 0 AND commission_percentage <= 100',
            name='ck_commissions_commission_percentage_range',
        ),
        sa.ForeignKeyConstraint(['event_id'], ['commission_events.id'], name='fk_commissions_event_id_commission_events', ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], name='fk_commissions_property_id_properties', ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['person_id'], ['people.id'], name='fk_commissions_person_id_people', ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['level_id'], ['levels.id'], name='fk_commissions_level_id_levels', ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name='pk_commissions'),
        sa.UniqueConstraint('event_id', 'sequence', name='uq_commissions_event_sequence'),
    )
    op.create_index('ix_commissions_event_id', 'commissions', ['event_id'])
    op.create_index('ix_commissions_property_id', 'commissions', ['property_id'])
    op.create_index('ix_commissions_person_id', 'commissions', ['person_id'])

    op.create_table(
        'referral_commissions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('referrer_id', sa.Integer(), nullable=False),
        sa.Column('depth', sa.Integer(), nullable=False),
        sa.Column('referral_level', sa.Integer(), nullable=False),
        sa.Column('commission_percentage', sa.DECIMAL(5, 2), nullable=False),
        sa.Column('commission_amount', MoneyType, nullable=False),
        sa.Column('entry_type', sa.String(20), nullable=False, server_default='calculation'),
        sa.Column('calculated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.CheckConstraint('referral_level >= 1', name='ck_referral_commissions_referral_level_positive'),
        sa.CheckConstraint('depth >= 1', name='ck_referral_commissions_depth_positive'),
        sa.CheckConstraint(
            'commission_percentage >= 0 AND commission_percentage <= 100',
            name='ck_referral_commissions_commission_percentage_range',
        ),
        sa.ForeignKeyConstraint(['event_id'], ['commission_events.id'], name='fk_referral_commissions_event_id_commission_events', ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], name='fk_referral_commissions_property_id_properties', ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['referrer_id'], ['people.id'], name='fk_referral_commissions_referrer_id_people', ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id', name='pk_referral_commissions'),
        sa.UniqueConstraint('event_id', 'sequence', name='uq_referral_commissions_event_sequence'),
    )
    op.create_index('ix_referral_commissions_event_id', 'referral_commissions', ['event_id'])
    op.create_index('ix_referral_commissions_property_id', 'referral_commissions', ['property_id'])
    op.create_index('ix_referral_commissions_referrer_id', 'referral_commissions', ['referrer_id'])


def downgrade() -> None:
    """Drop commission manager tables."""
    op.drop_table('referral_commissions')
    op.drop_table('commissions')
    op.drop_table('commission_events')
    op.drop_table('referral_levels')
    op.drop_table('level_people')
    op.drop_table('levels')
    op.drop_table('properties')
    op.drop_table('people')
    sa.Enum(name='property_type').drop(op.get_bind(), checkfirst=True)

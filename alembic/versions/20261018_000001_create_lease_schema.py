"""Create lease management schema

Revision ID: 20261018_000001
Revises: None
Create Date: 2026-10-18

Creates users, properties, units, tenants, leases, lease escalations,
insurance records, payments and QuickBooks tokens, including the filtered
unique index that allows one ACTIVE lease per unit.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261018_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _enum(name: str, *values: str) -> sa.Enum:
    # VARCHAR + CHECK constraint, as declared on the models
    return sa.Enum(*values, name=name, native_enum=False, create_constraint=True)


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Create all tables."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('role', _enum('user_role', 'ADMIN', 'TENANT'), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'properties',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('property_type', _enum('property_type', 'RESIDENTIAL', 'COMMERCIAL'), nullable=False),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('state', sa.String(length=100), nullable=True),
        sa.Column('zip_code', sa.String(length=20), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'units',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('unit_number', sa.String(length=50), nullable=False),
        sa.Column('rent_price', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('size', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', _enum('unit_status', 'VACANT', 'OCCUPIED', 'MAINTENANCE'), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], name='fk_units_property_id', ondelete='CASCADE'),
    )
    op.create_index('ix_units_property_id', 'units', ['property_id'])
    op.create_index('ix_units_status', 'units', ['status'])

    op.create_table(
        'tenants',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('unit_id', sa.Integer(), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('business_name', sa.String(length=255), nullable=True),
        sa.Column('move_in_date', sa.Date(), nullable=True),
        sa.Column('emergency_contact_name', sa.String(length=200), nullable=True),
        sa.Column('emergency_contact_phone', sa.String(length=50), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', name='uq_tenants_user_id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_tenants_user_id', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['unit_id'], ['units.id'], name='fk_tenants_unit_id'),
    )
    op.create_index('ix_tenants_unit_id', 'tenants', ['unit_id'])

    op.create_table(
        'leases',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('unit_id', sa.Integer(), nullable=False),
        sa.Column('lease_type', _enum('lease_type', 'RESIDENTIAL', 'COMMERCIAL'), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('monthly_rent', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('deposit_amount', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('document_url', sa.String(length=500), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', _enum('lease_status', 'ACTIVE', 'EXPIRED', 'TERMINATED'), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], name='fk_leases_tenant_id'),
        sa.ForeignKeyConstraint(['unit_id'], ['units.id'], name='fk_leases_unit_id'),
    )
    op.create_index('ix_leases_tenant_id', 'leases', ['tenant_id'])
    op.create_index('ix_leases_unit_id', 'leases', ['unit_id'])
    op.create_index('ix_leases_status', 'leases', ['status'])

    # One ACTIVE lease per unit
    active_only = sa.text("status = 'ACTIVE'")
    op.create_index(
        'uq_leases_unit_active',
        'leases',
        ['unit_id'],
        unique=True,
        mssql_where=active_only,
        postgresql_where=active_only,
        sqlite_where=active_only,
    )

    op.create_table(
        'lease_escalations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('lease_id', sa.Integer(), nullable=False),
        sa.Column('effective_date', sa.Date(), nullable=False),
        sa.Column('new_monthly_rent', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('increase_type', _enum('increase_type', 'PERCENTAGE', 'FIXED_AMOUNT', 'CPI'), nullable=False),
        sa.Column('increase_value', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('applied', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('applied_at', sa.DateTime(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['lease_id'], ['leases.id'], name='fk_lease_escalations_lease_id', ondelete='CASCADE'),
    )
    op.create_index('ix_lease_escalations_lease_id', 'lease_escalations', ['lease_id'])
    op.create_index('ix_lease_escalations_effective_date', 'lease_escalations', ['effective_date'])

    op.create_table(
        'insurance_records',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('lease_id', sa.Integer(), nullable=False),
        sa.Column('insurance_type', _enum('insurance_type', 'LIABILITY', 'PROPERTY', 'WORKERS_COMP'), nullable=False),
        sa.Column('carrier', sa.String(length=255), nullable=True),
        sa.Column('policy_number', sa.String(length=100), nullable=True),
        sa.Column('coverage_amount', sa.Numeric(precision=14, scale=2), nullable=True),
        sa.Column('effective_date', sa.Date(), nullable=False),
        sa.Column('expiration_date', sa.Date(), nullable=False),
        sa.Column('document_url', sa.String(length=500), nullable=True),
        sa.Column('beneficiary_name', sa.String(length=255), nullable=False),
        sa.Column('verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('verified_at', sa.DateTime(), nullable=True),
        sa.Column('reminder_sent', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('reminder_sent_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['lease_id'], ['leases.id'], name='fk_insurance_records_lease_id', ondelete='CASCADE'),
    )
    op.create_index('ix_insurance_records_lease_id', 'insurance_records', ['lease_id'])
    op.create_index('ix_insurance_records_expiration_date', 'insurance_records', ['expiration_date'])

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('lease_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('method', sa.String(length=20), nullable=True),
        sa.Column('reference', sa.String(length=255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['lease_id'], ['leases.id'], name='fk_payments_lease_id', ondelete='CASCADE'),
    )
    op.create_index('ix_payments_lease_id', 'payments', ['lease_id'])
    op.create_index('ix_payments_date', 'payments', ['date'])

    op.create_table(
        'quickbooks_tokens',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('realm_id', sa.String(length=64), nullable=False),
        sa.Column('access_token', sa.Text(), nullable=False),
        sa.Column('refresh_token', sa.Text(), nullable=False),
        sa.Column('access_token_expires_at', sa.DateTime(), nullable=False),
        sa.Column('refresh_token_expires_at', sa.DateTime(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('realm_id', name='uq_quickbooks_tokens_realm_id'),
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table('quickbooks_tokens')
    op.drop_table('payments')
    op.drop_table('insurance_records')
    op.drop_table('lease_escalations')
    op.drop_index('uq_leases_unit_active', table_name='leases')
    op.drop_table('leases')
    op.drop_table('tenants')
    op.drop_table('units')
    op.drop_table('properties')
    op.drop_table('users')

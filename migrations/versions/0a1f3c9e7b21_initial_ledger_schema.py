"""initial ledger schema

Revision ID: 0a1f3c9e7b21
Revises:
Create Date: 2026-10-19 09:12:44.118203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
import sqlmodel


# revision identifiers, used by Alembic.
revision: str = '0a1f3c9e7b21'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


role_enum = sa.Enum('ROOT', 'ADMIN', 'CONTROL', 'SUPPLY_CHAIN_ENTITY', 'MINTER', name='role')
supply_chain_role_enum = sa.Enum(
    'PRODUCER', 'PROCESSOR', 'TRADER', 'DELIVERY', 'RETAILER', name='supplychainrole')
control_tier_enum = sa.Enum(
    'FIRST_PARTY', 'SECOND_PARTY', 'THIRD_PARTY', name='controltier')
gse_status_enum = sa.Enum('NOT_ACKNOWLEDGED', 'ACKNOWLEDGED', name='gsestatus')
control_status_enum = sa.Enum('PENDING', 'OK', 'NOT_OK', name='controlstatus')
control_state_enum = sa.Enum(
    'CREATED', 'FINDINGS_REPORTED', 'FINISHED', name='controlstate')


def upgrade():
    op.create_table(
        'rolemembership',
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('principal', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('role', role_enum, nullable=False),
        sa.PrimaryKeyConstraint('principal', 'role'),
    )
    op.create_index(op.f('ix_rolemembership_role'), 'rolemembership', ['role'], unique=False)

    op.create_table(
        'ledgersequence',
        sa.Column('name', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('value', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('name'),
    )

    op.create_table(
        'supplychainentity',
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('principal', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('role', supply_chain_role_enum, nullable=False),
        sa.Column('tier', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('gse_acknowledged', sa.Boolean(), nullable=False),
        sa.Column('control_ids', sa.JSON(), nullable=True),
        sa.Column('transaction_ids', sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint('principal'),
    )

    op.create_table(
        'controlentity',
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('principal', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('role', control_tier_enum, nullable=False),
        sa.Column('description', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('gse_status', gse_status_enum, nullable=False),
        sa.Column('number_of_controls', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('principal'),
    )

    op.create_table(
        'controlrecord',
        sa.Column('control_id', sa.Integer(), nullable=False),
        sa.Column('time_of_control', sa.DateTime(), nullable=False),
        sa.Column('status', control_status_enum, nullable=False),
        sa.Column('controlled_entity', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('controller_entity', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.PrimaryKeyConstraint('control_id'),
    )
    op.create_index(op.f('ix_controlrecord_controlled_entity'),
                    'controlrecord', ['controlled_entity'], unique=False)
    op.create_index(op.f('ix_controlrecord_controller_entity'),
                    'controlrecord', ['controller_entity'], unique=False)

    op.create_table(
        'noncomplianttransaction',
        sa.Column('transaction_id', sa.Integer(), nullable=False),
        sa.Column('time', sa.DateTime(), nullable=False),
        sa.Column('token_id', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('transaction_id'),
    )
    op.create_index(op.f('ix_noncomplianttransaction_token_id'),
                    'noncomplianttransaction', ['token_id'], unique=False)

    op.create_table(
        'controlworkflow',
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('controlled_entity', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('controller_entity', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('state', control_state_enum, nullable=False),
        sa.Column('gse_ok', sa.Boolean(), nullable=True),
        sa.Column('findings', sa.JSON(), nullable=True),
        sa.Column('acknowledgement_code', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_controlworkflow_controlled_entity'),
                    'controlworkflow', ['controlled_entity'], unique=False)
    op.create_index(op.f('ix_controlworkflow_controller_entity'),
                    'controlworkflow', ['controller_entity'], unique=False)

    op.create_table(
        'provenancetoken',
        sa.Column('token_id', sa.Integer(), nullable=False),
        sa.Column('owner', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False),
        sa.Column('source_token_ids', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('token_id'),
    )
    op.create_index(op.f('ix_provenancetoken_owner'),
                    'provenancetoken', ['owner'], unique=False)

    op.create_table(
        'ledgerevent',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_ledgerevent_name'), 'ledgerevent', ['name'], unique=False)


def downgrade():
    op.drop_index(op.f('ix_ledgerevent_name'), table_name='ledgerevent')
    op.drop_table('ledgerevent')
    op.drop_index(op.f('ix_provenancetoken_owner'), table_name='provenancetoken')
    op.drop_table('provenancetoken')
    op.drop_index(op.f('ix_controlworkflow_controller_entity'), table_name='controlworkflow')
    op.drop_index(op.f('ix_controlworkflow_controlled_entity'), table_name='controlworkflow')
    op.drop_table('controlworkflow')
    op.drop_index(op.f('ix_noncomplianttransaction_token_id'), table_name='noncomplianttransaction')
    op.drop_table('noncomplianttransaction')
    op.drop_index(op.f('ix_controlrecord_controller_entity'), table_name='controlrecord')
    op.drop_index(op.f('ix_controlrecord_controlled_entity'), table_name='controlrecord')
    op.drop_table('controlrecord')
    op.drop_table('controlentity')
    op.drop_table('supplychainentity')
    op.drop_table('ledgersequence')
    op.drop_index(op.f('ix_rolemembership_role'), table_name='rolemembership')
    op.drop_table('rolemembership')

    bind = op.get_bind()
    if bind.dialect.name == 'postgresql':
        for enum in (role_enum, supply_chain_role_enum, control_tier_enum,
                     gse_status_enum, control_status_enum, control_state_enum):
            enum.drop(bind, checkfirst=True)

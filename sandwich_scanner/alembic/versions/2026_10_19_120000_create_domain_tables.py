"""create_domain_tables

Revision ID: 2026_10_19_120000
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '2026_10_19_120000'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("CREATE SCHEMA IF NOT EXISTS domain")

    op.create_table(
        'tokens',
        sa.Column('token_id', sa.BigInteger(), sa.Identity(), primary_key=True),
        sa.Column('chain', sa.Text(), nullable=False),
        sa.Column('token_address', sa.Text(), nullable=False),
        sa.Column('token_name', sa.Text(), nullable=False),
        sa.Column('token_symbol', sa.Text(), nullable=False),
        sa.Column('decimals', sa.SmallInteger(), nullable=False),
        sa.UniqueConstraint('chain', 'token_address', name='uq_tokens_chain_address'),
        schema='domain',
    )
    op.create_index('ix_tokens_chain_symbol', 'tokens', ['chain', 'token_symbol'], schema='domain')

    op.create_table(
        'pairs',
        sa.Column('pair_id', sa.BigInteger(), sa.Identity(), primary_key=True),
        sa.Column('chain', sa.Text(), nullable=False),
        sa.Column('factory_address', sa.Text(), nullable=False),
        sa.Column('pair_address', sa.Text(), nullable=False),
        sa.Column('base_token_id', sa.BigInteger(), sa.ForeignKey('domain.tokens.token_id'), nullable=False),
        sa.Column('quote_token_id', sa.BigInteger(), sa.ForeignKey('domain.tokens.token_id'), nullable=False),
        sa.UniqueConstraint('chain', 'pair_address', name='uq_pairs_chain_address'),
        schema='domain',
    )

    op.create_table(
        'scan_ranges',
        sa.Column('range_id', sa.BigInteger(), sa.Identity(), primary_key=True),
        sa.Column('pair_id', sa.BigInteger(), sa.ForeignKey('domain.pairs.pair_id'), nullable=False),
        sa.Column('lower_bound', sa.BigInteger(), nullable=False),
        sa.Column('upper_bound', sa.BigInteger(), nullable=False),
        sa.Column('scan_complete', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('scan_failed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.CheckConstraint('lower_bound <= upper_bound', name='ck_scan_ranges_bounds'),
        sa.CheckConstraint('NOT (scan_complete AND scan_failed)', name='ck_scan_ranges_status'),
        schema='domain',
    )
    op.create_index(
        'ix_scan_ranges_pair_bounds',
        'scan_ranges',
        ['pair_id', 'lower_bound', 'upper_bound'],
        schema='domain',
    )

    op.create_table(
        'sandwiches',
        sa.Column('sandwich_id', sa.BigInteger(), sa.Identity(), primary_key=True),
        sa.Column('pair_id', sa.BigInteger(), sa.ForeignKey('domain.pairs.pair_id'), nullable=False),
        sa.Column('block_number', sa.BigInteger(), nullable=False),
        schema='domain',
    )
    op.create_index('ix_sandwiches_pair_block', 'sandwiches', ['pair_id', 'block_number'], schema='domain')

    op.create_table(
        'sandwich_transactions',
        sa.Column('transaction_id', sa.BigInteger(), sa.Identity(), primary_key=True),
        sa.Column(
            'sandwich_id',
            sa.BigInteger(),
            sa.ForeignKey('domain.sandwiches.sandwich_id'),
            nullable=False,
        ),
        sa.Column('role', sa.Text(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('tx_hash', sa.Text(), nullable=False),
        sa.Column('tx_index', sa.Integer(), nullable=False),
        sa.Column('base_in', sa.Double(), nullable=False),
        sa.Column('quote_in', sa.Double(), nullable=False),
        sa.Column('base_out', sa.Double(), nullable=False),
        sa.Column('quote_out', sa.Double(), nullable=False),
        sa.Column('gas', sa.Double(), nullable=False),
        sa.UniqueConstraint('sandwich_id', 'role', 'position', name='uq_sandwich_transactions_leg'),
        schema='domain',
    )
    op.create_index(
        'ix_sandwich_transactions_tx_hash',
        'sandwich_transactions',
        ['tx_hash'],
        schema='domain',
    )


def downgrade() -> None:
    op.drop_index('ix_sandwich_transactions_tx_hash', table_name='sandwich_transactions', schema='domain')
    op.drop_table('sandwich_transactions', schema='domain')
    op.drop_index('ix_sandwiches_pair_block', table_name='sandwiches', schema='domain')
    op.drop_table('sandwiches', schema='domain')
    op.drop_index('ix_scan_ranges_pair_bounds', table_name='scan_ranges', schema='domain')
    op.drop_table('scan_ranges', schema='domain')
    op.drop_table('pairs', schema='domain')
    op.drop_index('ix_tokens_chain_symbol', table_name='tokens', schema='domain')
    op.drop_table('tokens', schema='domain')

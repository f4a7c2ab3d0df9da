"""Index invoices (paid, paid_at) for payment history

Revision ID: 003_index_paid_history
Revises: 002_add_arrival_date
Create Date: 2026-10-01 00:00:02.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '003_index_paid_history'
down_revision: Union[str, None] = '002_add_arrival_date'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    indexes = {index['name'] for index in sa.inspect(op.get_bind()).get_indexes('invoices')}
    if 'ix_invoices_paid_paid_at' in indexes:
        return
    op.create_index('ix_invoices_paid_paid_at', 'invoices', ['paid', 'paid_at'])


def downgrade() -> None:
    op.drop_index('ix_invoices_paid_paid_at', table_name='invoices')

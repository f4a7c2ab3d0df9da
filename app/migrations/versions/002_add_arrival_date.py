"""Add invoices.arrival_date

Revision ID: 002_add_arrival_date
Revises: 001_create_invoices
Create Date: 2026-10-01 00:00:01.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '002_add_arrival_date'
down_revision: Union[str, None] = '001_create_invoices'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    columns = {column['name'] for column in sa.inspect(op.get_bind()).get_columns('invoices')}
    if 'arrival_date' in columns:
        return
    op.add_column('invoices', sa.Column('arrival_date', sa.Date(), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table('invoices') as batch_op:
        batch_op.drop_column('arrival_date')

"""Normalize legacy timestamps to naive UTC and backfill arrival_date

Il server precedente salvava created_at e paid_at come testo ISO con 'Z'
(es. 2026-10-07T22:57:17.314Z), che il tipo DateTime di SQLite rilegge
come datetime con timezone. Qui vengono riscritti nel formato naive UTC
e arrival_date viene valorizzata con la data di creazione dove manca.

Revision ID: 004_normalize_timestamps
Revises: 003_index_paid_history
Create Date: 2026-10-18 00:00:00.000000

"""
import logging
from datetime import date, datetime, timezone
from typing import Any, Optional, Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '004_normalize_timestamps'
down_revision: Union[str, None] = '003_index_paid_history'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

logger = logging.getLogger('app.migrations')

invoices = sa.table(
    'invoices',
    sa.column('id', sa.Integer),
    sa.column('created_at', sa.DateTime),
    sa.column('paid_at', sa.DateTime),
    sa.column('arrival_date', sa.Date),
)


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith(('Z', 'z')):
            text = text[:-1] + '+00:00'
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _parse_date(value: Any) -> Optional[date]:
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def upgrade() -> None:
    bind = op.get_bind()
    # Lettura grezza: i valori con 'Z' non passano dal tipo DateTime
    rows = bind.execute(
        sa.text('SELECT id, created_at, paid_at, arrival_date FROM invoices')
    ).all()

    for invoice_id, raw_created, raw_paid, raw_arrival in rows:
        created_at = _parse_timestamp(raw_created) or datetime.now(timezone.utc).replace(tzinfo=None)
        bind.execute(
            invoices.update()
            .where(invoices.c.id == invoice_id)
            .values(
                created_at=created_at,
                paid_at=_parse_timestamp(raw_paid),
                arrival_date=_parse_date(raw_arrival) or created_at.date(),
            )
        )

    if rows:
        logger.info(
            'Normalizzati i timestamp di %d fatture',
            len(rows),
            extra={'component': 'migrations', 'rows': len(rows)},
        )


def downgrade() -> None:
    # Il formato originale non viene ripristinato
    pass

"""Create name_ledger table

Revision ID: 5a1c0e7d9b42
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "5a1c0e7d9b42"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Key-value table holding canonical and override name namespaces.

    - namespace: 8-byte guild id (canonical) or b"o" + guild id (overrides)
    - key: 8-byte big-endian user id
    - value: UTF-8 display name
    """
    op.create_table(
        "name_ledger",
        sa.Column("namespace", sa.LargeBinary(9), primary_key=True),
        sa.Column("key", sa.LargeBinary(8), primary_key=True),
        sa.Column("value", sa.LargeBinary, nullable=False),
    )
    op.create_index("ix_name_ledger_namespace", "name_ledger", ["namespace"])


def downgrade() -> None:
    op.drop_index("ix_name_ledger_namespace", table_name="name_ledger")
    op.drop_table("name_ledger")

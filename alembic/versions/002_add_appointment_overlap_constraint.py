"""exclude overlapping pending/confirmed appointments per master

Revision ID: 002
Revises: 001
Create Date: 2026-10-19 09:30:00.000000
"""
from typing import Sequence, Union
from alembic import op


# revision identifiers, used by Alembic.
revision: str = '002'
down_revision: Union[str, None] = '001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
    # Half-open [start_time, end_time) so back-to-back bookings do not collide
    op.execute(
        """
        ALTER TABLE appointments
        ADD CONSTRAINT ex_appointments_master_no_overlap
        EXCLUDE USING gist (
            master_id WITH =,
            tsrange(start_time, end_time, '[)') WITH &&
        )
        WHERE (status IN ('pending', 'confirmed'))
        """
    )


def downgrade() -> None:
    op.execute("ALTER TABLE appointments DROP CONSTRAINT IF EXISTS ex_appointments_master_no_overlap")

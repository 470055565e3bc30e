"""create ledger tables

Revision ID: 3f9a2c71d4e8
Revises:
Create Date: 2026-03-02 10:14:37.218904

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9a2c71d4e8'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # 1. coaches
    op.create_table(
        'coaches',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    # 2. students
    op.create_table(
        'students',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('coach_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_students_coach_id', 'students', ['coach_id'])

    # 3. student_links (shared hour pools)
    op.create_table(
        'student_links',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('student_id', sa.Integer(), nullable=False),
        sa.Column('related_student_id', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('student_id', 'related_student_id', name='uq_student_link')
    )
    op.create_index('ix_student_links_student_id', 'student_links', ['student_id'])
    op.create_index('ix_student_links_related_student_id', 'student_links', ['related_student_id'])

    # 4. payments
    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('student_id', sa.Integer(), nullable=False),
        sa.Column('coach_id', sa.Integer(), nullable=True),
        sa.Column('purchase_date', sa.Date(), nullable=False),
        sa.Column('effective_date', sa.Date(), nullable=True),
        sa.Column('purchased_hours', sa.Numeric(precision=8, scale=2), nullable=False),
        sa.Column('price_per_hour', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('paid_amount', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('total_amount', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='unpaid'),
        sa.Column('is_session_payment', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_payments_student_id', 'payments', ['student_id'])
    op.create_index('ix_payments_coach_id', 'payments', ['coach_id'])
    op.create_index('ix_payments_student_purchase', 'payments', ['student_id', 'purchase_date'])

    # 5. checkins
    op.create_table(
        'checkins',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('student_id', sa.Integer(), nullable=False),
        sa.Column('coach_id', sa.Integer(), nullable=True),
        sa.Column('class_date', sa.Date(), nullable=False),
        sa.Column('time_slot', sa.String(length=32), nullable=False, server_default=''),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_checkins_student_id', 'checkins', ['student_id'])
    op.create_index('ix_checkins_coach_id', 'checkins', ['coach_id'])
    op.create_index('ix_checkins_student_date', 'checkins', ['student_id', 'class_date'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('checkins')
    op.drop_table('payments')
    op.drop_table('student_links')
    op.drop_table('students')
    op.drop_table('coaches')

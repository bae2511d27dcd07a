"""fee structure, student fee and payment tables

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 00:02:00
"""

from alembic import op
import sqlalchemy as sa


revision = '20261019_0002'
down_revision = '20261019_0001'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'fee_categories',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('school_id', sa.Integer(), sa.ForeignKey('schools.id'), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('is_recurring', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('school_id', 'name', name='uq_fee_categories_school_name'),
    )
    op.create_index('ix_fee_categories_id', 'fee_categories', ['id'])
    op.create_index('ix_fee_categories_school_id', 'fee_categories', ['school_id'])
    op.create_index('ix_fee_categories_is_active', 'fee_categories', ['is_active'])

    op.create_table(
        'fee_structures',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('school_id', sa.Integer(), sa.ForeignKey('schools.id'), nullable=False),
        sa.Column('class_id', sa.Integer(), sa.ForeignKey('classes.id'), nullable=False),
        sa.Column('academic_year_id', sa.Integer(), sa.ForeignKey('academic_years.id'), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('total_amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('due_day', sa.Integer(), nullable=False, server_default='10'),
        sa.Column('late_fee_percentage', sa.Float(), nullable=False, server_default='0'),
        sa.Column('late_fee_fixed_amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('grace_period_days', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('class_id', 'academic_year_id', name='uq_fee_structures_class_year'),
    )
    op.create_index('ix_fee_structures_id', 'fee_structures', ['id'])
    op.create_index('ix_fee_structures_school_id', 'fee_structures', ['school_id'])
    op.create_index('ix_fee_structures_class_id', 'fee_structures', ['class_id'])
    op.create_index('ix_fee_structures_academic_year_id', 'fee_structures', ['academic_year_id'])
    op.create_index('ix_fee_structures_is_active', 'fee_structures', ['is_active'])
    op.create_index('ix_fee_structures_created_at', 'fee_structures', ['created_at'])

    op.create_table(
        'fee_structure_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('fee_structure_id', sa.Integer(), sa.ForeignKey('fee_structures.id'), nullable=False),
        sa.Column('fee_category_id', sa.Integer(), sa.ForeignKey('fee_categories.id'), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('frequency', sa.String(length=20), nullable=False, server_default='MONTHLY'),
    )
    op.create_index('ix_fee_structure_items_id', 'fee_structure_items', ['id'])
    op.create_index('ix_fee_structure_items_fee_structure_id', 'fee_structure_items', ['fee_structure_id'])
    op.create_index('ix_fee_structure_items_fee_category_id', 'fee_structure_items', ['fee_category_id'])

    op.create_table(
        'fee_discounts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id'), nullable=False),
        sa.Column('academic_year_id', sa.Integer(), sa.ForeignKey('academic_years.id'), nullable=False),
        sa.Column('fee_category_id', sa.Integer(), sa.ForeignKey('fee_categories.id'), nullable=True),
        sa.Column('discount_type', sa.String(length=20), nullable=False),
        sa.Column('discount_value', sa.Float(), nullable=False),
        sa.Column('reason', sa.String(length=255), nullable=False),
        sa.Column('approved_by', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_fee_discounts_id', 'fee_discounts', ['id'])
    op.create_index('ix_fee_discounts_student_id', 'fee_discounts', ['student_id'])
    op.create_index('ix_fee_discounts_academic_year_id', 'fee_discounts', ['academic_year_id'])
    op.create_index(
        'ix_fee_discounts_student_year_active',
        'fee_discounts',
        ['student_id', 'academic_year_id', 'is_active'],
    )

    op.create_table(
        'student_fees',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id'), nullable=False),
        sa.Column('fee_structure_id', sa.Integer(), sa.ForeignKey('fee_structures.id'), nullable=False),
        sa.Column('academic_year_id', sa.Integer(), sa.ForeignKey('academic_years.id'), nullable=False),
        sa.Column('total_amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('discount_amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('late_fee_amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('paid_amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('balance_amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='PENDING'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('student_id', 'academic_year_id', name='uq_student_fees_student_year'),
    )
    op.create_index('ix_student_fees_id', 'student_fees', ['id'])
    op.create_index('ix_student_fees_student_id', 'student_fees', ['student_id'])
    op.create_index('ix_student_fees_fee_structure_id', 'student_fees', ['fee_structure_id'])
    op.create_index('ix_student_fees_academic_year_id', 'student_fees', ['academic_year_id'])
    op.create_index('ix_student_fees_status', 'student_fees', ['status'])
    op.create_index('ix_student_fees_created_at', 'student_fees', ['created_at'])

    op.create_table(
        'student_fee_details',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('student_fee_id', sa.Integer(), sa.ForeignKey('student_fees.id'), nullable=False),
        sa.Column('fee_category_id', sa.Integer(), sa.ForeignKey('fee_categories.id'), nullable=True),
        sa.Column('frequency', sa.String(length=20), nullable=False, server_default='MONTHLY'),
        sa.Column('period_month', sa.Integer(), nullable=False),
        sa.Column('period_year', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('late_fee', sa.Float(), nullable=False, server_default='0'),
        sa.Column('paid_amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='PENDING'),
    )
    op.create_index('ix_student_fee_details_id', 'student_fee_details', ['id'])
    op.create_index('ix_student_fee_details_student_fee_id', 'student_fee_details', ['student_fee_id'])
    op.create_index('ix_student_fee_details_due_date', 'student_fee_details', ['due_date'])
    op.create_index('ix_student_fee_details_status', 'student_fee_details', ['status'])
    op.create_index('ix_student_fee_details_fee_due', 'student_fee_details', ['student_fee_id', 'due_date'])
    op.create_index('ix_student_fee_details_status_due', 'student_fee_details', ['status', 'due_date'])

    op.create_table(
        'fee_payments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('student_fee_id', sa.Integer(), sa.ForeignKey('student_fees.id'), nullable=False),
        sa.Column('school_id', sa.Integer(), sa.ForeignKey('schools.id'), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('payment_method', sa.String(length=20), nullable=False),
        sa.Column('transaction_id', sa.String(length=100), nullable=True),
        sa.Column('receipt_number', sa.String(length=40), nullable=False),
        sa.Column('collected_by', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('remarks', sa.Text(), nullable=False, server_default=''),
        sa.Column('payment_date', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_fee_payments_id', 'fee_payments', ['id'])
    op.create_index('ix_fee_payments_student_fee_id', 'fee_payments', ['student_fee_id'])
    op.create_index('ix_fee_payments_school_id', 'fee_payments', ['school_id'])
    op.create_index('ix_fee_payments_receipt_number', 'fee_payments', ['receipt_number'], unique=True)
    op.create_index('ix_fee_payments_payment_date', 'fee_payments', ['payment_date'])

    op.create_table(
        'fee_payment_allocations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('fee_payment_id', sa.Integer(), sa.ForeignKey('fee_payments.id'), nullable=False),
        sa.Column('student_fee_detail_id', sa.Integer(), sa.ForeignKey('student_fee_details.id'), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.UniqueConstraint('fee_payment_id', 'student_fee_detail_id', name='uq_fee_payment_allocations_payment_detail'),
    )
    op.create_index('ix_fee_payment_allocations_id', 'fee_payment_allocations', ['id'])
    op.create_index('ix_fee_payment_allocations_fee_payment_id', 'fee_payment_allocations', ['fee_payment_id'])
    op.create_index(
        'ix_fee_payment_allocations_student_fee_detail_id',
        'fee_payment_allocations',
        ['student_fee_detail_id'],
    )


def downgrade() -> None:
    op.drop_table('fee_payment_allocations')
    op.drop_table('fee_payments')
    op.drop_table('student_fee_details')
    op.drop_table('student_fees')
    op.drop_table('fee_discounts')
    op.drop_table('fee_structure_items')
    op.drop_table('fee_structures')
    op.drop_table('fee_categories')

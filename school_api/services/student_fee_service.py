from __future__ import annotations

import logging
from collections import defaultdict

from sqlalchemy.orm import Session, selectinload

from school_api.core.errors import ConflictError, ServiceError, require_found
from school_api.core.time_provider import TimeProvider, default_time_provider
from school_api.db import atomic
from school_api.domain.fee_engine import (
    SETTLED_STATUSES,
    detail_status,
    discount_for,
    expand_structure,
    is_past_grace,
    late_fee_for,
    money,
    outstanding_amount,
    summarize_fee,
)
from school_api.metrics import timed_service
from school_api.models import (
    FeeStatus,
    FeeStructure,
    Student,
    StudentEnrollment,
    StudentFee,
    StudentFeeDetail,
)
from school_api.schemas import BulkFeeAssign, StudentFeeAssign, StudentFeeFilters, StudentFeeUpdate
from school_api.services.fee_discount_service import active_discounts
from school_api.services.fee_structure_service import get_fee_structure
from school_api.services.school_service import get_section, get_student


logger = logging.getLogger(__name__)


def get_student_fee(db: Session, student_fee_id: int) -> StudentFee:
    row = (
        db.query(StudentFee)
        .options(selectinload(StudentFee.details).selectinload(StudentFeeDetail.allocations))
        .filter(StudentFee.id == student_fee_id)
        .first()
    )
    return require_found(row, 'Student fee')


def list_student_fees(db: Session, school_id: int, filters: StudentFeeFilters) -> list[StudentFee]:
    query = db.query(StudentFee).join(Student, Student.id == StudentFee.student_id).filter(Student.school_id == school_id)
    if filters.academic_year_id is not None:
        query = query.filter(StudentFee.academic_year_id == filters.academic_year_id)
    if filters.status is not None:
        query = query.filter(StudentFee.status == filters.status.value)
    if filters.section_id is not None:
        query = query.join(
            StudentEnrollment,
            (StudentEnrollment.student_id == StudentFee.student_id)
            & (StudentEnrollment.academic_year_id == StudentFee.academic_year_id),
        ).filter(StudentEnrollment.section_id == filters.section_id)
    return query.order_by(StudentFee.id.asc()).all()


def list_fees_by_student(db: Session, student_id: int) -> list[StudentFee]:
    get_student(db, student_id)
    return (
        db.query(StudentFee)
        .options(selectinload(StudentFee.details))
        .filter(StudentFee.student_id == student_id)
        .order_by(StudentFee.id.desc())
        .all()
    )


def _summarize(fee: StudentFee):
    return summarize_fee(
        total_amount=fee.total_amount,
        discount_amount=fee.discount_amount,
        details=fee.details,
        current_status=fee.status,
    )


def _reopen_waived_details(fee: StudentFee) -> int:
    reopened = 0
    for detail in fee.details:
        if detail.status == FeeStatus.WAIVED.value and outstanding_amount(detail) > 0:
            # Late fees are only ever charged on overdue installments.
            detail.status = FeeStatus.OVERDUE.value if detail.late_fee else FeeStatus.PENDING.value
            detail.status = detail_status(detail)
            reopened += 1
    return reopened


def recompute_student_fee(fee: StudentFee) -> StudentFee:
    """Refresh the parent totals and status from its installment rows.

    Installments waived because a discount closed the balance are reopened
    when the balance opens up again.
    """
    summary = _summarize(fee)
    if summary.status not in SETTLED_STATUSES and _reopen_waived_details(fee):
        summary = _summarize(fee)
    fee.paid_amount = summary.paid_amount
    fee.late_fee_amount = summary.late_fee_amount
    fee.balance_amount = summary.balance_amount
    fee.status = summary.status
    if summary.status == FeeStatus.PAID.value:
        # The discount covered whatever is still open.
        for detail in fee.details:
            if detail.status not in SETTLED_STATUSES and outstanding_amount(detail) > 0:
                detail.status = FeeStatus.WAIVED.value
    return fee


def _build_student_fee(db: Session, student: Student, structure: FeeStructure) -> StudentFee:
    year = structure.academic_year
    installments = expand_structure(
        structure.items,
        start=year.start_date,
        end=year.end_date,
        due_day=structure.due_day,
    )
    generated_total = money(sum(row.amount for row in installments))
    if generated_total != money(structure.total_amount):
        raise ServiceError(
            f'Fee structure {structure.id} total {structure.total_amount} does not match '
            f'its installments ({generated_total})'
        )

    category_totals: dict[int, float] = defaultdict(float)
    for row in installments:
        if row.fee_category_id is not None:
            category_totals[int(row.fee_category_id)] += row.amount
    discount = money(
        sum(
            discount_for(item, gross_total=generated_total, category_totals=category_totals)
            for item in active_discounts(db, student.id, structure.academic_year_id)
        )
    )

    fee = StudentFee(
        student_id=student.id,
        fee_structure_id=structure.id,
        academic_year_id=structure.academic_year_id,
        total_amount=generated_total,
        discount_amount=min(discount, generated_total),
        late_fee_amount=0,
        paid_amount=0,
        status=FeeStatus.PENDING.value,
    )
    fee.details = [
        StudentFeeDetail(
            fee_category_id=row.fee_category_id,
            frequency=row.frequency,
            period_month=row.period_month,
            period_year=row.period_year,
            amount=row.amount,
            late_fee=0,
            paid_amount=0,
            due_date=row.due_date,
            status=FeeStatus.PENDING.value,
        )
        for row in installments
    ]
    recompute_student_fee(fee)
    db.add(fee)
    return fee


def _has_fee(db: Session, student_id: int, academic_year_id: int) -> bool:
    return (
        db.query(StudentFee.id)
        .filter(StudentFee.student_id == student_id, StudentFee.academic_year_id == academic_year_id)
        .first()
        is not None
    )


@timed_service('assign_fee')
def assign_fee(db: Session, payload: StudentFeeAssign) -> StudentFee:
    student = get_student(db, payload.student_id)
    structure = get_fee_structure(db, payload.fee_structure_id)
    if student.school_id != structure.school_id:
        raise ServiceError('Student and fee structure belong to different schools')
    enrollment = (
        db.query(StudentEnrollment)
        .filter(
            StudentEnrollment.student_id == student.id,
            StudentEnrollment.academic_year_id == structure.academic_year_id,
        )
        .first()
    )
    if enrollment is not None and enrollment.class_id != structure.class_id:
        raise ServiceError('Student is enrolled in a different class for this academic year')
    if _has_fee(db, student.id, structure.academic_year_id):
        raise ConflictError('Student already has a fee assigned for this academic year')

    with atomic(db):
        fee = _build_student_fee(db, student, structure)
    logger.info(
        'fee_assigned student_fee_id=%s student_id=%s total=%.2f discount=%.2f installments=%s',
        fee.id,
        student.id,
        fee.total_amount,
        fee.discount_amount,
        len(fee.details),
    )
    return get_student_fee(db, fee.id)


@timed_service('bulk_assign_fee')
def bulk_assign_fee(db: Session, payload: BulkFeeAssign) -> dict:
    structure = get_fee_structure(db, payload.fee_structure_id)
    section = get_section(db, payload.section_id)
    if section.class_id != structure.class_id:
        raise ServiceError('Section does not belong to the fee structure\'s class')

    enrollments = (
        db.query(StudentEnrollment)
        .filter(
            StudentEnrollment.section_id == section.id,
            StudentEnrollment.academic_year_id == structure.academic_year_id,
            StudentEnrollment.is_current.is_(True),
        )
        .order_by(StudentEnrollment.id.asc())
        .all()
    )
    assigned: list[StudentFee] = []
    skipped: list[int] = []
    with atomic(db):
        for enrollment in enrollments:
            if _has_fee(db, enrollment.student_id, structure.academic_year_id):
                skipped.append(enrollment.student_id)
                continue
            student = get_student(db, enrollment.student_id)
            assigned.append(_build_student_fee(db, student, structure))
            db.flush()

    logger.info(
        'fee_bulk_assigned fee_structure_id=%s section_id=%s assigned=%s skipped=%s',
        structure.id,
        section.id,
        len(assigned),
        len(skipped),
    )
    return {
        'fee_structure_id': structure.id,
        'section_id': section.id,
        'assigned': len(assigned),
        'skipped': len(skipped),
        'student_fee_ids': [fee.id for fee in assigned],
        'skipped_student_ids': skipped,
    }


def update_student_fee(db: Session, student_fee_id: int, payload: StudentFeeUpdate) -> StudentFee:
    fee = get_student_fee(db, student_fee_id)
    changes = payload.model_dump(exclude_unset=True)
    discount = changes.get('discount_amount')
    if discount is not None:
        discount = money(discount)
        ceiling = money(min(fee.total_amount, fee.total_amount + fee.late_fee_amount - fee.paid_amount))
        if discount > ceiling:
            raise ServiceError(f'Discount {discount:.2f} exceeds the amount still payable ({ceiling:.2f})')
    with atomic(db):
        if discount is not None:
            fee.discount_amount = discount
        if changes.get('status') is not None:
            fee.status = changes['status'].value
        recompute_student_fee(fee)
    logger.info('student_fee_updated student_fee_id=%s status=%s', fee.id, fee.status)
    return get_student_fee(db, fee.id)


def mark_overdue_fees(db: Session, *, time_provider: TimeProvider = default_time_provider) -> dict:
    today = time_provider.today()
    rows = (
        db.query(StudentFeeDetail, FeeStructure)
        .join(StudentFee, StudentFee.id == StudentFeeDetail.student_fee_id)
        .join(FeeStructure, FeeStructure.id == StudentFee.fee_structure_id)
        .filter(
            StudentFeeDetail.status.notin_(SETTLED_STATUSES + (FeeStatus.OVERDUE.value,)),
            StudentFee.status != FeeStatus.WAIVED.value,
            StudentFeeDetail.due_date < today,
        )
        .order_by(StudentFeeDetail.due_date.asc(), StudentFeeDetail.id.asc())
        .all()
    )

    touched: set[int] = set()
    marked = 0
    with atomic(db):
        for detail, structure in rows:
            if not is_past_grace(detail.due_date, structure.grace_period_days, today):
                continue
            detail.late_fee = late_fee_for(
                detail.amount,
                percentage=structure.late_fee_percentage,
                fixed_amount=structure.late_fee_fixed_amount,
            )
            detail.status = FeeStatus.OVERDUE.value
            touched.add(detail.student_fee_id)
            marked += 1
        db.flush()
        for fee_id in sorted(touched):
            recompute_student_fee(get_student_fee(db, fee_id))

    logger.info('fees_marked_overdue date=%s details=%s student_fees=%s', today.isoformat(), marked, len(touched))
    return {'date': today.isoformat(), 'details_marked': marked, 'student_fees_updated': len(touched)}

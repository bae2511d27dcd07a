from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from school_api.config import settings
from school_api.core.errors import ServiceError, require_found
from school_api.core.time_provider import TimeProvider, default_time_provider
from school_api.db import atomic
from school_api.domain.fee_engine import (
    SETTLED_STATUSES,
    allocate_payment,
    detail_status,
    format_receipt_number,
    money,
    month_bounds,
    outstanding_amount,
)
from school_api.metrics import timed_service
from school_api.models import (
    FeePayment,
    FeePaymentAllocation,
    FeeStructure,
    School,
    StudentFee,
    StudentFeeDetail,
)
from school_api.schemas import AutoAllocateRequest, DirectPaymentRequest, FeePaymentRead, StudentFeeRead
from school_api.services.student_fee_service import get_student_fee, recompute_student_fee


logger = logging.getLogger(__name__)


def _school_for_fee(db: Session, fee: StudentFee) -> School:
    return (
        db.query(School)
        .join(FeeStructure, FeeStructure.school_id == School.id)
        .filter(FeeStructure.id == fee.fee_structure_id)
        .one()
    )


def next_receipt_number(db: Session, school: School, moment: datetime) -> str:
    start, end = month_bounds(moment)
    issued = (
        db.query(func.count(FeePayment.id))
        .filter(
            FeePayment.school_id == school.id,
            FeePayment.payment_date >= start,
            FeePayment.payment_date < end,
        )
        .scalar()
    )
    prefix = (school.code or settings.receipt_prefix).upper()
    return format_receipt_number(prefix, moment, int(issued or 0) + 1)


def _new_payment(
    db: Session,
    fee: StudentFee,
    payload: DirectPaymentRequest | AutoAllocateRequest,
    amount: float,
    time_provider: TimeProvider,
) -> FeePayment:
    school = _school_for_fee(db, fee)
    moment = time_provider.now().replace(tzinfo=None)
    payment = FeePayment(
        student_fee_id=fee.id,
        school_id=school.id,
        amount=money(amount),
        payment_method=payload.payment_method.value,
        transaction_id=payload.transaction_id,
        receipt_number=next_receipt_number(db, school, moment),
        collected_by=payload.collected_by,
        remarks=payload.remarks,
        payment_date=moment,
    )
    db.add(payment)
    return payment


def _apply(detail: StudentFeeDetail, payment: FeePayment, amount: float) -> None:
    detail.paid_amount = money(detail.paid_amount + amount)
    detail.status = detail_status(detail)
    payment.allocations.append(FeePaymentAllocation(student_fee_detail_id=detail.id, amount=money(amount)))


@timed_service('pay_fee_detail')
def pay_fee_detail(
    db: Session,
    payload: DirectPaymentRequest,
    *,
    time_provider: TimeProvider = default_time_provider,
) -> FeePayment:
    detail = require_found(
        db.query(StudentFeeDetail).filter(StudentFeeDetail.id == payload.student_fee_detail_id).first(),
        'Fee installment',
    )
    fee = get_student_fee(db, detail.student_fee_id)
    amount = money(payload.amount)

    if fee.status in SETTLED_STATUSES:
        raise ServiceError(f'Fee is already {fee.status}')
    if detail.status in SETTLED_STATUSES:
        raise ServiceError(f'Installment is already {detail.status}')
    outstanding = outstanding_amount(detail)
    if amount > outstanding:
        raise ServiceError(f'Payment {amount:.2f} exceeds installment balance {outstanding:.2f}')
    if amount > money(fee.balance_amount):
        raise ServiceError(f'Payment {amount:.2f} exceeds fee balance {fee.balance_amount:.2f}')

    with atomic(db):
        payment = _new_payment(db, fee, payload, amount, time_provider)
        _apply(detail, payment, amount)
        recompute_student_fee(fee)

    logger.info(
        'fee_payment_recorded receipt=%s student_fee_id=%s detail_id=%s amount=%.2f status=%s',
        payment.receipt_number,
        fee.id,
        detail.id,
        amount,
        fee.status,
    )
    return get_payment(db, payment.id)


@timed_service('auto_allocate_payment')
def auto_allocate_payment(
    db: Session,
    payload: AutoAllocateRequest,
    *,
    time_provider: TimeProvider = default_time_provider,
) -> dict:
    fee = get_student_fee(db, payload.student_fee_id)
    if fee.status in SETTLED_STATUSES:
        raise ServiceError(f'Fee is already {fee.status}; nothing is outstanding')

    allocations, excess = allocate_payment(fee.details, payload.amount, cap=fee.balance_amount)
    if not allocations:
        raise ServiceError('No outstanding installments to allocate the payment to')

    details = {detail.id: detail for detail in fee.details}
    applied = money(sum(row.amount for row in allocations))
    with atomic(db):
        payment = _new_payment(db, fee, payload, applied, time_provider)
        for row in allocations:
            _apply(details[row.detail_id], payment, row.amount)
        recompute_student_fee(fee)

    logger.info(
        'fee_payment_auto_allocated receipt=%s student_fee_id=%s applied=%.2f excess=%.2f installments=%s',
        payment.receipt_number,
        fee.id,
        applied,
        excess,
        len(allocations),
    )
    payment = get_payment(db, payment.id)
    return {
        'payment': FeePaymentRead.model_validate(payment).model_dump(),
        'allocated_amount': applied,
        'excess_amount': excess,
        'student_fee': StudentFeeRead.model_validate(get_student_fee(db, fee.id)).model_dump(),
    }


def get_payment(db: Session, payment_id: int) -> FeePayment:
    row = (
        db.query(FeePayment)
        .options(selectinload(FeePayment.allocations))
        .filter(FeePayment.id == payment_id)
        .first()
    )
    return require_found(row, 'Payment')


def get_payment_by_receipt(db: Session, receipt_number: str) -> FeePayment:
    row = (
        db.query(FeePayment)
        .options(selectinload(FeePayment.allocations))
        .filter(FeePayment.receipt_number == receipt_number)
        .first()
    )
    return require_found(row, 'Payment')


def list_payments_by_student(db: Session, student_id: int) -> list[FeePayment]:
    return (
        db.query(FeePayment)
        .options(selectinload(FeePayment.allocations))
        .join(StudentFee, StudentFee.id == FeePayment.student_fee_id)
        .filter(StudentFee.student_id == student_id)
        .order_by(FeePayment.payment_date.desc(), FeePayment.id.desc())
        .all()
    )

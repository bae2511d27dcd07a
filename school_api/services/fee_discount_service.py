from __future__ import annotations

from sqlalchemy.orm import Session

from school_api.core.errors import ServiceError, require_found
from school_api.models import DiscountType, FeeDiscount, Student
from school_api.schemas import FeeDiscountCreate, FeeDiscountUpdate
from school_api.services.fee_category_service import get_fee_category
from school_api.services.school_service import get_academic_year, get_school, get_student


def get_fee_discount(db: Session, discount_id: int) -> FeeDiscount:
    return require_found(db.query(FeeDiscount).filter(FeeDiscount.id == discount_id).first(), 'Fee discount')


def list_student_discounts(db: Session, student_id: int, *, academic_year_id: int | None = None) -> list[FeeDiscount]:
    query = db.query(FeeDiscount).filter(FeeDiscount.student_id == student_id)
    if academic_year_id is not None:
        query = query.filter(FeeDiscount.academic_year_id == academic_year_id)
    return query.order_by(FeeDiscount.id.asc()).all()


def list_school_discounts(db: Session, school_id: int, *, academic_year_id: int | None = None) -> list[FeeDiscount]:
    get_school(db, school_id)
    query = db.query(FeeDiscount).join(Student, Student.id == FeeDiscount.student_id).filter(Student.school_id == school_id)
    if academic_year_id is not None:
        query = query.filter(FeeDiscount.academic_year_id == academic_year_id)
    return query.order_by(FeeDiscount.id.asc()).all()


def active_discounts(db: Session, student_id: int, academic_year_id: int) -> list[FeeDiscount]:
    return (
        db.query(FeeDiscount)
        .filter(
            FeeDiscount.student_id == student_id,
            FeeDiscount.academic_year_id == academic_year_id,
            FeeDiscount.is_active.is_(True),
        )
        .order_by(FeeDiscount.id.asc())
        .all()
    )


def create_fee_discount(db: Session, payload: FeeDiscountCreate) -> FeeDiscount:
    student = get_student(db, payload.student_id)
    year = get_academic_year(db, payload.academic_year_id)
    if year.school_id != student.school_id:
        raise ServiceError('Academic year does not belong to the student\'s school')
    if payload.fee_category_id is not None:
        category = get_fee_category(db, payload.fee_category_id)
        if category.school_id != student.school_id:
            raise ServiceError('Fee category does not belong to the student\'s school')

    row = FeeDiscount(**payload.model_dump(exclude={'discount_type'}), discount_type=payload.discount_type.value)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def update_fee_discount(db: Session, discount_id: int, payload: FeeDiscountUpdate) -> FeeDiscount:
    row = get_fee_discount(db, discount_id)
    changes = payload.model_dump(exclude_unset=True)
    value = changes.get('discount_value')
    if value is not None and row.discount_type == DiscountType.PERCENTAGE.value and value > 100:
        raise ServiceError('percentage discount cannot exceed 100')
    for field, new_value in changes.items():
        if new_value is not None:
            setattr(row, field, new_value)
    db.commit()
    db.refresh(row)
    return row


def delete_fee_discount(db: Session, discount_id: int) -> None:
    row = get_fee_discount(db, discount_id)
    db.delete(row)
    db.commit()

from __future__ import annotations

import logging

from sqlalchemy.orm import Session, selectinload

from school_api.core.errors import ConflictError, ServiceError, require_found
from school_api.db import atomic
from school_api.domain.fee_engine import expected_total, money
from school_api.models import FeeCategory, FeeStructure, FeeStructureItem, StudentFee
from school_api.schemas import FeeStructureCreate, FeeStructureItemInput, FeeStructureUpdate
from school_api.services.school_service import get_academic_year, get_class, get_school


logger = logging.getLogger(__name__)


def get_fee_structure(db: Session, structure_id: int) -> FeeStructure:
    row = (
        db.query(FeeStructure)
        .options(selectinload(FeeStructure.items), selectinload(FeeStructure.academic_year))
        .filter(FeeStructure.id == structure_id)
        .first()
    )
    return require_found(row, 'Fee structure')


def list_fee_structures(
    db: Session,
    school_id: int,
    *,
    academic_year_id: int | None = None,
    class_id: int | None = None,
) -> list[FeeStructure]:
    query = db.query(FeeStructure).options(selectinload(FeeStructure.items)).filter(FeeStructure.school_id == school_id)
    if academic_year_id is not None:
        query = query.filter(FeeStructure.academic_year_id == academic_year_id)
    if class_id is not None:
        query = query.filter(FeeStructure.class_id == class_id)
    return query.order_by(FeeStructure.id.desc()).all()


def _check_categories(db: Session, school_id: int, items: list[FeeStructureItemInput]) -> None:
    category_ids = {item.fee_category_id for item in items}
    found = {
        category_id
        for (category_id,) in db.query(FeeCategory.id)
        .filter(FeeCategory.id.in_(category_ids), FeeCategory.school_id == school_id)
        .all()
    }
    missing = sorted(category_ids - found)
    if missing:
        raise ServiceError(f'Fee categories {missing} do not belong to this school')


def _ensure_unassigned(db: Session, structure: FeeStructure) -> None:
    assigned = db.query(StudentFee.id).filter(StudentFee.fee_structure_id == structure.id).first()
    if assigned:
        raise ConflictError('Fee structure is already assigned to students; its items cannot change')


def _refresh_total(structure: FeeStructure) -> None:
    year = structure.academic_year
    structure.total_amount = expected_total(structure.items, start=year.start_date, end=year.end_date)


def create_fee_structure(db: Session, payload: FeeStructureCreate) -> FeeStructure:
    get_school(db, payload.school_id)
    year = get_academic_year(db, payload.academic_year_id)
    school_class = get_class(db, payload.class_id)
    if year.school_id != payload.school_id or school_class.school_id != payload.school_id:
        raise ServiceError('Academic year and class must belong to the school')
    _check_categories(db, payload.school_id, payload.items)

    duplicate = (
        db.query(FeeStructure)
        .filter(FeeStructure.class_id == payload.class_id, FeeStructure.academic_year_id == payload.academic_year_id)
        .first()
    )
    if duplicate:
        raise ConflictError('A fee structure already exists for this class and academic year')

    items = [
        FeeStructureItem(fee_category_id=item.fee_category_id, amount=money(item.amount), frequency=item.frequency.value)
        for item in payload.items
    ]
    total = expected_total(items, start=year.start_date, end=year.end_date)
    if payload.total_amount is not None and money(payload.total_amount) != total:
        raise ServiceError(f'total_amount {payload.total_amount} does not match the items total {total}')

    with atomic(db):
        structure = FeeStructure(
            **payload.model_dump(exclude={'items', 'total_amount'}),
            total_amount=total,
            items=items,
        )
        db.add(structure)
    logger.info('fee_structure_created fee_structure_id=%s total=%.2f items=%s', structure.id, total, len(items))
    return get_fee_structure(db, structure.id)


def update_fee_structure(db: Session, structure_id: int, payload: FeeStructureUpdate) -> FeeStructure:
    structure = get_fee_structure(db, structure_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(structure, field, value)
    db.commit()
    return get_fee_structure(db, structure.id)


def add_structure_item(db: Session, structure_id: int, payload: FeeStructureItemInput) -> FeeStructure:
    structure = get_fee_structure(db, structure_id)
    _ensure_unassigned(db, structure)
    _check_categories(db, structure.school_id, [payload])
    with atomic(db):
        structure.items.append(
            FeeStructureItem(
                fee_category_id=payload.fee_category_id,
                amount=money(payload.amount),
                frequency=payload.frequency.value,
            )
        )
        _refresh_total(structure)
    return get_fee_structure(db, structure.id)


def remove_structure_item(db: Session, structure_id: int, item_id: int) -> FeeStructure:
    structure = get_fee_structure(db, structure_id)
    _ensure_unassigned(db, structure)
    item = next((row for row in structure.items if row.id == item_id), None)
    require_found(item, 'Fee structure item')
    if len(structure.items) == 1:
        raise ServiceError('A fee structure needs at least one item')
    with atomic(db):
        structure.items.remove(item)
        _refresh_total(structure)
    return get_fee_structure(db, structure.id)


def delete_fee_structure(db: Session, structure_id: int) -> None:
    structure = get_fee_structure(db, structure_id)
    _ensure_unassigned(db, structure)
    db.delete(structure)
    db.commit()

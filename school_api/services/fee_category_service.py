from __future__ import annotations

from sqlalchemy.orm import Session

from school_api.core.errors import ConflictError, ServiceError, require_found
from school_api.models import FeeCategory, FeeStructureItem
from school_api.schemas import FeeCategoryCreate, FeeCategoryUpdate
from school_api.services.school_service import get_school


def get_fee_category(db: Session, category_id: int) -> FeeCategory:
    return require_found(db.query(FeeCategory).filter(FeeCategory.id == category_id).first(), 'Fee category')


def list_fee_categories(db: Session, school_id: int, *, active_only: bool = False) -> list[FeeCategory]:
    query = db.query(FeeCategory).filter(FeeCategory.school_id == school_id)
    if active_only:
        query = query.filter(FeeCategory.is_active.is_(True))
    return query.order_by(FeeCategory.name.asc()).all()


def _ensure_unique_name(db: Session, school_id: int, name: str, exclude_id: int | None = None) -> None:
    query = db.query(FeeCategory).filter(FeeCategory.school_id == school_id, FeeCategory.name == name)
    if exclude_id is not None:
        query = query.filter(FeeCategory.id != exclude_id)
    if query.first():
        raise ConflictError(f'Fee category {name} already exists')


def create_fee_category(db: Session, payload: FeeCategoryCreate) -> FeeCategory:
    get_school(db, payload.school_id)
    name = payload.name.strip()
    _ensure_unique_name(db, payload.school_id, name)
    row = FeeCategory(
        school_id=payload.school_id,
        name=name,
        description=payload.description,
        is_recurring=payload.is_recurring,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def update_fee_category(db: Session, category_id: int, payload: FeeCategoryUpdate) -> FeeCategory:
    row = get_fee_category(db, category_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get('name'):
        changes['name'] = changes['name'].strip()
        _ensure_unique_name(db, row.school_id, changes['name'], exclude_id=row.id)
    for field, value in changes.items():
        if value is not None:
            setattr(row, field, value)
    db.commit()
    db.refresh(row)
    return row


def delete_fee_category(db: Session, category_id: int) -> None:
    row = get_fee_category(db, category_id)
    in_use = db.query(FeeStructureItem.id).filter(FeeStructureItem.fee_category_id == row.id).first()
    if in_use:
        raise ServiceError('Fee category is used by a fee structure; deactivate it instead')
    db.delete(row)
    db.commit()

from __future__ import annotations

from sqlalchemy.orm import Session

from school_api.core.errors import ConflictError, ServiceError, require_found
from school_api.models import GradeScale
from school_api.schemas import GradeScaleCreate, GradeScaleUpdate
from school_api.services.school_service import get_school


def get_grade_scale(db: Session, grade_scale_id: int) -> GradeScale:
    return require_found(db.query(GradeScale).filter(GradeScale.id == grade_scale_id).first(), 'Grade scale')


def list_grade_scales(db: Session, school_id: int, *, active_only: bool = False) -> list[GradeScale]:
    query = db.query(GradeScale).filter(GradeScale.school_id == school_id)
    if active_only:
        query = query.filter(GradeScale.is_active.is_(True))
    return query.order_by(GradeScale.min_percentage.desc()).all()


def grade_for_percentage(db: Session, school_id: int, percentage: float) -> GradeScale | None:
    return (
        db.query(GradeScale)
        .filter(
            GradeScale.school_id == school_id,
            GradeScale.is_active.is_(True),
            GradeScale.min_percentage <= percentage,
            GradeScale.max_percentage >= percentage,
        )
        .order_by(GradeScale.min_percentage.desc())
        .first()
    )


def _check_band(db: Session, *, school_id: int, min_percentage: float, max_percentage: float, exclude_id: int | None = None):
    if min_percentage > max_percentage:
        raise ServiceError('min_percentage cannot be greater than max_percentage')
    query = db.query(GradeScale).filter(
        GradeScale.school_id == school_id,
        GradeScale.is_active.is_(True),
        GradeScale.min_percentage <= max_percentage,
        GradeScale.max_percentage >= min_percentage,
    )
    if exclude_id is not None:
        query = query.filter(GradeScale.id != exclude_id)
    clash = query.first()
    if clash:
        raise ConflictError(
            f'Band {min_percentage}-{max_percentage} overlaps grade {clash.name} '
            f'({clash.min_percentage}-{clash.max_percentage})'
        )


def create_grade_scale(db: Session, payload: GradeScaleCreate) -> GradeScale:
    get_school(db, payload.school_id)
    if payload.is_active:
        _check_band(
            db,
            school_id=payload.school_id,
            min_percentage=payload.min_percentage,
            max_percentage=payload.max_percentage,
        )
    elif payload.min_percentage > payload.max_percentage:
        raise ServiceError('min_percentage cannot be greater than max_percentage')
    row = GradeScale(**payload.model_dump())
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def update_grade_scale(db: Session, grade_scale_id: int, payload: GradeScaleUpdate) -> GradeScale:
    row = get_grade_scale(db, grade_scale_id)
    changes = payload.model_dump(exclude_unset=True)
    min_percentage = changes.get('min_percentage', row.min_percentage)
    max_percentage = changes.get('max_percentage', row.max_percentage)
    is_active = changes.get('is_active', row.is_active)
    if is_active:
        _check_band(
            db,
            school_id=row.school_id,
            min_percentage=min_percentage,
            max_percentage=max_percentage,
            exclude_id=row.id,
        )
    elif min_percentage > max_percentage:
        raise ServiceError('min_percentage cannot be greater than max_percentage')
    for field, value in changes.items():
        setattr(row, field, value)
    db.commit()
    db.refresh(row)
    return row


def delete_grade_scale(db: Session, grade_scale_id: int) -> None:
    row = get_grade_scale(db, grade_scale_id)
    db.delete(row)
    db.commit()

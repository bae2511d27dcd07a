from __future__ import annotations

import logging

from sqlalchemy.orm import Session, selectinload

from school_api.core.errors import ConflictError, ServiceError, require_found
from school_api.db import atomic
from school_api.models import AcademicYear, Exam, ExamSubject, SchoolClass, StudentMark, StudentResult, Subject
from school_api.schemas import ExamCreate, ExamFilters, ExamSubjectInput, ExamUpdate
from school_api.services.result_service import invalidate_exam_results, recompute_results
from school_api.services.school_service import get_school


logger = logging.getLogger(__name__)


def get_exam(db: Session, exam_id: int) -> Exam:
    exam = (
        db.query(Exam)
        .options(selectinload(Exam.exam_subjects))
        .filter(Exam.id == exam_id)
        .first()
    )
    return require_found(exam, 'Exam')


def get_exam_subject(db: Session, exam_subject_id: int) -> ExamSubject:
    return require_found(
        db.query(ExamSubject).filter(ExamSubject.id == exam_subject_id).first(),
        'Exam subject',
    )


def list_exams(db: Session, school_id: int, filters: ExamFilters) -> list[Exam]:
    query = db.query(Exam).options(selectinload(Exam.exam_subjects)).filter(Exam.school_id == school_id)
    if filters.academic_year_id is not None:
        query = query.filter(Exam.academic_year_id == filters.academic_year_id)
    if filters.class_id is not None:
        query = query.filter(Exam.class_id == filters.class_id)
    if filters.exam_type is not None:
        query = query.filter(Exam.exam_type == filters.exam_type.value)
    if filters.is_active is not None:
        query = query.filter(Exam.is_active.is_(filters.is_active))
    return query.order_by(Exam.start_date.desc(), Exam.id.desc()).all()


def _build_exam_subject(db: Session, school_id: int, item: ExamSubjectInput) -> ExamSubject:
    subject = db.query(Subject).filter(Subject.id == item.subject_id).first()
    if not subject or subject.school_id != school_id:
        raise ServiceError(f'Subject {item.subject_id} does not belong to this school')
    return ExamSubject(**item.model_dump())


def create_exam(db: Session, payload: ExamCreate) -> Exam:
    get_school(db, payload.school_id)
    year = db.query(AcademicYear).filter(AcademicYear.id == payload.academic_year_id).first()
    school_class = db.query(SchoolClass).filter(SchoolClass.id == payload.class_id).first()
    if not year or year.school_id != payload.school_id:
        raise ServiceError('Academic year does not belong to this school')
    if not school_class or school_class.school_id != payload.school_id:
        raise ServiceError('Class does not belong to this school')

    duplicate = (
        db.query(Exam)
        .filter(
            Exam.school_id == payload.school_id,
            Exam.academic_year_id == payload.academic_year_id,
            Exam.class_id == payload.class_id,
            Exam.name == payload.name,
        )
        .first()
    )
    if duplicate:
        raise ConflictError(f'Exam {payload.name} already exists for this class and year')

    subject_ids = [item.subject_id for item in payload.subjects]
    if len(subject_ids) != len(set(subject_ids)):
        raise ServiceError('A subject can appear only once in an exam')

    with atomic(db):
        exam = Exam(**payload.model_dump(exclude={'subjects', 'exam_type'}), exam_type=payload.exam_type.value)
        exam.exam_subjects = [_build_exam_subject(db, payload.school_id, item) for item in payload.subjects]
        db.add(exam)
    logger.info('exam_created exam_id=%s subjects=%s', exam.id, len(subject_ids))
    return get_exam(db, exam.id)


def update_exam(db: Session, exam_id: int, payload: ExamUpdate) -> Exam:
    exam = get_exam(db, exam_id)
    changes = payload.model_dump(exclude_unset=True)
    if 'exam_type' in changes and changes['exam_type'] is not None:
        changes['exam_type'] = changes['exam_type'].value
    start = changes.get('start_date') or exam.start_date
    end = changes.get('end_date') or exam.end_date
    if end < start:
        raise ServiceError('end_date must be on or after start_date')
    rescore = changes.get('passing_percentage') is not None
    with atomic(db):
        for field, value in changes.items():
            if value is not None:
                setattr(exam, field, value)
        if rescore:
            ranked = [row[0] for row in db.query(StudentResult.student_id).filter(StudentResult.exam_id == exam.id).all()]
            if ranked:
                recompute_results(db, exam.id, ranked)
    if rescore:
        invalidate_exam_results(exam.id)
    logger.info('exam_updated exam_id=%s rescored=%s', exam.id, rescore)
    return get_exam(db, exam.id)


def delete_exam(db: Session, exam_id: int) -> None:
    exam = get_exam(db, exam_id)
    has_results = db.query(StudentResult.id).filter(StudentResult.exam_id == exam.id).first()
    if has_results:
        raise ServiceError('Cannot delete an exam that already has results')
    db.delete(exam)
    db.commit()
    logger.info('exam_deleted exam_id=%s', exam_id)


def add_exam_subject(db: Session, exam_id: int, payload: ExamSubjectInput) -> ExamSubject:
    exam = get_exam(db, exam_id)
    if any(row.subject_id == payload.subject_id for row in exam.exam_subjects):
        raise ConflictError('Subject is already part of this exam')
    row = _build_exam_subject(db, exam.school_id, payload)
    row.exam_id = exam.id
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def remove_exam_subject(db: Session, exam_id: int, exam_subject_id: int) -> None:
    row = get_exam_subject(db, exam_subject_id)
    if row.exam_id != exam_id:
        raise ServiceError('Exam subject does not belong to this exam')
    has_marks = db.query(StudentMark.id).filter(StudentMark.exam_subject_id == row.id).first()
    if has_marks:
        raise ServiceError('Cannot remove a subject that already has marks')
    db.delete(row)
    db.commit()

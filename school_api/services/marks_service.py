from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from school_api.core.errors import ServiceError, require_found
from school_api.db import atomic
from school_api.models import ExamSubject, Student, StudentMark
from school_api.schemas import MarkUpdate, MarksBatchRequest
from school_api.services.exam_service import get_exam, get_exam_subject
from school_api.services.result_service import invalidate_exam_results, recompute_results


logger = logging.getLogger(__name__)


def _check_within_max(exam_subject: ExamSubject, student_id: int, marks_obtained: float, is_absent: bool) -> None:
    if not is_absent and marks_obtained > exam_subject.max_marks:
        raise ServiceError(
            f'Marks {marks_obtained} for student {student_id} exceed maximum marks {exam_subject.max_marks}'
        )


def enter_marks(db: Session, payload: MarksBatchRequest) -> dict:
    exam_subject = get_exam_subject(db, payload.exam_subject_id)
    exam = get_exam(db, exam_subject.exam_id)

    for entry in payload.marks:
        _check_within_max(exam_subject, entry.student_id, entry.marks_obtained, entry.is_absent)

    requested = {entry.student_id for entry in payload.marks}
    known = {
        student_id
        for (student_id,) in db.query(Student.id)
        .filter(Student.id.in_(requested), Student.school_id == exam.school_id)
        .all()
    }
    existing = {
        mark.student_id: mark
        for mark in db.query(StudentMark)
        .filter(StudentMark.exam_subject_id == exam_subject.id, StudentMark.student_id.in_(requested))
        .all()
    }

    saved: list[int] = []
    skipped: list[int] = []
    with atomic(db):
        for entry in payload.marks:
            if entry.student_id not in known:
                skipped.append(entry.student_id)
                continue
            mark = existing.get(entry.student_id)
            if mark is None:
                mark = StudentMark(exam_subject_id=exam_subject.id, student_id=entry.student_id)
                db.add(mark)
                existing[entry.student_id] = mark
            mark.is_absent = entry.is_absent
            mark.marks_obtained = 0 if entry.is_absent else round(entry.marks_obtained, 2)
            mark.remarks = entry.remarks
            mark.entered_by = payload.entered_by
            saved.append(entry.student_id)

        summary = recompute_results(db, exam.id, saved) if saved else None
    if summary is not None:
        invalidate_exam_results(exam.id)

    if skipped:
        logger.info('marks_skipped_unknown_students exam_subject_id=%s students=%s', exam_subject.id, skipped)
    logger.info('marks_entered exam_subject_id=%s saved=%s skipped=%s', exam_subject.id, len(saved), len(skipped))
    return {
        'exam_subject_id': exam_subject.id,
        'saved': len(set(saved)),
        'skipped_student_ids': skipped,
        'results': summary,
    }


def get_mark(db: Session, mark_id: int) -> StudentMark:
    return require_found(db.query(StudentMark).filter(StudentMark.id == mark_id).first(), 'Mark')


def update_mark(db: Session, mark_id: int, payload: MarkUpdate) -> StudentMark:
    mark = get_mark(db, mark_id)
    exam_subject = get_exam_subject(db, mark.exam_subject_id)
    changes = payload.model_dump(exclude_unset=True)
    is_absent = changes.get('is_absent', mark.is_absent)
    marks_obtained = changes.get('marks_obtained', mark.marks_obtained)
    if marks_obtained is None:
        marks_obtained = mark.marks_obtained
    _check_within_max(exam_subject, mark.student_id, marks_obtained, is_absent)

    with atomic(db):
        mark.is_absent = bool(is_absent)
        mark.marks_obtained = 0 if mark.is_absent else round(marks_obtained, 2)
        if changes.get('remarks') is not None:
            mark.remarks = changes['remarks']
        recompute_results(db, exam_subject.exam_id, [mark.student_id])
    invalidate_exam_results(exam_subject.exam_id)
    db.refresh(mark)
    return mark


def delete_mark(db: Session, mark_id: int) -> None:
    mark = get_mark(db, mark_id)
    exam_subject = get_exam_subject(db, mark.exam_subject_id)
    student_id = mark.student_id
    with atomic(db):
        db.delete(mark)
        recompute_results(db, exam_subject.exam_id, [student_id])
    invalidate_exam_results(exam_subject.exam_id)


def list_marks_by_exam_subject(db: Session, exam_subject_id: int) -> list[StudentMark]:
    get_exam_subject(db, exam_subject_id)
    return (
        db.query(StudentMark)
        .filter(StudentMark.exam_subject_id == exam_subject_id)
        .order_by(StudentMark.student_id.asc())
        .all()
    )


def list_marks_by_student(db: Session, student_id: int, *, exam_id: int | None = None) -> list[StudentMark]:
    query = db.query(StudentMark).filter(StudentMark.student_id == student_id)
    if exam_id is not None:
        query = query.join(ExamSubject, ExamSubject.id == StudentMark.exam_subject_id).filter(
            ExamSubject.exam_id == exam_id
        )
    return query.order_by(StudentMark.exam_subject_id.asc()).all()


def list_marks_by_exam(db: Session, exam_id: int) -> list[StudentMark]:
    get_exam(db, exam_id)
    return (
        db.query(StudentMark)
        .join(ExamSubject, ExamSubject.id == StudentMark.exam_subject_id)
        .filter(ExamSubject.exam_id == exam_id)
        .order_by(StudentMark.student_id.asc(), StudentMark.exam_subject_id.asc())
        .all()
    )

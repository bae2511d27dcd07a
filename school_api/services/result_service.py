from __future__ import annotations

import logging

from sqlalchemy.orm import Session, selectinload

from school_api.cache import cache, cache_key
from school_api.core.errors import require_found
from school_api.db import atomic
from school_api.domain.result_engine import assign_ranks, score_student, students_with_marks
from school_api.metrics import timed_service
from school_api.models import Exam, ExamSubject, Student, StudentMark, StudentResult
from school_api.schemas import StudentResultRead
from school_api.services.grade_scale_service import grade_for_percentage


logger = logging.getLogger(__name__)

RESULTS_CACHE_PREFIX = 'exam_results'


def invalidate_exam_results(exam_id: int) -> None:
    cache.invalidate(cache_key(RESULTS_CACHE_PREFIX, exam_id))


def _load_exam_with_marks(db: Session, exam_id: int) -> Exam:
    exam = (
        db.query(Exam)
        .options(selectinload(Exam.exam_subjects).selectinload(ExamSubject.student_marks))
        .filter(Exam.id == exam_id)
        .populate_existing()
        .first()
    )
    return require_found(exam, 'Exam')


@timed_service('recompute_results')
def recompute_results(db: Session, exam_id: int, student_ids: list[int] | None = None) -> dict:
    """Recompute results for ``student_ids`` (every marked student when omitted) and re-rank the exam.

    Runs inside the caller's transaction: writes are flushed, never committed here.
    """
    db.flush()
    exam = _load_exam_with_marks(db, exam_id)
    if student_ids is None:
        student_ids = students_with_marks(exam.exam_subjects)

    existing = {
        row.student_id: row
        for row in db.query(StudentResult).filter(StudentResult.exam_id == exam.id).all()
    }
    updated = 0
    removed = 0
    for student_id in dict.fromkeys(student_ids):
        score = score_student(exam.exam_subjects, student_id, exam.passing_percentage)
        row = existing.get(student_id)
        if score is None:
            # Nothing left to aggregate, so the student drops out of the ranking.
            if row is not None:
                db.delete(row)
                removed += 1
            continue

        grade = grade_for_percentage(db, exam.school_id, score.percentage)
        if row is None:
            row = StudentResult(exam_id=exam.id, student_id=student_id)
            db.add(row)
        row.total_marks = score.total_marks
        row.max_marks = score.max_marks
        row.percentage = score.percentage
        row.status = score.status
        row.grade = grade.name if grade else None
        row.grade_point = grade.grade_point if grade else None
        updated += 1

    db.flush()
    ranked = assign_ranks(
        db.query(StudentResult)
        .filter(StudentResult.exam_id == exam.id)
        .order_by(StudentResult.id.asc())
        .all()
    )
    for row, rank in ranked:
        row.rank = rank
    db.flush()

    logger.info(
        'results_recomputed exam_id=%s students=%s removed=%s ranked=%s',
        exam.id,
        updated,
        removed,
        len(ranked),
    )
    return {'exam_id': exam.id, 'students_updated': updated, 'results_removed': removed, 'ranked': len(ranked)}


def generate_results(db: Session, exam_id: int) -> dict:
    with atomic(db):
        summary = recompute_results(db, exam_id)
    invalidate_exam_results(exam_id)
    return summary


def _result_payload(row: StudentResult, student: Student | None) -> dict:
    payload = StudentResultRead.model_validate(row).model_dump()
    if student is not None:
        payload['student_name'] = f'{student.first_name} {student.last_name}'.strip()
        payload['admission_number'] = student.admission_number
    return payload


def list_results_by_exam(db: Session, exam_id: int) -> list[dict]:
    key = cache_key(RESULTS_CACHE_PREFIX, exam_id)
    cached = cache.get_cached(key)
    if cached is not None:
        return cached

    require_found(db.query(Exam).filter(Exam.id == exam_id).first(), 'Exam')
    rows = (
        db.query(StudentResult, Student)
        .join(Student, Student.id == StudentResult.student_id)
        .filter(StudentResult.exam_id == exam_id)
        .order_by(StudentResult.rank.asc(), StudentResult.id.asc())
        .all()
    )
    payload = [_result_payload(result, student) for result, student in rows]
    cache.set_cached(key, payload)
    return payload


def list_results_by_student(db: Session, student_id: int, *, academic_year_id: int | None = None) -> list[dict]:
    require_found(db.query(Student).filter(Student.id == student_id).first(), 'Student')
    query = (
        db.query(StudentResult, Exam)
        .join(Exam, Exam.id == StudentResult.exam_id)
        .filter(StudentResult.student_id == student_id)
    )
    if academic_year_id is not None:
        query = query.filter(Exam.academic_year_id == academic_year_id)
    rows = query.order_by(Exam.start_date.desc(), Exam.id.desc()).all()

    out = []
    for result, exam in rows:
        item = _result_payload(result, None)
        item['exam_name'] = exam.name
        item['exam_type'] = exam.exam_type
        out.append(item)
    return out


def get_result(db: Session, result_id: int) -> dict:
    result = require_found(db.query(StudentResult).filter(StudentResult.id == result_id).first(), 'Result')
    exam = _load_exam_with_marks(db, result.exam_id)
    student = db.query(Student).filter(Student.id == result.student_id).first()

    subjects = []
    for exam_subject in exam.exam_subjects:
        mark: StudentMark | None = next(
            (m for m in exam_subject.student_marks if m.student_id == result.student_id),
            None,
        )
        subjects.append(
            {
                'exam_subject_id': exam_subject.id,
                'subject_id': exam_subject.subject_id,
                'subject_name': exam_subject.subject.name if exam_subject.subject else None,
                'max_marks': exam_subject.max_marks,
                'passing_marks': exam_subject.passing_marks,
                'marks_obtained': mark.marks_obtained if mark else None,
                'is_absent': mark.is_absent if mark else None,
                'remarks': mark.remarks if mark else None,
            }
        )

    payload = _result_payload(result, student)
    payload['exam_name'] = exam.name
    payload['subjects'] = subjects
    return payload

"""Pure result computation over rows already loaded from the database.

The functions here never touch a session. They take the exam's subjects (each
carrying its ``student_marks``) and produce the aggregate figures stored on a
``StudentResult`` row, plus the cohort ranking.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence, TypeVar

from school_api.models import ResultStatus


T = TypeVar('T')


@dataclass(frozen=True)
class StudentScore:
    student_id: int
    total_marks: float
    max_marks: float
    subject_count: int
    has_absent: bool
    has_failed_subject: bool
    percentage: float
    status: str


def round_percentage(total_marks: float, max_marks: float) -> float:
    if max_marks <= 0:
        return 0.0
    return round(float(total_marks) / float(max_marks) * 100, 2)


def determine_status(
    *,
    has_absent: bool,
    has_failed_subject: bool,
    percentage: float,
    passing_percentage: float,
) -> str:
    if has_absent or has_failed_subject or percentage < float(passing_percentage):
        return ResultStatus.FAIL.value
    return ResultStatus.PASS.value


def students_with_marks(exam_subjects: Iterable) -> list[int]:
    seen: dict[int, None] = {}
    for subject in exam_subjects:
        for mark in subject.student_marks:
            seen.setdefault(int(mark.student_id), None)
    return list(seen)


def score_student(exam_subjects: Iterable, student_id: int, passing_percentage: float) -> StudentScore | None:
    """Aggregate one student's marks across the exam; ``None`` when nothing is recorded yet."""
    total_marks = 0.0
    max_marks = 0.0
    subject_count = 0
    has_absent = False
    has_failed_subject = False

    for subject in exam_subjects:
        mark = next((m for m in subject.student_marks if int(m.student_id) == int(student_id)), None)
        if mark is None:
            continue
        obtained = float(mark.marks_obtained or 0)
        total_marks += obtained
        max_marks += float(subject.max_marks)
        subject_count += 1
        if mark.is_absent:
            has_absent = True
        if obtained < float(subject.passing_marks):
            has_failed_subject = True

    if subject_count == 0:
        return None

    percentage = round_percentage(total_marks, max_marks)
    return StudentScore(
        student_id=int(student_id),
        total_marks=round(total_marks, 2),
        max_marks=round(max_marks, 2),
        subject_count=subject_count,
        has_absent=has_absent,
        has_failed_subject=has_failed_subject,
        percentage=percentage,
        status=determine_status(
            has_absent=has_absent,
            has_failed_subject=has_failed_subject,
            percentage=percentage,
            passing_percentage=passing_percentage,
        ),
    )


def assign_ranks(results: Sequence[T]) -> list[tuple[T, int]]:
    # sorted() is stable: equal percentages keep the order they were passed in.
    ordered = sorted(results, key=lambda row: -float(row.percentage))
    return [(row, position) for position, row in enumerate(ordered, start=1)]

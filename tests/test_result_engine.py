import unittest
from types import SimpleNamespace

from school_api.domain.result_engine import (
    assign_ranks,
    determine_status,
    round_percentage,
    score_student,
    students_with_marks,
)


def _subject(max_marks=100, passing_marks=33, marks=()):
    return SimpleNamespace(max_marks=max_marks, passing_marks=passing_marks, student_marks=list(marks))


def _mark(student_id, marks_obtained, is_absent=False):
    return SimpleNamespace(student_id=student_id, marks_obtained=marks_obtained, is_absent=is_absent)


class DetermineStatusTests(unittest.TestCase):
    def test_all_flag_combinations(self):
        cases = [
            (False, False, 'PASS'),
            (True, False, 'FAIL'),
            (False, True, 'FAIL'),
            (True, True, 'FAIL'),
        ]
        for has_absent, has_failed_subject, expected in cases:
            with self.subTest(has_absent=has_absent, has_failed_subject=has_failed_subject):
                status = determine_status(
                    has_absent=has_absent,
                    has_failed_subject=has_failed_subject,
                    percentage=75.0,
                    passing_percentage=33,
                )
                self.assertEqual(status, expected)

    def test_aggregate_below_threshold_fails_even_without_flags(self):
        status = determine_status(has_absent=False, has_failed_subject=False, percentage=32.99, passing_percentage=33)
        self.assertEqual(status, 'FAIL')

    def test_threshold_is_inclusive(self):
        status = determine_status(has_absent=False, has_failed_subject=False, percentage=33.0, passing_percentage=33)
        self.assertEqual(status, 'PASS')


class PercentageTests(unittest.TestCase):
    def test_full_marks_is_hundred(self):
        self.assertEqual(round_percentage(250, 250), 100.0)

    def test_zero_marks_is_zero(self):
        self.assertEqual(round_percentage(0, 300), 0.0)

    def test_rounds_to_two_places(self):
        self.assertEqual(round_percentage(2, 3), 66.67)
        self.assertEqual(round_percentage(1, 3), 33.33)

    def test_zero_max_marks(self):
        self.assertEqual(round_percentage(0, 0), 0.0)


class ScoreStudentTests(unittest.TestCase):
    def test_aggregates_only_subjects_with_a_mark(self):
        subjects = [
            _subject(marks=[_mark(1, 80), _mark(2, 50)]),
            _subject(max_marks=50, passing_marks=20, marks=[_mark(1, 40)]),
        ]
        first = score_student(subjects, 1, 33)
        second = score_student(subjects, 2, 33)

        self.assertEqual(first.total_marks, 120)
        self.assertEqual(first.max_marks, 150)
        self.assertEqual(first.subject_count, 2)
        self.assertEqual(first.percentage, 80.0)
        self.assertEqual(first.status, 'PASS')

        self.assertEqual(second.max_marks, 100)
        self.assertEqual(second.subject_count, 1)
        self.assertEqual(second.percentage, 50.0)

    def test_absent_subject_fails_despite_high_aggregate(self):
        subjects = [
            _subject(marks=[_mark(1, 99)]),
            _subject(marks=[_mark(1, 98)]),
            _subject(max_marks=10, passing_marks=0, marks=[_mark(1, 0, is_absent=True)]),
        ]
        score = score_student(subjects, 1, 33)
        self.assertTrue(score.has_absent)
        self.assertGreater(score.percentage, 33)
        self.assertEqual(score.status, 'FAIL')

    def test_single_failed_subject_fails_exam(self):
        subjects = [
            _subject(marks=[_mark(1, 95)]),
            _subject(marks=[_mark(1, 32)]),
        ]
        score = score_student(subjects, 1, 33)
        self.assertTrue(score.has_failed_subject)
        self.assertEqual(score.percentage, 63.5)
        self.assertEqual(score.status, 'FAIL')

    def test_student_without_marks_is_skipped(self):
        subjects = [_subject(marks=[_mark(1, 40)])]
        self.assertIsNone(score_student(subjects, 2, 33))

    def test_students_with_marks_keeps_first_seen_order(self):
        subjects = [
            _subject(marks=[_mark(3, 1), _mark(1, 1)]),
            _subject(marks=[_mark(2, 1), _mark(3, 1)]),
        ]
        self.assertEqual(students_with_marks(subjects), [3, 1, 2])


class AssignRanksTests(unittest.TestCase):
    def test_ranks_form_a_permutation_ordered_by_percentage(self):
        rows = [SimpleNamespace(id=i, percentage=p) for i, p in enumerate([55.0, 91.5, 72.25, 10.0], start=1)]
        ranked = assign_ranks(rows)
        self.assertEqual([rank for _, rank in ranked], [1, 2, 3, 4])
        self.assertEqual([row.id for row, _ in ranked], [2, 3, 1, 4])

    def test_ties_keep_input_order(self):
        rows = [SimpleNamespace(id=i, percentage=p) for i, p in [(1, 70.0), (2, 80.0), (3, 70.0)]]
        ranked = assign_ranks(rows)
        self.assertEqual([(row.id, rank) for row, rank in ranked], [(2, 1), (1, 2), (3, 3)])

    def test_empty_cohort(self):
        self.assertEqual(assign_ranks([]), [])


if __name__ == '__main__':
    unittest.main()

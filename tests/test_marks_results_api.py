import tempfile
import unittest
from datetime import date
from pathlib import Path

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from school_api.core.error_handlers import register_exception_handlers
from school_api.db import Base, get_db
from school_api.models import (
    AcademicYear,
    Exam,
    ExamSubject,
    GradeScale,
    School,
    SchoolClass,
    Student,
    StudentMark,
    StudentResult,
    Subject,
)
from school_api.routers import exam as exam_router
from school_api.routers import grade_scale as grade_scale_router
from school_api.routers import marks as marks_router
from school_api.routers import result as result_router
from school_api.services.result_service import invalidate_exam_results


class MarksAndResultsApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls._tmpdir = tempfile.TemporaryDirectory()
        db_path = Path(cls._tmpdir.name) / 'test_marks_results_api.db'
        cls._engine = create_engine(f"sqlite:///{db_path}", connect_args={'check_same_thread': False})
        cls._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=cls._engine)
        Base.metadata.create_all(bind=cls._engine)

        app = FastAPI()
        register_exception_handlers(app)
        app.include_router(grade_scale_router.router)
        app.include_router(marks_router.router)
        app.include_router(result_router.router)
        app.include_router(exam_router.router)

        def override_get_db():
            db = cls._session_factory()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        cls.client = TestClient(app)

    @classmethod
    def tearDownClass(cls):
        cls.client.close()
        cls._engine.dispose()
        cls._tmpdir.cleanup()

    def setUp(self):
        db = self._session_factory()
        try:
            for table in (
                StudentResult,
                StudentMark,
                ExamSubject,
                Exam,
                GradeScale,
                Student,
                Subject,
                SchoolClass,
                AcademicYear,
                School,
            ):
                db.query(table).delete()
            db.commit()

            school = School(name='Delhi Public School', code='DPS')
            db.add(school)
            db.flush()
            year = AcademicYear(
                school_id=school.id,
                name='2026-27',
                start_date=date(2026, 4, 1),
                end_date=date(2027, 3, 31),
                is_current=True,
            )
            school_class = SchoolClass(school_id=school.id, name='Class 5', numeric_level=5)
            maths = Subject(school_id=school.id, name='Mathematics', code='MATH')
            science = Subject(school_id=school.id, name='Science', code='SCI')
            db.add_all([year, school_class, maths, science])
            db.flush()

            students = [
                Student(school_id=school.id, first_name=name, admission_number=f'ADM-{idx}')
                for idx, name in enumerate(('Asha', 'Bilal', 'Chitra'), start=1)
            ]
            db.add_all(students)

            exam = Exam(
                school_id=school.id,
                academic_year_id=year.id,
                class_id=school_class.id,
                name='Half Yearly 2026',
                exam_type='HALF_YEARLY',
                start_date=date(2026, 9, 15),
                end_date=date(2026, 9, 25),
                max_marks=200,
                passing_percentage=40,
            )
            exam.exam_subjects = [
                ExamSubject(subject_id=maths.id, max_marks=100, passing_marks=33),
                ExamSubject(subject_id=science.id, max_marks=100, passing_marks=33),
            ]
            db.add(exam)

            db.add_all(
                [
                    GradeScale(school_id=school.id, name='A1', min_percentage=90, max_percentage=100, grade_point=10),
                    GradeScale(school_id=school.id, name='A2', min_percentage=80, max_percentage=89.99, grade_point=9),
                    GradeScale(school_id=school.id, name='B1', min_percentage=60, max_percentage=79.99, grade_point=8),
                    GradeScale(school_id=school.id, name='C1', min_percentage=40, max_percentage=59.99, grade_point=6),
                ]
            )
            db.commit()

            self.school_id = school.id
            self.year_id = year.id
            self.class_id = school_class.id
            self.exam_id = exam.id
            # SQLite reuses ids once the tables are emptied.
            invalidate_exam_results(self.exam_id)
            self.maths_id, self.science_id = [row.id for row in exam.exam_subjects]
            self.maths_subject_id = maths.id
            self.asha, self.bilal, self.chitra = [row.id for row in students]
        finally:
            db.close()

    def _post_marks(self, exam_subject_id: int, entries: list[dict]):
        return self.client.post('/api/exam/marks', json={'exam_subject_id': exam_subject_id, 'marks': entries})

    def _results_by_student(self) -> dict[int, dict]:
        response = self.client.get(f'/api/exam/result/exam/{self.exam_id}')
        self.assertEqual(response.status_code, 200)
        return {row['student_id']: row for row in response.json()['data']}

    def test_absent_student_fails_regardless_of_other_subjects(self):
        self._post_marks(
            self.maths_id,
            [
                {'student_id': self.asha, 'marks_obtained': 85},
                {'student_id': self.bilal, 'marks_obtained': 90, 'is_absent': True},
            ],
        )
        response = self._post_marks(
            self.science_id,
            [
                {'student_id': self.asha, 'marks_obtained': 90},
                {'student_id': self.bilal, 'marks_obtained': 99},
            ],
        )
        self.assertEqual(response.status_code, 201)
        self.assertTrue(response.json()['success'])

        results = self._results_by_student()
        self.assertEqual(results[self.asha]['status'], 'PASS')
        self.assertEqual(results[self.asha]['percentage'], 87.5)
        self.assertEqual(results[self.asha]['grade'], 'A2')
        self.assertEqual(results[self.bilal]['status'], 'FAIL')
        self.assertEqual(results[self.bilal]['total_marks'], 99)

        db = self._session_factory()
        try:
            absent = db.query(StudentMark).filter(StudentMark.student_id == self.bilal, StudentMark.exam_subject_id == self.maths_id).one()
            self.assertTrue(absent.is_absent)
            self.assertEqual(absent.marks_obtained, 0)
        finally:
            db.close()

    def test_reentering_a_mark_is_an_upsert(self):
        self._post_marks(self.maths_id, [{'student_id': self.asha, 'marks_obtained': 50}])
        self._post_marks(self.maths_id, [{'student_id': self.asha, 'marks_obtained': 70, 'remarks': 'rechecked'}])

        db = self._session_factory()
        try:
            marks = db.query(StudentMark).filter(StudentMark.student_id == self.asha).all()
            self.assertEqual(len(marks), 1)
            self.assertEqual(marks[0].marks_obtained, 70)
            self.assertEqual(marks[0].remarks, 'rechecked')
            self.assertEqual(db.query(StudentResult).count(), 1)
        finally:
            db.close()

        result = self._results_by_student()[self.asha]
        self.assertEqual(result['total_marks'], 70)
        self.assertEqual(result['percentage'], 70.0)
        self.assertEqual(result['rank'], 1)

    def test_ranks_form_permutation_and_follow_latest_marks(self):
        self._post_marks(
            self.maths_id,
            [
                {'student_id': self.asha, 'marks_obtained': 90},
                {'student_id': self.bilal, 'marks_obtained': 60},
                {'student_id': self.chitra, 'marks_obtained': 95},
            ],
        )
        self._post_marks(
            self.science_id,
            [
                {'student_id': self.asha, 'marks_obtained': 80},
                {'student_id': self.bilal, 'marks_obtained': 70},
                {'student_id': self.chitra, 'marks_obtained': 99},
            ],
        )
        results = self._results_by_student()
        self.assertEqual(sorted(row['rank'] for row in results.values()), [1, 2, 3])
        self.assertEqual(results[self.chitra]['rank'], 1)
        self.assertEqual(results[self.asha]['rank'], 2)
        self.assertEqual(results[self.bilal]['rank'], 3)

        # Only Bilal's science mark changes, but the whole cohort is re-ranked.
        self._post_marks(self.science_id, [{'student_id': self.bilal, 'marks_obtained': 100}])
        self._post_marks(self.maths_id, [{'student_id': self.bilal, 'marks_obtained': 100}])
        results = self._results_by_student()
        self.assertEqual(results[self.bilal]['rank'], 1)
        self.assertEqual(results[self.chitra]['rank'], 2)
        self.assertEqual(results[self.asha]['rank'], 3)

    def test_unknown_students_are_skipped(self):
        response = self._post_marks(
            self.maths_id,
            [
                {'student_id': 99999, 'marks_obtained': 40},
                {'student_id': self.asha, 'marks_obtained': 40},
            ],
        )
        self.assertEqual(response.status_code, 201)
        data = response.json()['data']
        self.assertEqual(data['saved'], 1)
        self.assertEqual(data['skipped_student_ids'], [99999])
        self.assertEqual(list(self._results_by_student()), [self.asha])

    def test_marks_above_subject_maximum_reject_the_whole_batch(self):
        response = self._post_marks(
            self.maths_id,
            [
                {'student_id': self.asha, 'marks_obtained': 50},
                {'student_id': self.bilal, 'marks_obtained': 101},
            ],
        )
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()['success'])

        db = self._session_factory()
        try:
            self.assertEqual(db.query(StudentMark).count(), 0)
            self.assertEqual(db.query(StudentResult).count(), 0)
        finally:
            db.close()

    def test_unknown_exam_subject_is_not_found(self):
        response = self._post_marks(424242, [{'student_id': self.asha, 'marks_obtained': 10}])
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {'success': False, 'message': 'Exam subject not found'})

    def test_empty_batch_is_a_validation_error(self):
        response = self._post_marks(self.maths_id, [])
        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertFalse(body['success'])
        self.assertTrue(body['message'].startswith('marks'))
        self.assertEqual(body['errors'][0]['field'], 'marks')

    def test_grade_is_null_when_no_band_matches(self):
        self._post_marks(self.maths_id, [{'student_id': self.asha, 'marks_obtained': 35}])
        self._post_marks(self.science_id, [{'student_id': self.asha, 'marks_obtained': 40}])
        result = self._results_by_student()[self.asha]
        self.assertEqual(result['percentage'], 37.5)
        self.assertEqual(result['status'], 'FAIL')
        self.assertIsNone(result['grade'])
        self.assertIsNone(result['grade_point'])

    def test_changing_passing_percentage_rescores_results(self):
        self._post_marks(self.maths_id, [{'student_id': self.asha, 'marks_obtained': 35}])
        self._post_marks(self.science_id, [{'student_id': self.asha, 'marks_obtained': 40}])
        self.assertEqual(self._results_by_student()[self.asha]['status'], 'FAIL')

        response = self.client.put(f'/api/exam/{self.exam_id}', json={'passing_percentage': 35})
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json()['data']['passing_percentage'], 35)

        result = self._results_by_student()[self.asha]
        self.assertEqual(result['status'], 'PASS')
        self.assertEqual(result['percentage'], 37.5)
        self.assertEqual(result['rank'], 1)

    def test_update_and_delete_mark_recompute_results(self):
        self._post_marks(
            self.maths_id,
            [
                {'student_id': self.asha, 'marks_obtained': 90},
                {'student_id': self.bilal, 'marks_obtained': 50},
            ],
        )
        db = self._session_factory()
        try:
            asha_mark = db.query(StudentMark).filter(StudentMark.student_id == self.asha).one()
            mark_id = asha_mark.id
        finally:
            db.close()

        response = self.client.put(f'/api/exam/marks/{mark_id}', json={'marks_obtained': 10})
        self.assertEqual(response.status_code, 200)
        results = self._results_by_student()
        self.assertEqual(results[self.asha]['status'], 'FAIL')
        self.assertEqual(results[self.asha]['rank'], 2)
        self.assertEqual(results[self.bilal]['rank'], 1)

        response = self.client.put(f'/api/exam/marks/{mark_id}', json={'marks_obtained': 150})
        self.assertEqual(response.status_code, 400)

        response = self.client.delete(f'/api/exam/marks/{mark_id}')
        self.assertEqual(response.status_code, 200)
        results = self._results_by_student()
        self.assertNotIn(self.asha, results)
        self.assertEqual(results[self.bilal]['rank'], 1)

    def test_generate_results_rebuilds_every_marked_student(self):
        self._post_marks(
            self.maths_id,
            [
                {'student_id': self.asha, 'marks_obtained': 70},
                {'student_id': self.chitra, 'marks_obtained': 80},
            ],
        )
        db = self._session_factory()
        try:
            db.query(StudentResult).delete()
            db.commit()
        finally:
            db.close()

        response = self.client.post('/api/exam/result/generate', json={'exam_id': self.exam_id})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['students_updated'], 2)

        results = self._results_by_student()
        self.assertEqual(results[self.chitra]['rank'], 1)
        self.assertEqual(results[self.asha]['rank'], 2)

        response = self.client.post('/api/exam/result/generate', json={'exam_id': 987654})
        self.assertEqual(response.status_code, 404)

    def test_result_list_cache_is_invalidated_on_new_marks(self):
        self._post_marks(self.maths_id, [{'student_id': self.asha, 'marks_obtained': 70}])
        first = self._results_by_student()
        self.assertEqual(list(first), [self.asha])

        self._post_marks(self.maths_id, [{'student_id': self.bilal, 'marks_obtained': 75}])
        second = self._results_by_student()
        self.assertEqual(sorted(second), sorted([self.asha, self.bilal]))

    def test_result_detail_includes_subject_marks(self):
        self._post_marks(self.maths_id, [{'student_id': self.asha, 'marks_obtained': 66}])
        result_id = self._results_by_student()[self.asha]['id']

        response = self.client.get(f'/api/exam/result/{result_id}')
        self.assertEqual(response.status_code, 200)
        data = response.json()['data']
        self.assertEqual(data['exam_name'], 'Half Yearly 2026')
        self.assertEqual(len(data['subjects']), 2)
        maths = next(row for row in data['subjects'] if row['exam_subject_id'] == self.maths_id)
        science = next(row for row in data['subjects'] if row['exam_subject_id'] == self.science_id)
        self.assertEqual(maths['marks_obtained'], 66)
        self.assertIsNone(science['marks_obtained'])

        by_student = self.client.get(f'/api/exam/result/student/{self.asha}', params={'academic_year_id': self.year_id})
        self.assertEqual([row['id'] for row in by_student.json()['data']], [result_id])

    def test_exam_guards(self):
        payload = {
            'school_id': self.school_id,
            'academic_year_id': self.year_id,
            'class_id': self.class_id,
            'name': 'Half Yearly 2026',
            'exam_type': 'HALF_YEARLY',
            'start_date': '2026-09-15',
            'end_date': '2026-09-25',
        }
        response = self.client.post('/api/exam', json=payload)
        self.assertEqual(response.status_code, 409)

        self._post_marks(self.maths_id, [{'student_id': self.asha, 'marks_obtained': 40}])
        response = self.client.delete(f'/api/exam/{self.exam_id}/subjects/{self.maths_id}')
        self.assertEqual(response.status_code, 400)
        response = self.client.delete(f'/api/exam/{self.exam_id}')
        self.assertEqual(response.status_code, 400)

        response = self.client.post(
            f'/api/exam/{self.exam_id}/subjects',
            json={'subject_id': self.maths_subject_id, 'max_marks': 50, 'passing_marks': 20},
        )
        self.assertEqual(response.status_code, 409)

    def test_grade_scale_overlap_is_rejected(self):
        response = self.client.post(
            '/api/exam/grade-scale',
            json={'school_id': self.school_id, 'name': 'X', 'min_percentage': 85, 'max_percentage': 95},
        )
        self.assertEqual(response.status_code, 409)

        response = self.client.post(
            '/api/exam/grade-scale',
            json={'school_id': self.school_id, 'name': 'E', 'min_percentage': 30, 'max_percentage': 20},
        )
        self.assertEqual(response.status_code, 400)

        response = self.client.post(
            '/api/exam/grade-scale',
            json={'school_id': self.school_id, 'name': 'D', 'min_percentage': 33, 'max_percentage': 39.99, 'grade_point': 4},
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['data']['name'], 'D')


if __name__ == '__main__':
    unittest.main()

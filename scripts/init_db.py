from datetime import date
from pathlib import Path
import sys


# Ensure imports work when running this file directly: `python scripts/init_db.py`.
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from school_api.db import Base, SessionLocal, engine
from school_api.models import School
from school_api.schemas import (
    AcademicYearCreate,
    ClassCreate,
    EnrollmentCreate,
    ExamCreate,
    ExamSubjectInput,
    FeeCategoryCreate,
    FeeStructureCreate,
    FeeStructureItemInput,
    GradeScaleCreate,
    SchoolCreate,
    SectionCreate,
    StudentCreate,
    SubjectCreate,
)
from school_api.services import (
    exam_service,
    fee_category_service,
    fee_structure_service,
    grade_scale_service,
    school_service,
)


GRADE_BANDS = [
    ('A1', 90, 100, 10),
    ('A2', 80, 89.99, 9),
    ('B1', 70, 79.99, 8),
    ('B2', 60, 69.99, 7),
    ('C1', 50, 59.99, 6),
    ('C2', 40, 49.99, 5),
    ('D', 33, 39.99, 4),
]


Base.metadata.create_all(bind=engine)

db = SessionLocal()
try:
    if not db.query(School).first():
        school = school_service.create_school(db, SchoolCreate(name='Demo Public School', code='DPS'))
        year = school_service.create_academic_year(
            db,
            AcademicYearCreate(
                school_id=school.id,
                name='2026-27',
                start_date=date(2026, 4, 1),
                end_date=date(2027, 3, 31),
                is_current=True,
            ),
        )
        class_five = school_service.create_class(db, ClassCreate(school_id=school.id, name='Class 5', numeric_level=5))
        section = school_service.create_section(db, class_five.id, SectionCreate(name='A', capacity=40))
        subjects = [
            school_service.create_subject(db, SubjectCreate(school_id=school.id, name=name, code=code))
            for name, code in (('Mathematics', 'MAT'), ('Science', 'SCI'), ('English', 'ENG'))
        ]

        for idx, name in enumerate(('Aarav', 'Diya', 'Ishaan'), start=1):
            student = school_service.create_student(
                db,
                StudentCreate(school_id=school.id, first_name=name, admission_number=f'DPS-{idx:04d}'),
            )
            school_service.enroll_student(
                db,
                student.id,
                EnrollmentCreate(academic_year_id=year.id, class_id=class_five.id, section_id=section.id, roll_number=str(idx)),
            )

        for name, low, high, point in GRADE_BANDS:
            grade_scale_service.create_grade_scale(
                db,
                GradeScaleCreate(school_id=school.id, name=name, min_percentage=low, max_percentage=high, grade_point=point),
            )

        exam_service.create_exam(
            db,
            ExamCreate(
                school_id=school.id,
                academic_year_id=year.id,
                class_id=class_five.id,
                name='Half Yearly 2026',
                exam_type='HALF_YEARLY',
                start_date=date(2026, 9, 15),
                end_date=date(2026, 9, 25),
                subjects=[ExamSubjectInput(subject_id=row.id) for row in subjects],
            ),
        )

        tuition = fee_category_service.create_fee_category(db, FeeCategoryCreate(school_id=school.id, name='Tuition'))
        admission = fee_category_service.create_fee_category(
            db,
            FeeCategoryCreate(school_id=school.id, name='Annual charges', is_recurring=False),
        )
        fee_structure_service.create_fee_structure(
            db,
            FeeStructureCreate(
                school_id=school.id,
                class_id=class_five.id,
                academic_year_id=year.id,
                name='Class 5 fees 2026-27',
                late_fee_percentage=2,
                items=[
                    FeeStructureItemInput(fee_category_id=tuition.id, amount=2500, frequency='MONTHLY'),
                    FeeStructureItemInput(fee_category_id=admission.id, amount=6000, frequency='YEARLY'),
                ],
            ),
        )
finally:
    db.close()

print('DB initialized with sample data.')

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from school_api.core.errors import ConflictError, ServiceError, require_found
from school_api.db import atomic
from school_api.models import AcademicYear, School, SchoolClass, Section, Student, StudentEnrollment, Subject
from school_api.schemas import (
    AcademicYearCreate,
    ClassCreate,
    EnrollmentCreate,
    SchoolCreate,
    SectionCreate,
    StudentCreate,
    SubjectCreate,
)


logger = logging.getLogger(__name__)


def get_school(db: Session, school_id: int) -> School:
    return require_found(db.query(School).filter(School.id == school_id).first(), 'School')


def list_schools(db: Session) -> list[School]:
    return db.query(School).order_by(School.id.asc()).all()


def create_school(db: Session, payload: SchoolCreate) -> School:
    code = payload.code.strip().upper()
    if db.query(School).filter(School.code == code).first():
        raise ConflictError(f'School code {code} already exists')
    row = School(name=payload.name.strip(), code=code, email=payload.email.strip(), address=payload.address)
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info('school_created school_id=%s code=%s', row.id, row.code)
    return row


def get_academic_year(db: Session, academic_year_id: int) -> AcademicYear:
    return require_found(
        db.query(AcademicYear).filter(AcademicYear.id == academic_year_id).first(),
        'Academic year',
    )


def list_academic_years(db: Session, school_id: int) -> list[AcademicYear]:
    return (
        db.query(AcademicYear)
        .filter(AcademicYear.school_id == school_id)
        .order_by(AcademicYear.start_date.desc())
        .all()
    )


def create_academic_year(db: Session, payload: AcademicYearCreate) -> AcademicYear:
    get_school(db, payload.school_id)
    exists = (
        db.query(AcademicYear)
        .filter(AcademicYear.school_id == payload.school_id, AcademicYear.name == payload.name)
        .first()
    )
    if exists:
        raise ConflictError(f'Academic year {payload.name} already exists')

    with atomic(db):
        if payload.is_current:
            db.query(AcademicYear).filter(AcademicYear.school_id == payload.school_id).update({'is_current': False})
        row = AcademicYear(**payload.model_dump())
        db.add(row)
    db.refresh(row)
    return row


def get_class(db: Session, class_id: int) -> SchoolClass:
    return require_found(db.query(SchoolClass).filter(SchoolClass.id == class_id).first(), 'Class')


def list_classes(db: Session, school_id: int) -> list[SchoolClass]:
    return (
        db.query(SchoolClass)
        .filter(SchoolClass.school_id == school_id)
        .order_by(SchoolClass.numeric_level.asc(), SchoolClass.id.asc())
        .all()
    )


def create_class(db: Session, payload: ClassCreate) -> SchoolClass:
    get_school(db, payload.school_id)
    row = SchoolClass(**payload.model_dump())
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def create_section(db: Session, class_id: int, payload: SectionCreate) -> Section:
    get_class(db, class_id)
    row = Section(class_id=class_id, **payload.model_dump())
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def list_sections(db: Session, class_id: int) -> list[Section]:
    get_class(db, class_id)
    return db.query(Section).filter(Section.class_id == class_id).order_by(Section.name.asc()).all()


def get_section(db: Session, section_id: int) -> Section:
    return require_found(db.query(Section).filter(Section.id == section_id).first(), 'Section')


def get_subject(db: Session, subject_id: int) -> Subject:
    return require_found(db.query(Subject).filter(Subject.id == subject_id).first(), 'Subject')


def list_subjects(db: Session, school_id: int) -> list[Subject]:
    return db.query(Subject).filter(Subject.school_id == school_id).order_by(Subject.name.asc()).all()


def create_subject(db: Session, payload: SubjectCreate) -> Subject:
    get_school(db, payload.school_id)
    row = Subject(school_id=payload.school_id, name=payload.name.strip(), code=payload.code.strip().upper())
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def get_student(db: Session, student_id: int) -> Student:
    return require_found(db.query(Student).filter(Student.id == student_id).first(), 'Student')


def list_students(db: Session, school_id: int, *, active_only: bool = True) -> list[Student]:
    query = db.query(Student).filter(Student.school_id == school_id)
    if active_only:
        query = query.filter(Student.is_active.is_(True))
    return query.order_by(Student.first_name.asc(), Student.id.asc()).all()


def create_student(db: Session, payload: StudentCreate) -> Student:
    get_school(db, payload.school_id)
    row = Student(**payload.model_dump())
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def current_enrollment(db: Session, student_id: int) -> StudentEnrollment | None:
    return (
        db.query(StudentEnrollment)
        .filter(StudentEnrollment.student_id == student_id, StudentEnrollment.is_current.is_(True))
        .first()
    )


def enroll_student(db: Session, student_id: int, payload: EnrollmentCreate) -> StudentEnrollment:
    student = get_student(db, student_id)
    year = get_academic_year(db, payload.academic_year_id)
    school_class = get_class(db, payload.class_id)
    if year.school_id != student.school_id or school_class.school_id != student.school_id:
        raise ServiceError('Academic year and class must belong to the student\'s school')
    if payload.section_id is not None:
        section = get_section(db, payload.section_id)
        if section.class_id != school_class.id:
            raise ServiceError('Section does not belong to the class')

    exists = (
        db.query(StudentEnrollment)
        .filter(
            StudentEnrollment.student_id == student_id,
            StudentEnrollment.academic_year_id == payload.academic_year_id,
        )
        .first()
    )
    if exists:
        raise ConflictError('Student is already enrolled for this academic year')

    with atomic(db):
        # Earlier enrollments stay as history; only the newest one is current.
        previous = (
            db.query(StudentEnrollment)
            .filter(StudentEnrollment.student_id == student_id, StudentEnrollment.is_current.is_(True))
            .all()
        )
        for row in previous:
            row.is_current = False
            row.is_promoted = True
        enrollment = StudentEnrollment(student_id=student_id, is_current=True, **payload.model_dump())
        db.add(enrollment)
    db.refresh(enrollment)
    logger.info(
        'student_enrolled student_id=%s academic_year_id=%s class_id=%s section_id=%s',
        student_id,
        payload.academic_year_id,
        payload.class_id,
        payload.section_id,
    )
    return enrollment


def list_enrollments(db: Session, student_id: int) -> list[StudentEnrollment]:
    get_student(db, student_id)
    return (
        db.query(StudentEnrollment)
        .filter(StudentEnrollment.student_id == student_id)
        .order_by(StudentEnrollment.id.desc())
        .all()
    )

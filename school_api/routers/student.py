from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from school_api.core.responses import success_response
from school_api.db import get_db
from school_api.route_logging import EndpointNameRoute
from school_api.schemas import EnrollmentCreate, EnrollmentRead, StudentCreate, StudentRead
from school_api.services import school_service


router = APIRouter(prefix='/api/student', tags=['Students'], route_class=EndpointNameRoute)


@router.post('')
def create_student(payload: StudentCreate, db: Session = Depends(get_db)):
    row = school_service.create_student(db, payload)
    return success_response('Student created', StudentRead.model_validate(row), 201)


@router.get('/school/{school_id}')
def list_students(school_id: int, active_only: bool = Query(default=True), db: Session = Depends(get_db)):
    rows = school_service.list_students(db, school_id, active_only=active_only)
    return success_response('Students fetched', [StudentRead.model_validate(row) for row in rows])


@router.get('/{student_id}')
def get_student(student_id: int, db: Session = Depends(get_db)):
    return success_response('Student fetched', StudentRead.model_validate(school_service.get_student(db, student_id)))


@router.post('/{student_id}/enrollments')
def enroll_student(student_id: int, payload: EnrollmentCreate, db: Session = Depends(get_db)):
    row = school_service.enroll_student(db, student_id, payload)
    return success_response('Student enrolled', EnrollmentRead.model_validate(row), 201)


@router.get('/{student_id}/enrollments')
def list_enrollments(student_id: int, db: Session = Depends(get_db)):
    rows = school_service.list_enrollments(db, student_id)
    return success_response('Enrollments fetched', [EnrollmentRead.model_validate(row) for row in rows])

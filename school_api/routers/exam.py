from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from school_api.core.responses import success_response
from school_api.db import get_db
from school_api.route_logging import EndpointNameRoute
from school_api.schemas import ExamCreate, ExamFilters, ExamRead, ExamSubjectInput, ExamSubjectRead, ExamUpdate
from school_api.services import exam_service


router = APIRouter(prefix='/api/exam', tags=['Exams'], route_class=EndpointNameRoute)


@router.post('')
def create_exam(payload: ExamCreate, db: Session = Depends(get_db)):
    exam = exam_service.create_exam(db, payload)
    return success_response('Exam created', ExamRead.model_validate(exam), 201)


@router.get('/school/{school_id}')
def list_exams(school_id: int, filters: ExamFilters = Depends(), db: Session = Depends(get_db)):
    rows = exam_service.list_exams(db, school_id, filters)
    return success_response('Exams fetched', [ExamRead.model_validate(row) for row in rows])


@router.get('/{exam_id}')
def get_exam(exam_id: int, db: Session = Depends(get_db)):
    return success_response('Exam fetched', ExamRead.model_validate(exam_service.get_exam(db, exam_id)))


@router.put('/{exam_id}')
def update_exam(exam_id: int, payload: ExamUpdate, db: Session = Depends(get_db)):
    exam = exam_service.update_exam(db, exam_id, payload)
    return success_response('Exam updated', ExamRead.model_validate(exam))


@router.delete('/{exam_id}')
def delete_exam(exam_id: int, db: Session = Depends(get_db)):
    exam_service.delete_exam(db, exam_id)
    return success_response('Exam deleted')


@router.post('/{exam_id}/subjects')
def add_exam_subject(exam_id: int, payload: ExamSubjectInput, db: Session = Depends(get_db)):
    row = exam_service.add_exam_subject(db, exam_id, payload)
    return success_response('Subject added to exam', ExamSubjectRead.model_validate(row), 201)


@router.delete('/{exam_id}/subjects/{exam_subject_id}')
def remove_exam_subject(exam_id: int, exam_subject_id: int, db: Session = Depends(get_db)):
    exam_service.remove_exam_subject(db, exam_id, exam_subject_id)
    return success_response('Subject removed from exam')

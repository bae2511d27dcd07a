from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from school_api.core.responses import success_response
from school_api.db import get_db
from school_api.route_logging import EndpointNameRoute
from school_api.schemas import MarkUpdate, MarksBatchRequest, StudentMarkRead
from school_api.services import marks_service


router = APIRouter(prefix='/api/exam/marks', tags=['Marks'], route_class=EndpointNameRoute)


@router.post('')
def enter_marks(payload: MarksBatchRequest, db: Session = Depends(get_db)):
    summary = marks_service.enter_marks(db, payload)
    return success_response('Marks saved', summary, 201)


@router.get('/exam-subject/{exam_subject_id}')
def marks_by_exam_subject(exam_subject_id: int, db: Session = Depends(get_db)):
    rows = marks_service.list_marks_by_exam_subject(db, exam_subject_id)
    return success_response('Marks fetched', [StudentMarkRead.model_validate(row) for row in rows])


@router.get('/student/{student_id}')
def marks_by_student(student_id: int, exam_id: int | None = Query(default=None), db: Session = Depends(get_db)):
    rows = marks_service.list_marks_by_student(db, student_id, exam_id=exam_id)
    return success_response('Marks fetched', [StudentMarkRead.model_validate(row) for row in rows])


@router.get('/exam/{exam_id}')
def marks_by_exam(exam_id: int, db: Session = Depends(get_db)):
    rows = marks_service.list_marks_by_exam(db, exam_id)
    return success_response('Marks fetched', [StudentMarkRead.model_validate(row) for row in rows])


@router.put('/{mark_id}')
def update_mark(mark_id: int, payload: MarkUpdate, db: Session = Depends(get_db)):
    row = marks_service.update_mark(db, mark_id, payload)
    return success_response('Mark updated', StudentMarkRead.model_validate(row))


@router.delete('/{mark_id}')
def delete_mark(mark_id: int, db: Session = Depends(get_db)):
    marks_service.delete_mark(db, mark_id)
    return success_response('Mark deleted')

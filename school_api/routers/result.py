from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from school_api.core.responses import success_response
from school_api.db import get_db
from school_api.route_logging import EndpointNameRoute
from school_api.schemas import GenerateResultsRequest
from school_api.services import result_service


router = APIRouter(prefix='/api/exam/result', tags=['Results'], route_class=EndpointNameRoute)


@router.post('/generate')
def generate_results(payload: GenerateResultsRequest, db: Session = Depends(get_db)):
    summary = result_service.generate_results(db, payload.exam_id)
    return success_response('Results generated', summary)


@router.get('/exam/{exam_id}')
def results_by_exam(exam_id: int, db: Session = Depends(get_db)):
    return success_response('Results fetched', result_service.list_results_by_exam(db, exam_id))


@router.get('/student/{student_id}')
def results_by_student(
    student_id: int,
    academic_year_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
):
    rows = result_service.list_results_by_student(db, student_id, academic_year_id=academic_year_id)
    return success_response('Results fetched', rows)


@router.get('/{result_id}')
def get_result(result_id: int, db: Session = Depends(get_db)):
    return success_response('Result fetched', result_service.get_result(db, result_id))

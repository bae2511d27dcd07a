from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from school_api.core.responses import success_response
from school_api.db import get_db
from school_api.route_logging import EndpointNameRoute
from school_api.schemas import GradeScaleCreate, GradeScaleRead, GradeScaleUpdate
from school_api.services import grade_scale_service


router = APIRouter(prefix='/api/exam/grade-scale', tags=['Grade Scales'], route_class=EndpointNameRoute)


@router.post('')
def create_grade_scale(payload: GradeScaleCreate, db: Session = Depends(get_db)):
    row = grade_scale_service.create_grade_scale(db, payload)
    return success_response('Grade scale created', GradeScaleRead.model_validate(row), 201)


@router.get('/school/{school_id}')
def list_grade_scales(school_id: int, active_only: bool = Query(default=False), db: Session = Depends(get_db)):
    rows = grade_scale_service.list_grade_scales(db, school_id, active_only=active_only)
    return success_response('Grade scales fetched', [GradeScaleRead.model_validate(row) for row in rows])


@router.get('/{grade_scale_id}')
def get_grade_scale(grade_scale_id: int, db: Session = Depends(get_db)):
    row = grade_scale_service.get_grade_scale(db, grade_scale_id)
    return success_response('Grade scale fetched', GradeScaleRead.model_validate(row))


@router.put('/{grade_scale_id}')
def update_grade_scale(grade_scale_id: int, payload: GradeScaleUpdate, db: Session = Depends(get_db)):
    row = grade_scale_service.update_grade_scale(db, grade_scale_id, payload)
    return success_response('Grade scale updated', GradeScaleRead.model_validate(row))


@router.delete('/{grade_scale_id}')
def delete_grade_scale(grade_scale_id: int, db: Session = Depends(get_db)):
    grade_scale_service.delete_grade_scale(db, grade_scale_id)
    return success_response('Grade scale deleted')

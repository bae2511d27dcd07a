from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from school_api.core.responses import success_response
from school_api.db import get_db
from school_api.route_logging import EndpointNameRoute
from school_api.schemas import AcademicYearCreate, AcademicYearRead
from school_api.services import school_service


router = APIRouter(prefix='/api/academic-year', tags=['Academic Years'], route_class=EndpointNameRoute)


@router.post('')
def create_academic_year(payload: AcademicYearCreate, db: Session = Depends(get_db)):
    row = school_service.create_academic_year(db, payload)
    return success_response('Academic year created', AcademicYearRead.model_validate(row), 201)


@router.get('/school/{school_id}')
def list_academic_years(school_id: int, db: Session = Depends(get_db)):
    rows = school_service.list_academic_years(db, school_id)
    return success_response('Academic years fetched', [AcademicYearRead.model_validate(row) for row in rows])


@router.get('/{academic_year_id}')
def get_academic_year(academic_year_id: int, db: Session = Depends(get_db)):
    row = school_service.get_academic_year(db, academic_year_id)
    return success_response('Academic year fetched', AcademicYearRead.model_validate(row))

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from school_api.core.responses import success_response
from school_api.db import get_db
from school_api.route_logging import EndpointNameRoute
from school_api.schemas import SchoolCreate, SchoolRead
from school_api.services import school_service


router = APIRouter(prefix='/api/school', tags=['Schools'], route_class=EndpointNameRoute)


@router.post('')
def create_school(payload: SchoolCreate, db: Session = Depends(get_db)):
    row = school_service.create_school(db, payload)
    return success_response('School created', SchoolRead.model_validate(row), 201)


@router.get('')
def list_schools(db: Session = Depends(get_db)):
    rows = school_service.list_schools(db)
    return success_response('Schools fetched', [SchoolRead.model_validate(row) for row in rows])


@router.get('/{school_id}')
def get_school(school_id: int, db: Session = Depends(get_db)):
    return success_response('School fetched', SchoolRead.model_validate(school_service.get_school(db, school_id)))

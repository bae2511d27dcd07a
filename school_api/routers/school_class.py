from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from school_api.core.responses import success_response
from school_api.db import get_db
from school_api.route_logging import EndpointNameRoute
from school_api.schemas import ClassCreate, ClassRead, SectionCreate, SectionRead
from school_api.services import school_service


router = APIRouter(prefix='/api/class', tags=['Classes'], route_class=EndpointNameRoute)


@router.post('')
def create_class(payload: ClassCreate, db: Session = Depends(get_db)):
    row = school_service.create_class(db, payload)
    return success_response('Class created', ClassRead.model_validate(row), 201)


@router.get('/school/{school_id}')
def list_classes(school_id: int, db: Session = Depends(get_db)):
    rows = school_service.list_classes(db, school_id)
    return success_response('Classes fetched', [ClassRead.model_validate(row) for row in rows])


@router.get('/{class_id}')
def get_class(class_id: int, db: Session = Depends(get_db)):
    return success_response('Class fetched', ClassRead.model_validate(school_service.get_class(db, class_id)))


@router.post('/{class_id}/sections')
def create_section(class_id: int, payload: SectionCreate, db: Session = Depends(get_db)):
    row = school_service.create_section(db, class_id, payload)
    return success_response('Section created', SectionRead.model_validate(row), 201)


@router.get('/{class_id}/sections')
def list_sections(class_id: int, db: Session = Depends(get_db)):
    rows = school_service.list_sections(db, class_id)
    return success_response('Sections fetched', [SectionRead.model_validate(row) for row in rows])

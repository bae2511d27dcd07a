from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from school_api.core.responses import success_response
from school_api.db import get_db
from school_api.route_logging import EndpointNameRoute
from school_api.schemas import SubjectCreate, SubjectRead
from school_api.services import school_service


router = APIRouter(prefix='/api/subject', tags=['Subjects'], route_class=EndpointNameRoute)


@router.post('')
def create_subject(payload: SubjectCreate, db: Session = Depends(get_db)):
    row = school_service.create_subject(db, payload)
    return success_response('Subject created', SubjectRead.model_validate(row), 201)


@router.get('/school/{school_id}')
def list_subjects(school_id: int, db: Session = Depends(get_db)):
    rows = school_service.list_subjects(db, school_id)
    return success_response('Subjects fetched', [SubjectRead.model_validate(row) for row in rows])


@router.get('/{subject_id}')
def get_subject(subject_id: int, db: Session = Depends(get_db)):
    return success_response('Subject fetched', SubjectRead.model_validate(school_service.get_subject(db, subject_id)))

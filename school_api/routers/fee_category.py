from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from school_api.core.responses import success_response
from school_api.db import get_db
from school_api.route_logging import EndpointNameRoute
from school_api.schemas import FeeCategoryCreate, FeeCategoryRead, FeeCategoryUpdate
from school_api.services import fee_category_service


router = APIRouter(prefix='/api/fee/category', tags=['Fee Categories'], route_class=EndpointNameRoute)


@router.post('')
def create_fee_category(payload: FeeCategoryCreate, db: Session = Depends(get_db)):
    row = fee_category_service.create_fee_category(db, payload)
    return success_response('Fee category created', FeeCategoryRead.model_validate(row), 201)


@router.get('/school/{school_id}')
def list_fee_categories(school_id: int, active_only: bool = Query(default=False), db: Session = Depends(get_db)):
    rows = fee_category_service.list_fee_categories(db, school_id, active_only=active_only)
    return success_response('Fee categories fetched', [FeeCategoryRead.model_validate(row) for row in rows])


@router.get('/{category_id}')
def get_fee_category(category_id: int, db: Session = Depends(get_db)):
    row = fee_category_service.get_fee_category(db, category_id)
    return success_response('Fee category fetched', FeeCategoryRead.model_validate(row))


@router.put('/{category_id}')
def update_fee_category(category_id: int, payload: FeeCategoryUpdate, db: Session = Depends(get_db)):
    row = fee_category_service.update_fee_category(db, category_id, payload)
    return success_response('Fee category updated', FeeCategoryRead.model_validate(row))


@router.delete('/{category_id}')
def delete_fee_category(category_id: int, db: Session = Depends(get_db)):
    fee_category_service.delete_fee_category(db, category_id)
    return success_response('Fee category deleted')

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from school_api.core.responses import success_response
from school_api.db import get_db
from school_api.route_logging import EndpointNameRoute
from school_api.schemas import FeeDiscountCreate, FeeDiscountRead, FeeDiscountUpdate
from school_api.services import fee_discount_service


router = APIRouter(prefix='/api/fee/discount', tags=['Fee Discounts'], route_class=EndpointNameRoute)


@router.post('')
def create_fee_discount(payload: FeeDiscountCreate, db: Session = Depends(get_db)):
    row = fee_discount_service.create_fee_discount(db, payload)
    return success_response('Fee discount created', FeeDiscountRead.model_validate(row), 201)


@router.get('/student/{student_id}')
def list_student_discounts(
    student_id: int,
    academic_year_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
):
    rows = fee_discount_service.list_student_discounts(db, student_id, academic_year_id=academic_year_id)
    return success_response('Fee discounts fetched', [FeeDiscountRead.model_validate(row) for row in rows])


@router.get('/school/{school_id}')
def list_school_discounts(
    school_id: int,
    academic_year_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
):
    rows = fee_discount_service.list_school_discounts(db, school_id, academic_year_id=academic_year_id)
    return success_response('Fee discounts fetched', [FeeDiscountRead.model_validate(row) for row in rows])


@router.get('/{discount_id}')
def get_fee_discount(discount_id: int, db: Session = Depends(get_db)):
    row = fee_discount_service.get_fee_discount(db, discount_id)
    return success_response('Fee discount fetched', FeeDiscountRead.model_validate(row))


@router.put('/{discount_id}')
def update_fee_discount(discount_id: int, payload: FeeDiscountUpdate, db: Session = Depends(get_db)):
    row = fee_discount_service.update_fee_discount(db, discount_id, payload)
    return success_response('Fee discount updated', FeeDiscountRead.model_validate(row))


@router.delete('/{discount_id}')
def delete_fee_discount(discount_id: int, db: Session = Depends(get_db)):
    fee_discount_service.delete_fee_discount(db, discount_id)
    return success_response('Fee discount deleted')

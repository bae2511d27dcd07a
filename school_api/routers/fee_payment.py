from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from school_api.core.responses import success_response
from school_api.db import get_db
from school_api.route_logging import EndpointNameRoute
from school_api.schemas import AutoAllocateRequest, DirectPaymentRequest, FeePaymentRead
from school_api.services import fee_payment_service


router = APIRouter(prefix='/api/fee/payment', tags=['Fee Payments'], route_class=EndpointNameRoute)


@router.post('')
def pay_fee_detail(payload: DirectPaymentRequest, db: Session = Depends(get_db)):
    payment = fee_payment_service.pay_fee_detail(db, payload)
    return success_response('Payment recorded', FeePaymentRead.model_validate(payment), 201)


@router.post('/auto-allocate')
def auto_allocate(payload: AutoAllocateRequest, db: Session = Depends(get_db)):
    summary = fee_payment_service.auto_allocate_payment(db, payload)
    return success_response('Payment allocated', summary, 201)


@router.get('/student/{student_id}')
def payments_by_student(student_id: int, db: Session = Depends(get_db)):
    rows = fee_payment_service.list_payments_by_student(db, student_id)
    return success_response('Payments fetched', [FeePaymentRead.model_validate(row) for row in rows])


@router.get('/receipt/{receipt_number}')
def payment_by_receipt(receipt_number: str, db: Session = Depends(get_db)):
    payment = fee_payment_service.get_payment_by_receipt(db, receipt_number)
    return success_response('Payment fetched', FeePaymentRead.model_validate(payment))


@router.get('/{payment_id}')
def get_payment(payment_id: int, db: Session = Depends(get_db)):
    payment = fee_payment_service.get_payment(db, payment_id)
    return success_response('Payment fetched', FeePaymentRead.model_validate(payment))

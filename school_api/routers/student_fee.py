from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from school_api.core.responses import success_response
from school_api.db import get_db
from school_api.route_logging import EndpointNameRoute
from school_api.schemas import (
    BulkFeeAssign,
    StudentFeeAssign,
    StudentFeeDetailedRead,
    StudentFeeFilters,
    StudentFeeRead,
    StudentFeeUpdate,
)
from school_api.services import student_fee_service


router = APIRouter(prefix='/api/fee/student', tags=['Student Fees'], route_class=EndpointNameRoute)


@router.post('')
def assign_fee(payload: StudentFeeAssign, db: Session = Depends(get_db)):
    fee = student_fee_service.assign_fee(db, payload)
    return success_response('Fee assigned to student', StudentFeeDetailedRead.model_validate(fee), 201)


@router.post('/bulk')
def bulk_assign_fee(payload: BulkFeeAssign, db: Session = Depends(get_db)):
    summary = student_fee_service.bulk_assign_fee(db, payload)
    return success_response(f"Fee assigned to {summary['assigned']} students", summary, 201)


@router.post('/mark-overdue')
def mark_overdue(db: Session = Depends(get_db)):
    return success_response('Overdue fees updated', student_fee_service.mark_overdue_fees(db))


@router.get('/school/{school_id}')
def list_student_fees(school_id: int, filters: StudentFeeFilters = Depends(), db: Session = Depends(get_db)):
    rows = student_fee_service.list_student_fees(db, school_id, filters)
    return success_response('Student fees fetched', [StudentFeeRead.model_validate(row) for row in rows])


@router.get('/student/{student_id}')
def fees_by_student(student_id: int, db: Session = Depends(get_db)):
    rows = student_fee_service.list_fees_by_student(db, student_id)
    return success_response('Student fees fetched', [StudentFeeDetailedRead.model_validate(row) for row in rows])


@router.get('/{student_fee_id}')
def get_student_fee(student_fee_id: int, db: Session = Depends(get_db)):
    fee = student_fee_service.get_student_fee(db, student_fee_id)
    return success_response('Student fee fetched', StudentFeeDetailedRead.model_validate(fee))


@router.put('/{student_fee_id}')
def update_student_fee(student_fee_id: int, payload: StudentFeeUpdate, db: Session = Depends(get_db)):
    fee = student_fee_service.update_student_fee(db, student_fee_id, payload)
    return success_response('Student fee updated', StudentFeeDetailedRead.model_validate(fee))

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from school_api.core.responses import success_response
from school_api.db import get_db
from school_api.route_logging import EndpointNameRoute
from school_api.schemas import FeeStructureCreate, FeeStructureItemInput, FeeStructureRead, FeeStructureUpdate
from school_api.services import fee_structure_service


router = APIRouter(prefix='/api/fee/structure', tags=['Fee Structures'], route_class=EndpointNameRoute)


@router.post('')
def create_fee_structure(payload: FeeStructureCreate, db: Session = Depends(get_db)):
    row = fee_structure_service.create_fee_structure(db, payload)
    return success_response('Fee structure created', FeeStructureRead.model_validate(row), 201)


@router.get('/school/{school_id}')
def list_fee_structures(
    school_id: int,
    academic_year_id: int | None = Query(default=None),
    class_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
):
    rows = fee_structure_service.list_fee_structures(
        db,
        school_id,
        academic_year_id=academic_year_id,
        class_id=class_id,
    )
    return success_response('Fee structures fetched', [FeeStructureRead.model_validate(row) for row in rows])


@router.get('/{structure_id}')
def get_fee_structure(structure_id: int, db: Session = Depends(get_db)):
    row = fee_structure_service.get_fee_structure(db, structure_id)
    return success_response('Fee structure fetched', FeeStructureRead.model_validate(row))


@router.put('/{structure_id}')
def update_fee_structure(structure_id: int, payload: FeeStructureUpdate, db: Session = Depends(get_db)):
    row = fee_structure_service.update_fee_structure(db, structure_id, payload)
    return success_response('Fee structure updated', FeeStructureRead.model_validate(row))


@router.delete('/{structure_id}')
def delete_fee_structure(structure_id: int, db: Session = Depends(get_db)):
    fee_structure_service.delete_fee_structure(db, structure_id)
    return success_response('Fee structure deleted')


@router.post('/{structure_id}/items')
def add_structure_item(structure_id: int, payload: FeeStructureItemInput, db: Session = Depends(get_db)):
    row = fee_structure_service.add_structure_item(db, structure_id, payload)
    return success_response('Fee structure item added', FeeStructureRead.model_validate(row), 201)


@router.delete('/{structure_id}/items/{item_id}')
def remove_structure_item(structure_id: int, item_id: int, db: Session = Depends(get_db)):
    row = fee_structure_service.remove_structure_item(db, structure_id, item_id)
    return success_response('Fee structure item removed', FeeStructureRead.model_validate(row))

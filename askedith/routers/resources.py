from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session
from typing import Dict, Optional
from askedith.deps import get_session
from askedith.services import catalog

router = APIRouter()

def _dump(records):
    return [r.model_dump(by_alias=True, exclude_none=True) for r in records]

@router.get("")
def list_resources(category: Optional[str] = None,
                   zipCode: Optional[str] = None,
                   radiusMiles: float = Query(catalog.DEFAULT_RADIUS_MILES, gt=0),
                   session: Session = Depends(get_session)):
    return _dump(catalog.list_resources(session, category=category, zip_code=zipCode, radius_miles=radiusMiles))

@router.post("/matches")
def matches(answers: Dict[str, str], session: Session = Depends(get_session)):
    return _dump(catalog.match_resources(catalog.list_resources(session), answers))

@router.get("/{resource_id}")
def get_resource(resource_id: int, session: Session = Depends(get_session)):
    res = catalog.get_resource(session, resource_id)
    if not res:
        raise HTTPException(status_code=404, detail="Resource not found")
    return res.model_dump(by_alias=True, exclude_none=True)

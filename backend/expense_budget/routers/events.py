from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID
from expense_budget.database import get_db
from expense_budget.schemas import EventCreate, EventOut, EventUpdate
from expense_budget.services import master_service

router = APIRouter(prefix="/events", tags=["events"])

@router.get("", response_model=List[EventOut])
def get_events(db: Session = Depends(get_db)):
    """Active events in display order."""
    return master_service.list_events(db)

@router.post("", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_event(payload: EventCreate, db: Session = Depends(get_db)):
    return master_service.create_event(db, payload)

@router.put("/{event_id}", response_model=EventOut)
def update_event(event_id: UUID, payload: EventUpdate, db: Session = Depends(get_db)):
    """
    Partial update. The code is frozen once a budget item references the event.
    """
    return master_service.update_event(db, str(event_id), payload)

@router.delete("/{event_id}", response_model=EventOut)
def delete_event(event_id: UUID, db: Session = Depends(get_db)):
    return master_service.delete_event(db, str(event_id))

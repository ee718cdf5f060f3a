from typing import List, Optional
from fastapi import APIRouter, Depends, Query

from custody.core.dependencies import get_caller, get_event_service
from custody.models.event import EventRead
from custody.services.events import EventService

router = APIRouter()


@router.get(
    "/",
    response_model=List[EventRead],
    summary="List Events",
    description="Ledger events in append order. Pass the last seen id as `after` to poll."
)
def list_events(
    after: int = Query(default=0, ge=0),
    name: Optional[str] = None,
    limit: int = Query(default=100, ge=1, le=1000),
    caller: str = Depends(get_caller),
    service: EventService = Depends(get_event_service)
):
    return service.list_events(after=after, name=name, limit=limit)

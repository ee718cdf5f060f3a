from typing import Any, Dict
from datetime import datetime
from sqlmodel import SQLModel


class EventRead(SQLModel):
    id: int
    name: str
    payload: Dict[str, Any]
    created_at: datetime

from typing import List, Optional
from sqlmodel import Session, select

from custody.db.schema import LedgerEvent
from custody.models.event import EventRead


class EventService:
    def __init__(self, session: Session):
        self.session = session

    def list_events(self, after: int = 0, name: Optional[str] = None, limit: int = 100) -> List[EventRead]:
        """
        Events in the order they were appended. `after` is the id of the last
        event the observer has already seen.
        """
        statement = select(LedgerEvent).where(LedgerEvent.id > after)

        if name:
            statement = statement.where(LedgerEvent.name == name)

        statement = statement.order_by(LedgerEvent.id.asc()).limit(limit)
        results = self.session.exec(statement).all()

        return [
            EventRead(
                id=e.id,
                name=e.name,
                payload=e.payload,
                created_at=e.created_at
            )
            for e in results
        ]

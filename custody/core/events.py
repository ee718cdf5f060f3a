from typing import Any
from loguru import logger
from sqlmodel import Session

from custody.db.schema import LedgerEvent


CONTROL_CREATED = "ControlCreated"
FINDINGS_FOR_CONTROL_REPORTED = "FindingsForControlReported"
CONTROL_FINISHED = "ControlFinished"
TOKEN_TRANSFER = "TokenTransfer"
NON_GSE_TRANSACTION = "NonGSETransaction"


def emit_event(session: Session, name: str, **payload: Any) -> LedgerEvent:
    """
    Appends an event to the ledger log.
    Runs inside the caller's unit of work: if the call aborts, the event is
    rolled back together with the state change it describes.
    """
    event = LedgerEvent(name=name, payload=payload)
    session.add(event)
    session.flush()

    logger.info(f"Event #{event.id} {name} {payload}")
    return event

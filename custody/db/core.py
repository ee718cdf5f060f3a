import threading
from contextlib import contextmanager
from typing import Iterator

from sqlmodel import Session, create_engine, select

from custody.core.config import settings
from custody.db.schema import LedgerSequence


connect_args = {}
if settings.database_url.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(settings.database_url, connect_args=connect_args)

# Global sequencer: every mutating call runs under this lock, so calls are
# applied in a strict total order.
_ledger_lock = threading.RLock()

_DEPTH_KEY = "ledger_depth"


def get_session():
    with Session(engine) as session:
        yield session


@contextmanager
def atomic(session: Session) -> Iterator[Session]:
    """
    Unit of work for one ledger call.
    The outermost block commits on success and rolls back every write on any
    exception. Nested blocks (a service calling another service) join the
    outer one.
    """
    with _ledger_lock:
        depth = session.info.get(_DEPTH_KEY, 0)
        session.info[_DEPTH_KEY] = depth + 1
        try:
            yield session
            if depth == 0:
                session.commit()
        except Exception:
            if depth == 0:
                session.rollback()
            raise
        finally:
            session.info[_DEPTH_KEY] = depth


def next_id(session: Session, name: str) -> int:
    """Allocates the next value of a named counter. Values start at 1."""
    sequence = session.exec(
        select(LedgerSequence).where(LedgerSequence.name == name)
        .with_for_update()
    ).first()

    if not sequence:
        sequence = LedgerSequence(name=name, value=0)

    sequence.value += 1
    session.add(sequence)
    session.flush()
    return sequence.value


def current_id(session: Session, name: str) -> int:
    """The last value handed out by a counter, 0 if none yet."""
    sequence = session.get(LedgerSequence, name)
    return sequence.value if sequence else 0


def advance_id(session: Session, name: str, value: int) -> int:
    """Moves a counter forward to at least `value`. Never moves it back."""
    sequence = session.exec(
        select(LedgerSequence).where(LedgerSequence.name == name)
        .with_for_update()
    ).first()

    if not sequence:
        sequence = LedgerSequence(name=name, value=0)

    if value > sequence.value:
        sequence.value = value
        session.add(sequence)
        session.flush()
    return sequence.value

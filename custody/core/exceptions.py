from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse


class LedgerError(HTTPException):
    """
    Base class for every rejected ledger operation.
    A raised LedgerError aborts the whole call: the surrounding unit of work
    rolls back all writes made so far before the error reaches the caller.
    """
    kind: str = "LedgerError"
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(status_code=self.status_code, detail=detail)


class Unauthorized(LedgerError):
    """Caller lacks the required role or relationship to the target record."""
    kind = "Unauthorized"
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(LedgerError):
    """Referenced entity, control, transaction or token does not exist."""
    kind = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND


class InvalidState(LedgerError):
    """Operation attempted outside the record's current state."""
    kind = "InvalidState"
    status_code = status.HTTP_409_CONFLICT


class InvalidTarget(LedgerError):
    """An argument does not satisfy a role/registration precondition."""
    kind = "InvalidTarget"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"kind": exc.kind, "detail": exc.detail},
    )

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt.exceptions import InvalidTokenError
from sqlmodel import Session

from custody.core.security import decode_caller_token
from custody.db.core import get_session
from custody.services.access_control import AccessControl, RoleStore
from custody.services.registry import RegistryService
from custody.services.control import ControlWorkflowService
from custody.services.token import ProvenanceTokenService
from custody.services.events import EventService

bearer_scheme = HTTPBearer(auto_error=False)


def get_access_control(session: Session = Depends(get_session)) -> RoleStore:
    return RoleStore(session)


def get_registry_service(
    session: Session = Depends(get_session),
    access: AccessControl = Depends(get_access_control)
) -> RegistryService:
    return RegistryService(session, access)


def get_control_service(
    session: Session = Depends(get_session),
    access: AccessControl = Depends(get_access_control),
    registry: RegistryService = Depends(get_registry_service)
) -> ControlWorkflowService:
    return ControlWorkflowService(session, access, registry)


def get_token_service(
    session: Session = Depends(get_session),
    access: AccessControl = Depends(get_access_control),
    registry: RegistryService = Depends(get_registry_service)
) -> ProvenanceTokenService:
    return ProvenanceTokenService(session, access, registry)


def get_event_service(session: Session = Depends(get_session)) -> EventService:
    return EventService(session)


def get_caller(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)
) -> str:
    """
    Resolves the caller principal from the identity assertion supplied by the
    hosting environment. Every ledger route depends on this.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate caller identity",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None:
        raise credentials_exception

    try:
        return decode_caller_token(credentials.credentials)
    except InvalidTokenError:
        raise credentials_exception

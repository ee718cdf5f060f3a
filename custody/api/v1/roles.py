from fastapi import APIRouter, Depends, status

from custody.core.dependencies import get_caller, get_access_control
from custody.core.exceptions import NotFound
from custody.models.access import MemberAdd, RoleRead, MembershipRead
from custody.services.access_control import RoleStore

router = APIRouter()


@router.get(
    "/{role}",
    response_model=RoleRead,
    summary="Get Role",
    description="Returns the members of a role. Unknown roles return 404."
)
def get_role(
    role: str,
    caller: str = Depends(get_caller),
    store: RoleStore = Depends(get_access_control)
):
    if not store.role_exists(role):
        raise NotFound(f"Role '{role}' does not exist.")
    return RoleRead(role=role, members=store.list_members(role))


@router.get(
    "/{role}/members/{principal}",
    response_model=MembershipRead,
    summary="Check Role Membership"
)
def has_role(
    role: str,
    principal: str,
    caller: str = Depends(get_caller),
    store: RoleStore = Depends(get_access_control)
):
    if not store.role_exists(role):
        raise NotFound(f"Role '{role}' does not exist.")
    return MembershipRead(
        principal=principal, role=role, has_role=store.has_role(principal, role))


@router.post(
    "/{role}/members",
    response_model=MembershipRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add Role Member",
    description="ROOT may manage any role; ADMIN may manage CONTROL, SUPPLY_CHAIN_ENTITY and MINTER."
)
def add_member(
    role: str,
    data: MemberAdd,
    caller: str = Depends(get_caller),
    store: RoleStore = Depends(get_access_control)
):
    store.add_member(caller, data.principal, role)
    return MembershipRead(principal=data.principal, role=role, has_role=True)


@router.delete(
    "/{role}/members/{principal}",
    response_model=MembershipRead,
    summary="Remove Role Member"
)
def remove_member(
    role: str,
    principal: str,
    caller: str = Depends(get_caller),
    store: RoleStore = Depends(get_access_control)
):
    store.remove_member(caller, principal, role)
    return MembershipRead(principal=principal, role=role, has_role=False)

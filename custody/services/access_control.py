from typing import List, Protocol, Union
from loguru import logger
from sqlmodel import Session, select

from custody.core.config import settings
from custody.core.exceptions import Unauthorized, InvalidTarget
from custody.db.core import atomic
from custody.db.schema import Role, RoleMembership


class AccessControl(Protocol):
    """
    Role membership oracle consumed by the ledger services.
    """

    def has_role(self, principal: str, role: Role) -> bool:
        ...


# Roles an ADMIN may hand out. ROOT may manage every role.
ADMIN_MANAGED_ROLES = {Role.CONTROL, Role.SUPPLY_CHAIN_ENTITY, Role.MINTER}


class RoleStore:
    """
    SQL backed role membership store implementing AccessControl.
    """

    def __init__(self, session: Session):
        self.session = session

    def _parse_role(self, role: Union[Role, str]) -> Role:
        try:
            return Role(role)
        except ValueError:
            raise InvalidTarget(f"Role '{role}' does not exist.")

    def _check_can_manage(self, caller: str, role: Role):
        if self.has_role(caller, Role.ROOT):
            return
        if role in ADMIN_MANAGED_ROLES and self.has_role(caller, Role.ADMIN):
            return

        logger.warning(f"Role change denied: {caller} cannot manage {role.value}")
        raise Unauthorized(f"Not allowed to manage members of role {role.value}.")

    def role_exists(self, role: str) -> bool:
        return role in Role._value2member_map_

    def has_role(self, principal: str, role: Role) -> bool:
        membership = self.session.get(RoleMembership, (principal, Role(role)))
        return membership is not None

    def list_members(self, role: Union[Role, str]) -> List[str]:
        role = self._parse_role(role)
        members = self.session.exec(
            select(RoleMembership)
            .where(RoleMembership.role == role)
            .order_by(RoleMembership.created_at.asc())
        ).all()
        return [m.principal for m in members]

    def add_member(self, caller: str, principal: str, role: Union[Role, str]) -> RoleMembership:
        role = self._parse_role(role)

        with atomic(self.session):
            self._check_can_manage(caller, role)
            return self._grant(principal, role)

    def remove_member(self, caller: str, principal: str, role: Union[Role, str]) -> bool:
        """Returns False when the principal did not hold the role."""
        role = self._parse_role(role)

        with atomic(self.session):
            self._check_can_manage(caller, role)

            membership = self.session.get(RoleMembership, (principal, role))
            if not membership:
                return False

            self.session.delete(membership)
            self.session.flush()
            logger.info(f"Revoked {role.value} from {principal} (by {caller})")
            return True

    def bootstrap(self):
        """
        Start-up grants: ROOT for the configured root principal and ADMIN for
        the service principals that write into the Registry.
        """
        with atomic(self.session):
            self._grant(settings.root_principal, Role.ROOT)
            self._grant(settings.control_workflow_principal, Role.ADMIN)
            self._grant(settings.token_principal, Role.ADMIN)

    def _grant(self, principal: str, role: Role) -> RoleMembership:
        membership = self.session.get(RoleMembership, (principal, role))
        if membership:
            return membership

        membership = RoleMembership(principal=principal, role=role)
        self.session.add(membership)
        self.session.flush()
        logger.info(f"Granted {role.value} to {principal}")
        return membership

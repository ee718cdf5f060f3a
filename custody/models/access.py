from typing import List
from sqlmodel import SQLModel

from custody.db.schema import Role
from custody.models.common import Principal


class MemberAdd(SQLModel):
    principal: Principal


class RoleRead(SQLModel):
    role: Role
    members: List[str]


class MembershipRead(SQLModel):
    principal: str
    role: Role
    has_role: bool

from typing import List, Optional
from sqlmodel import SQLModel, Field

from custody.db.schema import ControlState
from custody.models.common import Principal


class ControlStart(SQLModel):
    controlled_entity: Principal


class FindingsReport(SQLModel):
    """
    Outcome of an audit as reported by the controller.
    """
    gse_ok: bool
    findings: List[str] = Field(default_factory=list)


class ControlAcknowledgement(SQLModel):
    acknowledgement_code: int


class ControlWorkflowRead(SQLModel):
    id: int
    controlled_entity: str
    controller_entity: str
    state: ControlState
    gse_ok: Optional[bool] = None
    findings: List[str] = []
    acknowledgement_code: Optional[int] = None

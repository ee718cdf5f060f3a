from typing import List, Optional
from datetime import datetime
from sqlmodel import SQLModel, Field

from custody.db.schema import SupplyChainRole, ControlTier, GseStatus, ControlStatus
from custody.models.common import Principal


class SupplyChainEntityCreate(SQLModel):
    """
    Payload for registering (or overwriting) a supply chain participant.
    Overwriting resets the control and transaction histories.
    """
    role: SupplyChainRole
    tier: str = Field(default="", max_length=100)
    gse_acknowledged: bool = False


class SupplyChainEntityRead(SQLModel):
    principal: str
    role: SupplyChainRole
    tier: str
    gse_acknowledged: bool
    controls: List[int]
    transactions: List[int]


class ControlEntityCreate(SQLModel):
    role: ControlTier
    description: str = Field(default="", max_length=500)
    gse_status: GseStatus = GseStatus.NOT_ACKNOWLEDGED
    number_of_controls: int = Field(default=0, ge=0)


class ControlEntityRead(SQLModel):
    principal: str
    role: ControlTier
    description: str
    gse_status: GseStatus
    number_of_controls: int


class ControlRecordCreate(SQLModel):
    """
    A control result to append to a supply chain entity.
    Without `control_id` the next id of the shared control sequence is used.
    """
    controller_entity: Principal
    control_id: Optional[int] = Field(default=None, ge=1)
    time_of_control: Optional[datetime] = None
    status: ControlStatus = ControlStatus.PENDING


class ControlRecordRead(SQLModel):
    control_id: int
    time_of_control: datetime
    status: ControlStatus
    controlled_entity: str
    controller_entity: str


class NonCompliantTransactionCreate(SQLModel):
    token_id: int = Field(ge=1)
    time: Optional[datetime] = None


class NonCompliantTransactionRead(SQLModel):
    transaction_id: int
    time: datetime
    token_id: int

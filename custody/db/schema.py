from typing import Optional, List, Dict, Any
from datetime import datetime
from sqlmodel import SQLModel, Field, JSON
from enum import Enum


class Role(str, Enum):
    ROOT = "ROOT"
    ADMIN = "ADMIN"
    CONTROL = "CONTROL"
    SUPPLY_CHAIN_ENTITY = "SUPPLY_CHAIN_ENTITY"
    MINTER = "MINTER"


class SupplyChainRole(str, Enum):
    PRODUCER = "producer"      # e.g., Cotton farm
    PROCESSOR = "processor"    # e.g., Ginning / spinning mill
    TRADER = "trader"
    DELIVERY = "delivery"      # Logistics provider
    RETAILER = "retailer"


class ControlTier(str, Enum):
    FIRST_PARTY = "first_party"    # Internal audit
    SECOND_PARTY = "second_party"  # Audit by a customer
    THIRD_PARTY = "third_party"    # Independent certifier


class GseStatus(str, Enum):
    NOT_ACKNOWLEDGED = "not_acknowledged"
    ACKNOWLEDGED = "acknowledged"


class ControlStatus(str, Enum):
    PENDING = "pending"
    OK = "ok"
    NOT_OK = "not_ok"


class ControlState(str, Enum):
    """The only legal path is CREATED -> FINDINGS_REPORTED -> FINISHED."""
    CREATED = "created"
    FINDINGS_REPORTED = "findings_reported"
    FINISHED = "finished"


class TimestampMixin(SQLModel):
    """
    Standard audit timestamps for mutable records.
    """
    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="The exact UTC timestamp when this record was first persisted in the database. Example: '2023-10-27 14:30:00'"
    )
    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column_kwargs={"onupdate": datetime.utcnow},
        description="The exact UTC timestamp when this record was last modified. Updates automatically."
    )


class RoleMembership(TimestampMixin, SQLModel, table=True):
    """
    Set membership of a principal in a named role.
    One row per (principal, role) pair; revoking a role deletes the row.
    """
    principal: str = Field(
        primary_key=True,
        description="The identity of the member. Example: '0x5B38Da6a701c568545dCfcB03FcB875f56beddC4'"
    )
    role: Role = Field(
        primary_key=True,
        index=True,
        description="The capability group the principal belongs to. Example: 'CONTROL'"
    )


class LedgerSequence(SQLModel, table=True):
    """
    Global monotonic counters ('control', 'transaction', 'token').
    Incremented inside the calling transaction so an aborted call never
    consumes a number.
    """
    name: str = Field(primary_key=True)
    value: int = Field(default=0)


class SupplyChainEntity(TimestampMixin, SQLModel, table=True):
    """
    Registry profile of a certified supply chain participant
    (producer, processor, logistics...). Histories are kept as ordered lists of
    record ids; the records themselves live in their own tables.
    """
    principal: str = Field(
        primary_key=True,
        description="The identity of the participant."
    )
    role: SupplyChainRole = Field(
        description="Position of the participant in the chain. Example: 'producer'"
    )
    tier: str = Field(
        default="",
        description="Free-text classification label. Example: 'tier 4'"
    )
    gse_acknowledged: bool = Field(
        default=False,
        description="True once the participant has formally accepted the compliance terms."
    )
    control_ids: List[int] = Field(
        default_factory=list,
        sa_type=JSON,
        description="Ordered ids of the ControlRecords performed on this participant."
    )
    transaction_ids: List[int] = Field(
        default_factory=list,
        sa_type=JSON,
        description="Ordered ids of the NonCompliantTransactions received by this participant."
    )


class ControlEntity(TimestampMixin, SQLModel, table=True):
    """
    Registry profile of a participant that performs compliance audits.
    """
    principal: str = Field(
        primary_key=True,
        description="The identity of the auditor."
    )
    role: ControlTier = Field(
        description="Audit tier of the control entity. Example: 'third_party'"
    )
    description: str = Field(default="")
    gse_status: GseStatus = Field(default=GseStatus.NOT_ACKNOWLEDGED)
    number_of_controls: int = Field(
        default=0,
        description="Number of finalized controls performed. Never decremented."
    )


class ControlRecord(SQLModel, table=True):
    """
    Finalized result of a compliance audit. Shares its id space with
    ControlWorkflow.
    """
    control_id: int = Field(primary_key=True)
    time_of_control: datetime = Field(default_factory=datetime.utcnow)
    status: ControlStatus = Field(default=ControlStatus.PENDING)
    controlled_entity: str = Field(index=True)
    controller_entity: str = Field(index=True)


class NonCompliantTransaction(SQLModel, table=True):
    """
    A custody change whose receiver had not acknowledged GSE at that moment.
    """
    transaction_id: int = Field(primary_key=True)
    time: datetime = Field(default_factory=datetime.utcnow)
    token_id: int = Field(index=True)


class ControlWorkflow(TimestampMixin, SQLModel, table=True):
    """
    One audit between a controller and a controlled supply chain entity.
    """
    id: int = Field(primary_key=True)
    controlled_entity: str = Field(index=True)
    controller_entity: str = Field(index=True)
    state: ControlState = Field(default=ControlState.CREATED)
    gse_ok: Optional[bool] = Field(default=None)
    findings: List[str] = Field(default_factory=list, sa_type=JSON)
    acknowledgement_code: Optional[int] = Field(default=None)


class ProvenanceToken(SQLModel, table=True):
    """
    Non-fungible unit representing a physical lot of goods.
    A token becomes inactive for good once it is merged into a newer token.
    """
    token_id: int = Field(primary_key=True)
    owner: str = Field(index=True)
    active: bool = Field(default=True)
    source_token_ids: List[int] = Field(
        default_factory=list,
        sa_type=JSON,
        description="Ids of the tokens consumed to create this one, in the order given at mint."
    )
    created_at: datetime = Field(default_factory=datetime.utcnow)


class LedgerEvent(SQLModel, table=True):
    """
    Append-only event log. Rows are written in the same transaction as the
    state change that produced them.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(
        index=True,
        description="Event type. Example: 'ControlCreated'"
    )
    payload: Dict[str, Any] = Field(default_factory=dict, sa_type=JSON)
    created_at: datetime = Field(default_factory=datetime.utcnow)

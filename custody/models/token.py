from typing import List
from datetime import datetime
from sqlmodel import SQLModel, Field

from custody.models.common import Principal


class TokenMint(SQLModel):
    """
    Mint a new lot to `to_principal`.
    Every id in `source_token_ids` is consumed (merged) into the new token.
    """
    to_principal: Principal
    source_token_ids: List[int] = Field(default_factory=list)


class TokenTransferRequest(SQLModel):
    from_principal: Principal
    to_principal: Principal


class TokenRead(SQLModel):
    token_id: int
    owner: str
    active: bool
    source_token_ids: List[int]
    created_at: datetime


class TokenMetadata(SQLModel):
    """Immutable creation data of a token."""
    token_id: int
    source_token_ids: List[int]
    created_at: datetime


class TokenOwner(SQLModel):
    token_id: int
    owner: str


class TokenBalance(SQLModel):
    principal: str
    balance: int


class TokenInfo(SQLModel):
    name: str
    symbol: str
    total_minted: int


class ProvenanceRead(SQLModel):
    """
    Ancestry of a token: every token consumed, directly or transitively,
    to produce it, nearest first.
    """
    token_id: int
    ancestors: List[TokenRead]


class TokenLabel(SQLModel):
    token_id: int
    provenance_url: str
    qr_code_url: str

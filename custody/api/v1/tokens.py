from fastapi import APIRouter, Depends, status

from custody.core.dependencies import get_caller, get_token_service
from custody.models.token import (
    TokenMint, TokenTransferRequest, TokenRead, TokenMetadata,
    TokenOwner, TokenBalance, TokenInfo, ProvenanceRead, TokenLabel
)
from custody.services.token import ProvenanceTokenService

router = APIRouter()


@router.get(
    "/info",
    response_model=TokenInfo,
    summary="Token Collection Info"
)
def get_info(
    caller: str = Depends(get_caller),
    service: ProvenanceTokenService = Depends(get_token_service)
):
    return service.info()


@router.post(
    "/",
    response_model=TokenRead,
    status_code=status.HTTP_201_CREATED,
    summary="Mint Token",
    description=(
        "Creates a new lot. Listed source tokens are merged into it and become inactive. "
        "Requires the MINTER role."
    )
)
def mint_token(
    data: TokenMint,
    caller: str = Depends(get_caller),
    service: ProvenanceTokenService = Depends(get_token_service)
):
    return service.mint_token(caller, data.to_principal, data.source_token_ids)


@router.get(
    "/owners/{principal}/balance",
    response_model=TokenBalance,
    summary="Active Tokens Owned"
)
def balance_of(
    principal: str,
    caller: str = Depends(get_caller),
    service: ProvenanceTokenService = Depends(get_token_service)
):
    return service.balance_of(principal)


@router.get(
    "/{token_id}",
    response_model=TokenRead,
    summary="Get Token"
)
def get_token(
    token_id: int,
    caller: str = Depends(get_caller),
    service: ProvenanceTokenService = Depends(get_token_service)
):
    return service.get_token(token_id)


@router.get(
    "/{token_id}/owner",
    response_model=TokenOwner,
    summary="Owner Of Token"
)
def owner_of(
    token_id: int,
    caller: str = Depends(get_caller),
    service: ProvenanceTokenService = Depends(get_token_service)
):
    return service.owner_of(token_id)


@router.get(
    "/{token_id}/metadata",
    response_model=TokenMetadata,
    summary="Token Metadata"
)
def get_token_metadata(
    token_id: int,
    caller: str = Depends(get_caller),
    service: ProvenanceTokenService = Depends(get_token_service)
):
    return service.get_token_metadata(token_id)


@router.get(
    "/{token_id}/provenance",
    response_model=ProvenanceRead,
    summary="Token Provenance",
    description="All tokens consumed, directly or transitively, to produce this one."
)
def get_provenance(
    token_id: int,
    caller: str = Depends(get_caller),
    service: ProvenanceTokenService = Depends(get_token_service)
):
    return service.get_provenance(token_id)


@router.post(
    "/{token_id}/transfer",
    response_model=TokenRead,
    summary="Transfer Token"
)
def transfer_token(
    token_id: int,
    data: TokenTransferRequest,
    caller: str = Depends(get_caller),
    service: ProvenanceTokenService = Depends(get_token_service)
):
    return service.transfer_token(caller, data.from_principal, data.to_principal, token_id)


@router.post(
    "/{token_id}/label",
    response_model=TokenLabel,
    summary="Generate Lot Label",
    description="Renders a QR code pointing at the token's provenance."
)
def create_label(
    token_id: int,
    caller: str = Depends(get_caller),
    service: ProvenanceTokenService = Depends(get_token_service)
):
    return service.create_label(token_id)

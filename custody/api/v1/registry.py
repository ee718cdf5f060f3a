from typing import List
from fastapi import APIRouter, Depends, status

from custody.core.dependencies import get_caller, get_registry_service
from custody.models.registry import (
    SupplyChainEntityCreate, SupplyChainEntityRead,
    ControlEntityCreate, ControlEntityRead,
    ControlRecordCreate, ControlRecordRead,
    NonCompliantTransactionCreate, NonCompliantTransactionRead
)
from custody.services.registry import RegistryService

router = APIRouter()


# --- Supply Chain Entities ---

@router.put(
    "/supply-chain-entities/{principal}",
    response_model=SupplyChainEntityRead,
    summary="Register Supply Chain Entity",
    description="Creates or overwrites the profile of a supply chain participant. Requires ADMIN."
)
def add_supply_chain_entity(
    principal: str,
    data: SupplyChainEntityCreate,
    caller: str = Depends(get_caller),
    service: RegistryService = Depends(get_registry_service)
):
    return service.add_supply_chain_entity(caller, principal, data)


@router.get(
    "/supply-chain-entities/{principal}",
    response_model=SupplyChainEntityRead,
    summary="Get Supply Chain Entity"
)
def get_supply_chain_entity(
    principal: str,
    caller: str = Depends(get_caller),
    service: RegistryService = Depends(get_registry_service)
):
    return service.get_supply_chain_entity(principal)


@router.delete(
    "/supply-chain-entities/{principal}",
    status_code=status.HTTP_200_OK,
    summary="Remove Supply Chain Entity",
    description="Hard delete. Requires ADMIN."
)
def remove_supply_chain_entity(
    principal: str,
    caller: str = Depends(get_caller),
    service: RegistryService = Depends(get_registry_service)
):
    service.remove_supply_chain_entity(caller, principal)
    return {"message": "Entity removed."}


@router.get(
    "/supply-chain-entities/{principal}/controls",
    response_model=List[int],
    summary="List Control Ids"
)
def get_controls(
    principal: str,
    caller: str = Depends(get_caller),
    service: RegistryService = Depends(get_registry_service)
):
    return service.get_controls(principal)


@router.post(
    "/supply-chain-entities/{principal}/controls",
    response_model=ControlRecordRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add Control Record",
    description="Appends a control record and increments the controller's counter. Requires ADMIN."
)
def add_control(
    principal: str,
    data: ControlRecordCreate,
    caller: str = Depends(get_caller),
    service: RegistryService = Depends(get_registry_service)
):
    return service.add_control(caller, principal, data)


@router.get(
    "/supply-chain-entities/{principal}/transactions",
    response_model=List[int],
    summary="List Non-GSE Transaction Ids"
)
def get_non_gse_transactions(
    principal: str,
    caller: str = Depends(get_caller),
    service: RegistryService = Depends(get_registry_service)
):
    return service.get_non_gse_transactions(principal)


@router.post(
    "/supply-chain-entities/{principal}/transactions",
    response_model=NonCompliantTransactionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add Non-GSE Transaction",
    description="Requires ADMIN."
)
def add_non_gse_transaction(
    principal: str,
    data: NonCompliantTransactionCreate,
    caller: str = Depends(get_caller),
    service: RegistryService = Depends(get_registry_service)
):
    return service.add_non_gse_transaction(caller, principal, data)


@router.post(
    "/gse-acknowledgement",
    response_model=SupplyChainEntityRead,
    summary="Acknowledge GSE",
    description="The calling supply chain entity accepts the compliance terms. Idempotent."
)
def acknowledge_gse(
    caller: str = Depends(get_caller),
    service: RegistryService = Depends(get_registry_service)
):
    return service.acknowledge_gse(caller)


# --- Control Entities ---

@router.put(
    "/control-entities/{principal}",
    response_model=ControlEntityRead,
    summary="Register Control Entity",
    description="Creates or overwrites the profile of an auditor. Requires ADMIN."
)
def add_control_entity(
    principal: str,
    data: ControlEntityCreate,
    caller: str = Depends(get_caller),
    service: RegistryService = Depends(get_registry_service)
):
    return service.add_control_entity(caller, principal, data)


@router.get(
    "/control-entities/{principal}",
    response_model=ControlEntityRead,
    summary="Get Control Entity"
)
def get_control_entity(
    principal: str,
    caller: str = Depends(get_caller),
    service: RegistryService = Depends(get_registry_service)
):
    return service.get_control_entity(principal)


@router.delete(
    "/control-entities/{principal}",
    status_code=status.HTTP_200_OK,
    summary="Remove Control Entity"
)
def remove_control_entity(
    principal: str,
    caller: str = Depends(get_caller),
    service: RegistryService = Depends(get_registry_service)
):
    service.remove_control_entity(caller, principal)
    return {"message": "Entity removed."}


# --- Records ---

@router.get(
    "/controls/{control_id}",
    response_model=ControlRecordRead,
    summary="Get Control Record"
)
def get_control(
    control_id: int,
    caller: str = Depends(get_caller),
    service: RegistryService = Depends(get_registry_service)
):
    return service.get_control(control_id)


@router.get(
    "/transactions/{transaction_id}",
    response_model=NonCompliantTransactionRead,
    summary="Get Non-GSE Transaction"
)
def get_non_gse_transaction(
    transaction_id: int,
    caller: str = Depends(get_caller),
    service: RegistryService = Depends(get_registry_service)
):
    return service.get_non_gse_transaction(transaction_id)

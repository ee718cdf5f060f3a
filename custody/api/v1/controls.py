from fastapi import APIRouter, Depends, status

from custody.core.dependencies import get_caller, get_control_service
from custody.models.control import (
    ControlStart, FindingsReport, ControlAcknowledgement, ControlWorkflowRead
)
from custody.services.control import ControlWorkflowService

router = APIRouter()


@router.post(
    "/",
    response_model=ControlWorkflowRead,
    status_code=status.HTTP_201_CREATED,
    summary="Start Control",
    description="Opens an audit of a registered supply chain entity. Requires the CONTROL role."
)
def start_control(
    data: ControlStart,
    caller: str = Depends(get_caller),
    service: ControlWorkflowService = Depends(get_control_service)
):
    return service.start_control(caller, data.controlled_entity)


@router.get(
    "/{control_id}",
    response_model=ControlWorkflowRead,
    summary="Get Control"
)
def get_control_workflow(
    control_id: int,
    caller: str = Depends(get_caller),
    service: ControlWorkflowService = Depends(get_control_service)
):
    return service.get_control_workflow(control_id)


@router.post(
    "/{control_id}/findings",
    response_model=ControlWorkflowRead,
    summary="Report Findings",
    description="Only the controller of the audit may report, and only once."
)
def report_findings_for_control(
    control_id: int,
    data: FindingsReport,
    caller: str = Depends(get_caller),
    service: ControlWorkflowService = Depends(get_control_service)
):
    return service.report_findings_for_control(caller, control_id, data)


@router.post(
    "/{control_id}/acknowledgement",
    response_model=ControlWorkflowRead,
    summary="Acknowledge Control",
    description="The controlled entity closes the audit; the result is written to the Registry."
)
def acknowledge_control(
    control_id: int,
    data: ControlAcknowledgement,
    caller: str = Depends(get_caller),
    service: ControlWorkflowService = Depends(get_control_service)
):
    return service.acknowledge_control(caller, control_id, data.acknowledgement_code)

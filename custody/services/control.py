from loguru import logger
from sqlmodel import Session

from custody.core.config import settings
from custody.core.events import (
    emit_event, CONTROL_CREATED, FINDINGS_FOR_CONTROL_REPORTED, CONTROL_FINISHED
)
from custody.core.exceptions import Unauthorized, NotFound, InvalidState, InvalidTarget
from custody.db.core import atomic, next_id
from custody.db.schema import Role, ControlWorkflow, ControlState, ControlStatus
from custody.models.control import FindingsReport, ControlWorkflowRead
from custody.models.registry import ControlRecordCreate
from custody.services.access_control import AccessControl
from custody.services.registry import RegistryService, CONTROL_SEQUENCE


NOT_EXECUTABLE = "Method not executable at this stage of the control process"


class ControlWorkflowService:
    """
    Drives compliance audits through CREATED -> FINDINGS_REPORTED -> FINISHED.
    Finished audits are written into the Registry under the workflow's own
    service principal.
    """

    def __init__(self, session: Session, access: AccessControl, registry: RegistryService):
        self.session = session
        self.access = access
        self.registry = registry
        self.principal = settings.control_workflow_principal

    def _get_workflow(self, control_id: int) -> ControlWorkflow:
        workflow = self.session.get(ControlWorkflow, control_id)
        if not workflow:
            raise NotFound("No control with given ID")
        return workflow

    def _require_state(self, workflow: ControlWorkflow, state: ControlState):
        if workflow.state != state:
            raise InvalidState(NOT_EXECUTABLE)

    def _to_read(self, workflow: ControlWorkflow) -> ControlWorkflowRead:
        return ControlWorkflowRead(
            id=workflow.id,
            controlled_entity=workflow.controlled_entity,
            controller_entity=workflow.controller_entity,
            state=workflow.state,
            gse_ok=workflow.gse_ok,
            findings=list(workflow.findings),
            acknowledgement_code=workflow.acknowledgement_code
        )

    def get_control_workflow(self, control_id: int) -> ControlWorkflowRead:
        return self._to_read(self._get_workflow(control_id))

    def start_control(self, caller: str, controlled: str) -> ControlWorkflowRead:
        with atomic(self.session):
            if not self.access.has_role(caller, Role.CONTROL):
                logger.warning(f"Control start denied: {caller} lacks CONTROL")
                raise Unauthorized("Account is not a control instance")

            if not self.registry.is_supply_chain_entity(controlled):
                raise InvalidTarget(
                    "Account to be controlled is not a supply chain entity")

            workflow = ControlWorkflow(
                id=next_id(self.session, CONTROL_SEQUENCE),
                controlled_entity=controlled,
                controller_entity=caller,
                state=ControlState.CREATED
            )
            self.session.add(workflow)
            self.session.flush()

            emit_event(
                self.session, CONTROL_CREATED,
                id=workflow.id, controlled=controlled, controller=caller
            )
            return self._to_read(workflow)

    def report_findings_for_control(self, caller: str, control_id: int, report: FindingsReport) -> ControlWorkflowRead:
        with atomic(self.session):
            workflow = self._get_workflow(control_id)
            self._require_state(workflow, ControlState.CREATED)

            if caller != workflow.controller_entity:
                logger.warning(
                    f"Findings for control #{control_id} rejected: {caller} is not the controller")
                raise Unauthorized("Only the controller can add findings")

            workflow.gse_ok = report.gse_ok
            workflow.findings = list(report.findings)
            workflow.state = ControlState.FINDINGS_REPORTED
            self.session.add(workflow)
            self.session.flush()

            emit_event(self.session, FINDINGS_FOR_CONTROL_REPORTED, id=workflow.id)
            return self._to_read(workflow)

    def acknowledge_control(self, caller: str, control_id: int, acknowledgement_code: int) -> ControlWorkflowRead:
        with atomic(self.session):
            workflow = self._get_workflow(control_id)
            self._require_state(workflow, ControlState.FINDINGS_REPORTED)

            if caller != workflow.controlled_entity:
                logger.warning(
                    f"Acknowledgement of control #{control_id} rejected: {caller} is not the controlled entity")
                raise Unauthorized("Only controlled entity can acknowledge")

            workflow.acknowledgement_code = acknowledgement_code
            workflow.state = ControlState.FINISHED
            self.session.add(workflow)

            self.registry.add_control(
                self.principal,
                workflow.controlled_entity,
                ControlRecordCreate(
                    control_id=workflow.id,
                    controller_entity=workflow.controller_entity,
                    time_of_control=workflow.created_at,
                    status=ControlStatus.OK if workflow.gse_ok else ControlStatus.NOT_OK
                )
            )

            emit_event(self.session, CONTROL_FINISHED, id=workflow.id)
            return self._to_read(workflow)

import pytest

from conftest import CONTROLLERS, OUTSIDER
from custody.core.exceptions import Unauthorized, NotFound, InvalidState, InvalidTarget
from custody.db.schema import ControlState, ControlStatus
from custody.models.control import FindingsReport
from custody.models.registry import ControlRecordCreate


CONTROLLER, OTHER_CONTROLLER = CONTROLLERS
CONTROLLED = "entity-b"
OTHER_CONTROLLED = "entity-d"


def _ok(findings=("everything ok",)):
    return FindingsReport(gse_ok=True, findings=list(findings))


def test_only_control_role_can_start(populated, controls):
    with pytest.raises(Unauthorized) as exc:
        controls.start_control(OUTSIDER, CONTROLLED)
    assert exc.value.detail == "Account is not a control instance"


def test_only_supply_chain_entities_can_be_controlled(populated, controls):
    with pytest.raises(InvalidTarget) as exc:
        controls.start_control(CONTROLLER, OUTSIDER)
    assert exc.value.detail == "Account to be controlled is not a supply chain entity"


def test_happy_path(populated, controls, registry, events):
    started = controls.start_control(CONTROLLER, CONTROLLED)
    assert started.id == 1
    assert started.state == ControlState.CREATED

    created = events.list_events(name="ControlCreated")
    assert created[-1].payload == {"id": 1, "controlled": CONTROLLED, "controller": CONTROLLER}

    reported = controls.report_findings_for_control(CONTROLLER, 1, _ok())
    assert reported.state == ControlState.FINDINGS_REPORTED
    assert reported.findings == ["everything ok"]
    assert events.list_events(name="FindingsForControlReported")[-1].payload == {"id": 1}

    finished = controls.acknowledge_control(CONTROLLED, 1, 1)
    assert finished.state == ControlState.FINISHED
    assert finished.acknowledgement_code == 1
    assert events.list_events(name="ControlFinished")[-1].payload == {"id": 1}

    record = registry.get_control(1)
    assert record.status == ControlStatus.OK
    assert record.controlled_entity == CONTROLLED
    assert record.controller_entity == CONTROLLER
    assert registry.get_controls(CONTROLLED) == [1]
    assert registry.get_control_entity(CONTROLLER).number_of_controls == 1


def test_negative_findings_produce_not_ok_record(populated, controls, registry):
    controls.start_control(CONTROLLER, CONTROLLED)
    controls.report_findings_for_control(
        CONTROLLER, 1, FindingsReport(gse_ok=False, findings=["child labour", "no permits"]))
    controls.acknowledge_control(CONTROLLED, 1, 7)

    assert registry.get_control(1).status == ControlStatus.NOT_OK


def test_methods_cannot_be_called_on_finished_control(populated, controls):
    controls.start_control(CONTROLLER, CONTROLLED)
    controls.report_findings_for_control(CONTROLLER, 1, _ok(["test"]))
    controls.acknowledge_control(CONTROLLED, 1, 1)

    with pytest.raises(InvalidState) as exc:
        controls.report_findings_for_control(CONTROLLER, 1, _ok(["test"]))
    assert exc.value.detail == "Method not executable at this stage of the control process"

    with pytest.raises(InvalidState):
        controls.acknowledge_control(CONTROLLED, 1, 1)


def test_cannot_acknowledge_before_findings(populated, controls):
    controls.start_control(CONTROLLER, CONTROLLED)

    with pytest.raises(InvalidState):
        controls.acknowledge_control(CONTROLLED, 1, 1)

    assert controls.get_control_workflow(1).state == ControlState.CREATED


def test_only_controller_can_report_findings(populated, controls):
    controls.start_control(CONTROLLER, CONTROLLED)

    with pytest.raises(Unauthorized) as exc:
        controls.report_findings_for_control(OTHER_CONTROLLER, 1, _ok(["test"]))
    assert exc.value.detail == "Only the controller can add findings"

    assert controls.get_control_workflow(1).state == ControlState.CREATED


def test_only_controlled_entity_can_acknowledge(populated, controls):
    controls.start_control(CONTROLLER, CONTROLLED)
    controls.report_findings_for_control(CONTROLLER, 1, FindingsReport(gse_ok=False, findings=["test"]))

    with pytest.raises(Unauthorized) as exc:
        controls.acknowledge_control(OTHER_CONTROLLED, 1, 1)
    assert exc.value.detail == "Only controlled entity can acknowledge"

    finished = controls.acknowledge_control(CONTROLLED, 1, 1)
    assert finished.state == ControlState.FINISHED


def test_unknown_control_ids(populated, controls):
    with pytest.raises(NotFound) as exc:
        controls.report_findings_for_control(CONTROLLER, 5, _ok(["test"]))
    assert exc.value.detail == "No control with given ID"

    with pytest.raises(NotFound):
        controls.acknowledge_control(CONTROLLED, 5, 1)
    with pytest.raises(NotFound):
        controls.get_control_workflow(5)


def test_ids_are_gap_free_across_failed_calls(populated, controls):
    ids = []
    for i in range(6):
        ids.append(controls.start_control(CONTROLLER, CONTROLLED).id)
        with pytest.raises(InvalidTarget):
            controls.start_control(CONTROLLER, OUTSIDER)
        with pytest.raises(Unauthorized):
            controls.start_control(OUTSIDER, CONTROLLED)

    assert ids == [1, 2, 3, 4, 5, 6]


def test_acknowledge_rolls_back_when_controller_is_unregistered(populated, controls, registry, events):
    controls.start_control(CONTROLLER, CONTROLLED)
    controls.report_findings_for_control(CONTROLLER, 1, _ok())
    registry.remove_control_entity("admin", CONTROLLER)

    with pytest.raises(NotFound):
        controls.acknowledge_control(CONTROLLED, 1, 1)

    workflow = controls.get_control_workflow(1)
    assert workflow.state == ControlState.FINDINGS_REPORTED
    assert workflow.acknowledgement_code is None
    assert registry.get_controls(CONTROLLED) == []
    assert events.list_events(name="ControlFinished") == []


def test_workflow_ids_skip_directly_written_control_ids(populated, controls, registry):
    registry.add_control(
        "admin", CONTROLLED, ControlRecordCreate(controller_entity=CONTROLLER, control_id=5))

    started = controls.start_control(CONTROLLER, CONTROLLED)
    assert started.id == 6

    controls.report_findings_for_control(CONTROLLER, 6, _ok())
    controls.acknowledge_control(CONTROLLED, 6, 1)
    assert registry.get_controls(CONTROLLED) == [5, 6]

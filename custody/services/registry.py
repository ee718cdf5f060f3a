from datetime import datetime
from typing import List
from loguru import logger
from sqlmodel import Session

from custody.core.exceptions import Unauthorized, NotFound, InvalidState
from custody.db.core import atomic, next_id, advance_id
from custody.db.schema import (
    Role, SupplyChainEntity, ControlEntity,
    ControlRecord, NonCompliantTransaction
)
from custody.models.registry import (
    SupplyChainEntityCreate, SupplyChainEntityRead,
    ControlEntityCreate, ControlEntityRead,
    ControlRecordCreate, ControlRecordRead,
    NonCompliantTransactionCreate, NonCompliantTransactionRead
)
from custody.services.access_control import AccessControl


ENTITY_NOT_FOUND = "Entity does not exist"

CONTROL_SEQUENCE = "control"
TRANSACTION_SEQUENCE = "transaction"


class RegistryService:
    """
    Canonical store of participant profiles and their append-only histories.
    Every mutation runs in its own unit of work, or joins the caller's when
    invoked by another service.
    """

    def __init__(self, session: Session, access: AccessControl):
        self.session = session
        self.access = access

    def _require_admin(self, caller: str):
        if not self.access.has_role(caller, Role.ADMIN):
            logger.warning(f"Registry access denied: {caller} is not ADMIN")
            raise Unauthorized("Caller is not a registry admin")

    def _supply_chain_entity(self, principal: str) -> SupplyChainEntity:
        entity = self.session.get(SupplyChainEntity, principal)
        if not entity:
            raise NotFound(ENTITY_NOT_FOUND)
        return entity

    def _control_entity(self, principal: str) -> ControlEntity:
        entity = self.session.get(ControlEntity, principal)
        if not entity:
            raise NotFound(ENTITY_NOT_FOUND)
        return entity

    def _to_supply_chain_read(self, entity: SupplyChainEntity) -> SupplyChainEntityRead:
        return SupplyChainEntityRead(
            principal=entity.principal,
            role=entity.role,
            tier=entity.tier,
            gse_acknowledged=entity.gse_acknowledged,
            controls=list(entity.control_ids),
            transactions=list(entity.transaction_ids)
        )

    def _to_control_read(self, entity: ControlEntity) -> ControlEntityRead:
        return ControlEntityRead(
            principal=entity.principal,
            role=entity.role,
            description=entity.description,
            gse_status=entity.gse_status,
            number_of_controls=entity.number_of_controls
        )

    # --- Profiles ---

    def is_supply_chain_entity(self, principal: str) -> bool:
        return self.session.get(SupplyChainEntity, principal) is not None

    def add_supply_chain_entity(self, caller: str, principal: str, data: SupplyChainEntityCreate) -> SupplyChainEntityRead:
        """Registers a participant, overwriting any existing profile."""
        with atomic(self.session):
            self._require_admin(caller)

            entity = self.session.get(SupplyChainEntity, principal)
            if entity:
                logger.info(f"Overwriting supply chain entity {principal}")
                entity.role = data.role
                entity.tier = data.tier
                entity.gse_acknowledged = data.gse_acknowledged
                entity.control_ids = []
                entity.transaction_ids = []
            else:
                entity = SupplyChainEntity(
                    principal=principal,
                    role=data.role,
                    tier=data.tier,
                    gse_acknowledged=data.gse_acknowledged
                )

            self.session.add(entity)
            self.session.flush()
            logger.info(f"Registered supply chain entity {principal} ({data.role.value})")
            return self._to_supply_chain_read(entity)

    def get_supply_chain_entity(self, principal: str) -> SupplyChainEntityRead:
        return self._to_supply_chain_read(self._supply_chain_entity(principal))

    def remove_supply_chain_entity(self, caller: str, principal: str):
        with atomic(self.session):
            self._require_admin(caller)
            entity = self.session.get(SupplyChainEntity, principal)
            if not entity:
                logger.info(f"Supply chain entity {principal} not registered, nothing to remove")
                return
            self.session.delete(entity)
            self.session.flush()
            logger.info(f"Removed supply chain entity {principal}")

    def add_control_entity(self, caller: str, principal: str, data: ControlEntityCreate) -> ControlEntityRead:
        """Registers an auditor, overwriting any existing profile."""
        with atomic(self.session):
            self._require_admin(caller)

            entity = self.session.get(ControlEntity, principal)
            if not entity:
                entity = ControlEntity(principal=principal, role=data.role)

            entity.role = data.role
            entity.description = data.description
            entity.gse_status = data.gse_status
            entity.number_of_controls = data.number_of_controls

            self.session.add(entity)
            self.session.flush()
            logger.info(f"Registered control entity {principal} ({data.role.value})")
            return self._to_control_read(entity)

    def get_control_entity(self, principal: str) -> ControlEntityRead:
        return self._to_control_read(self._control_entity(principal))

    def remove_control_entity(self, caller: str, principal: str):
        with atomic(self.session):
            self._require_admin(caller)
            entity = self.session.get(ControlEntity, principal)
            if not entity:
                logger.info(f"Control entity {principal} not registered, nothing to remove")
                return
            self.session.delete(entity)
            self.session.flush()
            logger.info(f"Removed control entity {principal}")

    def acknowledge_gse(self, caller: str) -> SupplyChainEntityRead:
        """Caller accepts the compliance terms for itself. Idempotent."""
        with atomic(self.session):
            entity = self._supply_chain_entity(caller)

            if not entity.gse_acknowledged:
                entity.gse_acknowledged = True
                self.session.add(entity)
                self.session.flush()
                logger.info(f"GSE acknowledged by {caller}")

            return self._to_supply_chain_read(entity)

    # --- Histories ---

    def add_control(self, caller: str, controlled: str, data: ControlRecordCreate) -> ControlRecordRead:
        """
        Appends a control record to the controlled entity and bumps the
        controller's control counter.
        """
        with atomic(self.session):
            self._require_admin(caller)

            entity = self._supply_chain_entity(controlled)
            controller = self._control_entity(data.controller_entity)

            control_id = data.control_id
            if control_id is None:
                control_id = next_id(self.session, CONTROL_SEQUENCE)
            elif self.session.get(ControlRecord, control_id):
                raise InvalidState("Control record already exists")
            else:
                # later allocations must not land on a caller-chosen id
                advance_id(self.session, CONTROL_SEQUENCE, control_id)

            record = ControlRecord(
                control_id=control_id,
                time_of_control=data.time_of_control or datetime.utcnow(),
                status=data.status,
                controlled_entity=controlled,
                controller_entity=controller.principal
            )
            self.session.add(record)

            # JSON columns are only persisted on reassignment
            entity.control_ids = [*entity.control_ids, control_id]
            controller.number_of_controls += 1
            self.session.add(entity)
            self.session.add(controller)
            self.session.flush()

            logger.info(
                f"Control #{control_id} ({record.status.value}) recorded on {controlled} by {controller.principal}")
            return ControlRecordRead.model_validate(record, from_attributes=True)

    def add_non_gse_transaction(self, caller: str, principal: str, data: NonCompliantTransactionCreate) -> NonCompliantTransactionRead:
        with atomic(self.session):
            self._require_admin(caller)

            entity = self._supply_chain_entity(principal)

            record = NonCompliantTransaction(
                transaction_id=next_id(self.session, TRANSACTION_SEQUENCE),
                time=data.time or datetime.utcnow(),
                token_id=data.token_id
            )
            self.session.add(record)

            entity.transaction_ids = [*entity.transaction_ids, record.transaction_id]
            self.session.add(entity)
            self.session.flush()

            logger.info(
                f"Non-GSE transaction #{record.transaction_id} (token {data.token_id}) recorded on {principal}")
            return NonCompliantTransactionRead.model_validate(record, from_attributes=True)

    def get_controls(self, principal: str) -> List[int]:
        return list(self._supply_chain_entity(principal).control_ids)

    def get_non_gse_transactions(self, principal: str) -> List[int]:
        return list(self._supply_chain_entity(principal).transaction_ids)

    def get_control(self, control_id: int) -> ControlRecordRead:
        record = self.session.get(ControlRecord, control_id)
        if not record:
            raise NotFound("No control with given ID")
        return ControlRecordRead.model_validate(record, from_attributes=True)

    def get_non_gse_transaction(self, transaction_id: int) -> NonCompliantTransactionRead:
        record = self.session.get(NonCompliantTransaction, transaction_id)
        if not record:
            raise NotFound("No transaction with given ID")
        return NonCompliantTransactionRead.model_validate(record, from_attributes=True)

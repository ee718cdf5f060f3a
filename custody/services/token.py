from collections import deque
from typing import List
from loguru import logger
from sqlmodel import Session, select, func

from custody.core.config import settings
from custody.core.events import emit_event, TOKEN_TRANSFER, NON_GSE_TRANSACTION
from custody.core.exceptions import Unauthorized, NotFound, InvalidState
from custody.db.core import atomic, next_id, current_id
from custody.db.schema import Role, ProvenanceToken
from custody.models.registry import NonCompliantTransactionCreate
from custody.models.token import (
    TokenRead, TokenMetadata, TokenOwner, TokenBalance,
    TokenInfo, ProvenanceRead, TokenLabel
)
from custody.services.access_control import AccessControl
from custody.services.registry import RegistryService
from custody.utils.qr import generate_and_save_qr


TOKEN_SEQUENCE = "token"


class ProvenanceTokenService:
    """
    Non-fungible lots with merge-based provenance.
    Every custody change is checked against the receiver's GSE acknowledgement
    and non-compliant ones are recorded in the Registry.
    """

    def __init__(self, session: Session, access: AccessControl, registry: RegistryService):
        self.session = session
        self.access = access
        self.registry = registry
        self.principal = settings.token_principal

    def _get_token(self, token_id: int) -> ProvenanceToken:
        token = self.session.get(ProvenanceToken, token_id)
        if not token:
            raise NotFound("Token does not exist")
        return token

    def _to_read(self, token: ProvenanceToken) -> TokenRead:
        return TokenRead(
            token_id=token.token_id,
            owner=token.owner,
            active=token.active,
            source_token_ids=list(token.source_token_ids),
            created_at=token.created_at
        )

    def _record_custody_change(self, token_id: int, sender, receiver: str):
        """
        Emits the transfer and, if the receiver has not acknowledged GSE,
        files a non-compliant transaction against it. The sender is never
        checked.
        """
        entity = self.registry.get_supply_chain_entity(receiver)

        emit_event(
            self.session, TOKEN_TRANSFER,
            token_id=token_id, **{"from": sender, "to": receiver}
        )

        if not entity.gse_acknowledged:
            self.registry.add_non_gse_transaction(
                self.principal, receiver,
                NonCompliantTransactionCreate(token_id=token_id)
            )
            emit_event(
                self.session, NON_GSE_TRANSACTION,
                token_id=token_id, to=receiver
            )

    def info(self) -> TokenInfo:
        return TokenInfo(
            name=settings.token_name,
            symbol=settings.token_symbol,
            total_minted=current_id(self.session, TOKEN_SEQUENCE)
        )

    def mint_token(self, caller: str, to_principal: str, source_token_ids: List[int]) -> TokenRead:
        with atomic(self.session):
            if not self.access.has_role(caller, Role.MINTER):
                logger.warning(f"Mint denied: {caller} lacks MINTER")
                raise Unauthorized("Not the valid role to create tokens")

            # Receiver must be a registered participant
            self.registry.get_supply_chain_entity(to_principal)

            token_id = next_id(self.session, TOKEN_SEQUENCE)

            for source_id in source_token_ids:
                source = self._get_token(source_id)
                if not source.active:
                    raise InvalidState("Source token must be active to be merged")
                source.active = False
                self.session.add(source)

            token = ProvenanceToken(
                token_id=token_id,
                owner=to_principal,
                active=True,
                source_token_ids=list(source_token_ids)
            )
            self.session.add(token)
            self.session.flush()

            logger.info(
                f"Minted token #{token_id} to {to_principal} from sources {source_token_ids}")
            self._record_custody_change(token_id, None, to_principal)
            return self._to_read(token)

    def transfer_token(self, caller: str, from_principal: str, to_principal: str, token_id: int) -> TokenRead:
        with atomic(self.session):
            token = self._get_token(token_id)

            if not token.active:
                raise InvalidState("Token must be active to be transferrable")

            if token.owner != from_principal:
                raise Unauthorized("Sender is not the owner of the token")

            if caller != from_principal:
                logger.warning(
                    f"Transfer of token #{token_id} denied: {caller} is not the owner")
                raise Unauthorized("Only the owner can transfer the token")

            token.owner = to_principal
            self.session.add(token)
            self.session.flush()

            logger.info(
                f"Token #{token_id} transferred {from_principal} -> {to_principal}")
            self._record_custody_change(token_id, from_principal, to_principal)
            return self._to_read(token)

    def get_token(self, token_id: int) -> TokenRead:
        return self._to_read(self._get_token(token_id))

    def get_token_metadata(self, token_id: int) -> TokenMetadata:
        token = self._get_token(token_id)
        return TokenMetadata(
            token_id=token.token_id,
            source_token_ids=list(token.source_token_ids),
            created_at=token.created_at
        )

    def owner_of(self, token_id: int) -> TokenOwner:
        token = self._get_token(token_id)
        return TokenOwner(token_id=token.token_id, owner=token.owner)

    def balance_of(self, principal: str) -> TokenBalance:
        count = self.session.exec(
            select(func.count())
            .select_from(ProvenanceToken)
            .where(ProvenanceToken.owner == principal)
            .where(ProvenanceToken.active == True)
        ).one()
        return TokenBalance(principal=principal, balance=count)

    def get_provenance(self, token_id: int) -> ProvenanceRead:
        """Breadth-first walk over source tokens; each ancestor appears once."""
        token = self._get_token(token_id)

        ancestors = []
        seen = {token.token_id}
        queue = deque(token.source_token_ids)

        while queue:
            source_id = queue.popleft()
            if source_id in seen:
                continue
            seen.add(source_id)

            source = self._get_token(source_id)
            ancestors.append(self._to_read(source))
            queue.extend(source.source_token_ids)

        return ProvenanceRead(token_id=token.token_id, ancestors=ancestors)

    def create_label(self, token_id: int) -> TokenLabel:
        """QR label for the physical lot, pointing at its provenance."""
        token = self._get_token(token_id)

        provenance_url = f"{settings.public_url}/api/v1/tokens/{token.token_id}/provenance"
        qr_url = generate_and_save_qr(
            provenance_url, f"{settings.token_symbol.lower()}-{token.token_id}")

        return TokenLabel(
            token_id=token.token_id,
            provenance_url=provenance_url,
            qr_code_url=qr_url
        )

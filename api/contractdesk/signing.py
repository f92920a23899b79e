"""Sequential two-party signing workflow.

Document status moves draft -> pending_first_signature ->
pending_second_signature -> completed and is always derivable from the
signer list. Signer status is monotonic (waiting -> pending -> completed).
Only the token of the signer whose status is ``pending`` opens the document.
"""

from __future__ import annotations

import hmac
import logging
import secrets
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Callable, Optional, Protocol

from itsdangerous import BadData
from pydantic import BaseModel

from .config import SECRET_KEY, SIGNING_TOKEN_TTL, WEB_BASE_URL
from .errors import InvalidSigningLink, InvalidTransition
from .utils import make_token, read_token

logger = logging.getLogger(__name__)


class DocumentStatus(str, Enum):
    DRAFT = "draft"
    PENDING_FIRST = "pending_first_signature"
    PENDING_SECOND = "pending_second_signature"
    COMPLETED = "completed"


class SignerStatus(str, Enum):
    WAITING = "waiting"
    PENDING = "pending"
    COMPLETED = "completed"


_SIGNER_RANK = {SignerStatus.WAITING: 0, SignerStatus.PENDING: 1, SignerStatus.COMPLETED: 2}


def advance(current: SignerStatus, new: SignerStatus) -> SignerStatus:
    if _SIGNER_RANK[SignerStatus(new)] < _SIGNER_RANK[SignerStatus(current)]:
        raise InvalidTransition(f"signer status cannot go from {current.value} to {new.value}")
    return SignerStatus(new)


class SignerEntry(BaseModel):
    client_id: str
    token: str
    status: SignerStatus
    issued_at: Optional[datetime] = None
    full_name: Optional[str] = None
    signature: Optional[str] = None
    signed_at: Optional[datetime] = None


@dataclass
class SigningRecord:
    document_id: int
    title: str
    status: DocumentStatus
    signers: list[SignerEntry]
    revision: int
    signed_at: Optional[datetime] = None


class SignerStore(Protocol):
    def load(self, document_id) -> SigningRecord:
        ...

    def save(self, record: SigningRecord, expected_revision: int) -> int:
        """Persist ``record`` only if the stored revision is still
        ``expected_revision``; return the new revision or raise RevisionConflict."""
        ...


@dataclass(frozen=True)
class Notification:
    document_id: int
    signer_id: str
    document_title: str
    signing_link: str


Notifier = Callable[[Notification], None]


@dataclass
class SigningResult:
    document_id: int
    status: DocumentStatus
    signers: list[SignerEntry]
    signer_index: Optional[int] = None
    warnings: list[str] = field(default_factory=list)


def derive_document_status(signers: list[SignerEntry]) -> DocumentStatus:
    if not signers:
        return DocumentStatus.DRAFT
    completed = sum(1 for s in signers if s.status is SignerStatus.COMPLETED)
    if completed == len(signers):
        return DocumentStatus.COMPLETED
    if completed == 0:
        return DocumentStatus.PENDING_FIRST
    return DocumentStatus.PENDING_SECOND


class SigningWorkflow:
    def __init__(
        self,
        store: SignerStore,
        notifier: Notifier,
        link_base: str = WEB_BASE_URL,
        secret_key: str = SECRET_KEY,
        token_ttl: Optional[int] = SIGNING_TOKEN_TTL,
        clock: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self.store = store
        self.notifier = notifier
        self.link_base = link_base.rstrip("/")
        self.secret_key = secret_key
        self.token_ttl = token_ttl
        self.clock = clock

    def signing_link(self, document_id, token: str) -> str:
        return f"{self.link_base}/sign/{document_id}?token={token}"

    def issue_token(self, document_id, client_id: str) -> str:
        payload = {"d": str(document_id), "c": client_id, "n": secrets.token_urlsafe(16)}
        return make_token(payload, secret_key=self.secret_key)

    # ---------- transitions ----------

    def dispatch(self, document_id, first_client_id: str, second_client_id: str) -> SigningResult:
        first_client_id, second_client_id = str(first_client_id), str(second_client_id)
        if first_client_id == second_client_id:
            raise ValueError("the two signers must be different clients")
        record = self.store.load(document_id)
        if record.status is not DocumentStatus.DRAFT:
            raise InvalidTransition(f"document {document_id} already sent ({record.status.value})")

        now = self.clock()
        signers = [
            SignerEntry(
                client_id=first_client_id,
                token=self.issue_token(document_id, first_client_id),
                status=SignerStatus.PENDING,
                issued_at=now,
            ),
            SignerEntry(
                client_id=second_client_id,
                token=self.issue_token(document_id, second_client_id),
                status=SignerStatus.WAITING,
                issued_at=now,
            ),
        ]
        updated = replace(record, signers=signers, status=derive_document_status(signers))
        updated.revision = self.store.save(updated, expected_revision=record.revision)
        logger.info("document %s sent for signature to %s then %s", document_id, first_client_id, second_client_id)

        result = SigningResult(document_id=record.document_id, status=updated.status, signers=signers, signer_index=0)
        warning = self._notify(updated, 0)
        if warning:
            result.warnings.append(warning)
        return result

    def verify(self, document_id, token: Optional[str]) -> tuple[SigningRecord, int]:
        """Return the record and the index of the signer ``token`` belongs to.

        Raises InvalidSigningLink unless the token is authentic, unexpired and
        bound to the signer whose turn it currently is."""
        if not token:
            raise InvalidSigningLink()
        try:
            payload = read_token(token, max_age=self.token_ttl, secret_key=self.secret_key)
        except BadData:
            raise InvalidSigningLink()
        if payload.get("d") != str(document_id):
            raise InvalidSigningLink()

        record = self.store.load(document_id)
        for index, signer in enumerate(record.signers):
            if hmac.compare_digest(signer.token, token):
                if signer.status is not SignerStatus.PENDING:
                    logger.info("rejected %s token for document %s", signer.status.value, document_id)
                    raise InvalidSigningLink()
                return record, index
        raise InvalidSigningLink()

    def complete(self, document_id, token: Optional[str], full_name: str, signature: str) -> SigningResult:
        full_name = (full_name or "").strip()
        signature = (signature or "").strip()
        if not full_name or not signature:
            raise ValueError("full name and signature are required")

        record, index = self.verify(document_id, token)
        now = self.clock()
        signers = [s.model_copy() for s in record.signers]
        signers[index] = signers[index].model_copy(update={
            "status": advance(signers[index].status, SignerStatus.COMPLETED),
            "full_name": full_name,
            "signature": signature,
            "signed_at": now,
        })

        next_index = None
        if index + 1 < len(signers) and signers[index + 1].status is SignerStatus.WAITING:
            next_index = index + 1
            signers[next_index] = signers[next_index].model_copy(update={
                "status": advance(signers[next_index].status, SignerStatus.PENDING),
            })

        status = derive_document_status(signers)
        updated = replace(
            record,
            signers=signers,
            status=status,
            signed_at=now if status is DocumentStatus.COMPLETED else record.signed_at,
        )
        # the signature itself must be durable before anything else happens
        updated.revision = self.store.save(updated, expected_revision=record.revision)
        logger.info("signer %d completed document %s -> %s", index, document_id, status.value)

        result = SigningResult(document_id=record.document_id, status=status, signers=signers, signer_index=index)
        if next_index is not None:
            warning = self._notify(updated, next_index)
            if warning:
                result.warnings.append(warning)
        return result

    def resend(self, document_id) -> SigningResult:
        record = self.store.load(document_id)
        for index, signer in enumerate(record.signers):
            if signer.status is SignerStatus.PENDING:
                result = SigningResult(
                    document_id=record.document_id, status=record.status, signers=record.signers, signer_index=index
                )
                warning = self._notify(record, index)
                if warning:
                    result.warnings.append(warning)
                return result
        raise InvalidTransition(f"document {document_id} has no signer awaiting a signature")

    def _notify(self, record: SigningRecord, index: int) -> Optional[str]:
        signer = record.signers[index]
        notification = Notification(
            document_id=record.document_id,
            signer_id=signer.client_id,
            document_title=record.title,
            signing_link=self.signing_link(record.document_id, signer.token),
        )
        try:
            self.notifier(notification)
        except Exception as exc:
            # the transition already happened; an operator can resend
            logger.warning("could not notify signer %s for document %s: %s", signer.client_id, record.document_id, exc)
            return f"notification to signer {signer.client_id} failed: {exc}"
        return None

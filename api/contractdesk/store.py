
import json
from datetime import datetime
from sqlalchemy import update
from sqlmodel import Session, delete, select

from .errors import DocumentNotFound, InvalidTransition, RevisionConflict
from .fields import Field
from .models import Contract, ContractField
from .signing import DocumentStatus, SignerEntry, SigningRecord
from .utils import canonical_json


def load_field_data(contract: Contract) -> dict:
    try:
        data = json.loads(contract.field_data or "{}")
    except json.JSONDecodeError:
        data = {}
    return data if isinstance(data, dict) else {}


class SqlSignerStore:
    """Signer list kept under ``Contract.field_data["signing_order"]``.

    Writes are conditional on ``signing_revision`` so two signers racing on
    the same document cannot silently overwrite each other.
    """

    def __init__(self, session: Session):
        self.session = session

    def load(self, document_id) -> SigningRecord:
        contract = self.session.get(Contract, document_id)
        if not contract:
            raise DocumentNotFound(f"contract {document_id} not found")
        data = load_field_data(contract)
        signers = [SignerEntry.model_validate(s) for s in data.get("signing_order") or []]
        return SigningRecord(
            document_id=contract.id,
            title=contract.title,
            status=DocumentStatus(contract.signing_status),
            signers=signers,
            revision=contract.signing_revision,
            signed_at=contract.signed_at,
        )

    def save(self, record: SigningRecord, expected_revision: int) -> int:
        contract = self.session.get(Contract, record.document_id)
        if not contract:
            raise DocumentNotFound(f"contract {record.document_id} not found")
        data = load_field_data(contract)
        data["signing_order"] = [s.model_dump(mode="json") for s in record.signers]
        stmt = (
            update(Contract)
            .where(Contract.id == record.document_id, Contract.signing_revision == expected_revision)
            .values(
                field_data=canonical_json(data),
                signing_status=record.status.value,
                signed_at=record.signed_at,
                signing_revision=expected_revision + 1,
                updated_at=datetime.utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        result = self.session.exec(stmt)
        if result.rowcount != 1:
            self.session.rollback()
            raise RevisionConflict(record.document_id, expected_revision)
        self.session.commit()
        return expected_revision + 1


def replace_fields(session: Session, contract: Contract, fields: list[Field]) -> list[ContractField]:
    """Replace every stored field of ``contract`` with ``fields``.

    Only a draft at the revision ``contract`` was read at can be edited; the
    write bumps the revision so a dispatch built on the old copy conflicts too.
    """
    contract_id = contract.id
    expected_revision = contract.signing_revision
    data = load_field_data(contract)
    data["signing_fields"] = [f.model_dump(mode="json") for f in fields]

    session.exec(delete(ContractField).where(ContractField.contract_id == contract_id))
    rows = []
    for field in fields:
        row = ContractField(**field.to_record(contract_id))
        session.add(row)
        rows.append(row)
    stmt = (
        update(Contract)
        .where(
            Contract.id == contract_id,
            Contract.signing_status == DocumentStatus.DRAFT.value,
            Contract.signing_revision == expected_revision,
        )
        .values(
            field_data=canonical_json(data),
            signing_revision=expected_revision + 1,
            updated_at=datetime.utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    result = session.exec(stmt)
    if result.rowcount != 1:
        session.rollback()
        raise InvalidTransition(f"contract {contract_id} is no longer an editable draft")
    session.commit()
    for row in rows:
        session.refresh(row)
    return rows


def load_fields(session: Session, contract_id: int) -> list[Field]:
    rows = session.exec(
        select(ContractField).where(ContractField.contract_id == contract_id).order_by(ContractField.id)
    ).all()
    return [Field.from_record(row.model_dump(), field_id=f"field_{row.id}") for row in rows]

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError
from sqlmodel import Session
from ..db import get_session
from ..auth import require_admin_access
from ..audit import append_event
from ..errors import DocumentNotFound, InvalidTransition, RevisionConflict
from ..fields import DocumentKind, Field
from ..models import Client, Contract
from ..pagination import PaginationEngine, ReportLabMeasureSurface
from ..schemas import ContractCreate, FieldsSave, SendForSignature
from ..signing import DocumentStatus, SigningWorkflow
from ..store import load_field_data, load_fields, replace_fields
from .signing import get_workflow, http_error, result_to_dict

router = APIRouter()

def _get_contract(session: Session, contract_id: int) -> Contract:
    contract = session.get(Contract, contract_id)
    if not contract:
        raise HTTPException(404, "contract not found")
    return contract

def _signers(contract: Contract) -> list:
    signers = load_field_data(contract).get("signing_order") or []
    return [{k: v for k, v in s.items() if k != "token"} for s in signers]

@router.post("", status_code=201)
def create_contract(
    payload: ContractCreate,
    session: Session = Depends(get_session),
    ctx=Depends(require_admin_access),
):
    try:
        kind = DocumentKind(payload.document_kind)
    except ValueError:
        raise HTTPException(400, f"unsupported document kind {payload.document_kind!r}")
    contract = Contract(
        title=payload.title,
        description=payload.description,
        document_kind=kind.value,
        document_content=payload.document_content,
    )
    session.add(contract)
    session.commit()
    append_event(session, contract.id, "system", "created", {"title": contract.title})
    session.refresh(contract)
    return contract

@router.get("/{contract_id}")
def get_contract(
    contract_id: int,
    session: Session = Depends(get_session),
    ctx=Depends(require_admin_access),
):
    contract = _get_contract(session, contract_id)
    return {
        "contract": contract.model_dump(exclude={"field_data"}),
        "fields": [f.model_dump(mode="json") for f in load_fields(session, contract_id)],
        "signers": _signers(contract),
    }

@router.put("/{contract_id}/fields")
def save_fields(
    contract_id: int,
    payload: FieldsSave,
    session: Session = Depends(get_session),
    ctx=Depends(require_admin_access),
):
    contract = _get_contract(session, contract_id)
    if contract.signing_status != DocumentStatus.DRAFT.value:
        raise HTTPException(409, "fields are locked once the contract has been sent")
    try:
        fields = [Field.from_record(record.model_dump()) for record in payload.fields]
    except (ValidationError, ValueError) as exc:
        raise HTTPException(422, str(exc))
    try:
        rows = replace_fields(session, contract, fields)
    except InvalidTransition as exc:
        raise http_error(exc)
    append_event(session, contract_id, "system", "fields_saved", {"count": len(rows)})
    return {"ok": True, "fields": [f.model_dump(mode="json") for f in load_fields(session, contract_id)]}

@router.get("/{contract_id}/pages")
def get_pages(
    contract_id: int,
    session: Session = Depends(get_session),
    ctx=Depends(require_admin_access),
):
    contract = _get_contract(session, contract_id)
    if contract.document_kind != DocumentKind.HTML.value:
        raise HTTPException(400, "only html contracts are paginated")
    engine = PaginationEngine(ReportLabMeasureSurface())
    pages = engine.paginate(contract.document_content)
    return {
        "budget": engine.budget,
        "pages": [
            {"id": p.id, "content": p.content, "measured_height": p.measured_height}
            for p in pages
        ],
    }

@router.post("/{contract_id}/send")
def send_for_signature(
    contract_id: int,
    payload: SendForSignature,
    session: Session = Depends(get_session),
    workflow: SigningWorkflow = Depends(get_workflow),
    ctx=Depends(require_admin_access),
):
    _get_contract(session, contract_id)
    for client_id in (payload.first_signer_id, payload.second_signer_id):
        if not session.get(Client, client_id):
            raise HTTPException(400, f"client {client_id} not found")
    try:
        result = workflow.dispatch(contract_id, payload.first_signer_id, payload.second_signer_id)
    except (InvalidTransition, RevisionConflict, DocumentNotFound, ValueError) as exc:
        raise http_error(exc)
    append_event(
        session, contract_id, "system", "sent",
        {"signers": [s.client_id for s in result.signers], "warnings": result.warnings},
    )
    return result_to_dict(result)

@router.post("/{contract_id}/resend")
def resend_signing_link(
    contract_id: int,
    session: Session = Depends(get_session),
    workflow: SigningWorkflow = Depends(get_workflow),
    ctx=Depends(require_admin_access),
):
    _get_contract(session, contract_id)
    try:
        result = workflow.resend(contract_id)
    except (InvalidTransition, DocumentNotFound) as exc:
        raise http_error(exc)
    append_event(session, contract_id, "system", "resent", {"signer_index": result.signer_index, "warnings": result.warnings})
    return result_to_dict(result)

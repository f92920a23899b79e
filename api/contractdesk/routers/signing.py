from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlmodel import Session
from typing import Optional
from ..db import get_session
from ..audit import append_event
from ..email import EmailNotifier
from ..errors import DocumentNotFound, InvalidSigningLink, InvalidTransition, RevisionConflict
from ..schemas import SignComplete
from ..signing import DocumentStatus, SigningResult, SigningWorkflow
from ..store import SqlSignerStore, load_fields
from ..models import Contract

router = APIRouter()

# ---------- helpers ----------
def get_workflow(session: Session = Depends(get_session)) -> SigningWorkflow:
    return SigningWorkflow(SqlSignerStore(session), EmailNotifier(session))

def http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, InvalidSigningLink):
        return HTTPException(403, str(exc))
    if isinstance(exc, (RevisionConflict, InvalidTransition)):
        return HTTPException(409, str(exc))
    if isinstance(exc, DocumentNotFound):
        return HTTPException(404, "not found")
    return HTTPException(400, str(exc))

def result_to_dict(result: SigningResult) -> dict:
    return {
        "document_id": result.document_id,
        "status": result.status.value,
        "signer_index": result.signer_index,
        "signers": [
            s.model_dump(mode="json", exclude={"token"}) for s in result.signers
        ],
        "warnings": result.warnings,
    }

# ---------- routes ----------

@router.get("/{document_id}")
def load_signing_session(
    document_id: int,
    request: Request,
    token: Optional[str] = Query(default=None),
    session: Session = Depends(get_session),
    workflow: SigningWorkflow = Depends(get_workflow),
):
    try:
        record, index = workflow.verify(document_id, token)
    except (InvalidSigningLink, DocumentNotFound) as exc:
        raise http_error(exc)
    contract = session.get(Contract, document_id)
    signer = record.signers[index]
    fields = [
        f for f in load_fields(session, document_id)
        if f.owner_id is None or f.owner_id == signer.client_id
    ]
    append_event(
        session, document_id, f"signer:{signer.client_id}", "opened", {},
        ip=request.client.host if request.client else None, ua=request.headers.get("user-agent"),
    )
    return {
        "contract": {
            "id": contract.id,
            "title": contract.title,
            "description": contract.description,
            "document_kind": contract.document_kind,
            "document_content": contract.document_content,
            "signing_status": record.status.value,
        },
        "signer_index": index,
        "signer": signer.model_dump(mode="json", exclude={"token"}),
        "fields": [f.model_dump(mode="json") for f in fields],
    }

@router.post("/{document_id}/complete")
def complete_signing(
    document_id: int,
    payload: SignComplete,
    request: Request,
    token: Optional[str] = Query(default=None),
    session: Session = Depends(get_session),
    workflow: SigningWorkflow = Depends(get_workflow),
):
    try:
        result = workflow.complete(document_id, token, payload.full_name, payload.signature)
    except (InvalidSigningLink, InvalidTransition, RevisionConflict, DocumentNotFound, ValueError) as exc:
        raise http_error(exc)
    signer = result.signers[result.signer_index]
    ip = request.client.host if request.client else None
    append_event(
        session, document_id, f"signer:{signer.client_id}", "signed",
        {"full_name": signer.full_name, "warnings": result.warnings},
        ip=ip, ua=request.headers.get("user-agent"),
    )
    if result.status is DocumentStatus.COMPLETED:
        append_event(session, document_id, "system", "completed", {})
    return result_to_dict(result)

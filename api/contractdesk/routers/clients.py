from fastapi import APIRouter, Depends
from sqlmodel import Session, select
from ..db import get_session
from ..models import Client
from ..schemas import ClientCreate
from ..auth import require_admin_access

router = APIRouter()

@router.post("", status_code=201)
def create_client(
    payload: ClientCreate,
    session: Session = Depends(get_session),
    ctx=Depends(require_admin_access),
):
    client = Client(**payload.model_dump())
    session.add(client)
    session.commit()
    session.refresh(client)
    return client

@router.get("")
def list_clients(
    session: Session = Depends(get_session),
    ctx=Depends(require_admin_access),
):
    return session.exec(select(Client).order_by(Client.last_name, Client.first_name)).all()

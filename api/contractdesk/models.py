
from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field as ORMField

class Client(SQLModel, table=True):
    id: Optional[int] = ORMField(default=None, primary_key=True)
    first_name: str
    last_name: str
    email: str
    company: Optional[str] = None
    created_at: datetime = ORMField(default_factory=datetime.utcnow)

class Contract(SQLModel, table=True):
    id: Optional[int] = ORMField(default=None, primary_key=True)
    title: str
    description: str = ""
    document_kind: str = "html"  # html|pdf|image
    document_content: str = ""
    field_data: str = "{}"  # {"signing_fields": [...], "signing_order": [...]}
    signing_status: str = "draft"
    signing_revision: int = 0
    signed_at: Optional[datetime] = None
    created_at: datetime = ORMField(default_factory=datetime.utcnow)
    updated_at: datetime = ORMField(default_factory=datetime.utcnow)

class ContractField(SQLModel, table=True):
    id: Optional[int] = ORMField(default=None, primary_key=True)
    contract_id: int = ORMField(index=True)
    client_id: Optional[str] = None
    field_type: str  # text|signature|date|checkbox|name
    field_name: str = ""
    position_x: float
    position_y: float
    width: float
    height: float
    is_required: bool = False
    placeholder: Optional[str] = None

class Event(SQLModel, table=True):
    id: Optional[int] = ORMField(default=None, primary_key=True)
    contract_id: int = ORMField(index=True)
    actor: str  # system|signer:<client id>
    type: str   # created|fields_saved|sent|resent|opened|signed|completed
    meta_json: str = "{}"
    ip: Optional[str] = None
    ua: Optional[str] = None
    at: datetime = ORMField(default_factory=datetime.utcnow)
    prev_hash: Optional[str] = None
    hash: Optional[str] = None

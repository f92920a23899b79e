
from pydantic import BaseModel
from typing import List, Optional

class ClientCreate(BaseModel):
    first_name: str
    last_name: str
    email: str
    company: Optional[str] = None

class ContractCreate(BaseModel):
    title: str
    description: str = ""
    document_kind: str = "html"
    document_content: str = ""

class FieldRecord(BaseModel):
    client_id: Optional[str] = None
    field_type: str
    field_name: str = ""
    position_x: float
    position_y: float
    width: float
    height: float
    is_required: bool = False
    placeholder: Optional[str] = None

class FieldsSave(BaseModel):
    fields: List[FieldRecord]

class SendForSignature(BaseModel):
    first_signer_id: int
    second_signer_id: int

class SignComplete(BaseModel):
    full_name: str
    signature: str  # typed signature

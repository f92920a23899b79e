
import hashlib, json
from typing import Optional
from itsdangerous import URLSafeTimedSerializer
from .config import SECRET_KEY

def sha256_bytes(b: bytes) -> str:
    return hashlib.sha256(b).hexdigest()

def canonical_json(obj) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), default=str)

def make_token(payload: dict, secret_key: str = SECRET_KEY) -> str:
    s = URLSafeTimedSerializer(secret_key, salt="signing")
    return s.dumps(payload)

def read_token(token: str, max_age: Optional[int] = None, secret_key: str = SECRET_KEY) -> dict:
    # raises itsdangerous.BadData (SignatureExpired when older than max_age)
    s = URLSafeTimedSerializer(secret_key, salt="signing")
    return s.loads(token, max_age=max_age)

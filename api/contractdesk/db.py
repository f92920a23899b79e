
from sqlmodel import SQLModel, create_engine, Session
from .config import DATABASE_URL

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, echo=False, pool_pre_ping=True, connect_args=_connect_args)

def init_db():
    from .models import Client, Contract, ContractField, Event
    SQLModel.metadata.create_all(engine)

def get_session():
    with Session(engine) as session:
        yield session

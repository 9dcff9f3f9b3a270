# estimator/api/clients.py
from typing import List

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy import or_
from sqlalchemy.orm import sessionmaker

from estimator.core.errors import NotFoundError
from estimator.db.deps import get_session_factory
from estimator.db.session import transaction
from estimator.models import Client
from estimator.services.validators import clean_optional, clean_required

router = APIRouter(prefix="/clients", tags=["clients"])


class ClientBase(BaseModel):
    name: str
    email: str | None = None
    tel: str | None = None
    address: str | None = None
    tax_id: str | None = None


class ClientCreate(ClientBase):
    pass


class ClientUpdate(BaseModel):
    name: str | None = None
    email: str | None = None
    tel: str | None = None
    address: str | None = None
    tax_id: str | None = None


class ClientOut(ClientBase):
    id: int

    class Config:
        from_attributes = True  # pydantic v2


def _load_client(db, client_id: int) -> Client:
    client = db.get(Client, client_id)
    if not client:
        raise NotFoundError("Cliente no encontrado.", client_id=client_id)
    return client


@router.get("/", response_model=List[ClientOut])
def list_clients(
    q: str | None = Query(None, description="Texto para buscar por nombre, correo o teléfono"),
    session_factory: sessionmaker = Depends(get_session_factory),
):
    with transaction(session_factory, operation="list_clients", read_only=True) as db:
        query = db.query(Client)
        if q:
            term = f"%{q.strip()}%"
            query = query.filter(
                or_(
                    Client.name.ilike(term),
                    Client.email.ilike(term),
                    Client.tel.ilike(term),
                )
            )
        return query.order_by(Client.name).all()


@router.post("/", response_model=ClientOut, status_code=201)
def create_client(
    client_in: ClientCreate,
    session_factory: sessionmaker = Depends(get_session_factory),
):
    client = Client(
        name=clean_required(client_in.name, "name"),
        email=clean_optional(client_in.email),
        tel=clean_optional(client_in.tel),
        address=clean_optional(client_in.address),
        tax_id=clean_optional(client_in.tax_id),
    )
    # tax_id duplicado -> UNIQUE -> Conflict
    with transaction(session_factory, operation="create_client") as db:
        db.add(client)
        db.flush()
    return client


@router.get("/{client_id}", response_model=ClientOut)
def get_client(
    client_id: int,
    session_factory: sessionmaker = Depends(get_session_factory),
):
    with transaction(session_factory, operation="get_client", read_only=True) as db:
        return _load_client(db, client_id)


@router.put("/{client_id}", response_model=ClientOut)
def update_client(
    client_id: int,
    client_in: ClientUpdate,
    session_factory: sessionmaker = Depends(get_session_factory),
):
    data = client_in.model_dump(exclude_unset=True)
    with transaction(session_factory, operation="update_client") as db:
        client = _load_client(db, client_id)

        if "name" in data and data["name"]:
            client.name = clean_required(data["name"], "name")

        for attr in ("email", "tel", "address", "tax_id"):
            if attr in data:
                setattr(client, attr, clean_optional(data[attr]))

        db.add(client)
        db.flush()
    return client

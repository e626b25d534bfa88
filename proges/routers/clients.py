# proges/routers/clients.py

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from proges.database import get_db
from proges.core.auth import get_current_user
from proges.models.clients import Client
from proges.models.sales import Sale
from proges.schemas.contact import ClientCreate, ClientUpdate, ClientResponse

router = APIRouter(
    prefix="/clients",
    tags=["Clients"],
)


def _get_client(db: Session, client_id: int, user_id: int) -> Client:
    client = (
        db.query(Client)
        .filter(
            Client.id == client_id,
            Client.user_id == user_id,
        )
        .first()
    )

    if not client:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Client not found",
        )

    return client


@router.post(
    "",
    response_model=ClientResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_client(
    client_data: ClientCreate,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    client = Client(
        name=client_data.name.strip(),
        phone=client_data.phone,
        email=client_data.email,
        user_id=current_user.id,
    )

    db.add(client)
    db.commit()
    db.refresh(client)

    return client


@router.get("", response_model=list[ClientResponse])
def list_clients(
    search: str | None = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    query = db.query(Client).filter(Client.user_id == current_user.id)

    if search:
        query = query.filter(Client.name.ilike(f"%{search}%"))

    return (
        query
        .order_by(Client.name.asc())
        .offset(offset)
        .limit(limit)
        .all()
    )


@router.get("/{client_id}", response_model=ClientResponse)
def get_client(
    client_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return _get_client(db, client_id, current_user.id)


@router.put("/{client_id}", response_model=ClientResponse)
def update_client(
    client_id: int,
    client_data: ClientUpdate,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    client = _get_client(db, client_id, current_user.id)

    for field, value in client_data.model_dump(exclude_unset=True).items():
        setattr(client, field, value)

    db.commit()
    db.refresh(client)

    return client


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_client(
    client_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    client = _get_client(db, client_id, current_user.id)

    # Sales keep pointing at their client
    if db.query(Sale).filter(Sale.client_id == client.id).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Client has sales and cannot be deleted",
        )

    db.delete(client)
    db.commit()

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from proges.database import get_db
from proges.core.auth import get_backend, get_company_settings, get_current_user
from proges.core.backend import Backend
from proges.core.errors import to_http_exception
from proges.models.documents import Document
from proges.schemas.document import DocumentResponse
from proges.services.documents import build_document_workbook, regenerate_sale_receipt
from proges.core.rate_limiter import limiter

router = APIRouter(prefix="/documents", tags=["Documents"])


@router.get("", response_model=list[DocumentResponse])
def list_documents(
    type: str | None = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    query = db.query(Document).filter(Document.user_id == current_user.id)

    if type:
        query = query.filter(Document.type == type)

    return (
        query
        .order_by(Document.created_at.desc(), Document.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


@router.get("/{document_id}", response_model=DocumentResponse)
def get_document(
    document_id: int,
    backend: Backend = Depends(get_backend),
):
    document = backend.select_one("documents", id=document_id, user_id=backend.user_id)

    if document is None:
        raise HTTPException(status_code=404, detail="Document not found")

    return document


@router.get("/{document_id}/export")
@limiter.limit("10/minute")
def export_document(
    request: Request,
    document_id: int,
    backend: Backend = Depends(get_backend),
    company: dict = Depends(get_company_settings),
):
    document = backend.select_one("documents", id=document_id, user_id=backend.user_id)

    if document is None:
        raise HTTPException(status_code=404, detail="Document not found")

    stream = build_document_workbook(document, company)

    return StreamingResponse(
        stream,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={
            "Content-Disposition": f'attachment; filename="{document["document_number"]}.xlsx"'
        },
    )


@router.post(
    "/sales/{sale_id}/receipt",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
)
def regenerate_receipt(
    sale_id: int,
    backend: Backend = Depends(get_backend),
):
    try:
        return regenerate_sale_receipt(backend, backend.user_id, sale_id)
    except LookupError as exc:
        raise to_http_exception(exc)

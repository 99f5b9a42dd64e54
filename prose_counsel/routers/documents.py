"""
Documents API
=============

Endpoints:
- GET   /api/documents            - All documents, newest first
- GET   /api/documents/{id}       - One document
- POST  /api/documents            - Create from JSON text (runs AI review)
- POST  /api/documents/upload     - Multipart upload of TXT/PDF/DOCX or inline text
- POST  /api/documents/generate   - Draft a new filing with the AI service
- PATCH /api/documents/{id}       - Partial update
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from prose_counsel.core.config import Settings, get_settings
from prose_counsel.core.errors import NotFound, ValidationError
from prose_counsel.models.schemas import (
    DocumentCreate,
    DocumentResponse,
    DocumentUpdate,
    GenerateDocumentRequest,
    GenerateDocumentResponse,
)
from prose_counsel.services.chat import case_context
from prose_counsel.services.document_intake import DocumentIntakeService, IntakeRequest, UploadedFile
from prose_counsel.services.legal_ai import LegalAIService, get_legal_ai
from prose_counsel.services.stores import Storage, get_storage
from prose_counsel.services.text_extractor import get_text_extractor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/documents", tags=["Documents"])

UNKNOWN_PARTY = "Unknown"


def get_intake_service(
    storage: Storage = Depends(get_storage),
    ai: LegalAIService = Depends(get_legal_ai),
    settings: Settings = Depends(get_settings),
) -> DocumentIntakeService:
    return DocumentIntakeService(
        storage=storage,
        ai=ai,
        extractor=get_text_extractor(),
        max_upload_bytes=settings.max_upload_size_bytes,
    )


# =============================================================================
# Read
# =============================================================================

@router.get("", response_model=list[DocumentResponse])
async def list_documents(storage: Storage = Depends(get_storage)):
    return await storage.documents.list_all()


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(document_id: str, storage: Storage = Depends(get_storage)):
    document = await storage.documents.get(document_id)
    if document is None:
        raise NotFound("Document not found")
    return document


# =============================================================================
# Intake
# =============================================================================

@router.post("", response_model=DocumentResponse, status_code=201)
async def create_document(
    data: DocumentCreate,
    intake: DocumentIntakeService = Depends(get_intake_service),
):
    """Create a document from text already in hand. Same pipeline as upload."""
    return await intake.ingest(IntakeRequest(
        case_id=data.case_id,
        title=data.title,
        document_type=data.document_type,
        content=data.content,
        metadata=data.metadata,
    ))


@router.post("/upload", response_model=DocumentResponse, status_code=201)
async def upload_document(
    case_id: Optional[str] = Form(None, alias="caseId"),
    title: Optional[str] = Form(None),
    document_type: Optional[str] = Form(None, alias="documentType"),
    content: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    intake: DocumentIntakeService = Depends(get_intake_service),
):
    """
    Upload a filing for a case.

    Either `file` (TXT, PDF or DOCX) or `content` must be supplied; when both
    are present the file wins. Text is extracted, reviewed by the AI service
    (complaints also get a Rule 12(b)(6) check) and stored.
    """
    uploaded = None
    if file is not None and file.filename:
        # One byte past the limit is enough for validation to reject it
        limit = intake.max_upload_bytes + 1
        if file.size is not None and file.size > intake.max_upload_bytes:
            data = b""
        else:
            data = await file.read(limit)
        uploaded = UploadedFile(
            filename=file.filename,
            content_type=file.content_type,
            data=data,
            declared_size=file.size,
        )
        logger.info("Upload received: %s (%s, %d bytes)", uploaded.filename, uploaded.content_type, uploaded.size)

    return await intake.ingest(IntakeRequest(
        case_id=case_id,
        title=title,
        document_type=document_type,
        content=content,
        file=uploaded,
    ))


# =============================================================================
# Generation
# =============================================================================

@router.post("/generate", response_model=GenerateDocumentResponse)
async def generate_document(
    request: GenerateDocumentRequest,
    storage: Storage = Depends(get_storage),
    ai: LegalAIService = Depends(get_legal_ai),
):
    """
    Draft a court-ready document. With caseId the case supplies jurisdiction,
    parties and background; explicit fields in the body take precedence.
    """
    jurisdiction = request.jurisdiction
    plaintiff = request.plaintiff
    defendant = request.defendant
    case_info = dict(request.case_info or {})

    if request.case_id:
        case = await storage.cases.get(request.case_id)
        if case is None:
            raise NotFound("Case not found")
        jurisdiction = jurisdiction or case.jurisdiction
        plaintiff = plaintiff or case.plaintiff
        defendant = defendant or case.defendant
        case_info = {**case_context(case), "caseNumber": case.case_number, **case_info}

    if not jurisdiction:
        raise ValidationError("Missing required fields", details={"jurisdiction": "required"})

    content = await ai.generate_document(
        document_type=request.document_type,
        jurisdiction=jurisdiction,
        plaintiff=plaintiff or UNKNOWN_PARTY,
        defendant=defendant or UNKNOWN_PARTY,
        case_info=case_info,
        instructions=request.instructions,
    )
    return GenerateDocumentResponse(
        content=content,
        document_type=request.document_type,
        jurisdiction=jurisdiction,
    )


# =============================================================================
# Update
# =============================================================================

@router.patch("/{document_id}", response_model=DocumentResponse)
async def update_document(
    document_id: str,
    update: DocumentUpdate,
    storage: Storage = Depends(get_storage),
):
    changes = update.changes()
    if "metadata" in changes:
        changes["doc_metadata"] = changes.pop("metadata")
    document = await storage.documents.update(document_id, **changes)
    if document is None:
        raise NotFound("Document not found")
    return document

"""
Document Intake Pipeline

When a filing comes in:
1. VALIDATING: required fields, file type and size
2. RESOLVING_CASE: the owning case must exist
3. OBTAINING_TEXT: extract from the upload, or take the inline text
4. ANALYZING: AI review of the document (best effort)
5. CHECKING_COMPLIANCE: complaints only, Rule 12(b)(6) review plus
   pattern learning (best effort)
6. PERSISTING: write the Document record

Stages 1-3 abort the request; stages 4-5 degrade to null results so the
document is always saved once its text is known.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from prose_counsel.core.errors import ProSeError, ValidationError, NotFound, best_effort
from prose_counsel.models.models import Case, Document
from prose_counsel.services.legal_ai import LegalAIService
from prose_counsel.services.stores import Storage
from prose_counsel.services.text_extractor import TextExtractor

logger = logging.getLogger(__name__)

LEARNING_CATEGORY = "document_quality"


# =============================================================================
# ENUMS & TYPES
# =============================================================================

class IntakeStage(str, Enum):
    """Where an intake request currently is (or where it stopped)."""
    VALIDATING = "validating_input"
    RESOLVING_CASE = "resolving_case"
    OBTAINING_TEXT = "obtaining_text"
    ANALYZING = "analyzing"
    CHECKING_COMPLIANCE = "checking_compliance"
    PERSISTING = "persisting"
    DONE = "done"


@dataclass
class UploadedFile:
    """
    An uploaded file held in memory.

    `data` may be truncated just past the upload limit; `declared_size` is the
    size the client sent, when the server knows it.
    """
    filename: Optional[str]
    content_type: Optional[str]
    data: bytes
    declared_size: Optional[int] = None

    @property
    def size(self) -> int:
        if self.declared_size is not None:
            return max(self.declared_size, len(self.data))
        return len(self.data)


@dataclass
class IntakeRequest:
    case_id: Optional[str]
    title: Optional[str]
    document_type: Optional[str]
    content: Optional[str] = None
    file: Optional[UploadedFile] = None
    metadata: Optional[dict[str, Any]] = None


def is_complaint(document_type: str) -> bool:
    return "complaint" in document_type.lower()


# =============================================================================
# SERVICE
# =============================================================================

class DocumentIntakeService:
    """Runs one IntakeRequest through the pipeline and returns the saved Document."""

    def __init__(
        self,
        storage: Storage,
        ai: LegalAIService,
        extractor: TextExtractor,
        max_upload_bytes: int,
    ):
        self.storage = storage
        self.ai = ai
        self.extractor = extractor
        self.max_upload_bytes = max_upload_bytes

    async def ingest(self, request: IntakeRequest) -> Document:
        stage = IntakeStage.VALIDATING
        try:
            self._validate(request)

            stage = IntakeStage.RESOLVING_CASE
            self._enter(stage, request)
            case = await self.storage.cases.get(request.case_id)
            if case is None:
                raise NotFound("Case not found", details={"caseId": request.case_id})

            stage = IntakeStage.OBTAINING_TEXT
            self._enter(stage, request)
            text = await self._obtain_text(request)
        except ProSeError as e:
            e.stage = e.stage or stage.value
            logger.info(
                "Intake aborted at %s: %s", stage.value, e.message,
                extra={"stage": stage.value, "case_id": request.case_id},
            )
            raise

        stage = IntakeStage.ANALYZING
        self._enter(stage, request)
        analysis = await best_effort(
            "Document analysis",
            self.ai.analyze_document, text, request.document_type, case.jurisdiction,
        )

        compliance = None
        if is_complaint(request.document_type):
            stage = IntakeStage.CHECKING_COMPLIANCE
            self._enter(stage, request)
            compliance = await best_effort(
                "Compliance check",
                self.ai.check_compliance_rule, text, case.jurisdiction,
            )
            if compliance is not None:
                logger.info("Compliance score %d (%s)", compliance.score, compliance.overall_assessment)
                await self._learn(case, request.document_type, text, compliance.to_json())

        stage = IntakeStage.PERSISTING
        self._enter(stage, request)
        try:
            document = await self.storage.documents.create(
                case_id=case.id,
                title=request.title,
                document_type=request.document_type,
                content=text,
                file_name=request.file.filename if request.file else None,
                file_size=request.file.size if request.file else None,
                ai_analysis=analysis.to_json() if analysis else None,
                compliance_check=compliance.to_json() if compliance else None,
                doc_metadata=request.metadata,
            )
        except ProSeError as e:
            e.stage = e.stage or stage.value
            raise

        logger.info(
            "Document %s saved (analysis=%s, compliance=%s)",
            document.id, analysis is not None, compliance is not None,
            extra={"stage": IntakeStage.DONE.value, "case_id": case.id},
        )
        return document

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    def _enter(self, stage: IntakeStage, request: IntakeRequest) -> None:
        logger.info("Intake %s", stage.value, extra={"stage": stage.value, "case_id": request.case_id})

    def _validate(self, request: IntakeRequest) -> None:
        fields = {
            "caseId": request.case_id,
            "title": request.title,
            "documentType": request.document_type,
        }
        if not all(v and v.strip() for v in fields.values()):
            raise ValidationError(
                "Missing required fields",
                details={k: "present" if v and v.strip() else "required" for k, v in fields.items()},
            )

        upload = request.file
        if upload is None:
            return
        if not self.extractor.is_supported(upload.content_type, upload.filename):
            raise ValidationError(
                f"Invalid file type: {upload.content_type}. Only TXT, PDF, and DOCX are supported.",
                details={"fileName": upload.filename, "mimeType": upload.content_type},
            )
        if upload.size > self.max_upload_bytes:
            raise ValidationError(
                "File too large",
                details={"fileSize": upload.size, "maxBytes": self.max_upload_bytes},
            )

    async def _obtain_text(self, request: IntakeRequest) -> str:
        upload = request.file
        if upload is not None:
            text = await asyncio.to_thread(
                self.extractor.extract, upload.data, upload.content_type, upload.filename
            )
            logger.info("Extracted %d characters from %s", len(text), upload.filename)
        elif request.content:
            text = request.content
        else:
            raise ValidationError("No file uploaded and no content provided")

        if not text.strip():
            raise ValidationError("Could not extract text from file or no content provided")
        return text

    async def _learn(self, case: Case, document_type: str, text: str, compliance: dict[str, Any]) -> None:
        patterns = await best_effort(
            "Learning extraction",
            self.ai.learn_from_document, document_type, case.jurisdiction, text, compliance,
        )
        if patterns is None:
            return
        saved = await best_effort(
            "Saving learning data",
            self.storage.learning.create,
            category=LEARNING_CATEGORY,
            jurisdiction=case.jurisdiction,
            document_type=document_type,
            patterns=patterns.to_json(),
            success_metrics=compliance,
        )
        if saved is not None:
            logger.info("Learning patterns saved (%s)", saved.id)

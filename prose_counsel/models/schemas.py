"""
API Schemas
Pydantic request/response models. The wire format is camelCase
(caseId, documentType, aiAnalysis...); snake_case input is accepted too.
"""

from datetime import datetime
from typing import Annotated, Any, ClassVar, Optional

from pydantic import AfterValidator, AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from prose_counsel.core.utc import to_utc
from prose_counsel.models.models import CaseStatus, ChatRole


# SQLite hands back naive datetimes; everything we store is UTC
UTCDateTime = Annotated[datetime, AfterValidator(to_utc)]


class APIModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        use_enum_values=True,
    )

    # Fields a PATCH may set back to null; nulls for any other field are ignored
    clearable_fields: ClassVar[frozenset[str]] = frozenset()

    def changes(self) -> dict[str, Any]:
        """The fields the client actually sent, keyed by attribute name."""
        data = self.model_dump(exclude_unset=True)
        return {k: v for k, v in data.items() if v is not None or k in self.clearable_fields}


# =============================================================================
# Cases
# =============================================================================

class CaseCreate(APIModel):
    """Create a new case."""
    title: str = Field(..., min_length=1)
    case_number: Optional[str] = None
    plaintiff: str = Field(..., min_length=1)
    defendant: str = Field(..., min_length=1)
    jurisdiction: str = Field(..., min_length=1)
    status: CaseStatus = CaseStatus.active.value
    description: Optional[str] = None


class CaseUpdate(APIModel):
    """Partial case update; omitted fields are left untouched."""
    clearable_fields = frozenset({"case_number", "description"})

    title: Optional[str] = Field(None, min_length=1)
    case_number: Optional[str] = None
    plaintiff: Optional[str] = Field(None, min_length=1)
    defendant: Optional[str] = Field(None, min_length=1)
    jurisdiction: Optional[str] = Field(None, min_length=1)
    status: Optional[CaseStatus] = None
    description: Optional[str] = None


class CaseResponse(APIModel):
    id: str
    title: str
    case_number: Optional[str] = None
    plaintiff: str
    defendant: str
    jurisdiction: str
    status: str
    description: Optional[str] = None
    created_at: UTCDateTime
    updated_at: UTCDateTime


# =============================================================================
# Documents
# =============================================================================

class DocumentCreate(APIModel):
    """Create a document from already-extracted text."""
    case_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    document_type: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    file_name: Optional[str] = None
    file_size: Optional[int] = Field(None, ge=0)
    metadata: Optional[dict[str, Any]] = None


class DocumentUpdate(APIModel):
    clearable_fields = frozenset({"metadata"})

    title: Optional[str] = Field(None, min_length=1)
    document_type: Optional[str] = Field(None, min_length=1)
    content: Optional[str] = Field(None, min_length=1)
    metadata: Optional[dict[str, Any]] = None


class DocumentResponse(APIModel):
    id: str
    case_id: str
    title: str
    document_type: str
    content: str
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    ai_analysis: Optional[dict[str, Any]] = None
    compliance_check: Optional[dict[str, Any]] = None
    metadata: Optional[dict[str, Any]] = Field(
        None, validation_alias=AliasChoices("doc_metadata", "metadata")
    )
    created_at: UTCDateTime
    updated_at: UTCDateTime


class GenerateDocumentRequest(APIModel):
    """Draft a new filing. caseId, when given, supplies jurisdiction and parties."""
    document_type: str = Field(..., min_length=1)
    instructions: str = ""
    case_id: Optional[str] = None
    jurisdiction: Optional[str] = None
    plaintiff: Optional[str] = None
    defendant: Optional[str] = None
    case_info: Optional[dict[str, Any]] = None


class GenerateDocumentResponse(APIModel):
    content: str
    document_type: str
    jurisdiction: str
    disclaimer: str = (
        "This generated document is a starting point and should be reviewed "
        "carefully before filing."
    )


# =============================================================================
# Deadlines
# =============================================================================

class DeadlineCreate(APIModel):
    case_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    due_date: UTCDateTime
    deadline_type: str = Field(..., min_length=1)
    is_completed: bool = False
    reminder_sent: bool = False


class DeadlineUpdate(APIModel):
    clearable_fields = frozenset({"description"})

    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    due_date: Optional[UTCDateTime] = None
    deadline_type: Optional[str] = Field(None, min_length=1)
    is_completed: Optional[bool] = None
    reminder_sent: Optional[bool] = None


class DeadlineResponse(APIModel):
    id: str
    case_id: str
    title: str
    description: Optional[str] = None
    due_date: UTCDateTime
    deadline_type: str
    is_completed: bool
    reminder_sent: bool
    created_at: UTCDateTime


# =============================================================================
# Chat
# =============================================================================

class ChatRequest(APIModel):
    """A user turn. caseId omitted, null or "general" means the general thread."""
    content: Optional[str] = None
    case_id: Optional[str] = None


class ChatMessageResponse(APIModel):
    id: str
    case_id: Optional[str] = None
    role: ChatRole
    content: str
    sources: Optional[list[Any]] = None
    metadata: Optional[dict[str, Any]] = Field(
        None, validation_alias=AliasChoices("message_metadata", "metadata")
    )
    created_at: UTCDateTime


class ChatExchangeResponse(APIModel):
    user_message: ChatMessageResponse
    ai_message: ChatMessageResponse


# =============================================================================
# Learning Data
# =============================================================================

class LearningDataResponse(APIModel):
    id: str
    category: str
    jurisdiction: Optional[str] = None
    document_type: Optional[str] = None
    patterns: dict[str, Any]
    success_metrics: Optional[dict[str, Any]] = None
    created_at: UTCDateTime
    updated_at: UTCDateTime

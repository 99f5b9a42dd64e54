"""
ProSe Counsel Database Models
SQLAlchemy ORM models for all entities.

All datetime columns use DateTime(timezone=True) for proper UTC handling.
Use utc_now() from prose_counsel.core.utc for all timestamp defaults.
"""

import enum
import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from prose_counsel.core.database import Base
from prose_counsel.core.utc import utc_now


# Type alias for timezone-aware DateTime columns
DateTimeTZ = DateTime(timezone=True)


def new_id() -> str:
    return str(uuid.uuid4())


class CaseStatus(str, enum.Enum):
    active = "active"
    pending = "pending"
    closed = "closed"


class ChatRole(str, enum.Enum):
    user = "user"
    assistant = "assistant"


# =============================================================================
# Cases
# =============================================================================

class Case(Base):
    """
    A legal matter. Owns documents, deadlines and chat threads;
    deleting a case cascades to all of them.
    """
    __tablename__ = "cases"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(Text)
    case_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    plaintiff: Mapped[str] = mapped_column(Text)
    defendant: Mapped[str] = mapped_column(Text)
    jurisdiction: Mapped[str] = mapped_column(String(255))
    status: Mapped[str] = mapped_column(String(20), default=CaseStatus.active.value)  # active, pending, closed
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTimeTZ, default=utc_now, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTimeTZ, default=utc_now)

    # Relationships
    documents: Mapped[list["Document"]] = relationship(
        back_populates="case", cascade="all, delete-orphan", passive_deletes=True
    )
    deadlines: Mapped[list["Deadline"]] = relationship(
        back_populates="case", cascade="all, delete-orphan", passive_deletes=True
    )
    chat_messages: Mapped[list["ChatMessage"]] = relationship(
        back_populates="case", cascade="all, delete-orphan", passive_deletes=True
    )


# =============================================================================
# Documents
# =============================================================================

class Document(Base):
    """
    A legal filing with its extracted text and any AI results.

    ai_analysis and compliance_check hold the structured model output
    verbatim; either may be NULL when the AI step was skipped or failed.
    """
    __tablename__ = "documents"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    case_id: Mapped[str] = mapped_column(String(36), ForeignKey("cases.id", ondelete="CASCADE"), index=True)

    title: Mapped[str] = mapped_column(Text)
    document_type: Mapped[str] = mapped_column(String(100))  # complaint, motion, response, discovery, brief, order...
    content: Mapped[str] = mapped_column(Text)  # extracted text content

    # Original upload (bytes are not kept)
    file_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    file_size: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # AI results
    ai_analysis: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    compliance_check: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    # "metadata" is reserved on declarative classes
    doc_metadata: Mapped[Optional[dict[str, Any]]] = mapped_column("metadata", JSON, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTimeTZ, default=utc_now, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTimeTZ, default=utc_now)

    case: Mapped["Case"] = relationship(back_populates="documents")


# =============================================================================
# Deadlines
# =============================================================================

class Deadline(Base):
    """A dated obligation (filing, hearing, response, discovery...) tied to a case."""
    __tablename__ = "deadlines"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    case_id: Mapped[str] = mapped_column(String(36), ForeignKey("cases.id", ondelete="CASCADE"), index=True)

    title: Mapped[str] = mapped_column(Text)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    due_date: Mapped[datetime] = mapped_column(DateTimeTZ, index=True)
    deadline_type: Mapped[str] = mapped_column(String(50))
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False)
    reminder_sent: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTimeTZ, default=utc_now)

    case: Mapped["Case"] = relationship(back_populates="deadlines")


# =============================================================================
# Chat
# =============================================================================

class ChatMessage(Base):
    """
    One turn of a guidance conversation.
    case_id NULL means the general (case-independent) thread.
    """
    __tablename__ = "chat_messages"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    case_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("cases.id", ondelete="CASCADE"), nullable=True, index=True
    )
    role: Mapped[str] = mapped_column(String(20))  # user, assistant
    content: Mapped[str] = mapped_column(Text)
    sources: Mapped[Optional[list[str]]] = mapped_column(JSON, nullable=True)
    message_metadata: Mapped[Optional[dict[str, Any]]] = mapped_column("metadata", JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTimeTZ, default=utc_now, index=True)

    case: Mapped[Optional["Case"]] = relationship(back_populates="chat_messages")


# =============================================================================
# Learning Data
# =============================================================================

class LearningData(Base):
    """
    Append-only log of pattern summaries the model derived from reviewed
    documents. Nothing reads these back into analysis.
    """
    __tablename__ = "learning_data"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    category: Mapped[str] = mapped_column(String(100), index=True)  # document_quality, compliance_patterns...
    jurisdiction: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    document_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    patterns: Mapped[dict[str, Any]] = mapped_column(JSON)
    success_metrics: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTimeTZ, default=utc_now, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTimeTZ, default=utc_now)

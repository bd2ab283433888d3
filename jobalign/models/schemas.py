from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from jobalign.models.models import ChatMessage, RetrievalOptions, utc_now


# -------- Sessions --------
class TokenUsageModel(BaseModel):
    total: int = 0
    ceiling: Optional[int] = None
    remaining: Optional[int] = None

    @classmethod
    def from_usage(cls, usage) -> "TokenUsageModel":
        return cls(**usage.to_dict())


class SessionModel(BaseModel):
    session_id: str
    status: str = "pending"   # pending, indexing, ready, failed
    corpus_size: int = 0
    indexed_items: int = 0
    progress_current: int = 0
    progress_total: int = 0
    has_document: bool = False
    copilot_active: bool = False
    error: Optional[str] = None
    token_usage: TokenUsageModel = Field(default_factory=TokenUsageModel)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @classmethod
    def from_session(cls, session) -> "SessionModel":
        return cls(
            session_id=session.session_id,
            status=session.status,
            corpus_size=session.corpus_size,
            indexed_items=len(session.vector_store),
            progress_current=session.progress_current,
            progress_total=session.progress_total,
            has_document=session.document is not None,
            copilot_active=session.copilot is not None,
            error=session.error,
            token_usage=TokenUsageModel.from_usage(session.usage),
            created_at=session.created_at,
            updated_at=session.updated_at,
        )


class ResumeUpload(BaseModel):
    filename: str = Field(..., min_length=1)
    content_base64: str = Field(..., min_length=1)


# -------- Retrieval --------
class ContextRequest(BaseModel):
    jd_text: str = Field(..., description="Raw job description text")
    options: Optional[RetrievalOptions] = None


class ContextResponse(BaseModel):
    session_id: str
    context: str
    requirements: List[str] = []
    selected_ids: List[str] = []
    token_usage: TokenUsageModel


# -------- Copilot --------
class CopilotRequest(BaseModel):
    action: Literal["COVER_LETTER", "INTERVIEW_PREP"]
    jd_text: str
    company: Optional[str] = None
    role: Optional[str] = None
    tone: Optional[str] = None


class MessageRequest(BaseModel):
    text: str = Field(..., min_length=1)


class ChatResponse(BaseModel):
    session_id: str
    messages: List[ChatMessage] = []
    token_usage: TokenUsageModel


class TailorRequest(BaseModel):
    jd_text: str

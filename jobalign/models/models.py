import uuid
from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, BeforeValidator, Field


def _none_to_empty_list(v):
    return [] if v is None else v


def _none_to_empty_str(v):
    return "" if v is None else v


def _none_to_empty_dict(v):
    return {} if v is None else v


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# LLM output sometimes carries nulls where the schema asks for "" or []
Text = Annotated[str, BeforeValidator(_none_to_empty_str)]
TextList = Annotated[List[str], BeforeValidator(_none_to_empty_list)]


class ContactInfo(BaseModel):
    full_name: Text = ""
    email: Text = ""
    phone: Text = ""
    linkedin_url: Text = ""
    github_url: Text = ""
    website_url: Text = ""
    location: Text = ""


class BulletPoint(BaseModel):
    raw_text: Text = ""


BulletList = Annotated[List[BulletPoint], BeforeValidator(_none_to_empty_list)]


class WorkExperience(BaseModel):
    company_name: Text = ""
    role_title: Text = ""
    dates_employed: Text = ""
    location: Text = ""
    bullet_points: BulletList = Field(default_factory=list)


class Project(BaseModel):
    project_name: Text = ""
    role_title: Text = ""
    technologies_used: TextList = Field(default_factory=list)
    bullet_points: BulletList = Field(default_factory=list)


class Education(BaseModel):
    institution_name: Text = ""
    degree_obtained: Text = ""
    graduation_date: Text = ""
    achievements: TextList = Field(default_factory=list)


class SkillGroup(BaseModel):
    category_name: Text = ""
    items: TextList = Field(default_factory=list)


class StructuredDocument(BaseModel):
    """A parsed résumé. Treated as read-only by the indexing pipeline."""
    contact_info: Annotated[ContactInfo, BeforeValidator(_none_to_empty_dict)] = Field(default_factory=ContactInfo)
    professional_summary: Text = ""
    work_experience: Annotated[List[WorkExperience], BeforeValidator(_none_to_empty_list)] = Field(default_factory=list)
    projects: Annotated[List[Project], BeforeValidator(_none_to_empty_list)] = Field(default_factory=list)
    education: Annotated[List[Education], BeforeValidator(_none_to_empty_list)] = Field(default_factory=list)
    skills: Annotated[List[SkillGroup], BeforeValidator(_none_to_empty_list)] = Field(default_factory=list)
    certifications: TextList = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not (
            self.professional_summary.strip()
            or self.work_experience
            or self.projects
            or self.education
            or self.skills
            or self.certifications
        )


class EvidenceChunk(BaseModel):
    text: str
    metadata: Dict[str, Any] = Field(default_factory=dict)


class EnrichedItem(BaseModel):
    id: str
    content: str
    keywords: List[str] = Field(default_factory=list)
    skills_implied: List[str] = Field(default_factory=list)
    category: str = ""
    raw_source: str = ""
    metadata: Dict[str, Any] = Field(default_factory=dict)
    embedding: Optional[List[float]] = None


class ScoreEntry(BaseModel):
    id: str
    score: float


class RetrievalOptions(BaseModel):
    include_summary: bool = True
    include_education: bool = True
    requirement_count: int = Field(default=6, ge=1)
    req_match_count: int = Field(default=6, ge=0)
    final_context_limit: int = Field(default=15, ge=0)


class RetrievalResult(BaseModel):
    context: str = ""
    requirements: List[str] = Field(default_factory=list)
    selected_ids: List[str] = Field(default_factory=list)
    scores: Dict[str, float] = Field(default_factory=dict)


class ChatMessage(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    role: Literal["user", "model"]
    text: str
    timestamp: datetime = Field(default_factory=utc_now)


class ChatSession(BaseModel):
    """System prompt plus an append-only conversation history"""
    system_prompt: str
    temperature: float = 0.7
    history: List[ChatMessage] = Field(default_factory=list)

    def append(self, role: str, text: str) -> ChatMessage:
        message = ChatMessage(role=role, text=text)
        self.history.append(message)
        return message

    def to_messages(self) -> List[Dict[str, str]]:
        """Render as Ollama chat messages (the model speaks as 'assistant')"""
        messages = [{"role": "system", "content": self.system_prompt}]
        for m in self.history:
            messages.append({
                "role": "assistant" if m.role == "model" else "user",
                "content": m.text,
            })
        return messages

"""
Session Management Service: one résumé index, token counter and copilot per session
"""
import asyncio
import uuid
from typing import Dict, List, Optional

from jobalign.models.ai_settings import get_settings
from jobalign.models.models import ChatMessage, EnrichedItem, RetrievalOptions, RetrievalResult, StructuredDocument, utc_now
from jobalign.services.chunker import chunk_document
from jobalign.services.copilot import DEFAULT_TONE, JobAppCopilot, tailor_resume
from jobalign.services.graph import build_index
from jobalign.services.resume_parser import parse_resume_upload
from jobalign.services.retriever import retrieve
from jobalign.utils.exceptions import BusinessLogicError, EmptyInputError
from jobalign.utils.logging_config import get_logger
from jobalign.utils.usage import TokenUsage

logger = get_logger(__name__)


async def _run_blocking(func, *args):
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, func, *args)


ACTION_COVER_LETTER = "COVER_LETTER"
ACTION_INTERVIEW_PREP = "INTERVIEW_PREP"


class RagSession:
    def __init__(self, session_id: str, max_tokens: int):
        self.session_id = session_id
        self.status = SessionManager.STATUS_PENDING
        self.document: Optional[StructuredDocument] = None
        self.vector_store: List[EnrichedItem] = []
        self.corpus_size = 0
        self.usage = TokenUsage(ceiling=max_tokens)
        self.progress_current = 0
        self.progress_total = 0
        self.copilot: Optional[JobAppCopilot] = None
        self.transcript: List[ChatMessage] = []
        self.last_requirements: List[str] = []
        self.error: Optional[str] = None
        self.created_at = utc_now()
        self.updated_at = self.created_at

    def on_progress(self, current: int, total: int) -> None:
        self.progress_current = current
        self.progress_total = total

    def touch(self) -> None:
        self.updated_at = utc_now()


class SessionManager:
    """Keeps sessions in memory; nothing survives a restart"""

    # Session status constants
    STATUS_PENDING = "pending"
    STATUS_INDEXING = "indexing"
    STATUS_READY = "ready"
    STATUS_FAILED = "failed"

    def __init__(self, max_tokens: Optional[int] = None):
        self.max_tokens = max_tokens
        self._sessions: Dict[str, RagSession] = {}

    def create_session(self) -> RagSession:
        ceiling = self.max_tokens or get_settings().session.max_session_tokens
        session = RagSession(uuid.uuid4().hex, ceiling)
        self._sessions[session.session_id] = session
        logger.info(f"Created session {session.session_id}")
        return session

    def get_session(self, session_id: str) -> RagSession:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise KeyError(f"Session {session_id} not found") from None

    def delete_session(self, session_id: str) -> None:
        self.get_session(session_id)
        del self._sessions[session_id]
        logger.info(f"Deleted session {session_id}")

    def list_sessions(self) -> List[RagSession]:
        return list(self._sessions.values())

    @staticmethod
    def _ensure_not_indexing(session: RagSession) -> None:
        if session.status == SessionManager.STATUS_INDEXING:
            raise BusinessLogicError("Still indexing resume. Please wait...", rule="index_in_flight")

    @staticmethod
    def _ensure_ready(session: RagSession) -> None:
        SessionManager._ensure_not_indexing(session)
        if session.status != SessionManager.STATUS_READY or session.document is None:
            raise BusinessLogicError("Resume data missing. Please upload a resume first.", rule="index_required")

    async def index_document(self, session_id: str, document: StructuredDocument) -> RagSession:
        session = self.get_session(session_id)
        self._ensure_not_indexing(session)
        if document.is_empty():
            raise EmptyInputError("Document has no content to index", field="document")

        if session.status == self.STATUS_READY and session.document == document:
            logger.info(f"Session {session_id}: document unchanged, keeping existing index")
            return session

        session.usage.check()
        session.status = self.STATUS_INDEXING
        session.error = None
        session.copilot = None
        session.transcript = []
        session.on_progress(0, 0)
        session.touch()
        try:
            store = await build_index(document, on_progress=session.on_progress, usage=session.usage)
        except Exception as e:
            session.status = self.STATUS_FAILED
            session.error = str(e)
            session.touch()
            logger.error(f"Session {session_id}: indexing failed: {e}")
            raise

        session.document = document
        session.vector_store = store
        session.corpus_size = len(chunk_document(document))
        session.status = self.STATUS_READY
        session.touch()
        logger.info(f"Session {session_id}: indexed {len(store)} items, {session.usage.total} tokens used")
        return session

    async def ingest_upload(self, session_id: str, filename: str, content_base64: str) -> RagSession:
        session = self.get_session(session_id)
        self._ensure_not_indexing(session)
        session.usage.check()
        document = await _run_blocking(parse_resume_upload, filename, content_base64, session.usage)
        return await self.index_document(session_id, document)

    async def get_context(
        self, session_id: str, jd_text: str, options: Optional[RetrievalOptions] = None
    ) -> RetrievalResult:
        session = self.get_session(session_id)
        self._ensure_ready(session)
        session.usage.check()
        result = await _run_blocking(retrieve, jd_text, session.vector_store, options, session.usage)
        session.last_requirements = result.requirements
        session.touch()
        return result

    async def start_copilot(
        self,
        session_id: str,
        action: str,
        jd_text: str,
        company: str = None,
        role: str = None,
        tone: str = None,
    ) -> List[ChatMessage]:
        session = self.get_session(session_id)
        self._ensure_ready(session)
        if not jd_text or not jd_text.strip():
            raise EmptyInputError("Please enter a job description first.", field="jd_text")
        session.usage.check()

        options = RetrievalOptions(requirement_count=5, req_match_count=5)
        result = await self.get_context(session_id, jd_text, options)
        copilot = JobAppCopilot(jd_text, result.context, result.requirements, company, role, usage=session.usage)
        tone = tone or DEFAULT_TONE

        if action == ACTION_COVER_LETTER:
            draft = await _run_blocking(copilot.draft_cover_letter, tone)
            opening = ChatMessage(role="model", text=draft)
        elif action == ACTION_INTERVIEW_PREP:
            await _run_blocking(copilot.start_question_mode, tone)
            opening = ChatMessage(
                role="model",
                text=(
                    f"I'm ready to help you prepare for the **{copilot.role}** role at **{copilot.company}**. "
                    "You can ask me generic interview questions or paste specific questions from the portal."
                ),
            )
        else:
            raise BusinessLogicError(f"Unknown copilot action: {action}", rule="copilot_action")

        session.copilot = copilot
        session.transcript = [opening]
        session.touch()
        return list(session.transcript)

    async def send_message(self, session_id: str, text: str) -> List[ChatMessage]:
        session = self.get_session(session_id)
        if not text or not text.strip():
            raise EmptyInputError("Message is empty", field="text")
        if session.copilot is None:
            raise BusinessLogicError("Session not started. Please initialize a task first.", rule="copilot_required")
        session.usage.check()

        user_msg = ChatMessage(role="user", text=text)
        reply = await _run_blocking(session.copilot.send_message, text)
        session.transcript.extend([user_msg, ChatMessage(role="model", text=reply)])
        session.touch()
        return list(session.transcript)

    async def tailor(self, session_id: str, jd_text: str) -> StructuredDocument:
        session = self.get_session(session_id)
        self._ensure_not_indexing(session)
        if session.document is None:
            raise BusinessLogicError("Resume data missing. Please upload a resume first.", rule="document_required")
        if not jd_text or not jd_text.strip():
            raise EmptyInputError("Please enter a job description first.", field="jd_text")
        session.usage.check()
        tailored = await _run_blocking(
            tailor_resume, session.document, jd_text, session.last_requirements, session.usage
        )
        session.touch()
        return tailored


session_manager = SessionManager()

"""
Job application copilot: cover letters, interview answers and résumé tailoring,
grounded in retrieved evidence.
"""
import json
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from jobalign.helpers.prompts import COVER_LETTER_SYSTEM_PROMPT, QUESTION_MODE_SYSTEM_PROMPT, TAILOR_PROMPT
from jobalign.models.ai_settings import get_settings
from jobalign.models.models import ChatSession, StructuredDocument
from jobalign.services.resume_parser import RESUME_SCHEMA
from jobalign.utils.exceptions import ModelError
from jobalign.utils.logging_config import get_logger
from jobalign.utils.usage import TokenUsage
from jobalign.utils.utils import ollama_chat, ollama_generate, safe_json

logger = get_logger(__name__)

DEFAULT_TONE = "professional and confident"
DEFAULT_COMPANY = "the hiring company"
DEFAULT_ROLE = "the open position"

PRIMER_USER = "I am ready to start."
PRIMER_MODEL = "Understood. I have reviewed your resume context and the job description."
COVER_LETTER_REQUEST = "Draft the cover letter now based on the provided instructions."
QUESTION_MODE_READY = "Ready. What question would you like me to answer?"
SESSION_NOT_STARTED = "Session not started. Please initialize a task first."


class JobAppCopilot:
    def __init__(
        self,
        jd_text: str,
        evidence: str,
        requirements: List[str],
        company: str = None,
        role: str = None,
        usage: Optional[TokenUsage] = None,
    ):
        self.jd_text = jd_text
        self.evidence = evidence
        self.requirements = "\n".join(f"- {r}" for r in requirements)
        self.company = (company or "").strip() or DEFAULT_COMPANY
        self.role = (role or "").strip() or DEFAULT_ROLE
        self.usage = usage
        self.session: Optional[ChatSession] = None

    def _start_session(self, template: str, temperature: float, tone: str) -> ChatSession:
        system_prompt = template.format(
            jd=self.jd_text,
            requirements=self.requirements,
            evidence=self.evidence,
            company=self.company,
            role=self.role,
            tone=tone,
        )
        session = ChatSession(system_prompt=system_prompt, temperature=temperature)
        session.append("user", PRIMER_USER)
        session.append("model", PRIMER_MODEL)
        self.session = session
        return session

    def _exchange(self, text: str) -> str:
        # history only records completed turns
        messages = self.session.to_messages() + [{"role": "user", "content": text}]
        reply = ollama_chat(messages, temperature=self.session.temperature, usage=self.usage)
        self.session.append("user", text)
        self.session.append("model", reply)
        return reply

    def draft_cover_letter(self, tone: str = DEFAULT_TONE) -> str:
        self._start_session(COVER_LETTER_SYSTEM_PROMPT, 0.7, tone)
        letter = self._exchange(COVER_LETTER_REQUEST)
        if not letter.strip():
            raise ModelError("The model returned an empty cover letter", operation="draft_cover_letter")
        return letter

    def start_question_mode(self, tone: str = DEFAULT_TONE) -> str:
        self._start_session(QUESTION_MODE_SYSTEM_PROMPT, 0.2, tone)
        return QUESTION_MODE_READY

    def send_message(self, message: str) -> str:
        if self.session is None:
            return SESSION_NOT_STARTED
        return self._exchange(message)


def tailor_resume(
    document: StructuredDocument,
    jd_text: str,
    requirements: Optional[List[str]] = None,
    usage: Optional[TokenUsage] = None,
) -> StructuredDocument:
    """Rewrite the résumé for a JD. Contact info and education are always kept as-is."""
    limit = get_settings().processing.tailor_jd_chars
    prompt = TAILOR_PROMPT.format(
        jd=jd_text[:limit],
        requirements=", ".join(requirements or []),
        resume=json.dumps(document.model_dump(), ensure_ascii=False),
    )
    resp = ollama_generate(prompt, temperature=0, schema=RESUME_SCHEMA, usage=usage)
    data = safe_json(resp, fallback=None)
    if not isinstance(data, dict):
        raise ModelError("The model returned no tailored resume", operation="tailor_resume")

    try:
        tailored = StructuredDocument.model_validate(data)
    except PydanticValidationError as e:
        raise ModelError("Tailored resume does not match the schema", operation="tailor_resume", cause=e) from e

    return tailored.model_copy(update={
        "contact_info": document.contact_info,
        "education": document.education,
    })

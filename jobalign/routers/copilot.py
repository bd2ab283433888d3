from fastapi import APIRouter, Request

from jobalign.models.models import StructuredDocument
from jobalign.models.schemas import ChatResponse, CopilotRequest, MessageRequest, TailorRequest, TokenUsageModel
from jobalign.routers.sessions import lookup_session
from jobalign.services.session_manager import session_manager
from jobalign.utils.exceptions import ExceptionContext
from jobalign.utils.logging_config import PerformanceMonitor, get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.post("/{session_id}/copilot", response_model=ChatResponse)
async def start_copilot(session_id: str, payload: CopilotRequest, request: Request):
    """Retrieve evidence for the JD, then draft a cover letter or open interview Q&A"""
    request_id = getattr(request.state, 'request_id', 'unknown')
    session = lookup_session(session_id, request_id)

    with PerformanceMonitor("start_copilot", logger, threshold_ms=30000):
        with ExceptionContext("start_copilot", logger, request_id=request_id, session_id=session_id, action=payload.action):
            messages = await session_manager.start_copilot(
                session_id,
                payload.action,
                payload.jd_text,
                company=payload.company,
                role=payload.role,
                tone=payload.tone,
            )

    return ChatResponse(session_id=session_id, messages=messages, token_usage=TokenUsageModel.from_usage(session.usage))


@router.post("/{session_id}/copilot/messages", response_model=ChatResponse)
async def send_message(session_id: str, payload: MessageRequest, request: Request):
    request_id = getattr(request.state, 'request_id', 'unknown')
    session = lookup_session(session_id, request_id)

    with ExceptionContext("copilot_message", logger, request_id=request_id, session_id=session_id):
        messages = await session_manager.send_message(session_id, payload.text)

    return ChatResponse(session_id=session_id, messages=messages, token_usage=TokenUsageModel.from_usage(session.usage))


@router.post("/{session_id}/tailor", response_model=StructuredDocument)
async def tailor(session_id: str, payload: TailorRequest, request: Request):
    """Résumé rewritten for the JD; contact info and education are left untouched"""
    request_id = getattr(request.state, 'request_id', 'unknown')
    lookup_session(session_id, request_id)

    with PerformanceMonitor("tailor_resume", logger, threshold_ms=30000):
        with ExceptionContext("tailor_resume", logger, request_id=request_id, session_id=session_id):
            return await session_manager.tailor(session_id, payload.jd_text)

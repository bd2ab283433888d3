from fastapi import APIRouter, Request

from jobalign.models.schemas import ContextRequest, ContextResponse, TokenUsageModel
from jobalign.routers.sessions import lookup_session
from jobalign.services.session_manager import session_manager
from jobalign.utils.exceptions import ExceptionContext
from jobalign.utils.logging_config import PerformanceMonitor, get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.post("/{session_id}/context", response_model=ContextResponse)
async def get_context(session_id: str, payload: ContextRequest, request: Request):
    """Grounding context for a job description, drawn from the session's résumé index"""
    request_id = getattr(request.state, 'request_id', 'unknown')
    session = lookup_session(session_id, request_id)

    with PerformanceMonitor("get_context", logger, threshold_ms=10000):
        with ExceptionContext("get_context", logger, request_id=request_id, session_id=session_id):
            result = await session_manager.get_context(session_id, payload.jd_text, payload.options)

    logger.info(
        f"Context built for session {session_id}: {len(result.selected_ids)} items",
        extra={"request_id": request_id, "session_id": session_id}
    )
    return ContextResponse(
        session_id=session_id,
        context=result.context,
        requirements=result.requirements,
        selected_ids=result.selected_ids,
        token_usage=TokenUsageModel.from_usage(session.usage),
    )

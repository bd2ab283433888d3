from typing import List

from fastapi import APIRouter, HTTPException, Request

from jobalign.models.models import StructuredDocument
from jobalign.models.schemas import ResumeUpload, SessionModel
from jobalign.services.session_manager import RagSession, session_manager
from jobalign.utils.exceptions import ExceptionContext
from jobalign.utils.logging_config import PerformanceMonitor, get_logger

router = APIRouter()
logger = get_logger(__name__)


def lookup_session(session_id: str, request_id: str = "unknown") -> RagSession:
    try:
        return session_manager.get_session(session_id)
    except KeyError:
        logger.warning(
            f"Session not found: {session_id}",
            extra={"request_id": request_id, "session_id": session_id}
        )
        raise HTTPException(status_code=404, detail="Session not found")


@router.post("/", response_model=SessionModel)
async def create_session(request: Request):
    """Start a new session with an empty index and a fresh token counter"""
    request_id = getattr(request.state, 'request_id', 'unknown')
    session = session_manager.create_session()
    logger.info(
        f"Session created: {session.session_id}",
        extra={"request_id": request_id, "session_id": session.session_id}
    )
    return SessionModel.from_session(session)


@router.get("/all", response_model=List[SessionModel])
async def list_all_sessions():
    """All live sessions"""
    return [SessionModel.from_session(s) for s in session_manager.list_sessions()]


@router.get("/{session_id}", response_model=SessionModel)
async def get_session(session_id: str, request: Request):
    """Session status, indexing progress and token usage"""
    request_id = getattr(request.state, 'request_id', 'unknown')
    return SessionModel.from_session(lookup_session(session_id, request_id))


@router.delete("/{session_id}")
async def delete_session(session_id: str, request: Request):
    request_id = getattr(request.state, 'request_id', 'unknown')
    lookup_session(session_id, request_id)
    session_manager.delete_session(session_id)
    return {"session_id": session_id, "deleted": True}


@router.post("/{session_id}/document", response_model=SessionModel)
async def index_document(session_id: str, document: StructuredDocument, request: Request):
    """Index an already structured résumé"""
    request_id = getattr(request.state, 'request_id', 'unknown')
    lookup_session(session_id, request_id)

    with PerformanceMonitor("index_document", logger, threshold_ms=60000):
        with ExceptionContext("index_document", logger, request_id=request_id, session_id=session_id):
            session = await session_manager.index_document(session_id, document)

    return SessionModel.from_session(session)


@router.post("/{session_id}/resume", response_model=SessionModel)
async def upload_resume(session_id: str, payload: ResumeUpload, request: Request):
    """Parse an uploaded résumé file (base64) and index it"""
    request_id = getattr(request.state, 'request_id', 'unknown')
    lookup_session(session_id, request_id)
    logger.info(
        f"Resume upload for session {session_id}: {payload.filename}",
        extra={"request_id": request_id, "session_id": session_id, "upload_name": payload.filename}
    )

    with PerformanceMonitor("upload_resume", logger, threshold_ms=60000):
        with ExceptionContext("upload_resume", logger, request_id=request_id, session_id=session_id):
            session = await session_manager.ingest_upload(session_id, payload.filename, payload.content_base64)

    return SessionModel.from_session(session)

"""Learning session API endpoints."""

from uuid import UUID

from fastapi import APIRouter

from coursepath.auth import CurrentAuth
from coursepath.auth.context import AuthContext
from coursepath.courses.catalog import CourseCatalog

from .repository import SqlAlchemySessionStore
from .schemas import AdvanceResult, AnswerRequest, InsightsRecorded, InsightsRequest, LearningSessionResponse
from .service import SessionService


router = APIRouter(prefix="/api/v1/sessions", tags=["sessions"])


def build_session_service(auth: AuthContext) -> SessionService:
    """Wire the session core to the request's database session."""
    return SessionService(SqlAlchemySessionStore(auth.session), CourseCatalog(auth.session))


@router.get("/{session_id}")
async def get_session(session_id: UUID, auth: CurrentAuth) -> LearningSessionResponse:
    """Get a learning session with its insights."""
    return await build_session_service(auth).get_session(auth.user_id, session_id)


@router.post("/{session_id}/next-block")
async def advance_session(session_id: UUID, auth: CurrentAuth) -> AdvanceResult:
    """Complete the current block and move to the next one."""
    return await build_session_service(auth).advance(auth.user_id, session_id)


@router.post("/{session_id}/answer")
async def submit_answer(session_id: UUID, request: AnswerRequest, auth: CurrentAuth) -> LearningSessionResponse:
    """Submit an answer and return the session with its updated question index."""
    service = build_session_service(auth)
    await service.submit_answer(auth.user_id, session_id, request.answer)
    return await service.get_session(auth.user_id, session_id)


@router.post("/{session_id}/insights")
async def record_insights(session_id: UUID, request: InsightsRequest, auth: CurrentAuth) -> InsightsRecorded:
    """Record insights against the session's current block."""
    return await build_session_service(auth).record_insights(auth.user_id, session_id, request.insights)

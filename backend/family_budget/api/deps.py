from fastapi import HTTPException, Request

from ..config import Settings
from ..services import IngestionWorkflow, QrDecoder
from ..store import PARTICIPANTS, RecordStore

MAX_UPLOAD_BYTES = 10 * 1024 * 1024


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> RecordStore:
    """FastAPI dependency for the record store opened at startup."""
    return request.app.state.store


def get_workflow(request: Request) -> IngestionWorkflow:
    return request.app.state.workflow


def get_decoder(request: Request) -> QrDecoder:
    return request.app.state.workflow.decoder


def require_role(request: Request) -> str:
    """Role of the logged in participant; 401 without a session."""
    role = request.session.get("role")
    if role not in PARTICIPANTS:
        raise HTTPException(status_code=401, detail="Не авторизован")
    return role

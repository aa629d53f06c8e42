from fastapi import APIRouter, Depends, HTTPException, Request

from ..config import Settings
from ..logging import get_logger
from ..schemas import LoginRequest, LoginResponse, MeResponse, SuccessResponse
from .deps import get_settings

logger = get_logger(__name__)

router = APIRouter()


@router.post("/auth", response_model=LoginResponse)
def login(body: LoginRequest, request: Request, settings: Settings = Depends(get_settings)):
    """Log in with a participant PIN."""
    role = settings.pins().get(str(body.pin))
    if role is None:
        logger.warning("Login attempt with a wrong PIN")
        raise HTTPException(status_code=401, detail="Неверный PIN")

    request.session["role"] = role
    logger.info(f"{role} logged in")
    return LoginResponse(role=role)


@router.post("/logout", response_model=SuccessResponse)
def logout(request: Request):
    request.session.pop("role", None)
    return SuccessResponse()


@router.get("/me", response_model=MeResponse)
def current_user(request: Request):
    """Get the logged in participant, if any."""
    return MeResponse(role=request.session.get("role"))

from pydantic import BaseModel


class LoginRequest(BaseModel):
    """PIN login."""
    pin: str | int


class LoginResponse(BaseModel):
    success: bool = True
    role: str


class MeResponse(BaseModel):
    """Role of the logged in participant, or None."""
    role: str | None = None


class SuccessResponse(BaseModel):
    success: bool = True

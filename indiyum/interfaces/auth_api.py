from fastapi import APIRouter, Header, Request
from typing import Optional

from indiyum.core.errors import AuthenticationError
from indiyum.domain.schemas import LoginRequest, RegisterRequest

router = APIRouter()


@router.post("/register")
async def register(payload: RegisterRequest, request: Request):
    return await request.app.state.auth_service.register(payload)


@router.post("/login")
async def login(payload: LoginRequest, request: Request):
    return await request.app.state.auth_service.login(payload)


@router.get("/me")
async def me(request: Request, authorization: Optional[str] = Header(None)):
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Missing bearer token", reason="missing_token")
    user = await request.app.state.auth_service.me(token.strip())
    return {"user": user}

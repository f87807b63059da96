import asyncio
import logging

from indiyum.core.clock import now_iso
from indiyum.core.errors import AuthenticationError, ValidationError
from indiyum.core.security import check_password, hash_password
from indiyum.domain.models import User
from indiyum.domain.schemas import LoginRequest, RegisterRequest
from indiyum.infrastructure.repositories.document_repository import next_record_id
from indiyum.infrastructure.session_store import SessionStore
from indiyum.interfaces.IOrderRepository import IOrderRepository

logger = logging.getLogger(__name__)


class AuthService:
    """Email/password accounts with opaque bearer tokens. Not tied to orders."""

    def __init__(self, repo: IOrderRepository, sessions: SessionStore, timezone: str):
        self.repo = repo
        self.sessions = sessions
        self.timezone = timezone

    async def register(self, req: RegisterRequest) -> dict:
        email = req.email.lower()
        password_hash = await asyncio.to_thread(hash_password, req.password)

        async with self.repo.edit() as document:
            if any(u.email == email for u in document.users):
                raise ValidationError("Email already registered", reason="email_taken")
            user = User(
                id=next_record_id(document.users),
                name=req.name.strip(),
                email=email,
                phone=req.phone,
                password_hash=password_hash,
                created_at=now_iso(self.timezone),
            )
            document.users.append(user)

        logger.info(f"👤 Registered user {user.id}")
        return {"user": user.public(), "token": self.sessions.issue(user.id)}

    async def login(self, req: LoginRequest) -> dict:
        email = req.email.lower()
        document = await self.repo.read()
        user = next((u for u in document.users if u.email == email), None)
        if not user or not await asyncio.to_thread(check_password, req.password, user.password_hash):
            raise AuthenticationError("Invalid credentials", reason="invalid_credentials")

        # A new login invalidates older tokens.
        self.sessions.revoke_user(user.id)
        return {"user": user.public(), "token": self.sessions.issue(user.id)}

    async def me(self, token: str) -> dict:
        user_id = self.sessions.resolve(token)
        if user_id is None:
            raise AuthenticationError("Invalid or expired token", reason="invalid_token")

        document = await self.repo.read()
        user = next((u for u in document.users if u.id == user_id), None)
        if not user:
            raise AuthenticationError("Invalid or expired token", reason="invalid_token")
        return user.public()

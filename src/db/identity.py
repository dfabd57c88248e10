# issues the principal that authorizes store access for one client run
import hashlib
import uuid
from datetime import datetime, timezone

import aiosqlite

from db.database import Database
from db.models import Identity
from shop.errors import AuthError
from utils.logger import get_logger

_logger = get_logger(__name__)


class IdentityService:
    def __init__(self, db: Database):
        self._db = db

    async def _register(self, uid: str, provider: str) -> Identity:
        created_at = datetime.now(timezone.utc)
        try:
            async with self._db.connect() as conn:
                await conn.execute(
                    """
                    INSERT INTO identities(uid, provider, created_at) VALUES (?, ?, ?)
                    ON CONFLICT(uid) DO NOTHING;
                    """,
                    (uid, provider, created_at.isoformat()),
                )
                await conn.commit()
        except (aiosqlite.Error, OSError) as exc:
            raise AuthError(f"Sign-in failed: {exc}") from exc
        _logger.info(f"Signed in as {provider} principal {uid[:8]}...")
        return Identity(uid=uid, provider=provider, created_at=created_at)

    async def sign_in_anonymously(self) -> Identity:
        """Issue a fresh anonymous principal."""
        return await self._register(uuid.uuid4().hex, "anonymous")

    async def sign_in_with_token(self, token: str) -> Identity:
        """
        Issue the principal bound to a pre-shared token.
        The same token always maps to the same uid.
        """
        if not token:
            raise AuthError("Empty sign-in token.")
        uid = hashlib.sha256(token.encode("utf-8")).hexdigest()[:32]
        return await self._register(uid, "token")

import hmac
from typing import Optional

from shop.errors import AdminAuthError
from utils.logger import get_logger

_logger = get_logger(__name__)


class AccessGate:
    """
    Shared-secret gate in front of the admin dashboard.

    This only hides screens on this client. It binds to no session, never
    expires and grants nothing on the store side; whoever can reach the store
    file can write to it.
    """

    def __init__(self, admin_secret: Optional[str]):
        self._secret = admin_secret
        self.is_admin = False

    def check_admin_password(self, candidate: str) -> bool:
        if not self._secret:
            _logger.warning("Admin login attempted but no admin password is configured.")
            return False
        ok = hmac.compare_digest(
            (candidate or "").encode("utf-8"), self._secret.encode("utf-8")
        )
        if ok:
            self.is_admin = True
            _logger.info("Admin dashboard unlocked.")
        else:
            _logger.info("Admin password rejected.")
        return ok

    def require_admin(self) -> None:
        if not self.is_admin:
            raise AdminAuthError("Admin password required.")

    def lock(self) -> None:
        self.is_admin = False

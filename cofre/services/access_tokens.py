"""
Short-lived access tokens.

Used for vault invitation codes: a member of a chat bound to a vault issues a
code, another chat redeems it with ``/join`` before it expires. Expiry is
checked lazily on every read, and every ``issue`` first sweeps out stale
entries so unredeemed codes do not pile up.
"""

import logging
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from cofre.config import ACCESS_TOKEN_TTL

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessGrant:
    """What a token gives access to."""

    chat_id: str
    vault_id: str
    expires_at: float


class AccessTokenStore:
    """In-process token store with a fixed time-to-live."""

    TOKEN_BYTES = 6

    def __init__(
        self,
        ttl_seconds: float = ACCESS_TOKEN_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be > 0, got {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._grants: dict[str, AccessGrant] = {}
        self._lock = threading.Lock()

    def issue(self, chat_id: str, vault_id: str) -> str:
        """Create a token granting access to ``vault_id``, issued from ``chat_id``."""
        self.sweep()
        token = secrets.token_hex(self.TOKEN_BYTES)
        with self._lock:
            self._grants[token] = AccessGrant(
                chat_id=chat_id,
                vault_id=vault_id,
                expires_at=self._clock() + self.ttl_seconds,
            )
        logger.debug(f"Issued access token for vault {vault_id}")
        return token

    def resolve(self, token: str) -> Optional[AccessGrant]:
        """Return the grant behind ``token``, or None if unknown or expired."""
        with self._lock:
            grant = self._grants.get(token)
            if grant is None:
                return None
            if grant.expires_at <= self._clock():
                del self._grants[token]
                logger.debug("Access token expired")
                return None
            return grant

    def revoke(self, token: str) -> bool:
        with self._lock:
            return self._grants.pop(token, None) is not None

    def sweep(self) -> int:
        """
        Remove every expired token.

        Returns:
            Number of tokens removed
        """
        now = self._clock()
        with self._lock:
            expired = [t for t, g in self._grants.items() if g.expires_at <= now]
            for token in expired:
                del self._grants[token]
        if expired:
            logger.info(f"Swept {len(expired)} expired access token(s)")
        return len(expired)

    def __len__(self) -> int:
        return len(self._grants)

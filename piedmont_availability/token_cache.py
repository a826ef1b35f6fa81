import logging
import os
import threading
import time
from typing import Callable, Optional

from piedmont_availability import config
from piedmont_availability.models import Credential

logger = logging.getLogger(__name__)

TokenSource = Callable[[], str]
ExternalTokenSource = Callable[[], Optional[str]]


def token_from_environment() -> Optional[str]:
    """Reads an out-of-band token (e.g. set by a scheduled refresh job)."""
    value = os.environ.get(config.EXTERNAL_TOKEN_ENV, "").strip()
    return value or None


class TokenCache:
    """Holds the one active Booker credential for this process.

    Resolution order on a miss: cached credential, externally supplied token,
    then ``acquire()``. Acquisition failures propagate unchanged.
    """

    def __init__(
        self,
        acquire: TokenSource,
        clock: Callable[[], float] = time.time,
        external_token: Optional[ExternalTokenSource] = token_from_environment,
        ttl_seconds: int = config.TOKEN_CACHE_SECONDS,
        external_ttl_seconds: int = config.EXTERNAL_TOKEN_CACHE_SECONDS,
    ):
        self._acquire = acquire
        self._clock = clock
        self._external_token = external_token
        self._ttl_seconds = ttl_seconds
        self._external_ttl_seconds = external_ttl_seconds
        self._credential: Optional[Credential] = None
        self._lock = threading.Lock()

    @property
    def credential(self) -> Optional[Credential]:
        return self._credential

    def _valid_credential(self) -> Optional[Credential]:
        credential = self._credential
        if credential and not credential.is_expired(self._clock()):
            return credential
        return None

    def get_token(self) -> str:
        credential = self._valid_credential()
        if credential:
            logger.debug(f"Using cached {credential.source} token")
            return credential.value

        with self._lock:
            # Another caller may have refreshed while we waited
            credential = self._valid_credential()
            if credential:
                return credential.value

            now = self._clock()
            external = self._external_token() if self._external_token else None
            if external:
                logger.info(f"Using externally supplied token from {config.EXTERNAL_TOKEN_ENV}")
                credential = Credential(
                    value=external,
                    acquired_at=now,
                    expires_at=now + self._external_ttl_seconds,
                    source="external",
                )
            else:
                token = self._acquire()
                now = self._clock()
                credential = Credential(
                    value=token,
                    acquired_at=now,
                    expires_at=now + self._ttl_seconds,
                    source="browser",
                )
                logger.info(f"Cached new token for {self._ttl_seconds // 60} minutes")

            self._credential = credential
            return credential.value

    def invalidate(self):
        """Drops the cached credential; the next get_token() re-resolves."""
        with self._lock:
            self._credential = None
        logger.info("Token cache invalidated")

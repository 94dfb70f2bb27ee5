"""TokenCache — single-slot OAuth bearer token cache for Sber SmartSpeech."""
import asyncio
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from src.constants import (
    MSG_AUTH_CACHED,
    MSG_AUTH_OK,
    MSG_AUTH_REQUESTING,
    SBER_AUTH_TIMEOUT,
    SBER_OAUTH_URL,
    SBER_SCOPE,
    TOKEN_DEFAULT_LIFETIME,
    TOKEN_SAFETY_MARGIN,
)
from src.errors import AuthError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BearerToken:
    value: str
    expires_at: float

    def usable_at(self, now: float, margin: float = TOKEN_SAFETY_MARGIN) -> bool:
        """True while the token cannot expire during a request started at `now`."""
        return now < self.expires_at - margin


class TokenCache:
    """Holds at most one bearer token; refreshes are single-flight.

    Concurrent callers that find the slot cold or stale wait on the same
    lock, and all but the first find a fresh token on re-check.
    """

    def __init__(
        self,
        client_secret: str,
        http_client: httpx.AsyncClient,
        *,
        url: str = SBER_OAUTH_URL,
        scope: str = SBER_SCOPE,
        timeout: float = SBER_AUTH_TIMEOUT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client_secret = client_secret
        self._http = http_client
        self._url = url
        self._scope = scope
        self._timeout = timeout
        self._clock = clock
        self._token: Optional[BearerToken] = None
        self._refresh_lock = asyncio.Lock()

    @property
    def current(self) -> Optional[BearerToken]:
        return self._token

    def invalidate(self) -> None:
        self._token = None

    async def get_token(self) -> BearerToken:
        fresh = self._fresh()
        match fresh:
            case BearerToken():
                return fresh
            case None:
                pass

        async with self._refresh_lock:
            fresh = self._fresh()
            match fresh:
                case BearerToken():
                    return fresh
                case None:
                    token = await self._request_token()
                    self._token = token
                    return token

    def _fresh(self) -> Optional[BearerToken]:
        token, now = self._token, self._clock()
        match token:
            case BearerToken() if token.usable_at(now):
                logger.debug(MSG_AUTH_CACHED, int(token.expires_at - now))
                return token
            case _:
                return None

    async def _request_token(self) -> BearerToken:
        headers = {
            "Authorization": f"Basic {self._client_secret}",
            "RqUID": str(uuid.uuid4()),
            "Content-Type": "application/x-www-form-urlencoded",
        }
        logger.info(MSG_AUTH_REQUESTING)
        try:
            response = await self._http.post(
                self._url,
                data={"scope": self._scope},
                headers=headers,
                timeout=self._timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise AuthError(
                f"OAuth endpoint returned {exc.response.status_code}", cause=exc
            ) from exc
        except httpx.HTTPError as exc:
            raise AuthError(str(exc) or type(exc).__name__, cause=exc) from exc
        except ValueError as exc:
            raise AuthError("OAuth response is not valid JSON", cause=exc) from exc

        match payload:
            case {"access_token": str() as value} if value:
                pass
            case _:
                raise AuthError("Failed to obtain access token")

        lifetime = payload.get("expires_at") or TOKEN_DEFAULT_LIFETIME
        try:
            lifetime = float(lifetime)
        except (TypeError, ValueError) as exc:
            raise AuthError(f"Invalid token lifetime: {lifetime!r}", cause=exc) from exc

        logger.info(MSG_AUTH_OK, int(lifetime))
        return BearerToken(value=value, expires_at=self._clock() + lifetime)

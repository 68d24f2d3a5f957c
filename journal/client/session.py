import inspect
import logging
from typing import Awaitable, Callable, Optional, Union

import httpx

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Union[Optional[str], Awaitable[Optional[str]]]]


class JournalSession:
    """Сессия пользователя на клиенте.

    Явный объект вместо глобального контекста авторизации: хранит
    источник токена и HTTP-клиент, открывается и закрывается явно.
    После ответа 401 сессия считается завершенной.
    """

    def __init__(
        self,
        base_url: str,
        token_provider: TokenProvider,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url
        self.token_provider = token_provider
        self._transport = transport
        self._timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None
        self.signed_out = False

    @property
    def is_open(self) -> bool:
        return self._client is not None

    async def open(self) -> "JournalSession":
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={"Content-Type": "application/json"},
                transport=self._transport,
                timeout=self._timeout,
            )
            self.signed_out = False
        return self

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "JournalSession":
        return await self.open()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _token(self) -> Optional[str]:
        token = self.token_provider()
        if inspect.isawaitable(token):
            token = await token
        return token

    async def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Запрос с токеном в заголовке Authorization"""
        if self._client is None:
            raise RuntimeError("Session is not open")

        headers = dict(kwargs.pop("headers", None) or {})
        token = await self._token()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        response = await self._client.request(method, url, headers=headers, **kwargs)
        if response.status_code == 401:
            logger.warning(f"{method} {url} rejected with 401, session signed out")
            self.signed_out = True
        return response

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx

from .config import Settings


@asynccontextmanager
async def http_client(
    settings: Settings, client: Optional[httpx.AsyncClient] = None
) -> AsyncIterator[httpx.AsyncClient]:
    """
    Yield `client` if one was passed in, otherwise a short-lived client that
    is closed on exit.
    """
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as owned:
        yield owned

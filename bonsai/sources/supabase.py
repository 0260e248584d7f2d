"""Remote table source speaking the Supabase (PostgREST) REST dialect."""

import json
import logging
from typing import List, Optional

import aiohttp

from bonsai.shared.config import RemoteConfig
from bonsai.shared.errors import ParseError, TransportError

from .base import RawRow, SourceAdapter

logger = logging.getLogger(__name__)


class SupabaseTableSource(SourceAdapter):
    """Fetches every row of a table or view, ordered by a timestamp column.

    ``relation`` may name a plain table or a server-side computed view.
    """

    name = "remote"

    def __init__(
        self,
        remote_config: RemoteConfig,
        relation: str,
        order_column: str = "timestamp",
        timeout: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.remote_config = remote_config
        self.relation = relation
        self.order_column = order_column
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None
        logger.info(f"Initialized SupabaseTableSource for {relation} ordered by {order_column}")

    @property
    def endpoint(self) -> str:
        return f"{self.remote_config.url}/rest/v1/{self.relation}"

    def _headers(self) -> dict:
        return {
            "apikey": self.remote_config.key,
            "Authorization": f"Bearer {self.remote_config.key}",
            "Accept": "application/json",
        }

    def _params(self) -> dict:
        return {"select": "*", "order": f"{self.order_column}.asc"}

    async def fetch_batch(self) -> List[RawRow]:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )

        try:
            async with self._session.get(
                self.endpoint, params=self._params(), headers=self._headers()
            ) as response:
                body = await response.text()
                if response.status >= 400:
                    raise TransportError(
                        f"Query on {self.relation} returned {response.status}: {body[:200]}",
                        status=response.status,
                    )
        except aiohttp.ClientError as e:
            raise TransportError(f"Query on {self.relation} failed: {e}") from e

        try:
            data = json.loads(body)
        except json.JSONDecodeError as e:
            raise ParseError(f"Response from {self.relation} is not JSON: {e}") from e

        if not isinstance(data, list) or not all(isinstance(row, dict) for row in data):
            raise ParseError(f"Response from {self.relation} is not a list of rows")

        logger.debug(f"Fetched {len(data)} rows from {self.relation}")
        return data

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

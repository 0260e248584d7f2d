"""Static delimited-text export, read from disk or over HTTP."""

import asyncio
import csv
import io
import logging
from pathlib import Path
from typing import List, Optional, Union

import aiohttp

from bonsai.shared.errors import ParseError, TransportError

from .base import RawRow, SourceAdapter

logger = logging.getLogger(__name__)


def parse_delimited(text: str, delimiter: str = ",") -> List[RawRow]:
    """Parse delimited text into rows keyed by the header line.

    Raises:
        ParseError: If there is no header or the text is not delimited data.
    """
    reader = csv.DictReader(io.StringIO(text), delimiter=delimiter)
    try:
        fieldnames = reader.fieldnames
        if not fieldnames or not any(name.strip() for name in fieldnames):
            raise ParseError("Delimited data is missing a header row")
        reader.fieldnames = [name.strip() for name in fieldnames]

        rows = []
        for row in reader:
            # Surplus cells land under the None key
            row.pop(None, None)
            rows.append(row)
        return rows
    except csv.Error as e:
        raise ParseError(f"Malformed delimited data: {e}") from e


class CsvFileSource(SourceAdapter):
    """Reads a delimited export from a local path or an http(s) URL."""

    name = "csv"

    def __init__(
        self,
        location: Union[str, Path],
        delimiter: str = ",",
        encoding: str = "utf-8-sig",
        timeout: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.location = str(location)
        self.delimiter = delimiter
        self.encoding = encoding
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None
        logger.info(f"Initialized CsvFileSource for {self.location}")

    @property
    def is_remote(self) -> bool:
        return self.location.startswith(("http://", "https://"))

    async def fetch_batch(self) -> List[RawRow]:
        if self.is_remote:
            text = await self._read_url()
        else:
            text = await self._read_file()

        rows = parse_delimited(text, self.delimiter)
        logger.debug(f"Parsed {len(rows)} rows from {self.location}")
        return rows

    async def _read_file(self) -> str:
        path = Path(self.location)
        try:
            return await asyncio.to_thread(path.read_text, encoding=self.encoding)
        except UnicodeDecodeError as e:
            raise ParseError(f"Could not decode {path} as {self.encoding}: {e}") from e
        except OSError as e:
            raise TransportError(f"Could not read {path}: {e}") from e

    async def _read_url(self) -> str:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )

        try:
            async with self._session.get(self.location) as response:
                if response.status >= 400:
                    raise TransportError(
                        f"GET {self.location} returned {response.status}",
                        status=response.status,
                    )
                body = await response.read()
        except aiohttp.ClientError as e:
            raise TransportError(f"GET {self.location} failed: {e}") from e

        try:
            return body.decode(self.encoding)
        except UnicodeDecodeError as e:
            raise ParseError(f"Could not decode response as {self.encoding}: {e}") from e

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

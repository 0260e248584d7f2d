"""Base class for row sources."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List
import logging

logger = logging.getLogger(__name__)

RawRow = Dict[str, Any]


class SourceAdapter(ABC):
    """Base class for anything that supplies a batch of raw rows."""

    name = "source"

    @abstractmethod
    async def fetch_batch(self) -> List[RawRow]:
        """Fetch the current snapshot of rows, oldest first.

        Raises:
            TransportError: If the source could not be reached.
            ParseError: If the response is not tabular data.
        """
        pass

    async def close(self) -> None:
        """Release any held connections."""
        pass

"""Shared fixtures for dashboard tests."""

import asyncio
from typing import List, Optional

import pytest

from bonsai.sources.base import RawRow, SourceAdapter


class StaticSource(SourceAdapter):
    """Returns the same rows every fetch, or raises the given error."""

    def __init__(self, rows: Optional[List[RawRow]] = None, error: Optional[BaseException] = None):
        self.rows = rows or []
        self.error = error
        self.calls = 0
        self.closed = False

    async def fetch_batch(self) -> List[RawRow]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.rows)

    async def close(self) -> None:
        self.closed = True


class GatedSource(SourceAdapter):
    """Blocks every fetch until the gate is opened."""

    def __init__(self, rows: List[RawRow]):
        self.rows = rows
        self.calls = 0
        self.active = 0
        self.max_active = 0
        self.gate = asyncio.Event()
        self.entered = asyncio.Event()
        self.closed = False

    async def fetch_batch(self) -> List[RawRow]:
        self.calls += 1
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        self.entered.set()
        try:
            await self.gate.wait()
            return list(self.rows)
        finally:
            self.active -= 1

    async def close(self) -> None:
        self.closed = True


def csv_row(timestamp, temperature="21.5", humidity="45.25", pressure="101325", battery="3700"):
    return {
        "Timestamp": timestamp,
        "Temperature (°C)": temperature,
        "Relative Humidity (%)": humidity,
        "Barometric Pressure (Pa)": pressure,
        "Battery Voltage (mV)": battery,
    }


@pytest.fixture
def three_rows() -> List[RawRow]:
    return [
        csv_row("2025-02-16T13:00:00Z", temperature="18.2"),
        csv_row("2025-02-16T13:05:00Z", temperature="19.5"),
        csv_row("2025-02-16T13:10:00Z", temperature="17.8"),
    ]

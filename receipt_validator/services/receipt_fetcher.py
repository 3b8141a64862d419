"""
Receipt fetchers - obtain the raw receipt bytes to verify.
"""

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Protocol

from structlog import get_logger

from receipt_validator.exceptions import FetchFailedError

logger = get_logger(__name__)


class ReceiptFetcher(Protocol):
    """Source of raw receipt bytes."""

    async def fetch(self, force_refresh: bool) -> bytes: ...


class FileReceiptFetcher:
    """
    Reads the receipt from a file.

    An optional refresh hook is awaited before reading when a refresh is
    forced or the file does not exist yet.
    """

    def __init__(
        self,
        path: Path | str,
        refresh: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        self.path = Path(path)
        self._refresh = refresh

    async def fetch(self, force_refresh: bool) -> bytes:
        """
        Read the receipt bytes.

        Raises:
            FetchFailedError: If the receipt is missing, empty or unreadable
        """
        if self._refresh is not None and (force_refresh or not self.path.exists()):
            logger.info("refreshing_local_receipt", path=str(self.path), forced=force_refresh)
            await self._refresh()

        try:
            data = await asyncio.to_thread(self.path.read_bytes)
        except FileNotFoundError as exc:
            raise FetchFailedError(f"No receipt found at {self.path}") from exc
        except OSError as exc:
            raise FetchFailedError(f"Could not read receipt at {self.path}: {exc}") from exc

        if not data:
            raise FetchFailedError(f"Receipt at {self.path} is empty")

        return data

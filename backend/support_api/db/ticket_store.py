"""
Local ticket store.

WHAT: Whole-document storage for the local ``{"tickets": [...]}`` JSON
document, with a file-backed and a memory-backed implementation.

WHY: The service must always have somewhere to keep tickets, including on
hosts whose filesystem is read-only. The store is chosen once at startup
and injected, so callers never know whether tickets reach the disk.

HOW: ``read_all`` returns the whole document and ``write_all`` replaces it.
There are no partial writes. ``ResilientTicketStore`` wraps the file store
and switches to memory for the rest of the process on the first
``StorageError``.
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError as PydanticValidationError

from support_api.core.config import Settings, settings as app_settings
from support_api.core.exceptions import StorageError
from support_api.schemas.ticket import TicketDocument

logger = logging.getLogger(__name__)


class TicketStore(ABC):
    """
    Abstract whole-document ticket store.

    Implementations must hand out documents the caller may mutate freely;
    changes only persist through ``write_all``.
    """

    name: str = "abstract"

    @abstractmethod
    def read_all(self) -> TicketDocument:
        """Return the full ticket document."""
        pass

    @abstractmethod
    def write_all(self, document: TicketDocument) -> None:
        """Replace the full ticket document."""
        pass


class MemoryTicketStore(TicketStore):
    """
    Process-lifetime in-memory store.

    Reads return deep copies so a caller cannot change stored state
    without calling ``write_all``.
    """

    name = "memory"

    def __init__(self, document: Optional[TicketDocument] = None):
        self._document = document.model_copy(deep=True) if document else TicketDocument()

    def read_all(self) -> TicketDocument:
        return self._document.model_copy(deep=True)

    def write_all(self, document: TicketDocument) -> None:
        self._document = document.model_copy(deep=True)


class FileTicketStore(TicketStore):
    """
    JSON file store.

    WHAT: Keeps the document in a single pretty-printed JSON file, created
    with an empty ticket list on first access.

    HOW: Writes go to a temporary file in the same directory, then
    ``os.replace`` swaps it in, so readers never see half a document.
    Any filesystem or decoding failure is raised as ``StorageError``.
    """

    name = "file"

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _ensure_file(self) -> None:
        if self.path.exists():
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._write_text(TicketDocument())

    def _write_text(self, document: TicketDocument) -> None:
        payload = json.dumps(document.model_dump(mode="json", by_alias=True), indent=2)
        fd, tmp_name = tempfile.mkstemp(
            dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, self.path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def read_all(self) -> TicketDocument:
        try:
            self._ensure_file()
            raw = self.path.read_text(encoding="utf-8")
            return TicketDocument.model_validate(json.loads(raw))
        except (OSError, ValueError, PydanticValidationError) as e:
            raise StorageError(
                message=f"Cannot read ticket file {self.path}: {e}",
                path=str(self.path),
            ) from e

    def write_all(self, document: TicketDocument) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._write_text(document)
        except OSError as e:
            raise StorageError(
                message=f"Cannot write ticket file {self.path}: {e}",
                path=str(self.path),
            ) from e


class ResilientTicketStore(TicketStore):
    """
    Store that degrades from its primary to an in-memory fallback.

    WHAT: Delegates to ``primary`` until it raises ``StorageError``, then
    logs a warning and uses ``fallback`` for the rest of the process.

    WHY: An unwritable filesystem must not fail ticket submission. Once
    degraded the store never goes back to the file, so tickets written to
    memory are not hidden by a later successful file read.
    """

    def __init__(self, primary: TicketStore, fallback: Optional[MemoryTicketStore] = None):
        self.primary = primary
        self.fallback = fallback or MemoryTicketStore()
        self.degraded = False

    @property
    def name(self) -> str:
        return self.fallback.name if self.degraded else self.primary.name

    def _degrade(self, error: StorageError) -> None:
        self.degraded = True
        logger.warning(
            f"Using in-memory ticket storage: {error.message}",
            extra={"primary_store": self.primary.name},
        )

    def read_all(self) -> TicketDocument:
        if not self.degraded:
            try:
                return self.primary.read_all()
            except StorageError as e:
                self._degrade(e)
        return self.fallback.read_all()

    def write_all(self, document: TicketDocument) -> None:
        if not self.degraded:
            try:
                self.primary.write_all(document)
                return
            except StorageError as e:
                self._degrade(e)
        self.fallback.write_all(document)


def build_ticket_store(settings: Settings) -> TicketStore:
    """
    Create the ticket store selected by configuration.

    Args:
        settings: Application settings

    Returns:
        A memory store when ``STORAGE_BACKEND`` is "memory", otherwise a
        resilient file store at ``TICKETS_FILE``
    """
    backend = settings.STORAGE_BACKEND.lower()
    if backend == "memory":
        logger.info("Using in-memory ticket storage (configured)")
        return MemoryTicketStore()
    if backend != "file":
        logger.warning(f"Unknown STORAGE_BACKEND '{settings.STORAGE_BACKEND}', using file storage")
    return ResilientTicketStore(FileTicketStore(settings.TICKETS_FILE))


_ticket_store: Optional[TicketStore] = None


def get_ticket_store() -> TicketStore:
    """
    Get or create the process-wide ticket store.

    WHY: FastAPI dependency; every request shares the one store so the
    in-memory fallback persists across requests.
    """
    global _ticket_store

    if _ticket_store is None:
        _ticket_store = build_ticket_store(app_settings)

    return _ticket_store

import contextlib
import copy
import json
import logging
import os
import shutil
import tempfile
from pydantic import ValidationError as SchemaError

from indiyum.core.clock import now_ms
from indiyum.core.errors import PersistenceWarning
from indiyum.domain.models import Document, Order, Review, User
from indiyum.interfaces.IDocumentStore import IDocumentStore

logger = logging.getLogger(__name__)


class JsonFileDocumentStore(IDocumentStore):
    """
    The whole shop state in one JSON file.
    Reads never raise. A file that cannot be fully loaded is first copied to
    ``<path>.corrupt-<ms>``, then whatever records still validate are kept, so
    the next save cannot destroy data that only exists on disk. Writes go to a
    temp file first so a crash mid-write leaves the previous version intact.
    """

    def __init__(self, path: str):
        self.path = os.path.abspath(path)
        # Cleared when a broken file could not be backed up; saves would overwrite it.
        self.writable = True

    def load(self) -> Document:
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                raw = json.load(fh)
        except FileNotFoundError:
            return Document()
        except (OSError, ValueError) as e:
            logger.warning(f"⚠️ Could not read {self.path} ({e}). Starting from an empty document.")
            self._backup()
            return Document()

        if not isinstance(raw, dict):
            logger.warning(f"⚠️ {self.path} does not hold a JSON object. Starting from an empty document.")
            self._backup()
            return Document()

        try:
            return Document.model_validate(raw)
        except SchemaError as e:
            logger.warning(f"⚠️ {self.path} failed validation ({e.error_count()} errors). Keeping the valid records.")
            self._backup()
            return self._salvage(raw)

    def _salvage(self, raw: dict) -> Document:
        collections = {"reviews": Review, "orders": Order, "users": User}
        document = Document.model_validate({k: v for k, v in raw.items() if k not in collections})
        for field, model in collections.items():
            records = raw.get(field)
            if not isinstance(records, list):
                continue
            kept = getattr(document, field)
            for record in records:
                try:
                    kept.append(model.model_validate(record))
                except SchemaError:
                    logger.warning(f"⚠️ Dropping unreadable {field[:-1]} record: {str(record)[:120]}")
        return document

    def _backup(self) -> None:
        backup = f"{self.path}.corrupt-{now_ms()}"
        try:
            shutil.copy2(self.path, backup)
        except OSError as e:
            logger.error(f"❌ Could not back up {self.path} to {backup} ({e}). Refusing to overwrite it.")
            self.writable = False
            return
        logger.warning(f"⚠️ Original contents of {self.path} saved to {backup}")

    def save(self, document: Document) -> None:
        if not self.writable:
            logger.error(f"❌ Not saving: {self.path} could not be backed up after a failed load.")
            return
        try:
            self._write(document.dump())
        except PersistenceWarning as w:
            # Caller keeps working with its in-memory copy.
            logger.error(f"❌ {w.message}")

    def _write(self, data: dict) -> None:
        directory = os.path.dirname(self.path) or "."
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=".db-", suffix=".json", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2, ensure_ascii=False)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_path)
            raise PersistenceWarning(f"Failed to write {self.path}: {e}") from e


class InMemoryDocumentStore(IDocumentStore):
    """Keeps the document in RAM. Used by tests and throwaway runs."""

    def __init__(self, document: Document | None = None):
        self._document = copy.deepcopy(document) if document else Document()
        self.saves = 0

    def load(self) -> Document:
        return self._document.model_copy(deep=True)

    def save(self, document: Document) -> None:
        self._document = document.model_copy(deep=True)
        self.saves += 1

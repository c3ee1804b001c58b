import json
import logging
import os
import stat
import tempfile
import threading
from pathlib import Path

from catalog.errors import CorruptStoreError, NotFoundError, StorageWriteFailed

logger = logging.getLogger(__name__)

# One lock per resolved document path, shared by every RecordStore instance
# that points at the same file.
_locks = {}
_locks_guard = threading.Lock()

# os.umask can only be read by setting it
_UMASK = os.umask(0)
os.umask(_UMASK)


def _lock_for(path: Path) -> threading.Lock:
    key = str(path.resolve())
    with _locks_guard:
        lock = _locks.get(key)
        if lock is None:
            lock = _locks[key] = threading.Lock()
        return lock


class RecordStore:
    """
    A whole JSON document on disk, read and rewritten as a unit.

    ``default`` is a zero-argument factory for the empty document
    (``dict`` for a keyed collection, ``list`` for a flat one). Every
    read-modify-write goes through ``update`` which holds the document's
    lock for the full load → change → save cycle, so concurrent callers
    never lose each other's changes.
    """

    def __init__(self, path, default=dict):
        self.path = Path(path)
        self.default = default
        self._lock = _lock_for(self.path)

    def load(self):
        if not self.path.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            return self.default()

        try:
            text = self.path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            logger.warning("Corrupt document %s: %s", self.path, e)
            raise CorruptStoreError(f"{self.path.name} is not valid UTF-8") from e
        except OSError as e:
            logger.warning("Unreadable document %s: %s", self.path, e)
            raise CorruptStoreError(f"Unable to read {self.path.name}: {e}") from e

        if not text.strip():
            return self.default()

        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning("Corrupt document %s: %s", self.path, e)
            raise CorruptStoreError(f"{self.path.name} is not valid JSON") from e

        if not isinstance(document, type(self.default())):
            logger.warning("Unexpected document type in %s: %s", self.path, type(document).__name__)
            raise CorruptStoreError(f"{self.path.name} has an unexpected structure")

        logger.debug("Loaded %s", self.path)
        return document

    def save(self, document):
        """Replace the file atomically: write a sibling temp file, then rename."""
        try:
            # inf/nan would produce a file no JSON parser accepts
            text = json.dumps(document, indent=2, allow_nan=False)
        except ValueError as e:
            logger.error("Refusing to write %s: %s", self.path, e)
            raise StorageWriteFailed(f"Unable to serialize {self.path.name}") from e

        tmp_name = None
        try:
            mode = self._file_mode()
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_name = f.name
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            # NamedTemporaryFile creates 0600; keep the usual permissions
            os.chmod(tmp_name, mode)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            logger.error("Failed to write %s: %s", self.path, e)
            raise StorageWriteFailed(f"Unable to write {self.path.name}") from e
        logger.debug("Saved %s", self.path)

    def _file_mode(self):
        try:
            return stat.S_IMODE(self.path.stat().st_mode)
        except FileNotFoundError:
            return 0o666 & ~_UMASK

    def update(self, fn):
        """
        Apply ``fn`` to the loaded document and persist the result.

        ``fn`` changes the document in place; its return value is handed
        back to the caller. If it raises, the file is left untouched.
        """
        with self._lock:
            document = self.load()
            result = fn(document)
            self.save(document)
            return result

    def mutate(self, key, fn, create=True):
        """
        Apply ``fn`` to the record sequence stored under ``key``.

        An absent key starts as an empty list when ``create`` is true and
        raises NotFoundError otherwise.
        """
        def apply(document):
            if key not in document:
                if not create:
                    raise NotFoundError(f"No records for {key!r}")
                document[key] = []
            return fn(self._records(document, key))

        return self.update(apply)

    def get(self, key):
        document = self.load()
        if key not in document:
            return []
        return self._records(document, key)

    def _records(self, document, key):
        records = document[key]
        if not isinstance(records, list):
            logger.warning("Records for %r in %s are not a list", key, self.path)
            raise CorruptStoreError(f"{self.path.name} has an unexpected structure")
        return records

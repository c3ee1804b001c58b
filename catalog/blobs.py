import logging
import re
import uuid
from pathlib import Path

from catalog.errors import StorageWriteFailed

logger = logging.getLogger(__name__)

_UNSAFE_EXT = re.compile(r"[^a-z0-9]")


def extension_of(filename):
    """Return the text after the last '.' of an uploaded file name."""
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1]


def _clean_extension(extension):
    ext = _UNSAFE_EXT.sub("", (extension or "").lower())
    return ext or "bin"


class BlobStore:
    """
    Write-once storage for uploaded files.

    Every blob gets a fresh random name under ``directory`` and is
    addressed by ``<url_prefix>/<name>``. Existing files are never
    overwritten or deleted; blobs left behind by replaced or deleted
    products stay on disk.
    """

    def __init__(self, directory, url_prefix="/uploads"):
        self.directory = Path(directory)
        self.url_prefix = url_prefix.rstrip("/")

    def put(self, data: bytes, extension: str) -> str:
        name = f"{uuid.uuid4().hex}.{_clean_extension(extension)}"
        path = self.directory / name
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            # "x" refuses to clobber an existing file
            with open(path, "xb") as f:
                f.write(data)
        except OSError as e:
            logger.error("Failed to store upload %s: %s", path, e)
            raise StorageWriteFailed("Unable to store uploaded file") from e

        logger.debug("Stored %d bytes at %s", len(data), path)
        return f"{self.url_prefix}/{name}"

    def path_for(self, reference: str) -> Path:
        """Map a reference returned by ``put`` back to its file on disk."""
        return self.directory / reference.rsplit("/", 1)[-1]

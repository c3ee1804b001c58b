"""
Unit tests - Blob Store

Upload persistence under random names and reference path minting.
"""

import re

import pytest
from catalog.blobs import BlobStore, extension_of
from catalog.errors import StorageWriteFailed


pytestmark = pytest.mark.storage


class TestBlobStore:

    def test_put_writes_bytes_and_returns_reference(self, tmp_path):
        store = BlobStore(tmp_path / "uploads")

        reference = store.put(b"image-bytes", "png")

        assert re.fullmatch(r"/uploads/[0-9a-f]{32}\.png", reference)
        assert store.path_for(reference).read_bytes() == b"image-bytes"

    def test_put_creates_upload_directory(self, tmp_path):
        uploads = tmp_path / "static" / "uploads"
        BlobStore(uploads).put(b"x", "jpg")

        assert uploads.is_dir()

    def test_names_are_unique(self, tmp_path):
        store = BlobStore(tmp_path)
        references = {store.put(b"same", "png") for _ in range(50)}

        assert len(references) == 50
        assert len(list(tmp_path.iterdir())) == 50

    def test_custom_url_prefix(self, tmp_path):
        reference = BlobStore(tmp_path, url_prefix="/media/").put(b"x", "gif")
        assert reference.startswith("/media/")

    @pytest.mark.parametrize("extension, expected", [
        ("PNG", "png"),
        ("../../etc", "etc"),
        ("", "bin"),
        ("j p/g", "jpg"),
    ])
    def test_extension_is_sanitised(self, tmp_path, extension, expected):
        reference = BlobStore(tmp_path).put(b"x", extension)
        assert reference.endswith(f".{expected}")
        assert "/" not in reference[len("/uploads/"):]

    def test_write_failure_raises(self, tmp_path):
        blocker = tmp_path / "uploads"
        blocker.write_text("a file, not a directory")

        with pytest.raises(StorageWriteFailed):
            BlobStore(blocker).put(b"x", "png")


class TestExtensionOf:

    @pytest.mark.parametrize("filename, expected", [
        ("photo.png", "png"),
        ("archive.tar.gz", "gz"),
        ("noext", ""),
        (None, ""),
    ])
    def test_extension_of(self, filename, expected):
        assert extension_of(filename) == expected

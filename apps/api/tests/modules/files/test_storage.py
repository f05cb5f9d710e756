"""
Unit tests for upload storage.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.modules.files import storage
from app.modules.files.storage import (
    FileTooLargeError,
    InvalidFileTypeError,
    delete_file,
    resolve_path,
    sanitize_filename,
    save_upload,
)

USER_ID = "11111111-1111-1111-1111-111111111111"


@pytest.fixture
def upload_dir(tmp_path):
    with patch.object(storage.settings, "upload_dir", str(tmp_path)):
        yield tmp_path


def make_upload(filename: str, content: bytes = b"%PDF-1.4"):
    upload = MagicMock()
    upload.filename = filename
    upload.read = AsyncMock(return_value=content)
    return upload


class TestSanitizeFilename:
    @pytest.mark.parametrize(
        "filename,expected",
        [
            ("diploma.pdf", "diploma.pdf"),
            ("my diploma (1).pdf", "my_diploma__1_.pdf"),
            ("../../etc/passwd", "passwd"),
            (".hidden", "hidden"),
            ("", "upload"),
        ],
    )
    def test_sanitize(self, filename, expected):
        assert sanitize_filename(filename) == expected


class TestResolvePath:
    def test_inside_root(self, upload_dir):
        assert resolve_path(f"{USER_ID}/a.png") == (upload_dir / USER_ID / "a.png").resolve()

    def test_traversal_rejected(self, upload_dir):
        assert resolve_path("../outside.txt") is None


class TestSaveUpload:
    @pytest.mark.asyncio
    async def test_stores_with_prefix(self, upload_dir):
        path, size = await save_upload(USER_ID, make_upload("Passport Scan.PDF"), prefix="passport")

        assert path.startswith(f"{USER_ID}/passport_Passport_Scan_")
        assert path.endswith(".pdf")
        assert size == len(b"%PDF-1.4")
        assert (upload_dir / path).read_bytes() == b"%PDF-1.4"

    @pytest.mark.asyncio
    async def test_rejects_extension(self, upload_dir):
        with pytest.raises(InvalidFileTypeError):
            await save_upload(USER_ID, make_upload("resume.docx"))

    @pytest.mark.asyncio
    async def test_rejects_large_file(self, upload_dir):
        with patch.object(storage.settings, "max_upload_size_bytes", 4):
            with pytest.raises(FileTooLargeError):
                await save_upload(USER_ID, make_upload("photo.png", b"12345"))

        assert not (upload_dir / USER_ID).exists()

    @pytest.mark.asyncio
    async def test_reads_at_most_one_byte_past_the_limit(self, upload_dir):
        upload = make_upload("photo.png", b"12345")

        with patch.object(storage.settings, "max_upload_size_bytes", 4):
            with pytest.raises(FileTooLargeError):
                await save_upload(USER_ID, upload)

        upload.read.assert_awaited_once_with(5)


class TestDeleteFile:
    @pytest.mark.asyncio
    async def test_removes_file(self, upload_dir):
        target = upload_dir / USER_ID / "old.png"
        target.parent.mkdir()
        target.write_bytes(b"x")

        await delete_file(f"{USER_ID}/old.png")

        assert not target.exists()

    @pytest.mark.asyncio
    async def test_missing_file_is_ignored(self, upload_dir):
        await delete_file(f"{USER_ID}/missing.png")
        await delete_file(None)

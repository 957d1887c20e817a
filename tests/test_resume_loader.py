"""
Tests for resume file validation and encoding.
"""

import base64

import pytest

from resume_loader import (
    MAX_FILE_SIZE,
    SIZE_ERROR_MESSAGE,
    TYPE_ERROR_MESSAGE,
    FileReadError,
    FileValidationError,
    guess_mime_type,
    load_resume_file,
    validate_file,
)


class TestValidation:
    def test_accepts_every_allowed_type(self):
        for mime_type in ("application/pdf", "image/jpeg", "image/png", "image/webp", "text/plain"):
            validate_file("resume", mime_type, 1024)

    def test_rejects_unsupported_type(self):
        with pytest.raises(FileValidationError) as excinfo:
            validate_file("resume.docx", "application/msword", 1024)
        assert str(excinfo.value) == TYPE_ERROR_MESSAGE

    def test_size_limit_is_inclusive(self):
        validate_file("resume.pdf", "application/pdf", MAX_FILE_SIZE)
        with pytest.raises(FileValidationError) as excinfo:
            validate_file("resume.pdf", "application/pdf", MAX_FILE_SIZE + 1)
        assert str(excinfo.value) == SIZE_ERROR_MESSAGE

    def test_guess_mime_type(self, tmp_path):
        assert guess_mime_type(tmp_path / "cv.PDF") == "application/pdf"
        assert guess_mime_type(tmp_path / "cv.jpg") == "image/jpeg"
        assert guess_mime_type(tmp_path / "cv.webp") == "image/webp"
        assert guess_mime_type(tmp_path / "cv.txt") == "text/plain"
        assert guess_mime_type(tmp_path / "setup.exe") is None


class TestLoadResumeFile:
    def test_loads_pdf(self, pdf_resume):
        payload = load_resume_file(pdf_resume)

        assert payload.mime_type == "application/pdf"
        assert payload.original_name == "resume.pdf"
        assert payload.extension == "pdf"
        assert payload.size == pdf_resume.stat().st_size
        assert base64.b64decode(payload.content).startswith(b"%PDF-1.4")

    def test_rejects_executable(self, tmp_path):
        path = tmp_path / "setup.exe"
        path.write_bytes(b"MZ\x90\x00")

        with pytest.raises(FileValidationError, match="Supported formats"):
            load_resume_file(path)

    def test_rejects_oversized_file(self, tmp_path):
        path = tmp_path / "huge.pdf"
        with path.open("wb") as handle:
            handle.truncate(MAX_FILE_SIZE + 1)

        with pytest.raises(FileValidationError, match="10MB"):
            load_resume_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileReadError):
            load_resume_file(tmp_path / "gone.pdf")

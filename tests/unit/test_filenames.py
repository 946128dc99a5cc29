"""Unit tests for the filename convention that encodes upload types."""

import pytest

from models.files import FileType
from services.file_manager import build_filename, parse_filename, text_upload_name
from utils.errors import ValidationError


class TestFilenameCodec:

    @pytest.mark.parametrize("file_type", [FileType.WORK_EXPERIENCE, FileType.JOB_DESCRIPTION])
    @pytest.mark.parametrize("original", ["cv.pdf", "my-resume-rooster-final.docx", "notes 2024.txt"])
    def test_round_trip(self, file_type, original):
        filename = build_filename(file_type, original, timestamp_ms=1712345678901)

        assert parse_filename(filename) == (file_type.value, original)

    def test_layout(self):
        filename = build_filename(FileType.JOB_DESCRIPTION, "jd.txt", timestamp_ms=42)

        assert filename == "42-job-description-rooster-jd.txt"

    def test_default_timestamp_is_millis(self):
        prefix = build_filename(FileType.WORK_EXPERIENCE, "cv.pdf").split("-")[0]

        assert prefix.isdigit()
        assert len(prefix) >= 13

    @pytest.mark.parametrize("filename", [
        "resume-draft.txt",
        "42-cover-letter-rooster-letter.txt",
        "work-experience-rooster-cv.pdf",
        "abc-work-experience-rooster-cv.pdf",
        "42-work-experience-cv.pdf",
    ])
    def test_unrecognised_prefix_is_unknown(self, filename):
        assert parse_filename(filename) == ("unknown", filename)

    def test_unknown_type_cannot_be_encoded(self):
        with pytest.raises(ValidationError, match="Invalid file type"):
            build_filename(FileType.UNKNOWN, "x.txt")

    def test_text_upload_name(self):
        assert text_upload_name(FileType.WORK_EXPERIENCE) == "work-experience.txt"


class TestFileTypeParse:

    @pytest.mark.parametrize("value", ["work-experience", "job-description"])
    def test_recognised(self, value):
        assert FileType.parse(value).value == value

    @pytest.mark.parametrize("value", [None, "", "unknown", "resume", "Work-Experience"])
    def test_rejected(self, value):
        assert FileType.parse(value) is None

"""Unit tests for domain value objects."""

import re
from unittest.mock import patch

import pytest

from media_pipeline.domain.models.media_asset import MediaKind
from media_pipeline.domain.value_objects import KIND_FOLDERS, ObjectName, safe_filename
from media_pipeline.domain.value_objects.object_name import MAX_FILENAME_LENGTH


class TestSafeFilename:
    """Tests for safe_filename."""

    def test_replaces_unsafe_characters(self):
        assert safe_filename("Sabbath Sermon (final).mp4") == "Sabbath-Sermon-final-.mp4"

    def test_strips_directories(self):
        assert safe_filename("../../etc/passwd") == "passwd"
        assert safe_filename("C:\\Users\\me\\hymn.mp3") == "hymn.mp3"

    def test_keeps_safe_names(self):
        assert safe_filename("choir_2024-03.wav") == "choir_2024-03.wav"

    def test_empty_falls_back(self):
        assert safe_filename("") == "upload"
        assert safe_filename("...") == "upload"

    def test_truncates_keeping_extension(self):
        result = safe_filename("a" * 300 + ".mp4")
        assert len(result) == MAX_FILENAME_LENGTH
        assert result.endswith(".mp4")

    def test_non_ascii_replaced(self):
        assert safe_filename("sermón.mp4") == "serm-n.mp4"


class TestObjectName:
    """Tests for ObjectName value object."""

    def test_generate_format(self):
        name = ObjectName.generate(MediaKind.VIDEO, "sermon.mp4")
        assert re.fullmatch(r"videos/\d{13}-[0-9a-f]{8}-sermon\.mp4", name.value)

    @pytest.mark.parametrize(
        ("kind", "folder"),
        [
            (MediaKind.VIDEO, "videos"),
            (MediaKind.AUDIO, "audio"),
            (MediaKind.IMAGE, "public/images"),
            (MediaKind.DOCUMENT, "public/documents"),
        ],
    )
    def test_folder_per_kind(self, kind, folder):
        name = ObjectName.generate(kind, "file.bin")
        assert name.value.startswith(f"{folder}/")
        assert KIND_FOLDERS[kind] == folder

    def test_same_file_same_millisecond_is_unique(self):
        with patch("media_pipeline.domain.value_objects.object_name.time.time", return_value=1.0):
            first = ObjectName.generate(MediaKind.VIDEO, "sermon.mp4")
            second = ObjectName.generate(MediaKind.VIDEO, "sermon.mp4")
        assert first.value != second.value

    def test_str(self):
        assert str(ObjectName(value="videos/x.mp4")) == "videos/x.mp4"

    def test_empty_rejected(self):
        with pytest.raises(ValueError):
            ObjectName(value="")

    def test_direct_upload(self):
        name = ObjectName.for_direct_upload("up-123")
        assert name.value == "direct-uploads/up-123"

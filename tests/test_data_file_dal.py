"""Tests for dal/data_file_dal.py: named JSON documents and size formatting."""
import pytest

from dal.data_file_dal import DataFileDAL, format_file_size, validate_data_filename
from models.errors import ValidationError


@pytest.mark.parametrize(
    "size, expected",
    [(0, "0 B"), (512, "512 B"), (1024, "1 KB"), (1536, "1.5 KB"), (5 * 1024 * 1024, "5 MB")],
)
def test_format_file_size(size, expected):
    assert format_file_size(size) == expected


@pytest.mark.parametrize("name", ["../secret.json", "a/b.json", "a\\b.json", "..", ""])
def test_traversal_names_rejected(name):
    with pytest.raises(ValidationError):
        validate_data_filename(name)


class TestDataFileDAL:
    @pytest.mark.asyncio
    async def test_save_then_load(self, tmp_path):
        dal = DataFileDAL(tmp_path)
        saved = await dal.save("notes.json", [{"filename": "a.png"}])
        loaded = await dal.load("notes.json")
        assert saved["filename"] == "notes.json"
        assert loaded["data"] == [{"filename": "a.png"}]

    @pytest.mark.asyncio
    async def test_missing_document(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            await DataFileDAL(tmp_path).load("missing.json")

    @pytest.mark.asyncio
    async def test_list_files_only_json(self, tmp_path):
        dal = DataFileDAL(tmp_path)
        await dal.save("b.json", {})
        await dal.save("a.json", [])
        (tmp_path / "readme.txt").write_text("x", encoding="utf-8")
        assert [f["name"] for f in dal.list_files()] == ["a.json", "b.json"]

    def test_list_files_missing_dir(self, tmp_path):
        assert DataFileDAL(tmp_path / "nope").list_files() == []

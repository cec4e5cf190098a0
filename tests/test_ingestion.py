"""Tests for services/ingestion.py: validation, naming, batch isolation."""
from datetime import datetime, timezone

import pytest

from models.errors import IngestionError
from models.ingestion_models import RawFileCandidate
from services.ingestion import IngestionPipeline, generate_asset_filename, resolve_collision
from tests.conftest import make_image_file, png_bytes


@pytest.fixture
def assets_dir(tmp_path):
    return tmp_path / "assets" / "screenshots"


@pytest.fixture
def pipeline(store, assets_dir):
    return IngestionPipeline(store, assets_dir, max_bytes=8192)


def upload(name: str, content: bytes, content_type=None) -> RawFileCandidate:
    return RawFileCandidate(original_name=name, size=len(content), content=content, content_type=content_type)


# ── Naming ────────────────────────────────────────────────────────────────────

class TestNaming:
    def test_timestamp_is_sanitized(self):
        now = datetime(2025, 8, 22, 10, 11, 12, 345000, tzinfo=timezone.utc)
        name = generate_asset_filename("shot.PNG", "image/png", now=now)
        assert name == "screenshot-2025-08-22T10-11-12-345Z.PNG"

    def test_extension_derived_from_type_when_missing(self):
        now = datetime(2025, 1, 1, tzinfo=timezone.utc)
        assert generate_asset_filename("clipboard", "image/jpeg", now=now).endswith(".jpg")

    def test_resolve_collision_appends_counter(self, tmp_path):
        (tmp_path / "s.png").write_bytes(b"x")
        (tmp_path / "s_2.png").write_bytes(b"x")
        assert resolve_collision(tmp_path / "s.png") == tmp_path / "s_3.png"


# ── Validation ────────────────────────────────────────────────────────────────

class TestValidation:
    def test_oversized_file_rejected(self, pipeline):
        with pytest.raises(IngestionError, match="size limit"):
            pipeline.validate(upload("big.png", b"x" * 20000, "image/png"))

    def test_declared_non_image_rejected(self, pipeline):
        with pytest.raises(IngestionError, match="Only images"):
            pipeline.validate(upload("notes.txt", b"hello", "text/plain"))

    def test_declared_type_with_parameters(self, pipeline):
        assert pipeline.validate(upload("a.png", b"data", "IMAGE/PNG; charset=binary")) == "image/png"

    def test_undeclared_type_is_sniffed(self, pipeline):
        assert pipeline.validate(upload("noext", png_bytes(fmt="GIF"))) == "image/gif"

    def test_undeclared_unknown_bytes_rejected(self, pipeline):
        with pytest.raises(IngestionError):
            pipeline.validate(upload("notes.txt", b"just some text"))


# ── Ingest ────────────────────────────────────────────────────────────────────

class TestIngest:
    @pytest.mark.asyncio
    async def test_ingest_writes_asset_and_adds_record(self, pipeline, store, assets_dir):
        content = png_bytes()
        record = await pipeline.ingest(upload("shot.png", content, "image/png"))
        assert (assets_dir / record.filename).read_bytes() == content
        assert record.path == f"assets/screenshots/{record.filename}"
        assert record.description == ""
        assert store.records() == [record]

    @pytest.mark.asyncio
    async def test_copy_from_source_path(self, pipeline, tmp_path, assets_dir):
        src = make_image_file(tmp_path / "desktop" / "capture.png")
        record = await pipeline.ingest(RawFileCandidate.from_path(src))
        assert (assets_dir / record.filename).read_bytes() == src.read_bytes()
        assert src.exists()

    @pytest.mark.asyncio
    async def test_vanished_source_raises_ingestion_error(self, pipeline, tmp_path):
        candidate = RawFileCandidate(original_name="gone.png", size=10, source_path=tmp_path / "gone.png")
        with pytest.raises(IngestionError):
            await pipeline.ingest(candidate)

    @pytest.mark.asyncio
    async def test_same_instant_uploads_get_distinct_names(self, pipeline):
        first = await pipeline.stage(upload("a.png", png_bytes(), "image/png"))
        second = await pipeline.stage(upload("a.png", png_bytes(), "image/png"))
        assert first.filename != second.filename


class TestBatch:
    @pytest.mark.asyncio
    async def test_oversized_middle_file_does_not_block_others(self, pipeline, store):
        files = [
            upload("one.png", png_bytes(), "image/png"),
            upload("two.png", b"x" * 20000, "image/png"),
            upload("three.png", png_bytes((0, 0, 255)), "image/png"),
        ]
        summary = await pipeline.ingest_batch(files)

        assert summary.accepted_count == 2
        assert summary.staged_count == 0
        assert summary.failed == 1
        assert summary.rejected[0].original_name == "two.png"
        assert "size limit" in summary.rejected[0].reason
        assert len(store) == 2

    @pytest.mark.asyncio
    async def test_stage_batch_does_not_touch_store(self, pipeline, store, dal):
        summary = await pipeline.stage_batch([upload("one.png", png_bytes(), "image/png")])
        assert len(summary.staged) == 1
        assert len(store) == 0
        assert dal.saved == []

    @pytest.mark.asyncio
    async def test_failed_save_rejects_file_and_removes_asset(self, pipeline, store, dal, assets_dir):
        dal.fail_saves = True
        summary = await pipeline.ingest_batch([upload("one.png", png_bytes(), "image/png")])

        assert summary.accepted_count == 0
        assert summary.rejected[0].reason == "disk full"
        assert len(store) == 0
        assert list(assets_dir.iterdir()) == []

"""Tests for services/collection_store.py: mutations, dedup, persistence policy."""
import asyncio

import pytest

from dal.screenshot_dal import ScreenshotDAL
from models.errors import CorruptStoreError, PersistenceError, ValidationError
from services.collection_store import CollectionStore
from tests.conftest import make_record


# ── Basic mutations ───────────────────────────────────────────────────────────

class TestMutations:
    @pytest.mark.asyncio
    async def test_add_prepends_and_saves(self, store, dal):
        await store.add(make_record("a.png"))
        await store.add(make_record("b.png"))
        assert [r.filename for r in store.records()] == ["b.png", "a.png"]
        assert len(dal.saved) == 2

    @pytest.mark.asyncio
    async def test_remove_twice_is_safe(self, store, dal):
        rec = await store.add(make_record("a.png"))
        await store.add(make_record("b.png"))
        assert await store.remove(rec.id) is True
        snapshot = store.records()
        assert await store.remove(rec.id) is False
        assert store.records() == snapshot
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_update_description_unknown_id_is_noop(self, store):
        await store.add(make_record("a.png"))
        assert await store.update_description("missing", "x") is None
        assert store.records()[0].description == ""
        assert not store.autosave_pending

    @pytest.mark.asyncio
    async def test_clear_and_replace_all(self, store, dal):
        await store.add(make_record("a.png"))
        await store.clear()
        assert len(store) == 0
        await store.replace_all([make_record("x.png"), make_record("y.png")])
        assert [r.filename for r in await ScreenshotDAL(dal.snapshot_path).load()] == ["x.png", "y.png"]

    @pytest.mark.asyncio
    async def test_records_returns_copy(self, store):
        await store.add(make_record("a.png"))
        store.records().clear()
        assert len(store) == 1


# ── Import merge ──────────────────────────────────────────────────────────────

class TestImportMerge:
    @pytest.mark.asyncio
    async def test_existing_filename_is_skipped(self, store):
        await store.add(make_record("a.png", "original"))
        added = await store.import_merge([{"filename": "a.png", "path": "p", "description": "new"}])
        assert added == 0
        assert store.records()[0].description == "original"

    @pytest.mark.asyncio
    async def test_grows_by_unique_filenames_only(self, store):
        await store.add(make_record("a.png"))
        candidates = [
            {"filename": "a.png", "path": "p"},
            {"filename": "b.png", "path": "p"},
            {"filename": "c.png", "path": "p"},
            {"filename": "b.png", "path": "p"},
            {"filename": "", "path": "p"},
        ]
        added = await store.import_merge(candidates)
        assert added == 2
        assert len(store) == 3
        assert [r.filename for r in store.records()] == ["c.png", "b.png", "a.png"]

    @pytest.mark.asyncio
    async def test_imported_records_get_fresh_ids_and_defaults(self, store):
        await store.import_merge([{"id": "old", "filename": "a.png", "path": "p"}])
        rec = store.records()[0]
        assert rec.id != "old"
        assert rec.description == ""
        assert rec.date

    @pytest.mark.asyncio
    async def test_nothing_added_means_no_save(self, store, dal):
        await store.import_merge([])
        assert dal.saved == []


# ── Persistence policy ────────────────────────────────────────────────────────

class TestPersistence:
    @pytest.mark.asyncio
    async def test_rapid_edits_produce_one_save_with_final_text(self, store, dal):
        rec = await store.add(make_record("a.png"))
        dal.saved.clear()
        for text in ("c", "ca", "cat"):
            await store.update_description(rec.id, text)
            await asyncio.sleep(0.01)
        await asyncio.sleep(0.2)
        assert len(dal.saved) == 1
        assert dal.saved[0][0]["description"] == "cat"

    @pytest.mark.asyncio
    async def test_immediate_save_supersedes_pending_autosave(self, store, dal):
        rec = await store.add(make_record("a.png"))
        await store.add(make_record("b.png"))
        dal.saved.clear()
        await store.update_description(rec.id, "dog")
        await store.remove("nope")
        await store.save_now()
        await asyncio.sleep(0.15)
        assert len(dal.saved) == 1
        assert dal.saved[0][1]["description"] == "dog"

    @pytest.mark.asyncio
    async def test_flush_saves_pending_edit(self, store, dal):
        rec = await store.add(make_record("a.png"))
        await store.update_description(rec.id, "now")
        await store.flush()
        assert not store.autosave_pending
        assert dal.saved[-1][0]["description"] == "now"

    @pytest.mark.asyncio
    async def test_add_then_update_scenario(self, store, dal):
        rec = await store.add(make_record("a.png", date="2025-08-22T10:00:00.000Z"))
        loaded = await ScreenshotDAL(dal.snapshot_path).load()
        assert loaded == [rec]

        await store.update_description(rec.id, "cat")
        await store.flush()
        loaded = await ScreenshotDAL(dal.snapshot_path).load()
        assert loaded[0].description == "cat"
        assert loaded[0].date == "2025-08-22T10:00:00.000Z"

    @pytest.mark.asyncio
    async def test_corrupt_snapshot_blocks_saves_until_replaced(self, dal, snapshot_path):
        snapshot_path.parent.mkdir(parents=True)
        snapshot_path.write_text("not json", encoding="utf-8")
        store = CollectionStore(dal, autosave_delay=0.05)
        with pytest.raises(CorruptStoreError):
            await store.load()
        with pytest.raises(CorruptStoreError):
            await store.add(make_record("a.png"))
        assert snapshot_path.read_text(encoding="utf-8") == "not json"

        await store.replace_all([make_record("b.png")])
        assert [r.filename for r in await store.load()] == ["b.png"]

    @pytest.mark.asyncio
    async def test_replace_all_rejects_duplicate_ids(self, store, dal):
        first, second = make_record("a.png"), make_record("b.png")
        second.id = first.id
        with pytest.raises(ValidationError):
            await store.replace_all([first, second])
        assert dal.saved == []


# ── Save failures ─────────────────────────────────────────────────────────────

class TestSaveFailures:
    @pytest.mark.asyncio
    async def test_failed_add_is_rolled_back(self, store, dal):
        await store.add(make_record("a.png"))
        dal.fail_saves = True
        with pytest.raises(PersistenceError):
            await store.add(make_record("b.png"))
        assert [r.filename for r in store.records()] == ["a.png"]

        dal.fail_saves = False
        await store.save_now()
        assert [r.filename for r in await ScreenshotDAL(dal.snapshot_path).load()] == ["a.png"]

    @pytest.mark.asyncio
    async def test_failed_remove_keeps_record(self, store, dal):
        rec = await store.add(make_record("a.png"))
        dal.fail_saves = True
        with pytest.raises(PersistenceError):
            await store.remove(rec.id)
        assert store.get(rec.id) is rec

    @pytest.mark.asyncio
    async def test_failed_import_and_replace_are_rolled_back(self, store, dal):
        await store.add(make_record("a.png"))
        dal.fail_saves = True
        with pytest.raises(PersistenceError):
            await store.import_merge([{"filename": "b.png", "path": "p"}])
        with pytest.raises(PersistenceError):
            await store.replace_all([make_record("x.png")])
        with pytest.raises(PersistenceError):
            await store.clear()
        assert [r.filename for r in store.records()] == ["a.png"]

    @pytest.mark.asyncio
    async def test_failed_autosave_is_reported_and_kept(self, dal):
        errors = []
        store = CollectionStore(dal, autosave_delay=0.05, on_autosave_error=errors.append)
        rec = await store.add(make_record("a.png"))
        dal.fail_saves = True

        await store.update_description(rec.id, "cat")
        await asyncio.sleep(0.2)
        assert len(errors) == 1
        assert isinstance(errors[0], PersistenceError)
        assert store.has_unsaved_changes

        with pytest.raises(PersistenceError):
            await store.flush()
        assert store.get(rec.id).description == "cat"

        dal.fail_saves = False
        await store.flush()
        assert not store.has_unsaved_changes
        assert (await ScreenshotDAL(dal.snapshot_path).load())[0].description == "cat"

    @pytest.mark.asyncio
    async def test_failed_add_keeps_pending_edit_unsaved(self, store, dal):
        rec = await store.add(make_record("a.png"))
        await store.update_description(rec.id, "cat")
        dal.fail_saves = True
        with pytest.raises(PersistenceError):
            await store.add(make_record("b.png"))
        assert store.has_unsaved_changes

        dal.fail_saves = False
        await store.flush()
        assert dal.saved[-1] == [rec.to_dict()]

from __future__ import annotations

import pytest

from agentdesk.core.files.store import FileStore, is_allowed_file_type, sanitize_filename


def test_sanitize_filename():
    assert sanitize_filename("../../etc/passwd.txt") == "etcpasswd.txt"
    assert sanitize_filename("my notes.txt") == "my_notes.txt"
    assert sanitize_filename("a\\b.md") == "ab.md"
    assert sanitize_filename("") == "unnamed_file"
    assert is_allowed_file_type("x.PY")
    assert not is_allowed_file_type("x.exe")


@pytest.mark.asyncio
async def test_save_read_list_delete(tmp_path):
    store = FileStore(tmp_path / "files")
    saved = await store.save("notes.txt", "hello")
    assert saved.success
    assert saved.path.endswith("notes.txt")

    read = await store.read("notes.txt")
    assert read.success
    assert read.content == "hello"

    listed = await store.list()
    assert listed.files == ["notes.txt"]

    deleted = await store.delete("notes.txt")
    assert deleted.success
    assert (await store.list()).files == []


@pytest.mark.asyncio
async def test_save_rejects_bad_type_and_oversized_content(tmp_path):
    store = FileStore(tmp_path, max_bytes=10)

    bad_type = await store.save("tool.exe", "x")
    assert not bad_type.success
    assert bad_type.error == "INVALID_FILE_TYPE"

    too_big = await store.save("big.txt", "x" * 11)
    assert not too_big.success
    assert too_big.error == "INVALID_CONTENT"

    assert (await store.save("", "x")).error == "INVALID_INPUT"


@pytest.mark.asyncio
async def test_path_traversal_stays_inside_root(tmp_path):
    root = tmp_path / "root"
    store = FileStore(root)
    result = await store.save("../escape.txt", "data")
    assert result.success
    assert (root / "escape.txt").read_text(encoding="utf-8") == "data"
    assert not (tmp_path / "escape.txt").exists()


@pytest.mark.asyncio
async def test_missing_file_reports_not_found(tmp_path):
    store = FileStore(tmp_path)
    read = await store.read("ghost.txt")
    deleted = await store.delete("ghost.txt")
    assert read.error == "FILE_NOT_FOUND"
    assert deleted.error == "FILE_NOT_FOUND"
    assert "not found" in deleted.message

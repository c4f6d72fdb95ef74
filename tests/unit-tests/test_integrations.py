from __future__ import annotations

import hashlib
from pathlib import Path

import pytest

from allotment import Progress
from allotment.integrations import copy_file, hash_file, track
from allotment.integrations import fileio_progress


def _payload(tmp_path: Path, size: int) -> Path:
    src = tmp_path / "payload.bin"
    src.write_bytes(bytes(i % 251 for i in range(size)))
    return src


def test_hash_file_reports_full_allocation(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(fileio_progress, "CHUNK_SIZE", 1000)
    src = _payload(tmp_path, 4321)
    root = Progress(10000)
    rx = root.subscribe()
    sub = root.allocate(6000)

    digest = hash_file(src, sub)

    assert digest == hashlib.sha256(src.read_bytes()).hexdigest()
    assert sub.internal_max == 4321
    assert rx.read() == 6000


def test_copy_file_is_atomic_and_reports_bytes(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(fileio_progress, "CHUNK_SIZE", 777)
    src = _payload(tmp_path, 5000)
    dst = tmp_path / "out" / "copy.bin"
    root = Progress(3)
    rx = root.subscribe()

    result = copy_file(src, dst, root)

    assert result == dst
    assert dst.read_bytes() == src.read_bytes()
    assert not dst.with_suffix(".bin.part").exists()
    assert rx.read() == 3


def test_copy_file_without_progress(tmp_path: Path) -> None:
    src = _payload(tmp_path, 10)
    dst = tmp_path / "copy.bin"
    copy_file(src, dst)
    assert dst.read_bytes() == src.read_bytes()


def test_empty_file_uses_unit_scale(tmp_path: Path) -> None:
    src = tmp_path / "empty"
    src.write_bytes(b"")
    node = Progress(100)
    rx = node.subscribe()
    hash_file(src, node)
    assert node.internal_max == 1
    assert rx.read() == 0


def test_missing_source_propagates(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        copy_file(tmp_path / "missing", tmp_path / "dst", Progress(1))


def test_track_sized_iterable() -> None:
    root = Progress(1000)
    rx = root.subscribe()
    items = ["a", "b", "c", "d"]
    seen = list(track(items, root.allocate(400)))
    assert seen == items
    assert rx.read() == 400


def test_track_generator_with_total() -> None:
    root = Progress(90)
    rx = root.subscribe()
    node = root.allocate(90)
    out = []
    for x in track((i * i for i in range(3)), node, total=3):
        out.append(x)
        # advances land after the consumer is done with the item
        assert rx.get() == 30 * (len(out) - 1)
    assert out == [0, 1, 4]
    assert rx.read() == 90


def test_track_unsized_keeps_existing_scale() -> None:
    node = Progress(10, internal_max=5)
    rx = node.subscribe()
    list(track(iter(range(5)), node))
    assert node.internal_max == 5
    assert rx.read() == 10

"""Unit tests for scratch file allocation and cleanup."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from texrender.contexts.rendering import SCRATCH_SUFFIXES, ScratchSet


def touch_all(scratch: ScratchSet) -> None:
    for path in scratch.paths():
        path.write_text("x")


@pytest.mark.unit
def test_allocate_creates_empty_base_file(scratch_dir):
    scratch = ScratchSet.allocate(scratch_dir)

    assert scratch.base.exists()
    assert scratch.base.read_text() == ""
    assert scratch.directory == scratch_dir


@pytest.mark.unit
def test_allocate_creates_missing_directory(tmp_path):
    scratch = ScratchSet.allocate(tmp_path / "a" / "b")
    assert scratch.base.exists()
    scratch.release()


@pytest.mark.unit
def test_derived_paths(scratch_dir):
    scratch = ScratchSet.allocate(scratch_dir)

    assert scratch.dvi.name == scratch.name + ".dvi"
    assert scratch.svg.name == scratch.name + ".svg"
    assert scratch.png.name == scratch.name + ".png"
    assert scratch.log.name == scratch.name + ".log"
    assert len(scratch.paths()) == len(SCRATCH_SUFFIXES)


@pytest.mark.unit
def test_release_removes_every_suffix(scratch_dir):
    scratch = ScratchSet.allocate(scratch_dir)
    touch_all(scratch)

    scratch.release()

    assert all(not path.exists() for path in scratch.paths())
    assert list(scratch_dir.iterdir()) == []


@pytest.mark.unit
def test_release_tolerates_missing_files(scratch_dir):
    """Test that cleanup is best-effort and never raises."""
    scratch = ScratchSet.allocate(scratch_dir)
    scratch.release()
    scratch.release()

    assert scratch.released is True


@pytest.mark.unit
def test_context_manager_releases_on_exception(scratch_dir):
    with pytest.raises(RuntimeError):
        with ScratchSet.allocate(scratch_dir) as scratch:
            touch_all(scratch)
            raise RuntimeError("boom")

    assert list(scratch_dir.iterdir()) == []


@pytest.mark.unit
def test_release_only_touches_own_files(scratch_dir):
    first = ScratchSet.allocate(scratch_dir)
    second = ScratchSet.allocate(scratch_dir)
    touch_all(first)
    touch_all(second)

    first.release()

    assert all(path.exists() for path in second.paths())
    second.release()


@pytest.mark.unit
def test_concurrent_allocation_never_collides(scratch_dir):
    """Test that simultaneous callers always get distinct base paths."""
    with ThreadPoolExecutor(max_workers=16) as pool:
        scratches = list(pool.map(lambda _: ScratchSet.allocate(scratch_dir), range(200)))

    assert len({scratch.base for scratch in scratches}) == 200

    for scratch in scratches:
        scratch.release()

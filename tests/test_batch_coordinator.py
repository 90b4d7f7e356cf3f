"""Tests for running one operation over many files."""

import pytest

from batch_coordinator import BatchOperationCoordinator
from conflict_resolution import ConflictDecision, ScriptedResolver
from image_operation import LastImageOperation, OperationKind, PayloadScope
from operation_errors import ValidationError
from single_file_executor import SingleFileExecutor


def make_files(src_dir, make_image, count):
    return [make_image(src_dir / f"img{i}.png") for i in range(count)]


def test_all_files_are_moved_in_order(src_dir, dest_dir, extensions, make_image):
    files = make_files(src_dir, make_image, 3)
    batch = BatchOperationCoordinator(SingleFileExecutor(ScriptedResolver(), extensions))
    record = LastImageOperation(OperationKind.MOVE, PayloadScope.ALL_IMAGES, dest_dir, src_dir)

    result = batch.run(OperationKind.MOVE, files, dest_dir, record)

    assert result.all_ok
    assert result.processed == 3
    assert record.created_files == [dest_dir / f.name for f in files]
    assert sorted(p.name for p in dest_dir.iterdir()) == ["img0.png", "img1.png", "img2.png"]


def test_abort_at_conflict_stops_the_batch(src_dir, dest_dir, extensions, make_image):
    files = make_files(src_dir, make_image, 4)
    make_image(dest_dir / "img2.png", color='blue')
    resolver = ScriptedResolver([ConflictDecision.abort_batch()])
    batch = BatchOperationCoordinator(SingleFileExecutor(resolver, extensions))

    result = batch.run(OperationKind.MOVE, files, dest_dir)

    assert result.aborted
    assert not result.all_ok
    assert result.succeeded == files[:2]
    assert files[2].exists() and files[3].exists()
    assert resolver.calls == [(files[2], dest_dir, True)]


def test_skips_are_counted_and_the_batch_continues(src_dir, dest_dir, extensions, make_image):
    files = make_files(src_dir, make_image, 3)
    make_image(dest_dir / "img0.png", color='blue')
    batch = BatchOperationCoordinator(SingleFileExecutor(ScriptedResolver(), extensions))

    result = batch.run(OperationKind.COPY, files, dest_dir)

    assert result.skipped == [files[0]]
    assert result.succeeded == files[1:]
    assert result.all_ok


def test_failures_do_not_stop_the_batch(src_dir, dest_dir, extensions, make_image):
    files = make_files(src_dir, make_image, 2)
    missing = src_dir / "gone.png"
    batch = BatchOperationCoordinator(SingleFileExecutor(ScriptedResolver(), extensions))

    result = batch.run(OperationKind.COPY, [missing] + files, dest_dir)

    assert result.failed == [missing]
    assert len(result.errors) == 1
    assert result.succeeded == files
    assert not result.all_ok


def test_bad_destination_is_rejected_before_any_io(tmp_path, src_dir, extensions, make_image):
    files = make_files(src_dir, make_image, 2)
    batch = BatchOperationCoordinator(SingleFileExecutor(ScriptedResolver(), extensions))

    with pytest.raises(ValidationError):
        batch.run(OperationKind.MOVE, files, tmp_path / "missing")
    assert all(f.exists() for f in files)


def test_copy_checks_disk_space_when_enabled(tmp_path, src_dir, dest_dir, extensions, make_image, monkeypatch):
    import file_ops
    from config_manager import ConfigManager

    files = make_files(src_dir, make_image, 1)
    config = ConfigManager(str(tmp_path / "config.json"))
    monkeypatch.setattr(file_ops, "check_disk_space", lambda files, dest: (False, "Insufficient disk space"))
    batch = BatchOperationCoordinator(SingleFileExecutor(ScriptedResolver(), extensions), config)

    with pytest.raises(ValidationError, match="Insufficient"):
        batch.run(OperationKind.COPY, files, dest_dir)
    assert list(dest_dir.iterdir()) == []

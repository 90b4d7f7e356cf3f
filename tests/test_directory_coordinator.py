"""Tests for whole-directory move/copy/symlink."""

import os

import pytest

from directory_coordinator import TAKEN_PROMPT, DirectoryOperationCoordinator
from image_operation import OperationKind
from operation_errors import FileTransferError, ValidationError
from ui_ports import AutoConfirmPrompt


@pytest.fixture
def album(src_dir, make_image):
    album = src_dir / "album"
    make_image(album / "a.png")
    make_image(album / "nested" / "b.png")
    return album


def test_rename_prompt_loops_until_name_is_free(album, dest_dir, extensions):
    (dest_dir / "album").mkdir()
    (dest_dir / "taken").mkdir()
    prompt = AutoConfirmPrompt(names=["album", "taken", "fresh"])
    coordinator = DirectoryOperationCoordinator(extensions, prompt)

    new_dir = coordinator.prepare(OperationKind.MOVE, album, dest_dir)

    assert new_dir == dest_dir / "fresh"
    assert len(prompt.name_requests) == 3
    assert prompt.name_requests[1][0] == TAKEN_PROMPT
    assert album.exists()


def test_cancel_means_no_side_effects(album, dest_dir, extensions):
    coordinator = DirectoryOperationCoordinator(extensions, AutoConfirmPrompt(names=[None]))
    assert coordinator.prepare(OperationKind.COPY, album, dest_dir) is None
    assert list(dest_dir.iterdir()) == []


def test_validation(album, dest_dir, extensions, tmp_path):
    coordinator = DirectoryOperationCoordinator(extensions, AutoConfirmPrompt(names=["x"]))
    with pytest.raises(ValidationError):
        coordinator.prepare(OperationKind.MOVE, tmp_path / "missing", dest_dir)
    with pytest.raises(ValidationError):
        coordinator.prepare(OperationKind.MOVE, album, tmp_path / "missing")
    with pytest.raises(ValidationError):
        coordinator.prepare(OperationKind.MOVE, album, album)
    with pytest.raises(ValidationError):
        coordinator.prepare(OperationKind.MOVE, album, album / "nested")


def test_move_fires_hook_once(album, dest_dir, extensions, recorder):
    coordinator = DirectoryOperationCoordinator(extensions, AutoConfirmPrompt())
    new_dir = dest_dir / "album"

    coordinator.execute(OperationKind.MOVE, album, new_dir)

    assert not album.exists()
    assert (new_dir / "nested" / "b.png").exists()
    assert recorder.calls == [('moved', album, new_dir)]


def test_copy_and_link(album, dest_dir, extensions, recorder):
    coordinator = DirectoryOperationCoordinator(extensions, AutoConfirmPrompt())

    coordinator.execute(OperationKind.COPY, album, dest_dir / "copy")
    coordinator.execute(OperationKind.SYMLINK, album, dest_dir / "link")

    assert (dest_dir / "copy" / "nested" / "b.png").exists()
    assert os.readlink(dest_dir / "link") == str(album)
    assert album.exists()
    assert recorder.calls == [('copied', album, dest_dir / "copy")]


def test_filesystem_failure_becomes_transfer_error(album, dest_dir, extensions):
    coordinator = DirectoryOperationCoordinator(extensions, AutoConfirmPrompt())
    (dest_dir / "album").mkdir()
    with pytest.raises(FileTransferError):
        coordinator.execute(OperationKind.COPY, album, dest_dir / "album")

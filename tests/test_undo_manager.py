"""Tests for undoing the last file or directory operation."""

import os

import pytest

from conflict_resolution import ConflictDecision, ScriptedResolver
from image_operation import LastImageOperation, OperationKind, PayloadScope
from operation_handler import ImageOperationHandler
from ui_ports import AutoConfirmPrompt


@pytest.fixture
def resolver():
    return ScriptedResolver()


@pytest.fixture
def handler(context, resolver, messages, prompt, history, extensions):
    return ImageOperationHandler(context, resolver, messages, prompt, history=history, extensions=extensions)


def test_undo_move_all_restores_files_and_companions(src_dir, dest_dir, handler, messages, make_image):
    a = make_image(src_dir / "a.png")
    b = make_image(src_dir / "b.jpg")
    (src_dir / "a.txt").write_text("caption")
    before = sorted(p.name for p in src_dir.iterdir())

    assert handler.move_all_images(dest_dir)
    assert list(src_dir.iterdir()) == []

    ok, message = handler.undo_last_operation()

    assert ok, message
    assert sorted(p.name for p in src_dir.iterdir()) == before
    assert list(dest_dir.iterdir()) == []
    assert a.exists() and b.exists()
    assert messages.errors == []


def test_undo_copy_deletes_copies_with_hooks(src_dir, dest_dir, handler, context, recorder, make_image):
    image = make_image(src_dir / "a.png")
    (src_dir / "a.json").write_text("{}")
    context.selected = image

    assert handler.copy_image(dest_dir)
    assert (dest_dir / "a.json").exists()
    recorder.calls.clear()

    ok, _ = handler.undo_last_operation()

    assert ok
    assert list(dest_dir.iterdir()) == []
    assert image.exists() and (src_dir / "a.json").exists()
    assert recorder.calls == [
        ('pre', OperationKind.DELETE, dest_dir / "a.png", None),
        ('post', OperationKind.DELETE, dest_dir / "a.png"),
    ]


def test_undo_symlink_removes_links_only(src_dir, dest_dir, handler, context, make_image):
    image = make_image(src_dir / "a.png")
    (src_dir / "a.txt").write_text("caption")
    context.selected = image
    assert handler.link_image(dest_dir)

    ok, _ = handler.undo_last_operation()

    assert ok
    assert list(dest_dir.iterdir()) == []
    assert image.exists() and (src_dir / "a.txt").exists()


def test_undo_move_back_resolves_conflicts(src_dir, dest_dir, handler, context, resolver, make_image):
    image = make_image(src_dir / "a.png")
    context.selected = image
    assert handler.move_image(dest_dir)
    make_image(src_dir / "a.png", color='green')
    resolver.push(ConflictDecision.rename(src_dir / "a_restored.png"))

    ok, _ = handler.undo_last_operation()

    assert ok
    assert (src_dir / "a_restored.png").exists()
    assert resolver.calls[-1] == (dest_dir / "a.png", src_dir, True)


def test_undo_move_abort_stops_the_rest(src_dir, dest_dir, handler, resolver, make_image):
    make_image(src_dir / "a.png")
    make_image(src_dir / "b.png")
    assert handler.move_all_images(dest_dir)
    make_image(src_dir / "a.png", color='green')
    resolver.push(ConflictDecision.abort_batch())

    ok, message = handler.undo_last_operation()

    assert not ok
    assert "cancelled" in message
    assert (dest_dir / "b.png").exists()


def test_nothing_to_undo(handler, messages):
    ok, message = handler.undo_last_operation()
    assert not ok
    assert messages.errors == [message]


def test_undo_refused_when_created_files_are_gone(src_dir, dest_dir, handler, history, messages):
    record = LastImageOperation(OperationKind.COPY, PayloadScope.SINGLE_IMAGE, dest_dir, src_dir)
    history.set(record)
    ok, _ = handler.undo_last_operation()
    assert not ok
    assert "empty" in messages.errors[-1]

    record.add_created_file(dest_dir / "gone.png")
    ok, _ = handler.undo_last_operation()
    assert not ok
    assert "no longer exist" in messages.errors[-1]


def test_declining_confirmation_changes_nothing(src_dir, dest_dir, context, messages, history,
                                                extensions, make_image):
    handler = ImageOperationHandler(context, ScriptedResolver(), messages, AutoConfirmPrompt(answer=False),
                                    history=history, extensions=extensions)
    context.selected = make_image(src_dir / "a.png")
    assert handler.copy_image(dest_dir)

    ok, message = handler.undo_last_operation()

    assert not ok
    assert message == "Undo cancelled."
    assert (dest_dir / "a.png").exists()


def test_undo_directory_move(src_dir, dest_dir, context, messages, history, extensions, recorder, make_image):
    album = src_dir / "album"
    make_image(album / "a.png")
    context.directory = album
    prompt = AutoConfirmPrompt(names=["renamed", "album"])
    handler = ImageOperationHandler(context, ScriptedResolver(), messages, prompt,
                                    history=history, extensions=extensions)

    assert handler.move_directory(dest_dir)
    assert context.current_directory() == src_dir
    assert (dest_dir / "renamed" / "a.png").exists()

    ok, _ = handler.undo_last_operation()

    assert ok
    assert (album / "a.png").exists()
    assert not (dest_dir / "renamed").exists()
    assert recorder.hooks('moved')[-1] == ('moved', dest_dir / "renamed", album)


def test_undo_directory_copy_deletes_in_background(src_dir, dest_dir, handler, context, prompt, make_image):
    album = src_dir / "album"
    prompt.names = ["album"]
    make_image(album / "a.png")
    context.directory = album

    assert handler.copy_directory(dest_dir)
    assert (dest_dir / "album" / "a.png").exists()

    ok, _ = handler.undo_last_operation()
    assert ok
    assert handler.wait_for_worker(timeout=10)

    assert not (dest_dir / "album").exists()
    assert (album / "a.png").exists()
    assert context.tree_enabled


def test_undo_directory_symlink(src_dir, dest_dir, handler, context, prompt, make_image):
    album = src_dir / "album"
    prompt.names = ["album"]
    make_image(album / "a.png")
    context.directory = album

    assert handler.link_directory(dest_dir)
    assert os.path.islink(dest_dir / "album")

    ok, _ = handler.undo_last_operation()

    assert ok
    assert not os.path.lexists(dest_dir / "album")
    assert (album / "a.png").exists()


def test_undo_copy_keeps_unrelated_sidecar_in_destination(src_dir, dest_dir, handler, context, make_image):
    image = make_image(src_dir / "img.png")
    (src_dir / "img.json").write_text("{}")
    (dest_dir / "img.json").write_text("someone else's data")
    context.selected = image

    assert handler.copy_image(dest_dir)
    ok, _ = handler.undo_last_operation()

    assert ok
    assert not (dest_dir / "img.png").exists()
    assert (dest_dir / "img.json").read_text() == "someone else's data"
    assert (src_dir / "img.json").read_text() == "{}"


def test_undo_move_leaves_unrelated_sidecar_behind(src_dir, dest_dir, handler, context, make_image):
    image = make_image(src_dir / "img.png")
    (src_dir / "img.txt").write_text("caption")
    (dest_dir / "img.json").write_text("someone else's data")
    context.selected = image

    assert handler.move_image(dest_dir)
    ok, _ = handler.undo_last_operation()

    assert ok
    assert sorted(p.name for p in src_dir.iterdir()) == ["img.png", "img.txt"]
    assert [p.name for p in dest_dir.iterdir()] == ["img.json"]


def test_undo_symlink_keeps_unrelated_sidecar(src_dir, dest_dir, handler, context, make_image):
    image = make_image(src_dir / "img.png")
    (src_dir / "img.txt").write_text("caption")
    (dest_dir / "img.json").write_text("someone else's data")
    context.selected = image

    assert handler.link_image(dest_dir)
    assert os.path.islink(dest_dir / "img.txt")
    ok, _ = handler.undo_last_operation()

    assert ok
    assert [p.name for p in dest_dir.iterdir()] == ["img.json"]

"""Tests for the filesystem primitives."""

import os

import pytest

import file_ops


def test_image_detection():
    assert file_ops.is_image_file("a.PNG")
    assert file_ops.is_image_file("b.jpeg")
    assert file_ops.is_image_file("c.tiff")
    assert not file_ops.is_image_file("notes.txt")


def test_list_image_files_is_sorted_and_flat(tmp_path, make_image):
    make_image(tmp_path / "b.png")
    make_image(tmp_path / "a.jpg")
    (tmp_path / "a.txt").touch()
    make_image(tmp_path / "sub" / "c.png")

    assert [p.name for p in file_ops.list_image_files(tmp_path)] == ["a.jpg", "b.png"]
    assert file_ops.list_image_files(tmp_path / "missing") == []


def test_move_and_copy_refuse_to_overwrite(tmp_path):
    a = tmp_path / "a"
    b = tmp_path / "b"
    a.write_text("a")
    b.write_text("b")
    with pytest.raises(FileExistsError):
        file_ops.move_file(a, b)
    with pytest.raises(FileExistsError):
        file_ops.copy_file(a, b)


def test_symlink_points_at_absolute_target(tmp_path, monkeypatch):
    (tmp_path / "a.png").write_text("x")
    monkeypatch.chdir(tmp_path)
    file_ops.create_symlink("a.png", tmp_path / "link.png")
    assert os.readlink(tmp_path / "link.png") == str(tmp_path / "a.png")


def test_path_exists_sees_dangling_links(tmp_path):
    link = tmp_path / "dangling"
    link.symlink_to(tmp_path / "nowhere")
    assert file_ops.path_exists(link)
    assert not link.exists()


def test_set_modified_time(tmp_path):
    f = tmp_path / "a"
    f.write_text("x")
    file_ops.set_modified_time(f, 1_000_000_000)
    assert os.stat(f).st_mtime == 1_000_000_000


def test_find_files_and_subdirectories_order(tmp_path):
    (tmp_path / "b").mkdir()
    (tmp_path / "a" / "deep").mkdir(parents=True)
    (tmp_path / "top.txt").touch()
    (tmp_path / "a" / "x.txt").touch()
    (tmp_path / "a" / "deep" / "y.txt").touch()

    files = file_ops.find_files(tmp_path)
    assert [p.relative_to(tmp_path).as_posix() for p in files] == ["top.txt", "a/x.txt", "a/deep/y.txt"]

    subdirs = file_ops.find_subdirectories(tmp_path)
    assert [p.relative_to(tmp_path).as_posix() for p in subdirs] == ["a", "b", "a/deep"]
    assert file_ops.find_files(tmp_path, recursive=False) == [tmp_path / "top.txt"]


def test_directory_symlinks_are_files_and_not_followed(tmp_path):
    outside = tmp_path / "outside"
    outside.mkdir()
    (outside / "keep.txt").touch()
    root = tmp_path / "root"
    root.mkdir()
    (root / "link").symlink_to(outside)

    assert file_ops.find_files(root) == [root / "link"]
    assert file_ops.find_subdirectories(root) == []


def test_listener_can_halt_search(tmp_path):
    for name in ("a", "b", "c"):
        (tmp_path / name).touch()
    seen = []

    def listener(path):
        seen.append(path)
        return len(seen) < 2

    assert len(file_ops.find_files(tmp_path, listener=listener)) == 2
    assert len(seen) == 2


def test_delete_directory_only_unlinks_symlinks(tmp_path):
    target = tmp_path / "target"
    target.mkdir()
    (target / "keep.png").touch()
    link = tmp_path / "link"
    link.symlink_to(target)

    file_ops.delete_directory(link)
    assert not file_ops.path_exists(link)
    assert (target / "keep.png").exists()

    file_ops.delete_directory(target)
    assert not target.exists()


def test_check_disk_space(tmp_path):
    f = tmp_path / "a"
    f.write_bytes(b"x" * 100)
    ok, message = file_ops.check_disk_space([f], tmp_path)
    assert ok and message is None
    ok, message = file_ops.check_disk_space([f], tmp_path / "missing")
    assert ok


def test_format_size():
    assert file_ops.format_size(512) == "512.0 B"
    assert file_ops.format_size(1536) == "1.5 KB"

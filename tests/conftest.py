"""Shared fixtures for the file operation engine tests."""

import pytest
from PIL import Image

from extension_manager import ExtensionManager, ImageViewerExtension, SidecarCompanionExtension
from operation_history import OperationHistory
from ui_ports import AutoConfirmPrompt, HeadlessBrowserContext, LoggingMessageSink


class RecordingExtension(ImageViewerExtension):
    """Remembers every hook call in order."""

    name = "recorder"

    def __init__(self):
        self.calls = []

    def pre_image_operation(self, kind, source, destination):
        self.calls.append(('pre', kind, source, destination))

    def post_image_operation(self, kind, result):
        self.calls.append(('post', kind, result))

    def directory_was_moved(self, old_dir, new_dir):
        self.calls.append(('moved', old_dir, new_dir))

    def directory_was_copied(self, old_dir, new_dir):
        self.calls.append(('copied', old_dir, new_dir))

    def hooks(self, name):
        return [c for c in self.calls if c[0] == name]


@pytest.fixture
def make_image():
    """Factory that writes a small real PNG/JPEG at the given path."""
    def _make(path, color='red'):
        path.parent.mkdir(parents=True, exist_ok=True)
        fmt = 'JPEG' if path.suffix.lower() in ('.jpg', '.jpeg') else 'PNG'
        Image.new('RGB', (8, 8), color).save(path, fmt)
        return path
    return _make


@pytest.fixture
def recorder():
    return RecordingExtension()


@pytest.fixture
def extensions(recorder):
    return ExtensionManager([SidecarCompanionExtension(['.txt', '.json']), recorder])


@pytest.fixture
def messages():
    return LoggingMessageSink()


@pytest.fixture
def prompt():
    return AutoConfirmPrompt(answer=True)


@pytest.fixture
def history():
    return OperationHistory()


@pytest.fixture
def src_dir(tmp_path):
    d = tmp_path / "src"
    d.mkdir()
    return d


@pytest.fixture
def dest_dir(tmp_path):
    d = tmp_path / "dest"
    d.mkdir()
    return d


@pytest.fixture
def context(src_dir):
    return HeadlessBrowserContext(directory=src_dir)

"""
Single-slot history of the last initiated file operation.

Only one record is kept; each new user action replaces it unconditionally,
before any filesystem work is attempted. No locking: only one mutating
operation can be in flight at a time.
"""

import logging
from typing import Optional

from image_operation import LastImageOperation


class OperationHistory:
    """Holds the one "last operation" used by repeat and undo."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._last: Optional[LastImageOperation] = None

    def set(self, record: LastImageOperation) -> None:
        self._last = record
        self.logger.debug(f"Last operation is now {record!r}")

    def get(self) -> Optional[LastImageOperation]:
        return self._last

    def has_record(self) -> bool:
        return self._last is not None

    def clear(self) -> None:
        self._last = None

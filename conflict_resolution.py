"""
Naming Conflict Resolution

When a destination filename is already taken, the engine asks a
ConflictResolver what to do. The resolver is a blocking call: the UI
implementation is a modal dialog (see tk_prompts.NameConflictDialog), while
the implementations here are non-interactive and used by the command line
tool and tests.

Decisions:
- PROCEED: keep the original name and replace the existing file
- RENAME: use the resolver-chosen destination path
- SKIP: leave this one file alone
- ABORT_BATCH: stop the enclosing batch (only offered in batch mode)
"""

import logging
import os
from collections import deque
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional, Protocol

logger = logging.getLogger(__name__)


class ConflictAction(Enum):
    PROCEED = "proceed"
    RENAME = "rename"
    SKIP = "skip"
    ABORT_BATCH = "abort_batch"


@dataclass(frozen=True)
class ConflictDecision:
    """Outcome of a conflict prompt. destination is set for PROCEED and RENAME."""
    action: ConflictAction
    destination: Optional[Path] = None

    @classmethod
    def proceed(cls, destination: Path) -> "ConflictDecision":
        return cls(ConflictAction.PROCEED, Path(destination))

    @classmethod
    def rename(cls, destination: Path) -> "ConflictDecision":
        return cls(ConflictAction.RENAME, Path(destination))

    @classmethod
    def skip(cls) -> "ConflictDecision":
        return cls(ConflictAction.SKIP)

    @classmethod
    def abort_batch(cls) -> "ConflictDecision":
        return cls(ConflictAction.ABORT_BATCH)


class ConflictResolver(Protocol):
    """Decides what to do when dest_dir already holds a file named like source."""

    def resolve(self, source: Path, dest_dir: Path, batch_mode: bool) -> ConflictDecision:
        ...


def suggest_new_name(dest_dir: Path, filename: str) -> str:
    """
    Suggest an available name in dest_dir for filename.

    Appends "_N" to the component before the last extension (or to the whole
    name if there is no extension), trying N = 1, 2, ... until the name is free.

    Args:
        dest_dir: Directory the name must be unique in
        filename: The conflicting filename

    Returns:
        A filename that does not exist in dest_dir
    """
    dest_dir = Path(dest_dir)
    components = filename.split(".")
    suffix = 1
    while True:
        candidate = list(components)
        if len(candidate) > 1:
            candidate[-2] += f"_{suffix}"
        else:
            candidate[0] += f"_{suffix}"
        new_name = ".".join(candidate)
        if not os.path.lexists(dest_dir / new_name):
            return new_name
        suffix += 1


class AutoRenameResolver:
    """Always renames to the next free name."""

    def resolve(self, source: Path, dest_dir: Path, batch_mode: bool) -> ConflictDecision:
        new_name = suggest_new_name(dest_dir, Path(source).name)
        logger.info(f"Name conflict for {source}: renaming to {new_name}")
        return ConflictDecision.rename(Path(dest_dir) / new_name)


class OverwriteResolver:
    """Always replaces the existing file."""

    def resolve(self, source: Path, dest_dir: Path, batch_mode: bool) -> ConflictDecision:
        return ConflictDecision.proceed(Path(dest_dir) / Path(source).name)


class SkipResolver:
    """Always leaves conflicting files alone."""

    def resolve(self, source: Path, dest_dir: Path, batch_mode: bool) -> ConflictDecision:
        return ConflictDecision.skip()


class ScriptedResolver:
    """
    Replays a fixed sequence of decisions, one per conflict.

    Once the script runs out, the fallback decision is used (SKIP by default).
    Every call is recorded in `calls` as (source, dest_dir, batch_mode).
    """

    def __init__(self, decisions: Iterable[ConflictDecision] = (), fallback: Optional[ConflictDecision] = None):
        self._queue = deque(decisions)
        self.fallback = fallback or ConflictDecision.skip()
        self.calls = []

    def push(self, decision: ConflictDecision) -> None:
        self._queue.append(decision)

    def resolve(self, source: Path, dest_dir: Path, batch_mode: bool) -> ConflictDecision:
        self.calls.append((Path(source), Path(dest_dir), batch_mode))
        if self._queue:
            return self._queue.popleft()
        return self.fallback


RESOLVERS = {
    'rename': AutoRenameResolver,
    'overwrite': OverwriteResolver,
    'skip': SkipResolver,
}


def resolver_for_policy(policy: str) -> ConflictResolver:
    """Build a non-interactive resolver from a policy name ('rename', 'overwrite', 'skip')."""
    try:
        return RESOLVERS[policy]()
    except KeyError:
        raise ValueError(f"Unknown conflict policy: {policy}") from None

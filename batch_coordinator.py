"""
Batch Operation Coordinator

Runs one transfer (move/copy/symlink) over every image in a list, in
order, through the SingleFileExecutor in batch mode. Per-file problems are
counted and the batch carries on; only an ABORT_BATCH decision from the
conflict resolver stops it early.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

import file_ops
from image_operation import LastImageOperation, OperationKind
from operation_errors import ValidationError
from single_file_executor import OperationOutcome, SingleFileExecutor

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    """Tally of a batch run."""
    succeeded: List[Path] = field(default_factory=list)
    skipped: List[Path] = field(default_factory=list)
    failed: List[Path] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    aborted: bool = False

    @property
    def processed(self) -> int:
        return len(self.succeeded) + len(self.skipped) + len(self.failed)

    @property
    def all_ok(self) -> bool:
        return not self.failed and not self.aborted

    def summary(self) -> str:
        parts = [f"{len(self.succeeded)} succeeded"]
        if self.skipped:
            parts.append(f"{len(self.skipped)} skipped")
        if self.failed:
            parts.append(f"{len(self.failed)} failed")
        if self.aborted:
            parts.append("aborted")
        return ", ".join(parts)


class BatchOperationCoordinator:
    """Applies one operation kind to many files."""

    def __init__(self, executor: SingleFileExecutor, config=None):
        self.executor = executor
        self.config = config

    def _check_space(self) -> bool:
        if self.config is None:
            return False
        return self.config.is_disk_space_check_enabled()

    def validate_destination(self, dest_dir: Optional[Path]) -> None:
        if dest_dir is None:
            raise ValidationError("No destination directory given.")
        if not dest_dir.exists():
            raise ValidationError(f"Destination does not exist: {dest_dir}")
        if not dest_dir.is_dir():
            raise ValidationError(f"Destination is not a directory: {dest_dir}")

    def run(self, kind: OperationKind, files: Iterable[Path], dest_dir: Path,
            record: Optional[LastImageOperation] = None,
            operation_name: Optional[str] = None) -> BatchResult:
        """
        Transfer every file into dest_dir.

        Args:
            kind: MOVE, COPY or SYMLINK
            files: Images to process, in order
            dest_dir: Destination directory
            record: Operation record that collects every created file
            operation_name: Name used in log lines

        Returns:
            BatchResult with per-file tallies

        Raises:
            ValidationError: if the destination is unusable (nothing is touched)
        """
        dest_dir = Path(dest_dir) if dest_dir is not None else None
        self.validate_destination(dest_dir)
        files = [Path(f) for f in files]
        result = BatchResult()

        if kind == OperationKind.COPY and self._check_space():
            sized = list(files)
            for f in files:
                sized.extend(self.executor.extensions.get_companion_files(f))
            ok, message = file_ops.check_disk_space(sized, dest_dir)
            if not ok:
                raise ValidationError(message)

        logger.info(f"{operation_name or kind.label}: {len(files)} file(s) -> {dest_dir}")
        for f in files:
            outcome = self.executor.execute(kind, f, dest_dir, batch_mode=True, record=record,
                                            operation_name=operation_name)
            if outcome.outcome == OperationOutcome.ABORTED:
                result.aborted = True
                break
            if outcome.ok:
                result.succeeded.append(f)
            elif outcome.outcome == OperationOutcome.SKIPPED:
                result.skipped.append(f)
            else:
                result.failed.append(f)
                result.errors.append(outcome.message)

        logger.info(f"{operation_name or kind.label}: {result.summary()}")
        return result

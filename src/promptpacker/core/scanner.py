# src/promptpacker/core/scanner.py
import logging
import os
import threading
from pathlib import Path
from typing import Iterator, Optional

from promptpacker.core.filters import InclusionDecider, file_extension
from promptpacker.models import Diagnostics, FileCandidate

logger = logging.getLogger(__name__)


class ProjectScanner:
    """
    Walks directories under a project root and yields a FileCandidate for
    every file found, with its inclusion decision already made.
    Paths are always reported relative to `root_dir`.
    """

    def __init__(
        self,
        root_dir: Path,
        decider: InclusionDecider,
        max_depth: Optional[int] = None,
        diagnostics: Optional[Diagnostics] = None,
        cancel: Optional[threading.Event] = None,
    ):
        self.root_dir = Path(root_dir)
        self.decider = decider
        self.max_depth = max_depth
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.cancel = cancel

    def _relative(self, path: Path) -> str:
        try:
            return path.relative_to(self.root_dir).as_posix()
        except ValueError:
            # Selected outside the project root: fall back to the bare name
            return path.name

    def _cancelled(self) -> bool:
        if self.cancel is not None and self.cancel.is_set():
            self.diagnostics.cancelled = True
            return True
        return False

    def evaluate(self, file_path: Path) -> Optional[FileCandidate]:
        """Builds the candidate for a single file. Returns None if it cannot be stat'ed."""
        rel_path = self._relative(file_path)
        self.diagnostics.total_files_scanned += 1
        try:
            size = file_path.stat().st_size
        except OSError as e:
            logger.warning("Skipping %s (stat failed: %s)", rel_path, e)
            self.diagnostics.record_error(rel_path, str(e))
            return None

        decision = self.decider.decide(rel_path, size)
        if decision.include:
            self.diagnostics.record_included(rel_path, decision.reason)
        else:
            self.diagnostics.record_excluded(rel_path, decision.reason)

        return FileCandidate(
            path=file_path,
            relative_path=rel_path,
            size=size,
            extension=file_extension(rel_path),
            included=decision.include,
            exclusion_reason=None if decision.include else decision.reason,
            inclusion_reason=decision.reason if decision.include else None,
            priority=decision.priority,
        )

    def _on_walk_error(self, error: OSError) -> None:
        failed = Path(error.filename) if error.filename else self.root_dir
        rel_path = self._relative(failed)
        logger.warning("Cannot read directory %s: %s", rel_path, error.strerror or error)
        self.diagnostics.record_error(rel_path, f"Failed to read directory: {error.strerror or error}")

    def walk(self, directory: Optional[Path] = None) -> Iterator[FileCandidate]:
        """
        Walks the directory tree depth-first, pruning excluded directories before
        descending, and yields candidates in a stable (name-sorted) order.
        """
        start = Path(directory) if directory is not None else self.root_dir
        if self.max_depth == 0:
            return

        for root, dirs, files in os.walk(start, onerror=self._on_walk_error):
            root_path = Path(root)
            depth = len(root_path.relative_to(start).parts)

            # --- 1. Prune Directories (in-place, so os.walk skips them) ---
            kept = []
            if self.max_depth is None or depth + 1 < self.max_depth:
                for d in sorted(dirs):
                    dir_rel_path = self._relative(root_path / d)
                    reason = self.decider.directory_exclusion(dir_rel_path)
                    if reason:
                        logger.debug("Pruning directory %s (%s)", dir_rel_path, reason)
                        self.diagnostics.record_excluded(dir_rel_path + "/", f"Directory skipped: {reason}")
                    else:
                        kept.append(d)
            dirs[:] = kept

            # --- 2. Process Files ---
            for f in sorted(files):
                if self._cancelled():
                    dirs[:] = []
                    return
                candidate = self.evaluate(root_path / f)
                if candidate is not None:
                    yield candidate

# src/promptpacker/models.py
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class FileCandidate:
    """
    One file considered for packing.

    `priority` is the path-derived score set when the inclusion decision is made.
    `relevance_score` and `information_density` are content-derived and only set
    by the classifier; budgeting ranks on `relevance_score` alone.
    """
    path: Path
    relative_path: str
    size: int
    extension: str
    included: bool
    exclusion_reason: Optional[str] = None
    inclusion_reason: Optional[str] = None
    priority: int = 0
    content: Optional[str] = None
    information_density: Optional[float] = None
    relevance_score: Optional[float] = None
    read_error: Optional[str] = None

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class DirectoryNode:
    name: str
    path: str
    type: str  # "file" or "directory"
    children: Tuple["DirectoryNode", ...] = ()
    candidate: Optional[FileCandidate] = field(default=None, repr=False, compare=False)

    @property
    def is_directory(self) -> bool:
        return self.type == "directory"


@dataclass(frozen=True)
class ContextMap:
    project_structure: Tuple[DirectoryNode, ...]
    entry_points: Tuple[str, ...]
    core_files: Tuple[FileCandidate, ...]
    config_files: Tuple[FileCandidate, ...]


@dataclass(frozen=True)
class ProjectOverview:
    name: str
    type: str
    tech_stack: Tuple[str, ...]
    entry_points: Tuple[str, ...]


@dataclass
class Diagnostics:
    """
    Collects per-file decisions and non-fatal errors for one run.
    Injected into the processor so callers can explain an empty or trimmed result.
    """
    total_files_scanned: int = 0
    included: List[Tuple[str, str]] = field(default_factory=list)
    excluded: List[Tuple[str, str]] = field(default_factory=list)
    budget_skipped: List[Tuple[str, int, int]] = field(default_factory=list)
    errors: List[Tuple[str, str]] = field(default_factory=list)
    cancelled: bool = False

    def record_included(self, path: str, reason: str) -> None:
        self.included.append((path, reason))

    def record_excluded(self, path: str, reason: str) -> None:
        self.excluded.append((path, reason))

    def record_budget_skip(self, path: str, size: int, remaining: int) -> None:
        self.budget_skipped.append((path, size, remaining))

    def record_error(self, path: str, message: str) -> None:
        self.errors.append((path, message))

    def summary(self) -> str:
        lines = [
            f"Scanned: {self.total_files_scanned} files",
            f"Included: {len(self.included)} | Excluded: {len(self.excluded)} | "
            f"Over budget: {len(self.budget_skipped)} | Errors: {len(self.errors)}",
        ]
        if self.cancelled:
            lines.append("Run was cancelled; results are partial.")
        for path, reason in self.excluded:
            lines.append(f"  - {path}: {reason}")
        for path, size, remaining in self.budget_skipped:
            lines.append(f"  ~ {path}: {size} bytes, only {remaining} bytes of budget left")
        for path, message in self.errors:
            lines.append(f"  ! {path}: {message}")
        return "\n".join(lines)


@dataclass(frozen=True)
class ProcessingResult:
    overview: ProjectOverview
    context_map: ContextMap
    files: Tuple[FileCandidate, ...]
    total_size: int
    token_estimate: int
    formatted_output: str
    diagnostics: Diagnostics = field(default_factory=Diagnostics, compare=False)

# src/promptpacker/core/filters.py
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Optional

import pathspec

from promptpacker.config import BINARY_EXTENSIONS, PackConfig, format_size
from promptpacker.core.ignore import PatternList

# Path-based priority bonuses. Weights are policy, not contract.
HIGH_SIGNAL_EXTENSIONS = frozenset([
    ".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".vue", ".svelte", ".html",
    ".go", ".rs", ".java", ".kt", ".swift", ".c", ".cpp", ".h", ".cs",
])
DYNAMIC_LANGUAGE_EXTENSIONS = frozenset([".py", ".rb", ".php", ".pl", ".lua", ".sh"])
STRUCTURED_DATA_EXTENSIONS = frozenset([".json", ".yaml", ".yml", ".toml", ".xml", ".ini", ".cfg"])
DOCUMENTATION_EXTENSIONS = frozenset([".md", ".rst", ".txt", ".adoc"])
CANONICAL_FILES = frozenset([
    "readme.md", "readme", "readme.rst", "readme.txt",
    "package.json", "pyproject.toml", "setup.py", "setup.cfg", "requirements.txt",
    "cargo.toml", "go.mod", "pom.xml", "build.gradle", "composer.json", "gemfile",
    "tsconfig.json", "jsconfig.json",
])
SOURCE_ROOTS = frozenset(["src", "lib", "app", "pkg", "cmd", "internal", "source"])


@dataclass(frozen=True)
class Decision:
    include: bool
    reason: str
    priority: int = 0


def file_extension(rel_path: str) -> str:
    return PurePosixPath(rel_path).suffix.lower()


def priority_score(rel_path: str) -> int:
    """Scores a path 0-100 from its name and location alone."""
    path = PurePosixPath(rel_path)
    ext = path.suffix.lower()
    score = 50
    if ext in HIGH_SIGNAL_EXTENSIONS:
        score += 30
    if path.name.lower() in CANONICAL_FILES:
        score += 40
    if len(path.parts) > 1 and path.parts[0] in SOURCE_ROOTS:
        score += 20
    if ext in STRUCTURED_DATA_EXTENSIONS:
        score += 15
    if ext in DYNAMIC_LANGUAGE_EXTENSIONS:
        score += 25
    if ext in DOCUMENTATION_EXTENSIONS:
        score += 10
    return min(score, 100)


class InclusionDecider:
    """
    Turns a project-relative path and size into an include/exclude decision.
    Rules are applied in a fixed order and the first one that fires decides.
    """

    def __init__(self, config: PackConfig, ignore_file_spec: Optional[pathspec.GitIgnoreSpec] = None):
        self.config = config
        self.default_exclusions = PatternList(config.default_exclusions)
        self.ignore_file_spec = ignore_file_spec if config.respect_ignore_file else None
        self.user_ignores = PatternList(config.ignore_patterns)
        self.high_priority = PatternList(config.high_priority_patterns)
        self.user_includes = PatternList(config.include_patterns)
        self.extensions = config.extension_set
        self.max_file_bytes = config.max_file_bytes

    def decide(self, rel_path: str, size: int) -> Decision:
        ext = file_extension(rel_path)

        if ext in BINARY_EXTENSIONS:
            return Decision(False, "Binary file")

        pattern = self.default_exclusions.first_match(rel_path)
        if pattern:
            return Decision(False, f"Matched default exclusion: {pattern}")

        if self.ignore_file_spec is not None and self.ignore_file_spec.match_file(rel_path):
            return Decision(False, "Matched .gitignore pattern")

        pattern = self.user_ignores.first_match(rel_path)
        if pattern:
            return Decision(False, f"Matched user ignore: {pattern}")

        pattern = self.high_priority.first_match(rel_path)
        if pattern:
            return Decision(True, f"High-priority match: {pattern}", priority_score(rel_path))

        if size > self.max_file_bytes:
            return Decision(
                False,
                f"File size {format_size(size)} ({size} bytes) exceeds max file size "
                f"{self.config.max_file_size} ({self.max_file_bytes} bytes)",
            )

        pattern = self.user_includes.first_match(rel_path)
        if pattern:
            return Decision(True, f"Matched include pattern: {pattern}", priority_score(rel_path))

        if ext and ext in self.extensions:
            return Decision(True, f"Extension {ext} is in include list", priority_score(rel_path))

        return Decision(
            False,
            f"No matching criteria (extension: {ext or 'none'}, "
            f"include patterns: {len(self.user_includes)}, extensions: {len(self.extensions)})",
        )

    def directory_exclusion(self, rel_dir: str) -> Optional[str]:
        """Returns why a directory should not be descended into, or None."""
        pattern = self.default_exclusions.matches_directory(rel_dir)
        if pattern:
            return f"Matched default exclusion: {pattern}"
        if self.ignore_file_spec is not None and self.ignore_file_spec.match_file(rel_dir.rstrip("/") + "/"):
            return "Matched .gitignore pattern"
        pattern = self.user_ignores.matches_directory(rel_dir)
        if pattern:
            return f"Matched user ignore: {pattern}"
        return None

# src/promptpacker/core/ignore.py
import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import pathspec

logger = logging.getLogger(__name__)

_BRACE_RE = re.compile(r"\{([^{}]*)\}")


def expand_braces(pattern: str) -> List[str]:
    """
    Expands brace groups, which gitignore patterns do not understand.
    'src/*.{js,ts}' -> ['src/*.js', 'src/*.ts']
    """
    match = _BRACE_RE.search(pattern)
    if not match or "," not in match.group(1):
        return [pattern]
    head, tail = pattern[:match.start()], pattern[match.end():]
    expanded = []
    for option in match.group(1).split(","):
        expanded.extend(expand_braces(head + option + tail))
    return expanded


def compile_pattern(pattern: str) -> pathspec.GitIgnoreSpec:
    return pathspec.GitIgnoreSpec.from_lines(expand_braces(pattern))


class PatternList:
    """
    An ordered list of glob rules where each rule is matched on its own,
    so callers learn which rule fired. The first matching rule wins.
    """

    def __init__(self, patterns: Iterable[str]):
        self.patterns: Tuple[str, ...] = tuple(
            p.strip() for p in patterns if p.strip() and not p.strip().startswith("#")
        )
        self._specs = [(p, compile_pattern(p)) for p in self.patterns]

    def __len__(self) -> int:
        return len(self.patterns)

    def __bool__(self) -> bool:
        return bool(self.patterns)

    def first_match(self, rel_path: str) -> Optional[str]:
        for pattern, spec in self._specs:
            if spec.match_file(rel_path):
                return pattern
        return None

    def matches_directory(self, rel_dir: str) -> Optional[str]:
        """Checks a directory both bare ('logs') and as a tree ('logs/')."""
        rel_dir = rel_dir.rstrip("/")
        return self.first_match(rel_dir) or self.first_match(rel_dir + "/")


def load_ignore_spec(ignore_file: Path, extra_patterns: Optional[List[str]] = None) -> Optional[pathspec.GitIgnoreSpec]:
    """
    Loads rules from an ignore file (normally .gitignore) into one GitIgnoreSpec,
    so negations like '!keep.log' behave the way git applies them.
    Returns None when there is nothing to apply.
    """
    lines: List[str] = []

    if ignore_file.is_file():
        try:
            with open(ignore_file, "r", encoding="utf-8") as f:
                lines = f.read().splitlines()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read %s: %s", ignore_file, e)

    if extra_patterns:
        lines.extend(extra_patterns)

    if not any(line.strip() and not line.lstrip().startswith("#") for line in lines):
        return None

    try:
        return pathspec.GitIgnoreSpec.from_lines(lines)
    except Exception as e:
        # pathspec raises its own error types for malformed lines
        logger.warning("Error parsing ignore rules in %s: %s", ignore_file, e)
        return None

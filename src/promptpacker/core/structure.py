# src/promptpacker/core/structure.py
import re
from typing import List, Sequence

from promptpacker.core.classifier import (
    detect_project_type,
    detect_tech_stack,
    is_config_file,
    is_entry_point,
)
from promptpacker.core.tree import build_directory_tree
from promptpacker.models import ContextMap, FileCandidate, ProjectOverview

MAX_CORE_FILES = 10
CONFIG_EXTENSIONS = frozenset([".json", ".toml", ".ini", ".cfg"])
_BUILD_CONFIG_RE = re.compile(r"\.config\.[a-z]+$", re.IGNORECASE)


def looks_like_config(candidate: FileCandidate) -> bool:
    return (
        is_config_file(candidate.name)
        or bool(_BUILD_CONFIG_RE.search(candidate.name))
        or candidate.extension in CONFIG_EXTENSIONS
    )


def detect_entry_points(files: Sequence[FileCandidate]) -> List[str]:
    return [f.relative_path for f in files if is_entry_point(f.name)]


def build_context_map(selected: Sequence[FileCandidate]) -> ContextMap:
    core_files = sorted(selected, key=lambda f: f.relevance_score or 0.0, reverse=True)[:MAX_CORE_FILES]
    return ContextMap(
        project_structure=tuple(build_directory_tree(selected)),
        entry_points=tuple(detect_entry_points(selected)),
        core_files=tuple(core_files),
        config_files=tuple(f for f in selected if looks_like_config(f)),
    )


def build_overview(project_name: str, files: Sequence[FileCandidate], context_map: ContextMap) -> ProjectOverview:
    """Type and stack come from every included file, not just the ones that fit the budget."""
    return ProjectOverview(
        name=project_name,
        type=detect_project_type(files),
        tech_stack=tuple(detect_tech_stack(files)),
        entry_points=context_map.entry_points,
    )

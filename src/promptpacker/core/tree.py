# src/promptpacker/core/tree.py
from typing import Dict, Iterable, List, Sequence, Set

from promptpacker.models import DirectoryNode, FileCandidate

BRANCH_MARKER = "├── "


def _sort_key(node: DirectoryNode):
    return (not node.is_directory, node.name)


def build_directory_tree(files: Iterable[FileCandidate]) -> List[DirectoryNode]:
    """
    Groups files by path segment into a forest of DirectoryNodes.

    Every path is registered under its parent path first; nodes are then built
    children-first, so only directories with at least one file ever exist.
    """
    children: Dict[str, Set[str]] = {"": set()}
    leaves: Dict[str, FileCandidate] = {}

    for fc in files:
        parts = [p for p in fc.relative_path.split("/") if p]
        for depth in range(1, len(parts) + 1):
            parent = "/".join(parts[:depth - 1])
            node_path = "/".join(parts[:depth])
            children.setdefault(parent, set()).add(node_path)
            if depth < len(parts):
                children.setdefault(node_path, set())
        leaves["/".join(parts)] = fc

    def build(node_path: str) -> DirectoryNode:
        name = node_path.rsplit("/", 1)[-1]
        if node_path in leaves:
            return DirectoryNode(name=name, path=node_path, type="file", candidate=leaves[node_path])
        nodes = sorted((build(child) for child in children[node_path]), key=_sort_key)
        return DirectoryNode(name=name, path=node_path, type="directory", children=tuple(nodes))

    return sorted((build(p) for p in children[""]), key=_sort_key)


def render_tree(nodes: Sequence[DirectoryNode], indent: int = 0) -> str:
    """Renders the forest two spaces per level, one marker style for every node."""
    lines: List[str] = []

    def _generate_lines_recursive(level_nodes: Sequence[DirectoryNode], level: int):
        prefix = "  " * level
        for node in level_nodes:
            lines.append(f"{prefix}{BRANCH_MARKER}{node.name}")
            if node.children:
                _generate_lines_recursive(node.children, level + 1)

    _generate_lines_recursive(nodes, indent)
    return "\n".join(lines)


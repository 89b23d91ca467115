# src/promptpacker/core/formatter.py
from typing import List, Sequence
from xml.sax.saxutils import escape

from promptpacker.config import PackConfig
from promptpacker.core.tree import render_tree
from promptpacker.models import ContextMap, FileCandidate, ProjectOverview

_XML_ENTITIES = {'"': "&quot;", "'": "&apos;"}

LANGUAGE_BY_EXTENSION = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".py": "python",
    ".java": "java",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".hpp": "cpp",
    ".cc": "cpp",
    ".cs": "csharp",
    ".rb": "ruby",
    ".go": "go",
    ".php": "php",
    ".swift": "swift",
    ".kt": "kotlin",
    ".rs": "rust",
    ".dart": "dart",
    ".scala": "scala",
    ".r": "r",
    ".m": "objc",
    ".json": "json",
    ".xml": "xml",
    ".yml": "yaml",
    ".yaml": "yaml",
    ".toml": "toml",
    ".md": "markdown",
    ".sh": "bash",
    ".sql": "sql",
    ".css": "css",
    ".scss": "scss",
    ".html": "html",
    ".vue": "vue",
    ".svelte": "svelte",
}


def escape_xml(text: str) -> str:
    """Escapes &, <, >, " and ' with their named entities."""
    return escape(text, _XML_ENTITIES)


def language_for(extension: str) -> str:
    return LANGUAGE_BY_EXTENSION.get(extension, "")


def relevance_percent(candidate: FileCandidate) -> str:
    return f"{(candidate.relevance_score or 0.0) * 100:.0f}%"


def by_relevance(files: Sequence[FileCandidate]) -> List[FileCandidate]:
    return sorted(files, key=lambda f: (-(f.relevance_score or 0.0), f.relative_path))


def by_path(files: Sequence[FileCandidate]) -> List[FileCandidate]:
    return sorted(files, key=lambda f: f.relative_path)


class OutputFormatter:
    """Renders the selected files and project metadata as one string."""

    def __init__(self, config: PackConfig):
        self.config = config

    def format(self, overview: ProjectOverview, context_map: ContextMap, files: Sequence[FileCandidate]) -> str:
        files = [f for f in files if f.included and f.content is not None]
        fmt = self.config.format_name
        if fmt == "structured":
            return self.format_structured(overview, context_map, files)
        if fmt == "document":
            return self.format_document(overview, context_map, files)
        return self.format_plain(files)

    @staticmethod
    def _file_block(output: List[str], candidate: FileCandidate, annotate: bool) -> None:
        output.append(f'    <file path="{escape_xml(candidate.relative_path)}">')
        if annotate and candidate.relevance_score is not None:
            output.append(f"      <!-- Relevance: {relevance_percent(candidate)} -->")
        for line in (candidate.content or "").split("\n"):
            output.append("      " + escape_xml(line))
        output.append("    </file>")

    def format_structured(self, overview: ProjectOverview, context_map: ContextMap, files: Sequence[FileCandidate]) -> str:
        output = ["<codebase_analysis>"]

        output.append("  <project_overview>")
        output.append(f"    <name>{escape_xml(overview.name)}</name>")
        output.append(f"    <type>{escape_xml(overview.type)}</type>")
        output.append(f"    <tech_stack>{', '.join(escape_xml(t) for t in overview.tech_stack)}</tech_stack>")
        output.append(f"    <entry_points>{', '.join(escape_xml(e) for e in overview.entry_points)}</entry_points>")
        output.append("  </project_overview>")
        output.append("")

        output.append("  <architecture>")
        output.append("    <directory_structure>")
        tree = render_tree(context_map.project_structure, indent=3)
        if tree:
            output.append(escape_xml(tree))
        output.append("    </directory_structure>")
        output.append("  </architecture>")
        output.append("")

        output.append("  <source_files>")
        for candidate in by_relevance(files):
            self._file_block(output, candidate, annotate=True)
            output.append("")
        output.append("  </source_files>")

        config_files = [f for f in context_map.config_files if f.content is not None]
        if config_files:
            output.append("")
            output.append("  <configuration>")
            for candidate in config_files:
                self._file_block(output, candidate, annotate=False)
            output.append("  </configuration>")

        output.append("</codebase_analysis>")
        return "\n".join(output)

    def format_document(self, overview: ProjectOverview, context_map: ContextMap, files: Sequence[FileCandidate]) -> str:
        output = [f"# {overview.name}", ""]
        output.append(f"**Project Type:** {overview.type}")
        output.append(f"**Technology Stack:** {', '.join(overview.tech_stack)}")
        output.append(f"**Entry Points:** {', '.join(overview.entry_points)}")
        output.append("")

        output.append("## Project Structure")
        output.append("")
        output.append("```")
        tree = render_tree(context_map.project_structure)
        if tree:
            output.append(tree)
        output.append("```")
        output.append("")

        output.append("## Source Files")
        output.append("")
        for candidate in by_relevance(files):
            output.append(f"### {candidate.relative_path}")
            if candidate.relevance_score is not None:
                output.append(f"*Relevance: {relevance_percent(candidate)}*")
            output.append("")
            output.append(f"```{language_for(candidate.extension)}")
            output.append(candidate.content or "")
            output.append("```")
            output.append("")

        return "\n".join(output)

    def format_plain(self, files: Sequence[FileCandidate]) -> str:
        output: List[str] = []
        for candidate in by_path(files):
            if self.config.preserve_structure:
                output.append(f"// {candidate.relative_path}")
            output.append(candidate.content or "")
            output.append("")
            output.append("")
        return "\n".join(output).strip()

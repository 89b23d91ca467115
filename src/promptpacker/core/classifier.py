# src/promptpacker/core/classifier.py
import json
import logging
import os
import re
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Sequence

from promptpacker.models import FileCandidate

logger = logging.getLogger(__name__)

SOURCE_CODE_EXTENSIONS = frozenset([
    ".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs",
    ".py", ".java", ".c", ".cpp", ".cs", ".rb", ".go", ".php", ".swift",
    ".kt", ".rs", ".dart", ".scala", ".r", ".m", ".h", ".hpp", ".cc", ".cxx",
    ".vue", ".svelte",
])

CONFIG_FILES = frozenset([
    "package.json", "tsconfig.json", "jsconfig.json", "babel.config.js",
    ".eslintrc", ".prettierrc", "webpack.config.js", "vite.config.js", "vite.config.ts",
    "rollup.config.js", "next.config.js", "nuxt.config.js", "vue.config.js",
    "angular.json", ".env.example", "docker-compose.yml", "Dockerfile", "Makefile",
    "requirements.txt", "pyproject.toml", "setup.py", "setup.cfg", "tox.ini",
    "Gemfile", "Cargo.toml", "go.mod", "composer.json", "pom.xml", "build.gradle",
    ".gitignore",
])

DOCUMENTATION_PATTERNS = [
    re.compile(r"^README", re.IGNORECASE),
    re.compile(r"^CHANGELOG", re.IGNORECASE),
    re.compile(r"^CONTRIBUTING", re.IGNORECASE),
    re.compile(r"^LICENSE", re.IGNORECASE),
    re.compile(r"^AUTHORS", re.IGNORECASE),
    re.compile(r"^CONTRIBUTORS", re.IGNORECASE),
    re.compile(r"^TODO", re.IGNORECASE),
    re.compile(r"\.md$", re.IGNORECASE),
]

ENTRY_POINT_RE = re.compile(
    r"^(index|main|app|server|extension|background|content|popup|cli|__main__)"
    r"\.(js|jsx|ts|tsx|mjs|cjs|py|go|rs)$"
)

_COMMENT_PREFIXES = ("//", "#", "*", "/*", "<!--", "--")
_IMPORT_RE = re.compile(r"^(import|from|require|use|include|using)\b|^#include\b|^(const|let|var)\s+\w+\s*=\s*require\(")
_FUNCTION_RE = re.compile(
    r"function\s+\w+|(const|let)\s+\w+\s*=\s*(async\s*)?\(|=>\s*\{|\bdef\s+\w+|\bfunc?\s+\w+|\bfn\s+\w+"
)
_CLASS_RE = re.compile(r"\b(class|interface|struct|trait)\s+\w+")

# Base weights per category; the policy, not the contract
SOURCE_DENSITY, SOURCE_RELEVANCE, ENTRY_POINT_BONUS = 0.7, 0.8, 0.2
CONFIG_DENSITY, CONFIG_RELEVANCE = 0.9, 0.9
DOC_DENSITY, DOC_RELEVANCE = 0.5, 0.6
GENERIC_DENSITY, GENERIC_RELEVANCE = 0.3, 0.3

# Bytes sniffed for NUL characters before decoding
BINARY_SNIFF_BYTES = 1024


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def is_source_file(extension: str) -> bool:
    return extension in SOURCE_CODE_EXTENSIONS


def is_config_file(name: str) -> bool:
    return name in CONFIG_FILES


def is_documentation(name: str) -> bool:
    return any(p.search(name) for p in DOCUMENTATION_PATTERNS)


def is_entry_point(name: str) -> bool:
    return bool(ENTRY_POINT_RE.match(name))


@dataclass(frozen=True)
class ContentAnalysis:
    total_lines: int
    code_lines: int
    comment_lines: int
    blank_lines: int
    import_lines: int
    function_count: int
    class_count: int
    density_multiplier: float
    relevance_multiplier: float


def analyze_content(content: str, extension: str) -> ContentAnalysis:
    """Counts line categories and structural hints and derives the score multipliers."""
    lines = content.split("\n") if content else []
    total_lines = len(lines)
    code = comments = blanks = imports = functions = classes = 0
    source = is_source_file(extension)

    for line in lines:
        stripped = line.strip()
        if not stripped:
            blanks += 1
        elif not source:
            code += 1
        elif _IMPORT_RE.match(stripped):
            imports += 1
        elif stripped.startswith(_COMMENT_PREFIXES):
            comments += 1
        else:
            code += 1
            if _FUNCTION_RE.search(stripped):
                functions += 1
            if _CLASS_RE.search(stripped):
                classes += 1

    meaningful = code + comments
    density_ratio = meaningful / total_lines if total_lines else 0.0
    complexity = (functions + classes * 2) / max(1.0, meaningful / 100)

    density_multiplier = density_ratio
    if complexity > 0.5:
        density_multiplier *= 1.2

    relevance_multiplier = 1.0
    if imports > 5:
        relevance_multiplier *= 1.1
    if functions > 3 or classes > 0:
        relevance_multiplier *= 1.2
    if total_lines > 1000:
        relevance_multiplier *= 0.8
    if meaningful and comments / meaningful > 0.3:
        relevance_multiplier *= 1.1

    return ContentAnalysis(
        total_lines=total_lines,
        code_lines=code,
        comment_lines=comments,
        blank_lines=blanks,
        import_lines=imports,
        function_count=functions,
        class_count=classes,
        density_multiplier=clamp(density_multiplier, 0.1, 1.5),
        relevance_multiplier=clamp(relevance_multiplier, 0.1, 1.5),
    )


def base_scores(candidate: FileCandidate):
    """Returns (density, relevance) from the file's name and extension."""
    name = candidate.name
    density = relevance = 0.0
    if is_source_file(candidate.extension):
        density += SOURCE_DENSITY
        relevance += SOURCE_RELEVANCE
        if is_entry_point(name):
            relevance += ENTRY_POINT_BONUS
    if is_config_file(name):
        density += CONFIG_DENSITY
        relevance += CONFIG_RELEVANCE
    if is_documentation(name):
        density += DOC_DENSITY
        relevance += DOC_RELEVANCE
    if density == 0 and relevance == 0:
        density, relevance = GENERIC_DENSITY, GENERIC_RELEVANCE
    return density, relevance


def read_text(candidate: FileCandidate) -> str:
    """Reads a file as UTF-8, refusing files that look binary."""
    with candidate.path.open("rb") as f:
        data = f.read()
    if b"\0" in data[:BINARY_SNIFF_BYTES]:
        raise ValueError("binary content")
    return data.decode("utf-8")


def _resolve_worker_count(max_workers: int, item_count: int) -> int:
    if item_count <= 1:
        return 1
    if max_workers > 0:
        return max_workers
    cpu = os.cpu_count() or 1
    return max(2, min(32, cpu * 4, item_count))


class ContentClassifier:
    """Scores included files by category and by what their content looks like."""

    def classify(self, candidate: FileCandidate) -> FileCandidate:
        if not candidate.included:
            return candidate

        density, relevance = base_scores(candidate)
        try:
            content = read_text(candidate)
        except (OSError, UnicodeDecodeError, ValueError) as e:
            logger.warning("Could not read %s: %s", candidate.relative_path, e)
            return replace(
                candidate,
                information_density=clamp(density, 0.0, 1.0),
                relevance_score=clamp(relevance, 0.0, 1.0),
                read_error=str(e),
            )

        analysis = analyze_content(content, candidate.extension)
        return replace(
            candidate,
            content=content,
            information_density=clamp(density * analysis.density_multiplier, 0.0, 1.0),
            relevance_score=clamp(relevance * analysis.relevance_multiplier, 0.0, 1.0),
        )

    def classify_all(
        self,
        candidates: Sequence[FileCandidate],
        max_workers: int = 0,
        cancel: Optional[threading.Event] = None,
    ) -> List[FileCandidate]:
        """
        Classifies every candidate on a bounded thread pool.
        Output order matches input order; each task only touches its own candidate.
        """
        def task(candidate: FileCandidate) -> FileCandidate:
            if cancel is not None and cancel.is_set():
                return candidate
            return self.classify(candidate)

        worker_count = _resolve_worker_count(max_workers, len(candidates))
        if worker_count == 1:
            return [task(c) for c in candidates]
        with ThreadPoolExecutor(max_workers=worker_count) as pool:
            return list(pool.map(task, candidates))


def detect_project_type(files: Iterable[FileCandidate]) -> str:
    files = list(files)
    names = {f.name for f in files}

    def has_file(name: str) -> bool:
        return name in names

    def has_pattern(pattern: str) -> bool:
        regex = re.compile(pattern, re.IGNORECASE)
        return any(regex.search(f.relative_path) for f in files)

    if has_file("package.json"):
        if has_file("next.config.js") or has_file("next.config.mjs"):
            return "Next.js Application"
        if has_file("nuxt.config.js"):
            return "Nuxt.js Application"
        if has_file("angular.json"):
            return "Angular Application"
        if has_file("vue.config.js") or has_pattern(r"\.vue$"):
            return "Vue.js Application"
        if has_pattern(r"\.tsx$") and has_pattern(r"react"):
            return "React Application"
        if has_file("extension.ts") or has_file("extension.js"):
            return "VS Code Extension"
        return "Node.js Project"

    if has_file("pyproject.toml") or has_file("requirements.txt") or has_file("setup.py"):
        return "Python Project"
    if has_file("Cargo.toml"):
        return "Rust Project"
    if has_file("go.mod"):
        return "Go Project"
    if has_file("pom.xml"):
        return "Java Maven Project"
    if has_file("build.gradle"):
        return "Java Gradle Project"
    if has_file("composer.json"):
        return "PHP Project"
    if has_file("Gemfile"):
        return "Ruby Project"
    return "Unknown Project Type"


LANGUAGES_BY_EXTENSION = {
    ".ts": "TypeScript", ".tsx": "TypeScript",
    ".js": "JavaScript", ".jsx": "JavaScript", ".mjs": "JavaScript",
    ".py": "Python",
    ".java": "Java",
    ".go": "Go",
    ".rs": "Rust",
    ".rb": "Ruby",
    ".php": "PHP",
}

NPM_FRAMEWORKS = [
    ("react", "React"),
    ("vue", "Vue.js"),
    ("@angular/core", "Angular"),
    ("next", "Next.js"),
    ("nuxt", "Nuxt.js"),
    ("express", "Express.js"),
    ("fastify", "Fastify"),
    ("@nestjs/core", "NestJS"),
    ("@types/vscode", "VS Code Extension API"),
    ("electron", "Electron"),
]
NPM_TEST_FRAMEWORKS = ("jest", "mocha", "vitest")

PYTHON_FRAMEWORKS = [
    ("django", "Django"),
    ("flask", "Flask"),
    ("fastapi", "FastAPI"),
    ("pytest", "pytest"),
]
_REQUIREMENT_NAME_RE = re.compile(r"^\s*([A-Za-z0-9_.\-]+)")


def _npm_stack(content: str) -> List[str]:
    try:
        pkg = json.loads(content)
    except ValueError:
        return []
    if not isinstance(pkg, dict):
        return []
    deps = {}
    for key in ("dependencies", "devDependencies"):
        if isinstance(pkg.get(key), dict):
            deps.update(pkg[key])
    found = [label for dep, label in NPM_FRAMEWORKS if dep in deps]
    if any(dep in deps for dep in NPM_TEST_FRAMEWORKS):
        found.append("Testing Framework")
    return found


def _python_stack(content: str) -> List[str]:
    names = set()
    for line in content.splitlines():
        match = _REQUIREMENT_NAME_RE.match(line.strip().strip('"\','))
        if match:
            names.add(match.group(1).lower())
    return [label for dep, label in PYTHON_FRAMEWORKS if dep in names]


def detect_tech_stack(files: Iterable[FileCandidate]) -> List[str]:
    """Languages from extensions, frameworks from manifests; first-seen order."""
    stack: List[str] = []

    def add(item: str) -> None:
        if item not in stack:
            stack.append(item)

    for f in files:
        language = LANGUAGES_BY_EXTENSION.get(f.extension)
        if language:
            add(language)
        if not f.content:
            continue
        if f.name == "package.json":
            for item in _npm_stack(f.content):
                add(item)
        elif f.name in ("requirements.txt", "pyproject.toml"):
            for item in _python_stack(f.content):
                add(item)
    return stack

# src/promptpacker/config.py
import json
import re
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from promptpacker.utils.tokenizer import TOKEN_MODELS

CONFIG_FILE_NAME = ".promptpackerrc"
IGNORE_FILE_NAME = ".gitignore"

# Checked before anything else, by extension only
BINARY_EXTENSIONS = frozenset([
    ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".ico", ".svg", ".webp",
    ".mp4", ".avi", ".mov", ".wmv", ".flv", ".webm",
    ".mp3", ".wav", ".flac", ".aac", ".ogg",
    ".ttf", ".otf", ".woff", ".woff2", ".eot",
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
    ".zip", ".rar", ".7z", ".tar", ".gz", ".bz2", ".xz",
    ".exe", ".dll", ".so", ".dylib", ".dmg", ".pkg", ".deb", ".rpm",
    ".db", ".sqlite", ".sqlite3",
    ".pyc", ".pyo", ".pyd", ".class", ".o", ".obj", ".jar", ".wasm",
])

DEFAULT_EXCLUSIONS = [
    # Version control
    "**/.git/**",
    "**/.svn/**",
    "**/.hg/**",
    # Dependencies
    "**/node_modules/**",
    "**/bower_components/**",
    "**/vendor/**",
    "**/venv/**",
    "**/.venv/**",
    # Build output
    "**/dist/**",
    "**/build/**",
    "**/out/**",
    "**/target/**",
    "**/.next/**",
    "**/.nuxt/**",
    "**/*.egg-info/**",
    "**/__pycache__/**",
    "**/.pytest_cache/**",
    "**/coverage/**",
    "**/.nyc_output/**",
    "**/.cache/**",
    "**/.parcel-cache/**",
    "**/.tmp/**",
    "**/.temp/**",
    # Logs and lock files
    "**/*.log",
    "**/*.lock",
    "**/package-lock.json",
    "**/pnpm-lock.yaml",
    "**/bun.lockb",
    # OS / editor artifacts
    "**/.DS_Store",
    "**/Thumbs.db",
    "**/desktop.ini",
    "**/.vscode/**",
    "**/.idea/**",
    "**/*.sublime-*",
    "**/*.swp",
    "**/*~",
    "**/.env*",
    # Minified / generated
    "**/*.min.js",
    "**/*.min.css",
    "**/*.map",
    "**/*.chunk.*",
    "**/*.bundle.*",
    # Tests
    "**/*.test.*",
    "**/*.spec.*",
    "**/__tests__/**",
]

DEFAULT_HIGH_PRIORITY_PATTERNS = [
    "README*",
    "package.json",
    "pyproject.toml",
    "Cargo.toml",
    "go.mod",
    "tsconfig.json",
]

DEFAULT_INCLUDE_PATTERNS = [
    "src/**/*.{js,ts,jsx,tsx}",
    "**/*.md",
    "package.json",
    "*.config.{js,ts,json}",
]

DEFAULT_INCLUDE_EXTENSIONS = [
    ".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs", ".vue", ".svelte",
    ".py", ".rb", ".php", ".go", ".rs", ".java", ".kt", ".swift", ".scala",
    ".c", ".h", ".cpp", ".hpp", ".cc", ".cs", ".dart",
    ".html", ".css", ".scss", ".sql", ".sh",
    ".json", ".yml", ".yaml", ".toml",
    ".md", ".rst", ".txt",
]

# Canonical names first, then the names the VS Code extension used
OUTPUT_FORMATS = ("structured", "document", "plain")
FORMAT_ALIASES = {
    "ai-optimized": "structured",
    "markdown": "document",
    "standard": "plain",
}

SIZE_UNITS = {
    "b": 1,
    "kb": 1024,
    "mb": 1024 ** 2,
    "gb": 1024 ** 3,
}
_SIZE_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(b|kb|mb|gb)?\s*$", re.IGNORECASE)

# .promptpackerrc key -> PackConfig field
RC_KEYS = {
    "ignore": "ignore_patterns",
    "include": "include_patterns",
    "highPriorityPatterns": "high_priority_patterns",
    "includeExtensions": "include_extensions",
    "maxFileSize": "max_file_size",
    "maxTotalSize": "max_total_size",
    "preserveStructure": "preserve_structure",
    "outputFormat": "output_format",
    "maxDepth": "max_depth",
    "respectGitignore": "respect_ignore_file",
    "tokenModel": "token_model",
    "maxWorkers": "max_workers",
}
_LIST_FIELDS = {"ignore_patterns", "include_patterns", "high_priority_patterns", "include_extensions"}
_STR_FIELDS = {"max_file_size", "max_total_size", "output_format", "token_model"}
_BOOL_FIELDS = {"preserve_structure", "respect_ignore_file"}
_INT_FIELDS = {"max_depth", "max_workers"}


def _is_int(value: Any) -> bool:
    # bool is an int subclass; true/false is never a depth or worker count
    return isinstance(value, int) and not isinstance(value, bool)


def _type_error(name: str, value: Any) -> Optional[str]:
    """Describes what `name` should have been, or None if `value` has the right type."""
    if name in _LIST_FIELDS:
        if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
            return None
        return "a list of strings"
    if name in _STR_FIELDS:
        return None if isinstance(value, str) else "a string"
    if name in _BOOL_FIELDS:
        return None if isinstance(value, bool) else "true or false"
    if name == "max_depth":
        return None if value is None or _is_int(value) else "an integer or null"
    if name in _INT_FIELDS:
        return None if _is_int(value) else "an integer"
    return None


class ConfigError(ValueError):
    """Raised for configuration that cannot be used. Nothing is processed."""


def parse_size(size_str: str) -> int:
    """Parses '100kb', '1.5MB', '512' (bytes) into a byte count."""
    match = _SIZE_RE.match(str(size_str))
    if not match:
        raise ConfigError(f"Invalid size format: {size_str!r}")
    value = float(match.group(1))
    unit = (match.group(2) or "b").lower()
    return int(value * SIZE_UNITS[unit])


def format_size(num_bytes: int) -> str:
    if num_bytes < 1024:
        return f"{num_bytes}B"
    if num_bytes < 1024 ** 2:
        return f"{num_bytes / 1024:.1f}KB"
    if num_bytes < 1024 ** 3:
        return f"{num_bytes / 1024 ** 2:.1f}MB"
    return f"{num_bytes / 1024 ** 3:.1f}GB"


def normalize_extension(ext: str) -> str:
    ext = ext.strip().lower()
    if ext and not ext.startswith("."):
        ext = "." + ext
    return ext


@dataclass(frozen=True)
class PackConfig:
    """Immutable settings for one run of the pipeline."""
    ignore_patterns: Tuple[str, ...] = ()
    include_patterns: Tuple[str, ...] = tuple(DEFAULT_INCLUDE_PATTERNS)
    high_priority_patterns: Tuple[str, ...] = tuple(DEFAULT_HIGH_PRIORITY_PATTERNS)
    include_extensions: Tuple[str, ...] = tuple(DEFAULT_INCLUDE_EXTENSIONS)
    max_file_size: str = "100kb"
    max_total_size: str = "1mb"
    preserve_structure: bool = True
    output_format: str = "structured"
    max_depth: Optional[int] = None
    respect_ignore_file: bool = True
    token_model: str = "estimate"
    max_workers: int = 0
    default_exclusions: Tuple[str, ...] = field(default=tuple(DEFAULT_EXCLUSIONS), repr=False)

    @property
    def max_file_bytes(self) -> int:
        return parse_size(self.max_file_size)

    @property
    def max_total_bytes(self) -> int:
        return parse_size(self.max_total_size)

    @property
    def format_name(self) -> str:
        """Canonical output format, with legacy aliases resolved."""
        return FORMAT_ALIASES.get(self.output_format, self.output_format)

    @property
    def extension_set(self) -> frozenset:
        return frozenset(normalize_extension(e) for e in self.include_extensions if e.strip())

    def validate(self) -> List[str]:
        type_errors = []
        for name in sorted(_LIST_FIELDS | _STR_FIELDS | _BOOL_FIELDS | _INT_FIELDS):
            expected = _type_error(name, getattr(self, name))
            if expected:
                type_errors.append(f"Invalid {name}: {getattr(self, name)!r} (must be {expected})")
        if type_errors:
            # The value checks below assume the types are right
            return type_errors

        errors = []
        for name in ("max_file_size", "max_total_size"):
            value = getattr(self, name)
            if not _SIZE_RE.match(str(value)):
                errors.append(f"Invalid {name} format: {value!r}")
        if self.format_name not in OUTPUT_FORMATS:
            errors.append(
                f"Invalid output_format: {self.output_format!r}. "
                f"Must be one of: {', '.join(OUTPUT_FORMATS)}"
            )
        if self.token_model not in TOKEN_MODELS:
            errors.append(
                f"Invalid token_model: {self.token_model!r}. "
                f"Must be one of: {', '.join(TOKEN_MODELS)}"
            )
        if self.max_depth is not None and self.max_depth < 0:
            errors.append(f"Invalid max_depth: {self.max_depth} (must be >= 0)")
        if self.max_workers < 0:
            errors.append(f"Invalid max_workers: {self.max_workers} (must be >= 0)")
        return errors

    def check(self) -> "PackConfig":
        errors = self.validate()
        if errors:
            raise ConfigError("Invalid configuration: " + "; ".join(errors))
        return self

    def with_overrides(self, **overrides: Any) -> "PackConfig":
        """Returns a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        for name in _LIST_FIELDS.intersection(changes):
            changes[name] = tuple(changes[name])
        return replace(self, **changes)


def config_from_dict(data: Dict[str, Any], base: Optional[PackConfig] = None) -> PackConfig:
    """Builds a PackConfig from .promptpackerrc style keys (camelCase or field names)."""
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration must be a JSON object, got {type(data).__name__}")
    base = base or PackConfig()
    known = set(RC_KEYS.values())
    changes: Dict[str, Any] = {}
    for key, value in data.items():
        name = RC_KEYS.get(key, key)
        if name not in known:
            # Unknown keys are tolerated so newer rc files still load
            continue
        expected = _type_error(name, value)
        if expected:
            raise ConfigError(f"'{key}' must be {expected}, got {value!r}")
        if name in _LIST_FIELDS:
            value = tuple(value)
        changes[name] = value
    return replace(base, **changes)


def config_to_dict(config: PackConfig) -> Dict[str, Any]:
    fields = asdict(config)
    return {key: (list(fields[name]) if name in _LIST_FIELDS else fields[name])
            for key, name in RC_KEYS.items()}


def load_config(root_dir: Path, base: Optional[PackConfig] = None) -> PackConfig:
    """
    Loads .promptpackerrc from root_dir on top of the defaults.
    A missing file yields the defaults; an unreadable or malformed one is a ConfigError.
    """
    config_file = Path(root_dir) / CONFIG_FILE_NAME
    if not config_file.exists():
        return base or PackConfig()
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigError(f"Failed to parse {CONFIG_FILE_NAME}: {e}") from e
    return config_from_dict(data, base)


def save_config(root_dir: Path, config: PackConfig) -> Path:
    config_file = Path(root_dir) / CONFIG_FILE_NAME
    with open(config_file, "w", encoding="utf-8") as f:
        json.dump(config_to_dict(config), f, indent=2)
        f.write("\n")
    return config_file


def bootstrap_config(root_dir: Path) -> Tuple[Path, bool]:
    """
    Creates .promptpackerrc with the default settings if it is missing.
    Returns the file path and whether it was created.
    """
    config_file = Path(root_dir) / CONFIG_FILE_NAME
    if config_file.exists():
        return config_file, False
    return save_config(root_dir, PackConfig()), True

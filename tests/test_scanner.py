# tests/test_scanner.py
import threading

from promptpacker.config import PackConfig
from promptpacker.core.filters import InclusionDecider
from promptpacker.core.scanner import ProjectScanner
from promptpacker.models import Diagnostics


def make_scanner(root, config=None, **kwargs):
    config = config or PackConfig()
    return ProjectScanner(root, InclusionDecider(config), **kwargs)


# --- Test 1: Walking and pruning ---

def test_walk_order_is_depth_first_and_sorted(sample_project):
    paths = [c.relative_path for c in make_scanner(sample_project).walk()]
    assert paths == [
        "README.md",
        "assets/logo.png",
        "logs/app.log",
        "src/app.ts",
        "src/utils/helper.py",
    ]

def test_excluded_directories_are_never_entered(sample_project):
    diagnostics = Diagnostics()
    scanner = make_scanner(sample_project, diagnostics=diagnostics)
    paths = [c.relative_path for c in scanner.walk()]

    assert not any(p.startswith("node_modules") for p in paths)
    pruned = [path for path, _ in diagnostics.excluded if path.endswith("/")]
    assert pruned == ["node_modules/"]
    assert diagnostics.total_files_scanned == 5

def test_candidates_carry_decisions(sample_project):
    by_path = {c.relative_path: c for c in make_scanner(sample_project).walk()}

    logo = by_path["assets/logo.png"]
    assert logo.included is False
    assert logo.exclusion_reason == "Binary file"

    app = by_path["src/app.ts"]
    assert app.included is True
    assert app.exclusion_reason is None
    assert app.extension == ".ts"
    assert app.size == (sample_project / "src" / "app.ts").stat().st_size
    assert app.priority > 0
    assert app.content is None

def test_extension_is_lower_cased(tmp_path):
    (tmp_path / "Main.PY").write_text("print(1)\n", encoding="utf-8")
    [candidate] = list(make_scanner(tmp_path).walk())
    assert candidate.extension == ".py"
    assert candidate.relative_path == "Main.PY"

def test_walk_subdirectory_reports_paths_from_root(sample_project):
    scanner = make_scanner(sample_project)
    paths = [c.relative_path for c in scanner.walk(sample_project / "src")]
    assert paths == ["src/app.ts", "src/utils/helper.py"]


# --- Test 2: Depth limits ---

def test_max_depth_zero_yields_nothing(sample_project):
    assert list(make_scanner(sample_project, max_depth=0).walk()) == []

def test_max_depth_one_yields_only_top_level_files(sample_project):
    paths = [c.relative_path for c in make_scanner(sample_project, max_depth=1).walk()]
    assert paths == ["README.md"]

def test_max_depth_two(sample_project):
    paths = [c.relative_path for c in make_scanner(sample_project, max_depth=2).walk()]
    assert "src/app.ts" in paths
    assert "src/utils/helper.py" not in paths


# --- Test 3: Errors and cancellation ---

def test_unreadable_directory_is_recorded_not_raised(tmp_path):
    diagnostics = Diagnostics()
    scanner = make_scanner(tmp_path, diagnostics=diagnostics)

    assert list(scanner.walk(tmp_path / "missing")) == []
    assert len(diagnostics.errors) == 1
    path, message = diagnostics.errors[0]
    assert path == "missing"
    assert message.startswith("Failed to read directory")

def test_evaluate_missing_file(tmp_path):
    diagnostics = Diagnostics()
    scanner = make_scanner(tmp_path, diagnostics=diagnostics)

    assert scanner.evaluate(tmp_path / "gone.py") is None
    assert diagnostics.errors[0][0] == "gone.py"

def test_cancelled_walk_stops_between_files(sample_project):
    cancel = threading.Event()
    diagnostics = Diagnostics()
    scanner = make_scanner(sample_project, diagnostics=diagnostics, cancel=cancel)

    walker = scanner.walk()
    first = next(walker)
    cancel.set()

    assert first.relative_path == "README.md"
    assert list(walker) == []
    assert diagnostics.cancelled is True

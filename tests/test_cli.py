# tests/test_cli.py
import json
import sys
import pytest
from pathlib import Path
from unittest.mock import patch

from promptpacker.cli import get_default_output_name, main
from promptpacker.config import CONFIG_FILE_NAME


def run_cli(*args):
    """Runs main() as if invoked from the command line."""
    with patch.object(sys, 'argv', ["promptpacker", *[str(a) for a in args]]):
        main()


@pytest.fixture
def project(tmp_path):
    """A fake project: two sources (one git-ignored), a log file and a README."""
    src_dir = tmp_path / "src"
    src_dir.mkdir()
    (src_dir / "main.py").write_text("def hello():\n  print('hello')\n")
    (src_dir / "utils.py").write_text("# This is a utility\n")

    logs_dir = tmp_path / "logs"
    logs_dir.mkdir()
    (logs_dir / "app.log").write_text("ERROR: ...\n")

    (tmp_path / "README.md").write_text("# My Project\n")
    (tmp_path / ".gitignore").write_text("src/utils.py\n")
    return tmp_path


# --- Test 1: Output naming ---

def test_default_output_name():
    assert get_default_output_name(Path("/work/my project"), "structured") == "my_project_context.txt"
    assert get_default_output_name(Path("/work/app"), "document") == "app_context.md"
    assert get_default_output_name(Path("/"), "plain") == "project_context.txt"


# --- Test 2: Full end-to-end runs ---

def test_end_to_end_run(project):
    run_cli(project, "--output", "test_merge.txt", "--format", "plain")

    output_file = project / "test_merge.txt"
    assert output_file.exists()

    content = output_file.read_text()

    # Check that the correct files are included
    assert "// src/main.py" in content
    assert "def hello():" in content
    assert "// README.md" in content
    assert "# My Project" in content

    # Check that the ignored files are NOT included
    assert "// logs/app.log" not in content
    assert "// src/utils.py" not in content

def test_second_run_does_not_pack_previous_output(project):
    run_cli(project)
    output_file = project / get_default_output_name(project, "structured")
    assert output_file.exists()

    run_cli(project)

    content = output_file.read_text()
    assert content.startswith("<codebase_analysis>")
    assert output_file.name not in content

def test_rc_file_selects_format(project):
    (project / CONFIG_FILE_NAME).write_text(json.dumps({"outputFormat": "markdown"}))

    run_cli(project)

    output_file = project / get_default_output_name(project, "document")
    assert output_file.exists()
    assert output_file.read_text().startswith(f"# {project.name}\n")

def test_stdout_writes_no_file(project, capsys):
    run_cli(project, "--stdout")

    captured = capsys.readouterr()
    assert captured.out.startswith("<codebase_analysis>")
    assert "Top 10 Most Relevant Files" in captured.err
    assert not (project / get_default_output_name(project, "structured")).exists()

def test_explain_lists_exclusions(project, capsys):
    run_cli(project, "--stdout", "--explain")

    err = capsys.readouterr().err
    assert "--- Diagnostics ---" in err
    assert "logs/app.log: Matched default exclusion: **/*.log" in err
    assert "src/utils.py: Matched .gitignore pattern" in err

def test_selected_files_only(project, capsys):
    run_cli(project / "src" / "main.py", project / "README.md", "--stdout", "--format", "plain")

    out = capsys.readouterr().out
    assert "// src/main.py" in out
    assert "// README.md" in out


# --- Test 3: Init and failure paths ---

def test_init_creates_config(tmp_path, capsys):
    run_cli(tmp_path, "--init")

    config_file = tmp_path / CONFIG_FILE_NAME
    assert config_file.exists()
    assert json.loads(config_file.read_text())["outputFormat"] == "structured"
    assert capsys.readouterr().out.startswith("Created")

def test_invalid_size_exits(project, capsys):
    with pytest.raises(SystemExit) as exc:
        run_cli(project, "--max-total-size", "lots")

    assert exc.value.code == 1
    assert "Invalid" in capsys.readouterr().err

def test_wrongly_typed_rc_value_exits(project, capsys):
    (project / CONFIG_FILE_NAME).write_text(json.dumps({"maxDepth": "3"}))

    with pytest.raises(SystemExit) as exc:
        run_cli(project)

    assert exc.value.code == 1
    assert "'maxDepth' must be an integer or null" in capsys.readouterr().err

def test_invalid_path_exits(tmp_path):
    with pytest.raises(SystemExit) as exc:
        run_cli(tmp_path / "missing")
    assert exc.value.code == 1

def test_nothing_to_pack(tmp_path, capsys):
    (tmp_path / "logo.png").write_bytes(b"\x89PNG")

    run_cli(tmp_path)

    assert "No matching files found" in capsys.readouterr().err
    assert not (tmp_path / get_default_output_name(tmp_path, "structured")).exists()

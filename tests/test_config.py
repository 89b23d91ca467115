# tests/test_config.py
import json

import pytest

from promptpacker.config import (
    CONFIG_FILE_NAME,
    ConfigError,
    PackConfig,
    bootstrap_config,
    config_from_dict,
    format_size,
    load_config,
    parse_size,
)

# --- Test 1: Size strings ---

@pytest.mark.parametrize("text, expected", [
    ("100kb", 100 * 1024),
    ("1MB", 1024 * 1024),
    ("2gb", 2 * 1024 ** 3),
    ("512", 512),
    ("512b", 512),
    ("1.5kb", 1536),
    ("10 KB", 10 * 1024),
])
def test_parse_size(text, expected):
    assert parse_size(text) == expected

@pytest.mark.parametrize("text", ["", "ten kb", "10tb", "kb", "-5kb", "1,5mb"])
def test_parse_size_rejects_garbage(text):
    with pytest.raises(ConfigError):
        parse_size(text)

def test_config_error_is_a_value_error():
    assert issubclass(ConfigError, ValueError)

def test_format_size():
    assert format_size(200) == "200B"
    assert format_size(2048) == "2.0KB"
    assert format_size(3 * 1024 * 1024) == "3.0MB"


# --- Test 2: Validation ---

def test_defaults_are_valid():
    config = PackConfig()
    assert config.validate() == []
    assert config.max_file_bytes == 100 * 1024
    assert config.max_total_bytes == 1024 * 1024
    assert config.format_name == "structured"

def test_validation_collects_every_problem():
    config = PackConfig(max_file_size="huge", output_format="html", token_model="gpt-2", max_depth=-1)
    errors = config.validate()
    assert len(errors) == 4
    with pytest.raises(ConfigError) as exc:
        config.check()
    assert "max_file_size" in str(exc.value)
    assert "output_format" in str(exc.value)

@pytest.mark.parametrize("legacy, canonical", [
    ("ai-optimized", "structured"),
    ("markdown", "document"),
    ("standard", "plain"),
])
def test_legacy_format_names(legacy, canonical):
    config = PackConfig(output_format=legacy)
    assert config.validate() == []
    assert config.format_name == canonical

def test_with_overrides_skips_none():
    config = PackConfig().with_overrides(max_file_size="5kb", max_depth=None, ignore_patterns=["a", "b"])
    assert config.max_file_size == "5kb"
    assert config.max_depth is None
    assert config.ignore_patterns == ("a", "b")


# --- Test 3: .promptpackerrc ---

def test_load_config_without_file(tmp_path):
    assert load_config(tmp_path) == PackConfig()

def test_load_config_reads_camel_case_keys(tmp_path):
    (tmp_path / CONFIG_FILE_NAME).write_text(json.dumps({
        "ignore": ["**/fixtures/**"],
        "maxFileSize": "50kb",
        "outputFormat": "markdown",
        "preserveStructure": False,
        "maxDepth": 3,
        "unknownKey": 1,
    }), encoding="utf-8")

    config = load_config(tmp_path)

    assert config.ignore_patterns == ("**/fixtures/**",)
    assert config.max_file_size == "50kb"
    assert config.format_name == "document"
    assert config.preserve_structure is False
    assert config.max_depth == 3
    assert config.include_patterns == PackConfig().include_patterns

def test_load_config_malformed_json(tmp_path):
    (tmp_path / CONFIG_FILE_NAME).write_text("{ not json", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(tmp_path)

def test_config_from_dict_rejects_bad_lists():
    with pytest.raises(ConfigError):
        config_from_dict({"ignore": "*.log"})
    with pytest.raises(ConfigError):
        config_from_dict(["not", "an", "object"])

@pytest.mark.parametrize("key, value", [
    ("maxDepth", "3"),
    ("maxDepth", True),
    ("maxWorkers", "4"),
    ("outputFormat", ["plain"]),
    ("maxFileSize", 100),
    ("preserveStructure", "no"),
    ("respectGitignore", 0),
])
def test_load_config_rejects_wrong_types(tmp_path, key, value):
    (tmp_path / CONFIG_FILE_NAME).write_text(json.dumps({key: value}), encoding="utf-8")
    with pytest.raises(ConfigError) as exc:
        load_config(tmp_path)
    assert f"'{key}' must be" in str(exc.value)

def test_load_config_accepts_null_depth(tmp_path):
    (tmp_path / CONFIG_FILE_NAME).write_text(json.dumps({"maxDepth": None}), encoding="utf-8")
    assert load_config(tmp_path).max_depth is None

def test_validate_reports_wrong_types_instead_of_crashing():
    config = PackConfig(max_depth="3", max_workers="4", output_format=["plain"])
    errors = config.validate()
    assert len(errors) == 3
    with pytest.raises(ConfigError):
        config.check()

def test_bootstrap_config_round_trip(tmp_path):
    config_file, created = bootstrap_config(tmp_path)
    assert created is True
    assert config_file.name == CONFIG_FILE_NAME
    assert json.loads(config_file.read_text(encoding="utf-8"))["maxTotalSize"] == "1mb"

    _, created_again = bootstrap_config(tmp_path)
    assert created_again is False
    assert load_config(tmp_path) == PackConfig()

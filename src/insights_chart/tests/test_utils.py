from __future__ import annotations

import pytest
from ibis import _
from returns.result import Failure, Success

from insights_chart.utils import SafeEvalError, format_number, read_yaml_file, safe_eval


def test_safe_eval_simple_expression():
    result = safe_eval("1 + 2")
    assert isinstance(result, Success)
    assert result.unwrap() == 3


def test_safe_eval_unsafe_import():
    result = safe_eval("__import__('os')")
    assert isinstance(result, Failure)


def test_safe_eval_rejects_lambda():
    result = safe_eval("lambda: 1")
    assert isinstance(result, Failure)
    assert isinstance(result.failure(), SafeEvalError)


def test_safe_eval_rejects_dunder_attribute():
    result = safe_eval("_.__class__", context={"_": _})
    assert isinstance(result, Failure)
    assert "dunder" in str(result.failure())


def test_safe_eval_disallowed_names():
    result = safe_eval("x + y", context={"x": 5, "y": 10}, allowed_names={"x"})
    assert isinstance(result, Failure)


def test_safe_eval_invalid_syntax():
    result = safe_eval("1 +")
    assert isinstance(result, Failure)
    assert "Invalid Python syntax" in str(result.failure())


def test_safe_eval_deferred_expression():
    result = safe_eval("(_.amount > 100) & (_.region == 'EMEA')", context={"_": _})
    assert isinstance(result, Success)
    assert hasattr(result.unwrap(), "resolve")


@pytest.mark.parametrize(
    "value, expected",
    [(100, "100"), (100.0, "100"), (2.5, "2.5"), (0.1, "0.1"), (1e3, "1000")],
)
def test_format_number(value, expected):
    assert format_number(value) == expected


def test_read_yaml_file(tmp_path):
    path = tmp_path / "defs.yml"
    path.write_text("models:\n  orders:\n    table: orders\n")
    assert read_yaml_file(path) == {"models": {"orders": {"table": "orders"}}}


def test_read_yaml_file_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_yaml_file(tmp_path / "missing.yml")


def test_read_yaml_file_not_a_mapping(tmp_path):
    path = tmp_path / "list.yml"
    path.write_text("- a\n- b\n")
    with pytest.raises(ValueError, match="must contain a dict"):
        read_yaml_file(path)

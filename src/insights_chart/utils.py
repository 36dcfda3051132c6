from __future__ import annotations

import ast
from pathlib import Path
from typing import Any

import yaml
from returns.result import Result, safe
from toolz import curry


class SafeEvalError(Exception):
    pass


# Enough syntax for ibis deferred expressions (`_.amount > 100`) and
# literal constructors (`literal(100)`), nothing that can import or assign
SAFE_NODES = {
    ast.Expression,
    ast.Load,
    ast.Name,
    ast.Constant,
    ast.Attribute,
    ast.Call,
    ast.Subscript,
    ast.Slice,
    ast.UnaryOp,
    ast.UAdd,
    ast.USub,
    ast.Not,
    ast.Invert,
    ast.BinOp,
    ast.Add,
    ast.Sub,
    ast.Mult,
    ast.Div,
    ast.FloorDiv,
    ast.Mod,
    ast.Pow,
    ast.BitAnd,
    ast.BitOr,
    ast.Compare,
    ast.Eq,
    ast.NotEq,
    ast.Lt,
    ast.LtE,
    ast.Gt,
    ast.GtE,
    ast.In,
    ast.NotIn,
    ast.BoolOp,
    ast.And,
    ast.Or,
    ast.List,
    ast.Tuple,
    ast.keyword,
}


def _validate_ast(node: ast.AST, allowed_names: set[str] | None = None) -> None:
    if type(node) not in SAFE_NODES:
        raise SafeEvalError(
            f"Unsafe node type: {type(node).__name__}. Only whitelisted operations are allowed."
        )

    if isinstance(node, ast.Name) and allowed_names is not None and node.id not in allowed_names:
        raise SafeEvalError(f"Name '{node.id}' is not in the allowed names: {allowed_names}")

    if isinstance(node, ast.Attribute) and node.attr.startswith("__"):
        raise SafeEvalError(f"Access to dunder attribute '{node.attr}' is not allowed")

    for child in ast.iter_child_nodes(node):
        _validate_ast(child, allowed_names)


def _parse_expr(expr_str: str) -> ast.AST:
    try:
        return ast.parse(expr_str, mode="eval")
    except SyntaxError as e:
        raise SafeEvalError(f"Invalid Python syntax: {e}") from e


@curry
def _eval_in_context(context: dict, code: Any) -> Any:
    return eval(code, context)  # noqa: S307


def safe_eval(
    expr_str: str,
    context: dict[str, Any] | None = None,
    allowed_names: set[str] | None = None,
) -> Result[Any, Exception]:
    """Evaluate a whitelisted Python expression, wrapped in a ``Result``."""
    eval_context = {"__builtins__": {}, **(context or {})}

    @safe
    def do_eval():
        tree = _parse_expr(expr_str)
        _validate_ast(tree, allowed_names)
        code = compile(tree, "<safe_eval>", "eval")
        return _eval_in_context(eval_context, code)

    return do_eval()


def format_number(value: float) -> str:
    """Render a number the way it is written in a literal expression."""
    return str(int(value)) if float(value).is_integer() else repr(float(value))


def read_yaml_file(yaml_path: str | Path) -> dict:
    """Read and parse YAML file into dict."""
    yaml_path = Path(yaml_path)
    if not yaml_path.exists():
        raise FileNotFoundError(f"YAML file not found: {yaml_path}")

    try:
        with open(yaml_path) as f:
            content = yaml.safe_load(f)

        if not isinstance(content, dict):
            raise ValueError(f"YAML file must contain a dict, got: {type(content)}")

        return content
    except (FileNotFoundError, ValueError):
        raise
    except Exception as e:
        raise ValueError(f"Failed to read YAML file {yaml_path}: {type(e).__name__}: {e}") from e


__all__ = [
    "safe_eval",
    "SafeEvalError",
    "format_number",
    "read_yaml_file",
]

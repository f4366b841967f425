"""
Contract constructor analyzer.

Finds a contract's ``__constructor`` in its Rust sources and describes the
arguments a deployment must supply, with validation and CLI formatting for
collected values.
"""

from __future__ import annotations

import re
from pathlib import Path

from methodscope.middleware.error_handler import AppException
from methodscope.models.records import SourceModule
from methodscope.models.schemas import ConstructorAnalysis, ConstructorArg
from methodscope.services.source_scanner import (
    find_matching_paren,
    is_context_parameter,
    parse_parameters,
)
from methodscope.utils.logger import get_logger

logger = get_logger(__name__)

_CONSTRUCTOR = re.compile(r"pub\s+fn\s+__constructor\s*\(", re.IGNORECASE)

TYPE_DESCRIPTIONS: dict[str, str] = {
    "Address": "Stellar address (starts with C or G)",
    "String": "Text string",
    "Symbol": "Symbol (short text identifier)",
    "i128": "Integer number",
    "u32": "Positive integer",
    "u64": "Large positive integer",
    "bool": "Boolean (true/false)",
    "Vec<Address>": "List of Stellar addresses",
    "Vec<String>": "List of text strings",
}

_ADDRESS = re.compile(r"^[CG][A-Z0-9]{55}$")
_INTEGER = re.compile(r"^-?\d+$")
_INTEGER_TYPES = {"i32", "i64", "i128", "u32", "u64", "u128"}
_BOOL_VALUES = {"true", "false", "1", "0", "yes", "no"}


def parse_constructor_args(source: str) -> list[ConstructorArg] | None:
    """
    Arguments of ``pub fn __constructor(...)`` in *source*.

    None when the source has no constructor; an empty list when it takes only
    the environment.
    """
    match = _CONSTRUCTOR.search(source)
    if not match:
        return None

    open_paren = match.end() - 1
    close_paren = find_matching_paren(source, open_paren)
    if close_paren >= len(source):
        return None

    return [
        ConstructorArg(name=name, type=param_type, description=get_type_description(param_type))
        for name, param_type in parse_parameters(source[open_paren + 1:close_paren])
        if not is_context_parameter(name, param_type)
    ]


def get_type_description(param_type: str) -> str:
    """Short user-facing description of a Soroban type."""
    if param_type in TYPE_DESCRIPTIONS:
        return TYPE_DESCRIPTIONS[param_type]

    inner = re.match(r"^Vec<(.+)>$", param_type)
    if inner:
        return f"List of {get_type_description(inner.group(1)).lower()}"

    return param_type


def validate_input(value: str | None, param_type: str) -> str | None:
    """Return an error message for *value*, or None when it is acceptable."""
    if value is None or not value.strip():
        return "Value cannot be empty"

    v = value.strip()
    if param_type == "Address" and not _ADDRESS.match(v):
        return "Invalid Stellar address format (should start with C or G and be 56 characters)"
    if param_type in _INTEGER_TYPES and not _INTEGER.match(v):
        return "Must be a valid integer"
    if param_type in ("u32", "u64", "u128") and v.startswith("-"):
        return "Must be a non-negative integer"
    if param_type == "bool" and v.lower() not in _BOOL_VALUES:
        return "Must be true/false, 1/0, or yes/no"
    return None


def format_for_cli(value: str, param_type: str) -> str:
    v = value.strip()
    if param_type == "bool":
        return "true" if v.lower() in ("true", "1", "yes") else "false"
    if param_type in ("String", "Symbol") and (" " in v or "-" in v):
        return f'"{v}"'
    return v


def build_cli_args(args: list[ConstructorArg], values: dict[str, str]) -> str:
    """
    ``--name value`` pairs for ``stellar contract deploy``, in declaration order.

    Raises AppException on the first missing or invalid value.
    """
    parts: list[str] = []
    for arg in args:
        value = values.get(arg.name)
        error = validate_input(value, arg.type)
        if error:
            raise AppException(
                status_code=400,
                error_code="INVALID_CONSTRUCTOR_ARG",
                message=f"{arg.name}: {error}",
                details={"argument": arg.name, "type": arg.type},
            )
        parts.append(f"--{arg.name} {format_for_cli(value, arg.type)}")
    return " ".join(parts)


def _lib_first(name: str) -> tuple[int, str]:
    return (0 if name == "lib" else 1, name)


def analyze_modules(contract_name: str, modules: list[SourceModule]) -> ConstructorAnalysis:
    """Search *modules* (``lib`` first) for the constructor."""
    for module in sorted(modules, key=lambda m: _lib_first(m.name)):
        args = parse_constructor_args(module.text)
        if args is not None:
            return ConstructorAnalysis(
                contract_name=contract_name,
                has_constructor=True,
                args=args,
                found_in=f"{module.name}.rs",
            )
    return ConstructorAnalysis(contract_name=contract_name, has_constructor=False)


def analyze_contract_constructor(contract_dir: Path) -> ConstructorAnalysis | None:
    """
    Constructor analysis for a contract directory (``<dir>/src/*.rs``).

    None when there is no ``src`` directory or it holds no Rust files.
    Files that cannot be read are logged and skipped.
    """
    contract_dir = Path(contract_dir)
    src = contract_dir / "src"
    if not src.is_dir():
        return None

    files = sorted(src.glob("*.rs"), key=lambda f: _lib_first(f.stem))
    if not files:
        return None

    modules: list[SourceModule] = []
    for path in files:
        try:
            modules.append(SourceModule(name=path.stem, text=path.read_text(encoding="utf-8")))
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Failed to read %s: %s", path, exc)

    return analyze_modules(contract_dir.name, modules)

"""
Function behaviour analyzer.

Looks at one function body and reports whether it writes contract storage,
whether it demands caller authorization, and which functions it calls.
"""

from __future__ import annotations

import re

from methodscope.models.records import BodyAnalysis

# ── Storage writes ────────────────────────────────────────────

_TIER = r"(?:instance|persistent|temporary)"
_WRITE_OPS = r"(?:set|extend_ttl|extend|remove|bump|update|try_update)"

# env.storage().persistent().set(  (chained, possibly across lines)
_STORAGE_WRITE = re.compile(
    rf"\.storage\(\)\s*\.\s*{_TIER}\(\)\s*\.\s*{_WRITE_OPS}\s*\("
)

# let store = env.storage().persistent();
_STORAGE_BINDING = re.compile(
    rf"\blet\s+(?:mut\s+)?(\w+)\s*(?::[^=]+)?=\s*[\w.&]*\.storage\(\)\s*\.\s*{_TIER}\(\)\s*;"
)

# ── Authorization ─────────────────────────────────────────────

_REQUIRE_AUTH = re.compile(r"\.require_auth(?:_for_args)?\s*\(")

# ── Call sites ────────────────────────────────────────────────

# balance::receive(   crate::storage::write_total(   Self::helper(
_PATH_CALL = re.compile(r"\b(\w+(?:\s*::\s*\w+)+)\s*\(")
_SIMPLE_CALL = re.compile(r"(?<![\w:])(\w+)\s*\(")

# Path roots that name the current crate/module rather than a callee module
_RELATIVE_ROOTS = frozenset({"crate", "super", "self"})

_STD_MODULES = frozenset({
    "soroban_sdk", "core", "std", "alloc",
    "Option", "Result", "Vec", "String", "BytesN", "Bytes",
    "Map", "Symbol", "Address", "Env",
})

_IGNORED_CALLS = frozenset({
    # keywords
    "if", "for", "while", "loop", "match", "return", "let", "in",
    # assertion / panic / unwrap helpers
    "assert", "assert_eq", "assert_ne", "panic", "expect", "unwrap", "unwrap_or",
    # standard constructors and container helpers
    "Some", "None", "Ok", "Err", "new", "clone", "iter",
})


def writes_storage(body: str) -> bool:
    """True if *body* mutates contract storage on any storage tier."""
    if _STORAGE_WRITE.search(body):
        return True

    for binding in _STORAGE_BINDING.finditer(body):
        alias = re.escape(binding.group(1))
        if re.search(rf"\b{alias}\s*\.\s*{_WRITE_OPS}\s*\(", body):
            return True
    return False


def requires_auth(body: str) -> bool:
    return bool(_REQUIRE_AUTH.search(body))


def _path_target(path: str) -> str | None:
    segments = [s.strip() for s in path.split("::")]
    if segments[0] in _STD_MODULES:
        return None
    while segments and segments[0] in _RELATIVE_ROOTS:
        segments.pop(0)
    if not segments:
        return None

    if segments[0] == "Self" or len(segments) == 1:
        name = segments[-1]
        return None if name in _IGNORED_CALLS else name

    module, name = segments[-2], segments[-1]
    if module in _STD_MODULES:
        return None
    return f"{module}::{name}"


def find_calls(body: str) -> set[str]:
    """
    Names of everything *body* calls.

    Path calls are recorded by their last ``module::name`` pair, with
    ``crate::`` / ``super::`` / ``self::`` roots dropped, so
    ``crate::storage::write_total(..)`` becomes ``storage::write_total``.
    ``Self::name`` and ``crate::name`` are recorded as plain ``name``.
    Paths into standard modules are not calls into the contract.
    """
    calls: set[str] = set()

    for path in _PATH_CALL.findall(body):
        target = _path_target(path)
        if target is not None:
            calls.add(target)

    for name in _SIMPLE_CALL.findall(body):
        if name not in _IGNORED_CALLS:
            calls.add(name)

    return calls


def analyze_body(body: str) -> BodyAnalysis:
    """Classify a single function body."""
    return BodyAnalysis(
        writes_storage=writes_storage(body),
        requires_auth=requires_auth(body),
        calls=find_calls(body),
    )

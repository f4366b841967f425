"""
Rust source scanner.

Lexical helpers (brace/paren matching that respects string and character
literals, top-level splitting) and the function extractor that turns one
source module into FunctionRecord objects.

All pattern-based extraction of Rust text lives in this module, so it can be
replaced by a real parser without touching the call-graph resolver or the
binding cross-referencer.
"""

from __future__ import annotations

import re

from methodscope.models.records import FunctionRecord, SourceModule
from methodscope.utils.logger import get_logger

logger = get_logger(__name__)


# ── Lexical helpers ───────────────────────────────────────────

# 'a / 'static in `&'a str`: a lifetime, not a char literal
_LIFETIME = re.compile(r"'[A-Za-z_]\w*(?!['\w])")


def _find_matching(text: str, open_index: int, open_ch: str, close_ch: str) -> int:
    depth = 0
    in_string = False
    in_char = False
    escaped = False
    i = open_index
    n = len(text)

    while i < n:
        ch = text[i]

        if ch == "\\":
            escaped = not escaped
            i += 1
            continue

        if ch == '"' and not escaped and not in_char:
            in_string = not in_string
        elif ch == "'" and not escaped and not in_string:
            if not in_char and _LIFETIME.match(text, i):
                i += 1
                escaped = False
                continue
            in_char = not in_char
        elif not in_string and not in_char:
            if ch == open_ch:
                depth += 1
            elif ch == close_ch:
                depth -= 1
                if depth == 0:
                    return i

        escaped = False
        i += 1

    return n


def find_matching_close(text: str, open_index: int) -> int:
    """
    Return the index of the ``}`` matching the ``{`` at *open_index*.

    Braces inside string and character literals are ignored.  If the text
    ends before the depth returns to zero, ``len(text)`` is returned and the
    body is taken to run to the end of the file.
    """
    return _find_matching(text, open_index, "{", "}")


def find_matching_paren(text: str, open_index: int) -> int:
    """Same as find_matching_close, for ``(`` / ``)``."""
    return _find_matching(text, open_index, "(", ")")


_OPENERS = {"<": ">", "(": ")", "[": "]", "{": "}"}
_CLOSERS = {v: k for k, v in _OPENERS.items()}


def split_top_level(text: str, sep: str = ",") -> list[str]:
    """
    Split *text* on *sep* where it is not nested in <>, (), [] or {}.

    Empty pieces are dropped and the rest are stripped.
    ``"a: Map<u32, i128>, b: (u32, u32)"`` → ``["a: Map<u32, i128>", "b: (u32, u32)"]``
    """
    parts: list[str] = []
    depth = 0
    current: list[str] = []

    for i, ch in enumerate(text):
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            # `->` is an arrow, not a closing angle bracket
            if not (ch == ">" and i > 0 and text[i - 1] == "-"):
                depth = max(depth - 1, 0)
        elif ch == sep and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)

    parts.append("".join(current))
    return [p.strip() for p in parts if p.strip()]


# ── Function extraction ──────────────────────────────────────

# Signature head up to the opening paren of the parameter list:
#   pub fn name<T: Trait>(      pub(crate) fn name(      fn name(
_FN_HEAD = re.compile(
    r"""
    (?P<vis>\bpub(?:\s*\([^)]*\))?\s+)?     # visibility
    (?:(?:const|async|unsafe|extern\s+"[^"]*")\s+)*
    \bfn\s+(?P<name>\w+)\s*
    (?P<generics><(?:[^<>]|<[^<>]*>)*>)?\s*   # one level of nested generics
    \(
    """,
    re.VERBOSE,
)

# What follows the parameter list: optional return type, optional where
# clause, then either a body `{` or a bodiless `;`
_FN_TAIL = re.compile(
    r"\s*(?:->\s*(?P<ret>[^{;]+?))?\s*(?:\bwhere\b[^{;]*)?(?P<open>[{;])",
)


def extract_functions(module: SourceModule) -> list[FunctionRecord]:
    """
    Find every function definition in *module*.

    Returned records carry name, module, raw parameter text, return type and
    body text; behaviour fields are left at their defaults for the analyzer.
    Scanning resumes after each body, so nothing nested in a body (inner
    functions, text inside string literals) is extracted separately.
    """
    text = module.text
    records: list[FunctionRecord] = []
    pos = 0

    while True:
        head = _FN_HEAD.search(text, pos)
        if head is None:
            break

        paren_open = head.end() - 1
        paren_close = find_matching_paren(text, paren_open)
        if paren_close >= len(text):
            break

        tail = _FN_TAIL.match(text, paren_close + 1)
        if tail is None or tail.group("open") == ";":
            # Trait item or something fn-shaped that has no body
            pos = head.end()
            continue

        brace = tail.start("open")
        body_end = find_matching_close(text, brace)
        ret = tail.group("ret")

        records.append(
            FunctionRecord(
                module=module.name,
                name=head.group("name"),
                body=text[brace + 1:body_end],
                params=text[paren_open + 1:paren_close].strip(),
                return_type=ret.strip() if ret else None,
                is_public=bool(head.group("vis")),
            )
        )
        pos = body_end + 1

    logger.debug("Extracted %d functions from module %s", len(records), module.name)
    return records


_RECEIVER = re.compile(r"^&?\s*(?:'\w+\s+)?(?:mut\s+)?self$")
_PARAM = re.compile(r"^(?:mut\s+)?(?P<name>_?\w+)\s*:\s*(?P<type>.+)$", re.DOTALL)


def parse_parameters(params_text: str) -> list[tuple[str, str]]:
    """
    Split a raw Rust parameter list into ``(name, type)`` pairs.

    Receivers (``self``, ``&mut self``) and patterns that are not a plain
    identifier are skipped. Whitespace inside types is collapsed.
    """
    result: list[tuple[str, str]] = []
    for part in split_top_level(params_text):
        if _RECEIVER.match(part):
            continue
        m = _PARAM.match(part)
        if not m:
            continue
        param_type = re.sub(r"\s+", " ", m.group("type")).strip()
        result.append((m.group("name"), param_type))
    return result


def normalize_type(rust_type: str) -> str:
    """
    Canonical spelling of a Rust type.

    ``soroban_sdk::Vec< soroban_sdk::Address >`` → ``Vec<Address>``,
    ``Map<Address,i128>`` → ``Map<Address, i128>``.
    """
    t = rust_type.replace("soroban_sdk::", "")
    t = re.sub(r"\s+", " ", t).strip()
    t = re.sub(r"\s*([<>&\[\]()])\s*", r"\1", t)
    t = re.sub(r"\s*,\s*", ", ", t)
    return t


_CONTEXT_NAMES = {"env", "_env"}
_CONTEXT_TYPES = {"Env", "&Env"}


def is_context_parameter(name: str, param_type: str | None = None) -> bool:
    """
    True for the implicit execution-context parameter every contract function
    receives first (``env: Env``, ``_env: Env``, ``e: &Env`` …).

    It is recognised by its ``Env`` type, or by the ``env`` / ``_env``
    spelling when no type is known.
    """
    if param_type is not None and normalize_type(param_type) in _CONTEXT_TYPES:
        return True
    return name in _CONTEXT_NAMES

"""
Binding cross-referencer.

Reads the TypeScript client that `stellar contract bindings typescript`
generates for a contract (the package's ``src/index.ts``) and turns its
``Client`` interface into MethodDescriptor objects. Mutability comes from
the source resolver when it knows the method, from the heuristics otherwise.
Parameter types prefer what the contract's own Rust signature declares.

A method entry in the interface looks like::

  /**
   * Construct and simulate a transfer transaction. Returns an ...
   * Move tokens between accounts.
   */
  transfer: ({from, to, amount}: {from: string, to: string, amount: i128}, options?: {
    ...
  }) => Promise<AssembledTransaction<null>>
"""

from __future__ import annotations

import re

from methodscope.middleware.error_handler import MalformedBindingError
from methodscope.models.schemas import MethodAnalysis, MethodDescriptor, ParameterDescriptor
from methodscope.services.heuristics import classify
from methodscope.services.source_scanner import is_context_parameter, split_top_level
from methodscope.utils.logger import get_logger

logger = get_logger(__name__)

_CLIENT_INTERFACE = re.compile(
    r"^export\s+interface\s+Client\s*\{(.*?)^\}",
    re.MULTILINE | re.DOTALL,
)
_CONTRACT_ID = re.compile(r"""contractId\s*:\s*(["'])([^"']+)\1""")

_METHOD_START = re.compile(r"^\s*(\w+)\s*:\s*\(")
_RETURN_WRAPPER = "Promise<AssembledTransaction<"
_DESTRUCTURED_PARAMS = re.compile(r"\(\s*\{([^}]*)\}\s*:\s*\{([^}]*)\}")
_TYPE_MEMBER = re.compile(r"^(\w+)\??\s*:\s*(.+)$", re.DOTALL)

_DOC_BOILERPLATE = (
    "Construct and simulate",
    "Returns an",
    "If this transaction changes",
)

ADDRESS_PARAM_NAMES = frozenset({
    "admin", "owner", "lessor", "lessee", "from", "to", "sender", "recipient",
    "payer", "payee", "account", "user", "address", "authority", "signer",
    "creator", "minter", "burner", "spender", "operator",
})


def extract_contract_id(binding_text: str) -> str:
    """Return the deployed contract id literal from the binding's ``networks`` block."""
    match = _CONTRACT_ID.search(binding_text)
    if not match:
        raise MalformedBindingError("no contractId literal found")
    return match.group(2)


def extract_description(doc_lines: list[str]) -> str | None:
    """
    Keep the last meaningful line of a JSDoc block.

    Generated docs open with generic "Construct and simulate…" text; the
    contract author's own doc comment, when present, comes last.
    """
    cleaned = []
    for line in doc_lines:
        text = line.strip()
        text = re.sub(r"^/\*\*+", "", text)
        text = re.sub(r"\*+/$", "", text)
        text = re.sub(r"^\*+", "", text).strip()
        if text and not text.startswith(_DOC_BOILERPLATE):
            cleaned.append(text)
    return cleaned[-1] if cleaned else None


def extract_return_type(text: str) -> str:
    """Inner type of the first ``Promise<AssembledTransaction<T>>`` in *text*."""
    start = text.find(_RETURN_WRAPPER)
    if start < 0:
        return "unknown"

    i = start + len(_RETURN_WRAPPER)
    depth = 1
    for j in range(i, len(text)):
        ch = text[j]
        if ch == "<":
            depth += 1
        elif ch == ">":
            depth -= 1
            if depth == 0:
                return text[i:j].strip() or "unknown"
    return text[i:].strip() or "unknown"


def _binding_types(types_text: str) -> dict[str, str]:
    types: dict[str, str] = {}
    for member in split_top_level(types_text, ","):
        for piece in split_top_level(member, ";"):
            m = _TYPE_MEMBER.match(piece)
            if m:
                types[m.group(1)] = re.sub(r"\s+", " ", m.group(2)).strip()
    return types


def extract_parameters(
    text: str,
    source_types: dict[str, str] | None = None,
) -> list[ParameterDescriptor]:
    """
    Parameters of one method from its destructured argument object.

    Type precedence: the Rust signature's type, then the binding's type,
    then ``"unknown"``. Untyped-looking address parameters (binding says
    ``string``) become ``Address``; ``Buffer`` becomes the Rust type or
    ``BytesN<32>``.
    """
    match = _DESTRUCTURED_PARAMS.search(text)
    if not match:
        return []

    source_types = source_types or {}
    names = [n.strip() for n in match.group(1).split(",") if n.strip()]
    ts_types = _binding_types(match.group(2))

    parameters: list[ParameterDescriptor] = []
    for name in names:
        name = name.split("=")[0].strip()
        if is_context_parameter(name):
            continue

        param_type = source_types.get(name) or ts_types.get(name) or "unknown"

        if param_type == "string" and name not in source_types and name in ADDRESS_PARAM_NAMES:
            param_type = "Address"

        if param_type == "Buffer":
            param_type = source_types.get(name) or "BytesN<32>"

        parameters.append(ParameterDescriptor(name=name, type=param_type))

    return parameters


def _client_interface(binding_text: str) -> str:
    match = _CLIENT_INTERFACE.search(binding_text)
    if not match:
        raise MalformedBindingError("no `export interface Client` block found")
    return match.group(1)


def extract_methods(
    binding_text: str,
    resolved: dict[str, MethodAnalysis] | None = None,
    declared_types: dict[str, dict[str, str]] | None = None,
) -> list[MethodDescriptor]:
    """
    Build one MethodDescriptor per method of the binding's Client interface.

    *resolved* is the call-graph resolver output keyed by function name;
    *declared_types* maps function name → parameter name → Rust type.
    Raises MalformedBindingError when the interface block is missing.
    """
    resolved = resolved or {}
    declared_types = declared_types or {}
    lines = _client_interface(binding_text).split("\n")

    # Pass 1: where each method starts and which doc block precedes it
    starts: list[tuple[int, str, list[str]]] = []
    doc_lines: list[str] = []
    in_doc = False
    in_method = False

    for idx, line in enumerate(lines):
        stripped = line.strip()

        if stripped.startswith("/**"):
            doc_lines = [line]
            in_doc = not stripped.endswith("*/")
            continue
        if in_doc:
            doc_lines.append(line)
            if stripped.endswith("*/"):
                in_doc = False
            continue

        if not stripped:
            in_method = False
            continue

        method = _METHOD_START.match(line)
        if method and not in_method:
            starts.append((idx, method.group(1), doc_lines))
            in_method = True
        if _RETURN_WRAPPER in line:
            in_method = False
        # Any code line detaches a doc block from whatever follows
        doc_lines = []

    # Pass 2: each method's text runs until the next method starts
    methods: list[MethodDescriptor] = []
    for pos, (idx, name, docs) in enumerate(starts):
        end = starts[pos + 1][0] if pos + 1 < len(starts) else len(lines)
        span = "\n".join(lines[idx:end])

        return_type = extract_return_type(span)
        analysis = resolved.get(name)
        if analysis is not None:
            is_read_only = analysis.is_read_only
            classified_by = "source"
        else:
            is_read_only = classify(name, return_type)
            classified_by = "heuristic"
            logger.debug("Method %s not found in source; heuristics say read_only=%s", name, is_read_only)

        methods.append(
            MethodDescriptor(
                name=name,
                parameters=extract_parameters(span, declared_types.get(name)),
                return_type=return_type,
                is_read_only=is_read_only,
                description=extract_description(docs),
                classified_by=classified_by,
            )
        )

    return methods

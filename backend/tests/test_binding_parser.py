"""
Tests for the TypeScript binding cross-referencer
"""

import pytest

from methodscope.middleware.error_handler import MalformedBindingError
from methodscope.models.schemas import MethodAnalysis
from methodscope.services.binding_parser import (
    extract_contract_id,
    extract_description,
    extract_methods,
    extract_parameters,
    extract_return_type,
)
from conftest import (
    INCREMENT_BINDING,
    INCREMENT_ID,
    TOKEN_BINDING,
    client_method,
    make_binding,
)


def _by_name(methods):
    return {m.name: m for m in methods}


# ── Contract id ─────────────────────────────────────────────────

def test_extract_contract_id():
    assert extract_contract_id(INCREMENT_BINDING) == INCREMENT_ID


def test_missing_contract_id_is_malformed():
    with pytest.raises(MalformedBindingError) as exc_info:
        extract_contract_id("export interface Client {\n}\n")
    assert exc_info.value.error_code == "MALFORMED_BINDING"


# ── Methods ─────────────────────────────────────────────────────

def test_methods_in_declaration_order():
    methods = extract_methods(TOKEN_BINDING)
    assert [m.name for m in methods] == [
        "initialize", "mint", "balance", "transfer", "sweep", "name", "get_metadata",
    ]


def test_heuristic_classification_without_source():
    methods = _by_name(extract_methods(INCREMENT_BINDING))
    assert methods["increment"].is_read_only is False
    assert methods["get_count"].is_read_only is True
    assert methods["reset"].is_read_only is False
    assert all(m.classified_by == "heuristic" for m in methods.values())


def test_source_classification_wins_over_heuristics():
    resolved = {
        # a name the heuristics would call a write
        "increment": MethodAnalysis(is_read_only=True),
        # and one they would call a read
        "get_count": MethodAnalysis(is_read_only=False, has_indirect_writes=True),
    }
    methods = _by_name(extract_methods(INCREMENT_BINDING, resolved))
    assert methods["increment"].is_read_only is True
    assert methods["increment"].classified_by == "source"
    assert methods["get_count"].is_read_only is False
    assert methods["get_count"].classified_by == "source"
    assert methods["reset"].classified_by == "heuristic"


def test_return_types():
    methods = _by_name(extract_methods(TOKEN_BINDING))
    assert methods["balance"].return_type == "i128"
    assert methods["mint"].return_type == "null"
    assert methods["name"].return_type == "string"
    assert methods["get_metadata"].return_type == "Map<string, string>"


def test_descriptions():
    methods = _by_name(extract_methods(INCREMENT_BINDING))
    assert methods["increment"].description == "Increment increments an internal counter, returning the new value."
    assert methods["get_count"].description == "Get the current count."
    assert methods["reset"].description is None


def test_missing_client_interface_is_malformed():
    with pytest.raises(MalformedBindingError):
        extract_methods('export const networks = { testnet: { contractId: "C1" } }\n')


def test_empty_client_interface():
    assert extract_methods(make_binding("C1", [])) == []


def test_nested_generic_return_type():
    binding = make_binding("C1", [client_method("schedule", "", "Map<string, Array<u32>>")])
    [method] = extract_methods(binding)
    assert method.return_type == "Map<string, Array<u32>>"


def test_result_wrapped_return_type():
    binding = make_binding("C1", [client_method("try_pay", "{amount}: {amount: i128}", "Result<void>")])
    [method] = extract_methods(binding)
    assert method.return_type == "Result<void>"
    assert [p.name for p in method.parameters] == ["amount"]


# ── Parameters ──────────────────────────────────────────────────

def test_parameters_from_binding_only():
    methods = _by_name(extract_methods(TOKEN_BINDING))
    params = {p.name: p.type for p in methods["initialize"].parameters}
    assert params == {"admin": "Address", "decimal": "u32", "name": "string", "symbol": "string"}
    assert methods["name"].parameters == []


def test_source_types_take_precedence():
    declared = {"initialize": {"admin": "Address", "decimal": "u32", "name": "Symbol", "symbol": "Symbol"}}
    methods = _by_name(extract_methods(TOKEN_BINDING, declared_types=declared))
    params = [(p.name, p.type) for p in methods["initialize"].parameters]
    assert params == [("admin", "Address"), ("decimal", "u32"), ("name", "Symbol"), ("symbol", "Symbol")]


def test_buffer_parameters():
    text = "set_hash: ({hash}: {hash: Buffer}, options?: {"
    assert extract_parameters(text)[0].type == "BytesN<32>"
    assert extract_parameters(text, {"hash": "BytesN<64>"})[0].type == "BytesN<64>"


def test_optional_and_generic_parameter_types():
    text = "f: ({limit, pairs}: {limit?: Option<u32>, pairs: Map<string, i128>}, options?: {"
    params = extract_parameters(text)
    assert [(p.name, p.type) for p in params] == [
        ("limit", "Option<u32>"),
        ("pairs", "Map<string, i128>"),
    ]


def test_unknown_parameter_type():
    text = "f: ({x}: {}, options?: {"
    assert extract_parameters(text)[0].type == "unknown"


# ── Helpers ─────────────────────────────────────────────────────

def test_extract_description_keeps_last_authored_line():
    lines = [
        "  /**",
        "   * Construct and simulate a pay transaction. Returns an `AssembledTransaction` object.",
        "   * Pays the lessor.",
        "   * Fails when the lease has ended.",
        "   */",
    ]
    assert extract_description(lines) == "Fails when the lease has ended."


def test_extract_description_single_line_block():
    assert extract_description(["/** Only this */"]) == "Only this"
    assert extract_description([]) is None


def test_extract_return_type_without_wrapper():
    assert extract_return_type("f: () => void") == "unknown"

"""
Tests for the command-line interface
"""

import json

from methodscope.cli import build_parser, main
from conftest import INCREMENT_ID

ADDRESS = "C" + "A" * 55


def test_parser_generate_options():
    parser = build_parser()
    args = parser.parse_args(["generate", "--workers", "3"])
    assert args.command == "generate"
    assert args.workers == 3


def test_generate_writes_output(settings, workspace, monkeypatch, capsys):
    monkeypatch.setattr("methodscope.cli.get_settings", lambda: settings)
    output = workspace / "generated.json"

    assert main(["generate", "--output", str(output)]) == 0
    data = json.loads(output.read_text())
    assert data["totalContracts"] == 4
    assert "Generated metadata for 4 contracts" in capsys.readouterr().out


def test_generate_missing_packages_dir(settings, tmp_path, monkeypatch):
    monkeypatch.setattr("methodscope.cli.get_settings", lambda: settings)
    assert main(["generate", "--packages-dir", str(tmp_path / "nowhere")]) == 1


def test_analyze_prints_contract_metadata(workspace, capsys):
    contract = workspace / "contracts" / "increment"
    binding = workspace / "packages" / "increment-testnet" / "src" / "index.ts"

    assert main(["analyze", str(contract), str(binding), "--network", "testnet"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["name"] == "increment"
    assert data["contractId"] == INCREMENT_ID
    assert {m["classifiedBy"] for m in data["methods"]} == {"source"}


def test_analyze_with_non_utf8_module(workspace, capsys):
    contract = workspace / "contracts" / "increment"
    (contract / "src" / "draft.rs").write_bytes(b"// \xe9t\xe9\n")
    binding = workspace / "packages" / "increment-testnet" / "src" / "index.ts"

    assert main(["analyze", str(contract), str(binding)]) == 0
    data = json.loads(capsys.readouterr().out)
    assert {m["classifiedBy"] for m in data["methods"]} == {"source"}


def test_analyze_non_utf8_binding(workspace, tmp_path):
    binding = tmp_path / "index.ts"
    binding.write_bytes(b"\xff\xfe")
    assert main(["analyze", str(workspace / "contracts" / "increment"), str(binding)]) == 1


def test_analyze_missing_binding(workspace):
    contract = workspace / "contracts" / "increment"
    assert main(["analyze", str(contract), str(workspace / "nope.ts")]) == 1


def test_constructor_command(tmp_path, capsys):
    src = tmp_path / "vault" / "src"
    src.mkdir(parents=True)
    (src / "lib.rs").write_text("pub fn __constructor(env: Env, admin: Address, fee: u32) {}\n")

    assert main(["constructor", str(tmp_path / "vault"), "--arg", f"admin={ADDRESS}", "--arg", "fee=10"]) == 0
    out = capsys.readouterr().out
    assert "Has constructor: True" in out
    assert "Arguments: 2" in out
    assert json.loads(out.strip().splitlines()[-1]) == {"cliArgs": f"--admin {ADDRESS} --fee 10"}


def test_constructor_command_invalid_value(tmp_path):
    src = tmp_path / "vault" / "src"
    src.mkdir(parents=True)
    (src / "lib.rs").write_text("pub fn __constructor(env: Env, fee: u32) {}\n")
    assert main(["constructor", str(tmp_path / "vault"), "--arg", "fee=lots"]) == 1


def test_constructor_command_without_sources(tmp_path):
    assert main(["constructor", str(tmp_path / "missing")]) == 1

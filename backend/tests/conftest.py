"""Shared Rust / TypeScript fixtures and a workspace builder."""

from pathlib import Path

import pytest

from methodscope.config import Settings

INCREMENT_LIB = """\
#![no_std]
use soroban_sdk::{contract, contractimpl, symbol_short, Env};

#[contract]
pub struct Increment;

#[contractimpl]
impl Increment {
    /// Increment increments an internal counter, returning the new value.
    pub fn increment(env: Env) -> u32 {
        let mut count: u32 = read_count(&env);
        count += 1;
        write_count(&env, count);
        count
    }

    /// Get the current count.
    pub fn get_count(env: Env) -> u32 {
        read_count(&env)
    }

    pub fn reset(env: Env) {
        env.storage().instance().set(&symbol_short!("count"), &0);
    }
}

fn read_count(env: &Env) -> u32 {
    env.storage()
        .instance()
        .get(&symbol_short!("count"))
        .unwrap_or(0)
}

fn write_count(env: &Env, count: u32) {
    env.storage().instance().set(&symbol_short!("count"), &count);
}
"""

TOKEN_LIB = """\
#![no_std]
use soroban_sdk::{contract, contractimpl, symbol_short, Address, Env, Symbol};

mod balance;

#[contract]
pub struct Token;

#[contractimpl]
impl Token {
    pub fn initialize(env: Env, admin: soroban_sdk::Address, decimal: u32, name: Symbol, symbol: Symbol) {
        env.storage().instance().set(&symbol_short!("admin"), &admin);
        env.storage().instance().set(&symbol_short!("decimal"), &decimal);
    }

    pub fn mint(env: Env, to: Address, amount: i128) {
        let admin: Address = env.storage().instance().get(&symbol_short!("admin")).unwrap();
        admin.require_auth();
        balance::receive(&env, to, amount);
    }

    pub fn balance(env: Env, id: Address) -> i128 {
        balance::read(&env, id)
    }

    pub fn transfer(env: Env, from: Address, to: Address, amount: i128) {
        from.require_auth();
        balance::spend(&env, from, amount);
        balance::receive(&env, to, amount);
    }

    pub fn sweep(env: Env, to: Address) {
        balance::move_all(&env, to);
    }

    pub fn name(env: Env) -> Symbol {
        env.storage().instance().get(&symbol_short!("name")).unwrap()
    }
}
"""

TOKEN_BALANCE = """\
use soroban_sdk::{Address, Env};

pub fn read(env: &Env, id: Address) -> i128 {
    env.storage().persistent().get(&id).unwrap_or(0)
}

pub fn receive(env: &Env, to: Address, amount: i128) {
    let store = env.storage().persistent();
    store.set(&to, &(read(env, to.clone()) + amount));
}

pub fn spend(env: &Env, from: Address, amount: i128) {
    let balance = read(env, from.clone());
    if balance < amount {
        panic!("insufficient balance");
    }
    receive(env, from, -amount);
}

pub fn move_all(env: &Env, to: Address) {
    receive(env, to, 0);
}
"""


def client_method(name: str, params: str, return_type: str, doc: str | None = None) -> str:
    """One method entry as emitted by `stellar contract bindings typescript`."""
    head = f"({params}, options?: {{" if params else "(options?: {"
    lines = [
        "  /**",
        f"   * Construct and simulate a {name} transaction. Returns an `AssembledTransaction` object "
        "which will have a `result` field containing the result of the simulation. If this "
        "transaction changes contract state, you will need to call `signAndSend()` on the "
        "returned object.",
    ]
    if doc:
        lines.append(f"   * {doc}")
    lines += [
        "   */",
        f"  {name}: {head}",
        "    /**",
        "     * The fee to pay for the transaction. Default: BASE_FEE",
        "     */",
        "    fee?: number;",
        "",
        "    /**",
        "     * The maximum amount of time to wait for the transaction to complete. Default: DEFAULT_TIMEOUT",
        "     */",
        "    timeoutInSeconds?: number;",
        "",
        "    /**",
        "     * Whether to automatically simulate the transaction when constructing the AssembledTransaction. Default: true",
        "     */",
        "    simulate?: boolean;",
        f"  }}) => Promise<AssembledTransaction<{return_type}>>",
        "",
    ]
    return "\n".join(lines)


def make_binding(contract_id: str, methods: list[str]) -> str:
    return (
        'import { Buffer } from "buffer";\n'
        'import { AssembledTransaction, Client as ContractClient } from "@stellar/stellar-sdk/contract";\n'
        "\n"
        "export const networks = {\n"
        "  testnet: {\n"
        '    networkPassphrase: "Test SDF Network ; September 2015",\n'
        f'    contractId: "{contract_id}",\n'
        "  }\n"
        "} as const\n"
        "\n"
        "export interface Client {\n"
        + "\n".join(methods)
        + "\n}\n"
        "export class Client extends ContractClient {\n"
        "  constructor(public readonly options: ContractClientOptions) {\n"
        "    super(new ContractSpec([]), options)\n"
        "  }\n"
        "}\n"
    )


INCREMENT_ID = "CDINCREMENTAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA"
TOKEN_ID = "CDTOKENAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA"

INCREMENT_BINDING = make_binding(
    INCREMENT_ID,
    [
        client_method("increment", "", "u32", "Increment increments an internal counter, returning the new value."),
        client_method("get_count", "", "u32", "Get the current count."),
        client_method("reset", "", "null"),
    ],
)

TOKEN_BINDING = make_binding(
    TOKEN_ID,
    [
        client_method(
            "initialize",
            "{admin, decimal, name, symbol}: {admin: string, decimal: u32, name: string, symbol: string}",
            "null",
        ),
        client_method("mint", "{to, amount}: {to: string, amount: i128}", "null"),
        client_method("balance", "{id}: {id: string}", "i128"),
        client_method("transfer", "{from, to, amount}: {from: string, to: string, amount: i128}", "null"),
        client_method("sweep", "{to}: {to: string}", "null"),
        client_method("name", "", "string"),
        client_method("get_metadata", "", "Map<string, string>"),
    ],
)


@pytest.fixture
def workspace(tmp_path: Path):
    """
    A contracts/ + packages/ tree:
    increment (testnet), token (testnet + mainnet), pool (source only),
    legacy (binding without network suffix and without source).
    """
    contracts = tmp_path / "contracts"
    packages = tmp_path / "packages"

    def add_source(contract: str, modules: dict[str, str]) -> None:
        src = contracts / contract / "src"
        src.mkdir(parents=True)
        for name, text in modules.items():
            (src / f"{name}.rs").write_text(text)

    def add_binding(package: str, text: str) -> None:
        src = packages / package / "src"
        src.mkdir(parents=True)
        (src / "index.ts").write_text(text)

    add_source("increment", {"lib": INCREMENT_LIB})
    add_source("token", {"lib": TOKEN_LIB, "balance": TOKEN_BALANCE})
    add_source("pool", {"lib": "pub fn swap(env: Env) { env.storage().instance().set(&1, &2); }"})

    add_binding("increment-testnet", INCREMENT_BINDING)
    add_binding("token-testnet", TOKEN_BINDING)
    add_binding("token-mainnet", TOKEN_BINDING.replace(TOKEN_ID, "CDTOKENMAINNET"))
    add_binding(
        "legacy",
        make_binding("CDLEGACY", [client_method("get_owner", "", "string")]),
    )

    return tmp_path


@pytest.fixture
def settings(workspace: Path) -> Settings:
    return Settings(
        CONTRACTS_DIR=workspace / "contracts",
        PACKAGES_DIR=workspace / "packages",
        OUTPUT_PATH=workspace / "out" / "contract-metadata.json",
        MAX_WORKERS=2,
    )

"""
Tests for function body analysis
"""

import pytest

from methodscope.services.behavior_analyzer import (
    analyze_body,
    find_calls,
    requires_auth,
    writes_storage,
)


@pytest.mark.parametrize("tier", ["instance", "persistent", "temporary"])
@pytest.mark.parametrize("op", ["set", "remove", "extend_ttl", "extend", "bump", "update", "try_update"])
def test_every_tier_and_write_op_is_detected(tier, op):
    body = f"env.storage().{tier}().{op}(&key, &value);"
    assert writes_storage(body), f"Failed for {tier}.{op}"


def test_chain_split_across_lines():
    body = "env.storage()\n        .persistent()\n        .set(&DataKey::Admin, &admin);"
    assert writes_storage(body)


def test_reads_are_not_writes():
    body = (
        "let v: u32 = env.storage().instance().get(&KEY).unwrap_or(0);\n"
        "let ok = env.storage().persistent().has(&KEY);"
    )
    assert not writes_storage(body)


def test_write_through_storage_alias():
    body = "let store = env.storage().persistent();\nstore.remove(&key);"
    assert writes_storage(body)


def test_storage_alias_only_read():
    body = "let store = env.storage().temporary();\nlet x = store.get(&key);"
    assert not writes_storage(body)


def test_require_auth_forms():
    assert requires_auth("from.require_auth();")
    assert requires_auth("admin.require_auth_for_args((amount,).into_val(&env));")
    assert not requires_auth("let required = auth_level(&env);")


def test_find_calls():
    body = (
        "balance::receive(&env, to, amount);\n"
        "Self::helper(&env);\n"
        "let x = compute(read(&env));\n"
        "let v = Vec::new(&env);\n"
        'if check(a) { panic!("bad"); }\n'
        "let y = Some(x.clone()).unwrap();\n"
    )
    calls = find_calls(body)
    assert {"balance::receive", "helper", "compute", "read", "check"} <= calls
    for ignored in ("Vec::new", "new", "if", "panic", "Some", "clone", "unwrap", "receive"):
        assert ignored not in calls, f"{ignored} should not be a call"


def test_standard_module_paths_are_not_calls():
    calls = find_calls("let a = soroban_sdk::Address::from_string(&s); let b = core::cmp::max(1, 2);")
    assert not any(c.startswith(("soroban_sdk::", "core::", "Address::")) for c in calls)


def test_relative_path_roots_are_dropped():
    calls = find_calls(
        "crate::storage::write_total(&env, v);\n"
        "super::balance::spend(&env, from, amount);\n"
        "self::helper(&env);\n"
        "crate::utils::math::checked_add(a, b);\n"
        "let k = DataKey::Admin;\n"
    )
    assert {"storage::write_total", "balance::spend", "helper", "math::checked_add"} <= calls
    for wrong in ("crate", "crate::storage", "storage", "super::balance", "self", "DataKey::Admin"):
        assert wrong not in calls, f"{wrong} should not be a call"


def test_analyze_body_combines_results():
    body = "from.require_auth();\nbalance::spend(&env, from, amount);"
    result = analyze_body(body)
    assert result.requires_auth
    assert not result.writes_storage
    assert "balance::spend" in result.calls


def test_empty_body():
    result = analyze_body("")
    assert not result.writes_storage
    assert not result.requires_auth
    assert result.calls == set()

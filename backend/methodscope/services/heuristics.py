"""
Heuristic read/write classifier.

Only used when source analysis has no record of a method (no Rust source,
generated or inherited methods). Less accurate than the call-graph resolver;
when in doubt it answers "write".
"""

from __future__ import annotations

import re

_QUERY_PREFIX = re.compile(r"^(is_|has_|can_|should_|check_|verify_|validate_)", re.IGNORECASE)

# Any match means "write"
WRITE_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        # creation and initialization
        r"^(create|initialize|init|setup|register|deploy)",
        # modification
        r"^(set|add|remove|delete|update|modify|change|edit|save|store|put)",
        r"^(increment|decrement|reset|clear|extend|reduce|increase|decrease)",
        # token operations
        r"^(mint|burn|transfer|send|approve|deposit|withdraw|pay|process)",
        # state switches
        r"^(lock|unlock|enable|disable|activate|deactivate|pause|unpause|freeze|unfreeze)",
        # permissions and governance
        r"^(grant|revoke|claim|stake|unstake|vote|execute|propose)",
        # lifecycle
        r"^(start|stop|begin|end|finish|complete|terminate|cancel|close|open)",
        # disputes
        r"^(raise|resolve|dispute|appeal|challenge)",
        # recording
        r"^(record|log|track|submit|report)",
    )
)

READ_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"^(get_|fetch_|read_|load_|retrieve_|find_)",
        r"^(query_|check_|verify_|validate_|search_|lookup_)",
        r"^(is_|has_|can_|should_|does_|will_)",
        r"^(balance$|name$|symbol$|decimals$|owner$|admin$)",
        r"^(total_|count$|size$|length$|version$|status$|state$)",
        r"_(details|info|data|history|list|records)$",
    )
)

# Return types that say nothing about whether the call mutates
_PRIMITIVE_RETURNS = frozenset({
    "boolean", "bool", "null", "void", "unknown", "",
    "u32", "u64", "i32", "i64", "i128", "u128", "i256", "u256",
})


def classify(name: str, return_type: str | None) -> bool:
    """
    Guess whether *name* is read-only from its name and binding return type.

    Returns True for read-only.
    """
    ret = (return_type or "").strip()

    if ret in ("null", "void"):
        return False

    if ret in ("boolean", "bool"):
        return bool(_QUERY_PREFIX.match(name))

    if any(p.search(name) for p in WRITE_PATTERNS):
        return False

    if any(p.search(name) for p in READ_PATTERNS):
        return True

    # Undecidable: a structured return value usually means a query,
    # everything else is treated as a write
    return ret not in _PRIMITIVE_RETURNS

"""
Call-graph reachability resolver.

Builds the Function Database for one contract (every function of every
source module, keyed ``module::name``; entry-module functions also under
their bare name) and decides, for each entry-module function, whether it or
anything it can reach writes storage or requires authorization.

Calls to names that are not in the database (SDK methods, other contracts)
are assumed not to mutate anything. That default is optimistic and is the
main source of false "read-only" results.
"""

from __future__ import annotations

from methodscope.middleware.error_handler import AnalysisError
from methodscope.models.records import FunctionRecord, SourceModule
from methodscope.models.schemas import MethodAnalysis
from methodscope.services.behavior_analyzer import analyze_body
from methodscope.services.source_scanner import extract_functions
from methodscope.utils.logger import get_logger

logger = get_logger(__name__)

FunctionDatabase = dict[str, FunctionRecord]


def _analyze_record(record: FunctionRecord) -> None:
    try:
        analysis = analyze_body(record.body)
    except Exception as exc:
        raise AnalysisError(record.qualified_name, str(exc)) from exc
    record.writes_storage = analysis.writes_storage
    record.requires_auth = analysis.requires_auth
    record.calls = analysis.calls


def build_function_database(
    modules: list[SourceModule],
    entry_module: str = "lib",
) -> FunctionDatabase:
    """
    Extract and analyse every function in *modules*.

    A function whose body cannot be analysed is left out and logged; the
    rest of the contract is unaffected.
    """
    database: FunctionDatabase = {}

    for module in modules:
        for record in extract_functions(module):
            try:
                _analyze_record(record)
            except AnalysisError as exc:
                logger.warning(
                    "Skipping function: %s", exc.message,
                    extra={"source_module": module.name, "function": record.name},
                )
                continue

            database[record.qualified_name] = record
            if module.name == entry_module:
                database[record.name] = record

    logger.debug(
        "Function database built  modules=%d  functions=%d",
        len(modules),
        sum(1 for k in database if "::" in k),
    )
    return database


def call_edges(database: FunctionDatabase) -> list[tuple[str, str]]:
    """``(caller, callee)`` pairs between functions that are both in *database*."""
    edges: list[tuple[str, str]] = []
    for key, record in database.items():
        if key != record.qualified_name:
            continue
        for call in sorted(record.calls):
            target = _lookup(database, record, call)
            if target is not None:
                edges.append((key, target.qualified_name))
    return edges


def _lookup(
    database: FunctionDatabase,
    caller: FunctionRecord,
    call: str,
) -> FunctionRecord | None:
    # Unqualified names resolve in the caller's own module first, then
    # fall back to the entry-module alias
    if "::" in call:
        return database.get(call)
    return database.get(f"{caller.module}::{call}") or database.get(call)


class ReachabilityResolver:
    """
    Depth-first mutation search over one Function Database.

    The memo only ever holds proven answers: ``True`` once a path to a write
    is found, ``False`` for every node of a traversal that finished without
    finding one. A node cut short by the cycle guard is never cached.
    """

    def __init__(self, database: FunctionDatabase) -> None:
        self.database = database
        self._memo: dict[str, bool] = {}

    def writes(self, record: FunctionRecord) -> bool:
        """True if *record*, or anything reachable from it, mutates state."""
        visited: set[str] = set()
        found = self._search(record, visited)
        if not found:
            for key in visited:
                self._memo[key] = False
        return found

    def _search(self, record: FunctionRecord, visited: set[str]) -> bool:
        key = record.qualified_name
        if key in self._memo:
            return self._memo[key]
        if key in visited:
            return False
        visited.add(key)

        if record.writes_storage or record.requires_auth:
            self._memo[key] = True
            return True

        for call in sorted(record.calls):
            target = _lookup(self.database, record, call)
            if target is None:
                logger.debug("%s → %s: not in database, assumed read-only", key, call)
                continue
            if self._search(target, visited):
                self._memo[key] = True
                return True

        return False

    def resolve(self, entry_module: str = "lib") -> dict[str, MethodAnalysis]:
        results: dict[str, MethodAnalysis] = {}
        for key, record in self.database.items():
            if record.module != entry_module or key != record.qualified_name:
                continue
            is_write = self.writes(record)
            results[record.name] = MethodAnalysis(
                is_read_only=not is_write,
                writes_storage=record.writes_storage,
                requires_auth=record.requires_auth,
                has_indirect_writes=(
                    is_write and not record.writes_storage and not record.requires_auth
                ),
            )
        return results


def resolve_call_graph(
    database: FunctionDatabase,
    entry_module: str = "lib",
) -> dict[str, MethodAnalysis]:
    """
    Resolve read/write status for every function of *entry_module*.

    Pure function of *database*: each call gets a fresh memo, so calling it
    twice on the same database returns equal results.
    """
    resolved = ReachabilityResolver(database).resolve(entry_module)
    logger.debug(
        "Resolved %d entry functions  writes=%d  indirect=%d",
        len(resolved),
        sum(1 for m in resolved.values() if not m.is_read_only),
        sum(1 for m in resolved.values() if m.has_indirect_writes),
    )
    return resolved

"""
Contract metadata generator.

Walks the generated binding packages, analyses each contract's Rust source,
and produces the network-separated contract-metadata.json the frontend reads.

For one contract the steps run strictly in order: load source modules →
function database → reachability → cross-reference the binding. Contracts
are independent of each other and run on a thread pool; a failure in one is
logged and never affects the others.
"""

from __future__ import annotations

import traceback
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from methodscope.config import Settings, get_settings
from methodscope.middleware.error_handler import (
    AppException,
    MalformedBindingError,
    MissingBindingError,
    MissingSourceError,
)
from methodscope.models.records import SourceModule
from methodscope.models.schemas import ContractMetadata, MetadataDocument, MethodAnalysis
from methodscope.services.binding_parser import extract_contract_id, extract_methods
from methodscope.services.call_graph import (
    FunctionDatabase,
    build_function_database,
    resolve_call_graph,
)
from methodscope.services.source_scanner import (
    is_context_parameter,
    normalize_type,
    parse_parameters,
)
from methodscope.utils.logger import get_logger

logger = get_logger(__name__)

UNKNOWN_NETWORK = "unknown"
DEFAULT_NETWORKS = ("testnet", "mainnet", "futurenet")


# ── Naming ────────────────────────────────────────────────────


def parse_package_name(
    package_name: str,
    networks: tuple[str, ...] | list[str] = DEFAULT_NETWORKS,
) -> tuple[str, str]:
    """
    Split ``token-testnet`` into ``("token", "testnet")``.

    Without a recognised network suffix the whole name is the contract and
    the network is ``"unknown"``.
    """
    contract, sep, suffix = package_name.rpartition("-")
    if sep and contract and suffix in networks:
        return contract, suffix
    return package_name, UNKNOWN_NETWORK


# ── Source side ───────────────────────────────────────────────


@dataclass
class SourceAnalysis:
    """Everything source analysis knows about one contract."""

    database: FunctionDatabase = field(default_factory=dict)
    resolved: dict[str, MethodAnalysis] = field(default_factory=dict)
    declared_types: dict[str, dict[str, str]] = field(default_factory=dict)


def load_source_modules(source_dir: Path, contract: str = "") -> list[SourceModule]:
    """
    Read every ``*.rs`` file directly under *source_dir*, sorted by name.

    A file that cannot be read or is not UTF-8 is logged and left out.
    Raises MissingSourceError when no module could be read at all.
    """
    contract = contract or source_dir.name
    if not source_dir.is_dir():
        raise MissingSourceError(contract, str(source_dir))

    modules: list[SourceModule] = []
    for path in sorted(source_dir.glob("*.rs")):
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning(
                "Skipping unreadable module %s: %s", path.name, exc,
                extra={"contract": contract, "source_module": path.stem},
            )
            continue
        modules.append(SourceModule(name=path.stem, text=text))

    if not modules:
        raise MissingSourceError(contract, str(source_dir))
    return modules


def declared_parameter_types(
    database: FunctionDatabase,
    entry_module: str = "lib",
) -> dict[str, dict[str, str]]:
    """Parameter name → normalised Rust type, per entry-module function."""
    declared: dict[str, dict[str, str]] = {}
    for key, record in database.items():
        if record.module != entry_module or key != record.qualified_name:
            continue
        declared[record.name] = {
            name: normalize_type(param_type)
            for name, param_type in parse_parameters(record.params)
            if not is_context_parameter(name, param_type)
        }
    return declared


def analyze_source(modules: list[SourceModule], entry_module: str = "lib") -> SourceAnalysis:
    """Run extraction, behaviour analysis and reachability over one contract."""
    database = build_function_database(modules, entry_module)
    return SourceAnalysis(
        database=database,
        resolved=resolve_call_graph(database, entry_module),
        declared_types=declared_parameter_types(database, entry_module),
    )


# ── Per contract ──────────────────────────────────────────────


def build_contract_metadata(
    contract: str,
    network: str,
    binding_text: str,
    modules: list[SourceModule] | None,
    *,
    package_name: str | None = None,
    entry_module: str = "lib",
) -> ContractMetadata:
    """
    Build the ContractMetadata for one contract.

    *modules* may be None or empty, in which case every method is classified
    by heuristics. Raises MalformedBindingError when the binding has no
    contract id or no Client interface.
    """
    package_name = package_name or (
        contract if network == UNKNOWN_NETWORK else f"{contract}-{network}"
    )

    try:
        contract_id = extract_contract_id(binding_text)
    except MalformedBindingError as exc:
        exc.details["contract"] = package_name
        raise

    context = {"contract": contract, "package": package_name, "network": network}

    source = SourceAnalysis()
    if modules:
        try:
            source = analyze_source(modules, entry_module)
        except Exception as exc:
            logger.warning(
                "Source analysis failed, falling back to heuristics: %s", exc, extra=context,
            )
            source = SourceAnalysis()
    else:
        logger.warning("No source modules, using heuristics only", extra=context)

    methods = extract_methods(binding_text, source.resolved, source.declared_types)

    metadata = ContractMetadata(
        name=contract,
        package_name=package_name,
        network=network,
        contract_id=contract_id,
        path=f"packages/{package_name}",
        methods=methods,
    )
    logger.info(
        "Analysed  methods=%d  read=%d  write=%d  heuristic=%d",
        len(methods),
        sum(1 for m in methods if m.is_read_only),
        sum(1 for m in methods if not m.is_read_only),
        sum(1 for m in methods if m.classified_by == "heuristic"),
        extra=context,
    )
    return metadata


# ══════════════════════════════════════════════════════════════
# GENERATOR
# ══════════════════════════════════════════════════════════════


class MetadataGenerator:
    """Generates the metadata document for a whole workspace."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        contracts_dir: Path | None = None,
        packages_dir: Path | None = None,
        max_workers: int | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.contracts_dir = Path(contracts_dir or self.settings.CONTRACTS_DIR)
        self.packages_dir = Path(packages_dir or self.settings.PACKAGES_DIR)
        self.max_workers = max(1, max_workers or self.settings.MAX_WORKERS)
        self.networks = self.settings.networks_list or list(DEFAULT_NETWORKS)
        self.entry_module = self.settings.ENTRY_MODULE

    # ── Discovery ─────────────────────────────────────────────

    def package_names(self) -> list[str]:
        if not self.packages_dir.is_dir():
            raise AppException(
                status_code=404,
                error_code="PACKAGES_DIR_NOT_FOUND",
                message=f"Packages directory not found: {self.packages_dir}",
                details={"path": str(self.packages_dir)},
            )
        return sorted(p.name for p in self.packages_dir.iterdir() if p.is_dir())

    def binding_path(self, package_name: str) -> Path:
        return self.packages_dir / package_name / self.settings.BINDING_ENTRY

    def source_dir(self, contract: str) -> Path:
        return self.contracts_dir / contract / "src"

    # ── One package ───────────────────────────────────────────

    def analyze_package(self, package_name: str) -> ContractMetadata:
        """Analyse one binding package. Raises on missing/malformed binding."""
        contract, network = parse_package_name(package_name, self.networks)

        binding_path = self.binding_path(package_name)
        if not binding_path.is_file():
            raise MissingBindingError(package_name, str(binding_path))

        context = {"contract": contract, "package": package_name, "network": network}
        try:
            binding_text = binding_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise MalformedBindingError(f"cannot read {binding_path.name}: {exc}", package_name) from exc

        modules: list[SourceModule] | None
        try:
            modules = load_source_modules(self.source_dir(contract), contract)
        except MissingSourceError as exc:
            logger.warning("%s  %s", exc.error_code, exc.message, extra=context)
            modules = None

        return build_contract_metadata(
            contract,
            network,
            binding_text,
            modules,
            package_name=package_name,
            entry_module=self.entry_module,
        )

    def _safe_analyze(self, package_name: str) -> ContractMetadata | None:
        try:
            return self.analyze_package(package_name)
        except (MissingBindingError, MalformedBindingError) as exc:
            logger.warning(
                "Skipping  %s: %s", exc.error_code, exc.message, extra={"package": package_name},
            )
        except Exception as exc:
            logger.error(
                "Failed to extract info: %s\n%s", exc, traceback.format_exc(),
                extra={"package": package_name},
            )
        return None

    # ── Whole workspace ───────────────────────────────────────

    def generate(self) -> MetadataDocument:
        """Analyse every package and assemble the metadata document."""
        packages = self.package_names()

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            results = list(executor.map(self._safe_analyze, packages))

        contracts: dict[str, dict[str, ContractMetadata]] = {n: {} for n in self.networks}
        total = 0
        for metadata in results:
            if metadata is None:
                continue
            contracts.setdefault(metadata.network, {})[metadata.name] = metadata
            total += 1

        self._warn_unbound_contracts(packages)

        document = MetadataDocument(
            contracts=contracts,
            total_contracts=total,
            generated_at=datetime.now(timezone.utc).isoformat(),
        )
        logger.info(
            "Generated metadata for %d contracts (%s)",
            total,
            ", ".join(f"{net}: {len(c)}" for net, c in contracts.items()),
        )
        return document

    def _warn_unbound_contracts(self, packages: list[str]) -> None:
        """Log contracts that have source but no binding package at all."""
        if not self.contracts_dir.is_dir():
            return
        bound = {parse_package_name(p, self.networks)[0] for p in packages}
        for contract_dir in sorted(self.contracts_dir.iterdir()):
            if contract_dir.is_dir() and contract_dir.name not in bound:
                exc = MissingBindingError(contract_dir.name)
                logger.warning(
                    "%s  %s  (omitted from output)", exc.error_code, exc.message,
                    extra={"contract": contract_dir.name},
                )

    @staticmethod
    def write(document: MetadataDocument, output_path: Path) -> Path:
        """Write *document* as indented camelCase JSON, creating parent dirs."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(
            document.model_dump_json(by_alias=True, exclude_none=True, indent=2),
            encoding="utf-8",
        )
        logger.info("Wrote %s", output_path)
        return output_path

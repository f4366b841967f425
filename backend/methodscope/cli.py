#!/usr/bin/env python3
"""
Command-line entry point.

  methodscope generate      write contract-metadata.json for the workspace
  methodscope analyze       classify one contract from its sources + binding
  methodscope constructor   list (and validate) constructor arguments
  methodscope serve         run the HTTP API
"""

import argparse
import json
import sys
from pathlib import Path

from methodscope.config import get_settings
from methodscope.middleware.error_handler import AppException
from methodscope.services.constructor_analyzer import (
    analyze_contract_constructor,
    build_cli_args,
)
from methodscope.services.metadata_generator import (
    MetadataGenerator,
    UNKNOWN_NETWORK,
    build_contract_metadata,
    load_source_modules,
)
from methodscope.utils.logger import get_logger

logger = get_logger(__name__)


def _cmd_generate(args: argparse.Namespace) -> int:
    settings = get_settings()
    generator = MetadataGenerator(
        settings,
        contracts_dir=args.contracts_dir,
        packages_dir=args.packages_dir,
        max_workers=args.workers,
    )
    try:
        document = generator.generate()
    except AppException as exc:
        logger.error("❌ %s", exc.message)
        return 1

    output = generator.write(document, args.output or settings.OUTPUT_PATH)
    stats = ", ".join(f"{net}: {len(c)}" for net, c in document.contracts.items())
    print(f"✅ Generated metadata for {document.total_contracts} contracts ({stats}) → {output}")
    return 0


def _cmd_analyze(args: argparse.Namespace) -> int:
    settings = get_settings()
    contract_dir = Path(args.contract_dir)
    name = args.name or contract_dir.name

    try:
        binding_text = Path(args.binding).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.error("❌ Cannot read binding %s: %s", args.binding, exc)
        return 1

    try:
        modules = load_source_modules(contract_dir / "src", name)
    except AppException as exc:
        logger.warning("%s; classifying with heuristics only", exc.message)
        modules = None

    try:
        metadata = build_contract_metadata(
            name,
            args.network,
            binding_text,
            modules,
            entry_module=args.entry_module or settings.ENTRY_MODULE,
        )
    except AppException as exc:
        logger.error("❌ %s", exc.message)
        return 1

    print(metadata.model_dump_json(by_alias=True, exclude_none=True, indent=2))
    return 0


def _parse_values(pairs: list[str]) -> dict[str, str]:
    values: dict[str, str] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep:
            raise argparse.ArgumentTypeError(f"expected name=value, got {pair!r}")
        values[name.strip()] = value
    return values


def _cmd_constructor(args: argparse.Namespace) -> int:
    analysis = analyze_contract_constructor(Path(args.contract_dir))
    if analysis is None:
        logger.error("❌ No Rust sources under %s/src", args.contract_dir)
        return 1

    print(f"Contract: {analysis.contract_name}")
    print(f"Has constructor: {analysis.has_constructor}")
    print(f"Arguments: {analysis.args_count}")
    for i, arg in enumerate(analysis.args, start=1):
        print(f"  {i}. {arg.name} ({arg.type}): {arg.description}")

    if args.arg:
        try:
            cli_args = build_cli_args(analysis.args, _parse_values(args.arg))
        except (AppException, argparse.ArgumentTypeError) as exc:
            logger.error("❌ %s", getattr(exc, "message", str(exc)))
            return 1
        print(json.dumps({"cliArgs": cli_args}))
    return 0


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("methodscope.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="methodscope",
        description="Classify Soroban contract methods as read or write and emit frontend metadata",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment Variables (can also be set in backend/.env):
  CONTRACTS_DIR      Rust contract workspace (default: contracts)
  PACKAGES_DIR       Generated binding packages (default: frontend/packages)
  OUTPUT_PATH        Metadata file (default: frontend/lib/contract-metadata.json)
  ENTRY_MODULE       Module holding the public surface (default: lib)
  MAX_WORKERS        Contracts analysed in parallel (default: 4)

Priority: Command-line arguments > Environment variables > Defaults
        """,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate contract-metadata.json")
    gen.add_argument("--contracts-dir", type=Path, help="Rust contracts directory")
    gen.add_argument("--packages-dir", type=Path, help="Binding packages directory")
    gen.add_argument("--output", type=Path, help="Output JSON path")
    gen.add_argument("--workers", type=int, help="Parallel workers")
    gen.set_defaults(func=_cmd_generate)

    ana = sub.add_parser("analyze", help="Analyse one contract")
    ana.add_argument("contract_dir", help="Contract directory (containing src/)")
    ana.add_argument("binding", help="Path to the generated src/index.ts")
    ana.add_argument("--network", default=UNKNOWN_NETWORK)
    ana.add_argument("--name", help="Contract name (default: directory name)")
    ana.add_argument("--entry-module", help="Public surface module (default: ENTRY_MODULE)")
    ana.set_defaults(func=_cmd_analyze)

    ctor = sub.add_parser("constructor", help="Show constructor arguments")
    ctor.add_argument("contract_dir", help="Contract directory (containing src/)")
    ctor.add_argument(
        "--arg",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Value for a constructor argument; repeat for each argument",
    )
    ctor.set_defaults(func=_cmd_constructor)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true")
    serve.set_defaults(func=_cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())

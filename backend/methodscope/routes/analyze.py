"""
Analyze routes: classify one contract from sources posted in the request.

POST /api/v1/analyze         → ContractMetadata for one contract + binding
POST /api/v1/analyze/source  → function table, call graph and resolved
                               read/write map for Rust sources alone
"""

from fastapi import APIRouter, Request

from methodscope.config import get_settings
from methodscope.middleware.rate_limiter import limiter
from methodscope.models.records import SourceModule
from methodscope.models.schemas import (
    AnalyzeRequest,
    CallGraphEdge,
    ContractMetadata,
    ErrorResponse,
    FunctionSummary,
    SourceAnalyzeRequest,
    SourceAnalyzeResponse,
)
from methodscope.services.call_graph import call_edges
from methodscope.services.metadata_generator import analyze_source, build_contract_metadata
from methodscope.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/analyze", tags=["analyze"])


def _modules(sources: dict[str, str]) -> list[SourceModule]:
    # Accept "lib.rs" as well as "lib" for the module name
    return [
        SourceModule(name=name.removesuffix(".rs"), text=text)
        for name, text in sorted(sources.items())
    ]


@router.post(
    "",
    response_model=ContractMetadata,
    response_model_by_alias=True,
    response_model_exclude_none=True,
    responses={422: {"model": ErrorResponse, "description": "Malformed binding"}},
)
@limiter.limit(get_settings().ANALYZE_RATE_LIMIT)
async def analyze_contract(request: Request, body: AnalyzeRequest) -> ContractMetadata:
    """Classify every method of one contract from its sources and binding."""
    entry_module = body.entry_module or get_settings().ENTRY_MODULE
    logger.info(
        "Analyze request  contract=%s  network=%s  modules=%d  binding=%d chars",
        body.contract_name,
        body.network,
        len(body.modules),
        len(body.binding),
    )
    return build_contract_metadata(
        body.contract_name,
        body.network,
        body.binding,
        _modules(body.modules),
        package_name=body.package_name,
        entry_module=entry_module,
    )


@router.post("/source", response_model=SourceAnalyzeResponse)
@limiter.limit(get_settings().ANALYZE_RATE_LIMIT)
async def analyze_sources(request: Request, body: SourceAnalyzeRequest) -> SourceAnalyzeResponse:
    """Expose the function database and reachability result for Rust sources."""
    entry_module = body.entry_module or get_settings().ENTRY_MODULE
    source = analyze_source(_modules(body.modules), entry_module)

    functions = [
        FunctionSummary(
            key=key,
            module=record.module,
            name=record.name,
            is_public=record.is_public,
            writes_storage=record.writes_storage,
            requires_auth=record.requires_auth,
            calls=sorted(record.calls),
        )
        for key, record in source.database.items()
        if key == record.qualified_name
    ]

    return SourceAnalyzeResponse(
        entry_module=entry_module,
        functions=functions,
        call_graph=[CallGraphEdge(from_=a, to=b) for a, b in call_edges(source.database)],
        methods=source.resolved,
    )

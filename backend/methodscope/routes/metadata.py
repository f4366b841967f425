"""
Metadata route.

POST /api/v1/metadata/generate: regenerate contract metadata for the
configured workspace and optionally write OUTPUT_PATH.
"""

from fastapi import APIRouter, Request
from starlette.concurrency import run_in_threadpool

from methodscope.config import get_settings
from methodscope.middleware.rate_limiter import limiter
from methodscope.models.schemas import ErrorResponse, GenerateRequest, MetadataDocument
from methodscope.services.metadata_generator import MetadataGenerator
from methodscope.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/metadata", tags=["metadata"])


@router.post(
    "/generate",
    response_model=MetadataDocument,
    response_model_by_alias=True,
    response_model_exclude_none=True,
    responses={404: {"model": ErrorResponse, "description": "Packages directory not found"}},
)
@limiter.limit(get_settings().GENERATE_RATE_LIMIT)
async def generate_metadata(request: Request, body: GenerateRequest) -> MetadataDocument:
    """Analyse every binding package in the workspace."""
    settings = get_settings()
    generator = MetadataGenerator(settings)

    document = await run_in_threadpool(generator.generate)
    if body.write:
        await run_in_threadpool(generator.write, document, settings.OUTPUT_PATH)

    logger.info("Metadata generated via API  contracts=%d  written=%s", document.total_contracts, body.write)
    return document

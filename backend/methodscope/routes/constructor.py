"""
Constructor route.

POST /api/v1/constructor: list the `__constructor` arguments a contract
needs at deploy time.
"""

from fastapi import APIRouter, Request

from methodscope.config import get_settings
from methodscope.middleware.rate_limiter import limiter
from methodscope.models.records import SourceModule
from methodscope.models.schemas import ConstructorAnalysis, ConstructorRequest
from methodscope.services.constructor_analyzer import analyze_modules
from methodscope.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/constructor", tags=["constructor"])


@router.post("", response_model=ConstructorAnalysis, response_model_by_alias=True)
@limiter.limit(get_settings().CONSTRUCTOR_RATE_LIMIT)
async def analyze_constructor(request: Request, body: ConstructorRequest) -> ConstructorAnalysis:
    modules = [
        SourceModule(name=name.removesuffix(".rs"), text=text)
        for name, text in body.modules.items()
    ]
    result = analyze_modules(body.contract_name, modules)
    logger.info(
        "Constructor analysis  contract=%s  has_constructor=%s  args=%d",
        body.contract_name,
        result.has_constructor,
        result.args_count,
    )
    return result

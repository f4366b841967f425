"""
Pydantic models (schemas).

Output records consumed by the frontend (MethodDescriptor, ContractMetadata,
MetadataDocument) and the request/response bodies of the API routes.
Output records serialize with camelCase aliases; the frontend indexes into
that shape, so changes to it must be additive.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for records written to contract-metadata.json."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Analysis records ──────────────────────────────────────────

class MethodAnalysis(CamelModel):
    """Resolved mutability of one entry-module function."""
    is_read_only: bool
    writes_storage: bool = False
    requires_auth: bool = False
    has_indirect_writes: bool = False


class ParameterDescriptor(CamelModel):
    """A user-facing method parameter."""
    name: str
    type: str


class MethodDescriptor(CamelModel):
    """A callable contract method as shown to the frontend."""
    name: str
    parameters: list[ParameterDescriptor] = Field(default_factory=list)
    return_type: str = "unknown"
    is_read_only: bool = False
    description: str | None = None
    classified_by: str = Field(default="heuristic", pattern="^(source|heuristic)$")


class ContractMetadata(CamelModel):
    """Everything the frontend needs to render one deployed contract."""
    name: str
    package_name: str
    network: str
    contract_id: str
    path: str
    methods: list[MethodDescriptor] = Field(default_factory=list)

    @computed_field(alias="isStateful")
    @property
    def is_stateful(self) -> bool:
        return any(not m.is_read_only for m in self.methods)

    @computed_field(alias="hasReadMethods")
    @property
    def has_read_methods(self) -> bool:
        return any(m.is_read_only for m in self.methods)

    @computed_field(alias="hasWriteMethods")
    @property
    def has_write_methods(self) -> bool:
        return any(not m.is_read_only for m in self.methods)

    @computed_field(alias="totalMethods")
    @property
    def total_methods(self) -> int:
        return len(self.methods)


class MetadataDocument(CamelModel):
    """The aggregate record written once per generation run."""
    contracts: dict[str, dict[str, ContractMetadata]] = Field(default_factory=dict)
    total_contracts: int = 0
    generated_at: str
    generated_by: str = "methodscope"
    version: str = "2.0.0"
    description: str = "Network-separated contract metadata"


# ── Constructor analysis ──────────────────────────────────────

class ConstructorArg(CamelModel):
    """One `__constructor` parameter (execution context excluded)."""
    name: str
    type: str
    description: str = ""


class ConstructorAnalysis(CamelModel):
    """Constructor arguments a contract needs at deploy time."""
    contract_name: str
    has_constructor: bool
    args: list[ConstructorArg] = Field(default_factory=list)
    found_in: str | None = None

    @computed_field(alias="argsCount")
    @property
    def args_count(self) -> int:
        return len(self.args)


# ── Shared ────────────────────────────────────────────────────

class ErrorResponse(BaseModel):
    """Standardised error envelope."""
    error: bool = True
    error_code: str
    message: str
    details: dict | None = None


# ── Analyze ───────────────────────────────────────────────────

class AnalyzeRequest(BaseModel):
    """POST /api/v1/analyze request body."""
    contract_name: str = Field(..., min_length=1, max_length=200)
    network: str = Field(default="unknown", max_length=50)
    package_name: str | None = Field(default=None, max_length=250)
    modules: dict[str, str] = Field(
        default_factory=dict,
        description="Rust source modules keyed by module name (file stem).",
    )
    binding: str = Field(
        ...,
        min_length=1,
        description="Generated TypeScript binding (the package's src/index.ts).",
    )
    entry_module: str | None = Field(
        default=None,
        description="Module holding the public contract surface; defaults to ENTRY_MODULE.",
    )


class SourceAnalyzeRequest(BaseModel):
    """POST /api/v1/analyze/source request body."""
    modules: dict[str, str] = Field(..., min_length=1)
    entry_module: str | None = None


class FunctionSummary(BaseModel):
    """A function found in the sources, without its body."""
    key: str
    module: str
    name: str
    is_public: bool
    writes_storage: bool
    requires_auth: bool
    calls: list[str] = Field(default_factory=list)


class CallGraphEdge(BaseModel):
    """An edge in the call graph between two known functions."""
    from_: str = Field(alias="from")
    to: str

    model_config = {"populate_by_name": True}


class SourceAnalyzeResponse(BaseModel):
    """POST /api/v1/analyze/source response body."""
    entry_module: str
    functions: list[FunctionSummary] = Field(default_factory=list)
    call_graph: list[CallGraphEdge] = Field(default_factory=list)
    methods: dict[str, MethodAnalysis] = Field(default_factory=dict)


class GenerateRequest(BaseModel):
    """POST /api/v1/metadata/generate request body."""
    write: bool = Field(default=False, description="Also write OUTPUT_PATH.")


class ConstructorRequest(BaseModel):
    """POST /api/v1/constructor request body."""
    contract_name: str = Field(default="contract", max_length=200)
    modules: dict[str, str] = Field(..., min_length=1)

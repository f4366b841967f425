"""
In-memory records used while analysing one contract.

These never leave an analysis run: the API and the metadata file expose the
pydantic models in ``schemas.py`` instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SourceModule:
    """One Rust source file: logical module name (file stem) plus raw text."""

    name: str
    text: str


@dataclass
class FunctionRecord:
    """A function found in a source module, plus what its body does."""

    module: str
    name: str
    body: str
    params: str = ""
    return_type: str | None = None
    is_public: bool = False
    writes_storage: bool = False
    requires_auth: bool = False
    calls: set[str] = field(default_factory=set)

    @property
    def qualified_name(self) -> str:
        return f"{self.module}::{self.name}"


@dataclass
class BodyAnalysis:
    """Result of scanning a single function body."""

    writes_storage: bool = False
    requires_auth: bool = False
    calls: set[str] = field(default_factory=set)

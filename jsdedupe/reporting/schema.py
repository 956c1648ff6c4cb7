from __future__ import annotations
from typing import List, Optional
from pydantic import BaseModel, Field


class DuplicateEntryJSON(BaseModel):
    hash: str = Field(..., description="SHA-256 of the normalized function code")
    code: str = Field(..., description="Normalized code of the shortest occurrence")
    duplicates: int = Field(..., ge=1, description="Occurrences beyond the first")
    length: int = Field(..., ge=0, description="Characters taken by all but the shortest occurrence")


class AnalysisSummaryJSON(BaseModel):
    total_functions: int = Field(..., ge=0)
    unique_functions: int = Field(..., ge=0)
    unique_pct: float = Field(..., ge=0.0, le=100.0)
    wasted_bytes: int = Field(..., ge=0)
    source_size: Optional[int] = Field(None, ge=0, description="Characters of analyzed source, when known")
    wasted_pct: Optional[float] = Field(None, ge=0.0)
    duplicate_groups: int = Field(..., ge=0)
    normalization_failures: int = Field(0, ge=0)
    failed_files: List[str] = Field(default_factory=list)
    syntax_error_files: List[str] = Field(default_factory=list, description="Files analyzed despite syntax errors")

# pgf_runtime/adapters/api/schemas.py
"""Request / response DTOs for the HTTP API."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ErrorOut(BaseModel):
    status: str = "error"
    code: int
    error: str
    message: str


class HealthOut(BaseModel):
    status: str
    grammar: Optional[str] = None
    languages: List[str] = Field(default_factory=list)


class LanguageOut(BaseModel):
    """A decoded concrete syntax and its `language` flag, if any."""
    name: str
    code: Optional[str] = None


class ParseRequest(BaseModel):
    sentence: str = Field(..., description="Plain text; tokens are separated by whitespace")
    cat: Optional[str] = Field(None, description="Start category; defaults to the grammar's")


class ParseResponse(BaseModel):
    language: str
    sentence: str
    trees: List[str]
    count: int


class LinearizeRequest(BaseModel):
    tree: str = Field(..., description="Tree in GF expression syntax, e.g. 'Pred (This Pizza) Delicious'")


class LinearizeResponse(BaseModel):
    language: str
    tree: str
    text: str
    variants: List[str] = Field(default_factory=list)
    table: Dict[str, str] = Field(default_factory=dict)


class BlockDiagnosticOut(BaseModel):
    index: int
    offset: int
    language: Optional[str] = None
    error: str
    message: str


class GrammarOut(BaseModel):
    name: str
    version: str
    startcat: str
    categories: List[str]
    functions: int
    languages: List[LanguageOut]
    diagnostics: List[BlockDiagnosticOut]


class GrammarJson(BaseModel):
    abstract: Dict[str, Any]
    concretes: Dict[str, Any]

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, validator

from .config import MAX_UPLOAD_BYTES, MIN_KEYWORD_LENGTH, TIMEOUTS, TOP_N_MATCHES


class RawInput(BaseModel):
    resume_text: str = ""
    job_description: str = ""


class AnalysisOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    top_n_matches: int = Field(default=TOP_N_MATCHES, ge=1)
    enable_ai_enrichment: bool = True
    min_keyword_length: int = Field(default=MIN_KEYWORD_LENGTH, ge=1)


class TopMatch(BaseModel):
    """One job sentence and its best-matching resume sentence."""
    model_config = ConfigDict(frozen=True)

    job_sentence: str
    resume_sentence: str
    similarity: float = Field(ge=0.0, le=1.0)


class AnalysisResult(BaseModel):
    """Output of one analysis. Field names are the wire contract."""
    model_config = ConfigDict(frozen=True)

    match_score: float = Field(ge=0.0, le=100.0)
    semantic_score: Optional[float] = Field(default=None, ge=0.0, le=100.0)
    matched_keywords: List[str] = Field(default_factory=list)
    missing_keywords: List[str] = Field(default_factory=list)
    top_matches: List[TopMatch] = Field(default_factory=list)
    degraded: bool = False
    ai_summary: Optional[str] = None
    ai_missing_skills: Optional[List[str]] = None
    ai_bullet_improvements: Optional[List[str]] = None

    @validator("missing_keywords")
    def validate_partition(cls, v: List[str], values) -> List[str]:
        overlap = set(v) & set(values.get("matched_keywords") or [])
        if overlap:
            raise ValueError(f"Keywords both matched and missing: {sorted(overlap)}")
        return v


class AnalyzeRequest(BaseModel):
    resume_text: str = ""
    job_description: str = ""
    options: AnalysisOptions = Field(default_factory=AnalysisOptions)


class AnalyzeResponse(AnalysisResult):
    filename: Optional[str] = None


class Settings(BaseModel):
    model_config = ConfigDict(protected_namespaces=(), frozen=True)
    openai_api_key: Optional[str] = None
    model_name: str = "gpt-4o-mini"
    embedding_model: str = "text-embedding-3-small"
    similarity_provider: Optional[str] = None
    similarity_timeout_seconds: float = TIMEOUTS["similarity"]
    enrichment_timeout_seconds: float = TIMEOUTS["enrichment"]
    max_upload_bytes: int = MAX_UPLOAD_BYTES
    log_level: str = "INFO"

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from . import __version__
from .analyzer import MatchingEngine
from .config import MIN_KEYWORD_LENGTH, TOP_N_MATCHES
from .errors import InvalidInputError
from .models import AnalysisOptions, AnalyzeRequest, AnalyzeResponse, RawInput, Settings
from .settings import get_settings

logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Resume Match API", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache(maxsize=4)
def _build_engine(settings: Settings) -> MatchingEngine:
    return MatchingEngine.from_settings(settings)


def get_engine(settings: Settings = Depends(get_settings)) -> MatchingEngine:
    return _build_engine(settings)


def error_response(message: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError):
    logger.info(f"Rejected analysis request: {exc}")
    return error_response(str(exc))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    logger.info(f"Rejected malformed request: {error}")
    return error_response(f"Invalid request field '{field}': {error.get('msg')}")


@app.get("/")
async def root():
    return {"status": "ok", "version": __version__}


@app.post("/analyze", response_model=AnalyzeResponse, response_model_exclude_none=True)
async def analyze_upload(
    job_description: str = Form(""),
    resume: Optional[UploadFile] = File(None),
    resume_text: Optional[str] = Form(None),
    top_n_matches: int = Form(TOP_N_MATCHES),
    enable_ai_enrichment: bool = Form(True),
    min_keyword_length: int = Form(MIN_KEYWORD_LENGTH),
    settings: Settings = Depends(get_settings),
    engine: MatchingEngine = Depends(get_engine),
):
    """Analyze an uploaded plain-text resume (or resume_text) against a job description."""
    filename = None
    if resume is not None:
        filename = resume.filename
        content = await resume.read()
        if len(content) > settings.max_upload_bytes:
            max_mb = settings.max_upload_bytes / (1024 * 1024)
            return error_response(f"Resume file is too large. Max {max_mb:g}MB allowed.", 413)
        try:
            resume_text = content.decode("utf-8-sig")
        except UnicodeDecodeError:
            return error_response("Resume must be a UTF-8 plain-text file.")

    if not resume_text or not resume_text.strip() or not job_description.strip():
        return error_response("Please upload a resume and paste a job description.")

    try:
        options = AnalysisOptions(
            top_n_matches=top_n_matches,
            enable_ai_enrichment=enable_ai_enrichment,
            min_keyword_length=min_keyword_length,
        )
    except ValidationError as e:
        return error_response(f"Invalid analysis options: {e.errors()[0]['msg']}")

    result = await engine.analyze_async(
        RawInput(resume_text=resume_text, job_description=job_description),
        options,
    )
    return AnalyzeResponse(**result.model_dump(), filename=filename)


@app.post("/api/analyze", response_model=AnalyzeResponse, response_model_exclude_none=True)
async def analyze_json(
    request: AnalyzeRequest,
    engine: MatchingEngine = Depends(get_engine),
):
    """Analyze resume text against a job description (JSON body)."""
    result = await engine.analyze_async(
        RawInput(resume_text=request.resume_text, job_description=request.job_description),
        request.options,
    )
    return AnalyzeResponse(**result.model_dump())


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)

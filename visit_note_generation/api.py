"""
HTTP API - FastAPI Surface for Visit Note Generation

Endpoints:
    POST /generate → {summary} or {summary, debug}
    POST /clean    → {cleaned}
    GET  /health   → {ok: true}

Status Mapping:
    400 → InputError (empty userText) or a body that is not a JSON object;
          no oracle call is made
    422 → NoteValidationError (format still failing / content repair broke format)
    500 → oracle or unexpected failure

The pipeline is taken from app.state.pipeline when present (tests inject a
pipeline backed by a scripted oracle), otherwise built once from the
environment.

Usage:
    serve-visit-notes                      # PORT from the environment (default 3301)
    uvicorn visit_note_generation.api:app --port 3301

Author: Shubham Singh
Date: January 2026
"""

import threading
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel, Field

from visit_note_generation import __version__
from visit_note_generation.core.config import PipelineConfiguration
from visit_note_generation.core.exceptions import InputError, NoteValidationError
from visit_note_generation.core.models import VisitRequest, normalize_spaces
from visit_note_generation.pipeline import VisitNotePipeline


# =============================================================================
# STAGE 1: REQUEST / RESPONSE MODELS
# =============================================================================


# Loosely typed: values are coerced to text like the rest of the pipeline, so
# a 422 from this API only ever means a note format failure.
class GenerateRequest(BaseModel):
    patientLabel: Any = None
    userText: Any = None
    discipline: Any = Field(default="PT")


class GenerateResponse(BaseModel):
    summary: str
    debug: Optional[Dict[str, str]] = None


class CleanRequest(BaseModel):
    text: Any = ""


class CleanResponse(BaseModel):
    cleaned: str


# =============================================================================
# STAGE 2: APPLICATION
# =============================================================================

app = FastAPI(title="Visit Note Generation API", version=__version__)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def _malformed_body(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": "Request body must be a JSON object."})


_pipeline_lock = threading.Lock()


def _get_pipeline(request: Request) -> VisitNotePipeline:
    pipeline = getattr(request.app.state, "pipeline", None)
    if pipeline is not None:
        return pipeline

    with _pipeline_lock:
        pipeline = getattr(request.app.state, "pipeline", None)
        if pipeline is None:
            pipeline = VisitNotePipeline.from_environment()
            request.app.state.pipeline = pipeline
    return pipeline


# =============================================================================
# STAGE 3: ROUTES
# =============================================================================


@app.get("/health")
def health() -> Dict[str, Any]:
    return {"ok": True}


@app.post("/generate", response_model=GenerateResponse, response_model_exclude_none=True)
def generate(payload: GenerateRequest, request: Request) -> Dict[str, Any]:
    if not normalize_spaces(payload.userText):
        raise HTTPException(status_code=400, detail=InputError("userText").message)

    try:
        pipeline = _get_pipeline(request)
        visit_request = VisitRequest.create(
            user_text=payload.userText,
            patient_label=payload.patientLabel,
            discipline=payload.discipline,
            default_label=pipeline.config.default_patient_label,
        )
        note = pipeline.generate_visit_note(visit_request)
    except NoteValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.to_detail()) from exc
    except Exception as exc:
        logger.error(f"/generate failed | {exc}")
        raise HTTPException(
            status_code=500, detail={"error": "Generate failed.", "details": str(exc)}
        ) from exc

    return note.to_response()


@app.post("/clean", response_model=CleanResponse)
def clean(payload: CleanRequest, request: Request) -> Dict[str, Any]:
    try:
        cleaned = _get_pipeline(request).clean_text(str(payload.text or ""))
    except Exception as exc:
        logger.error(f"/clean failed | {exc}")
        raise HTTPException(
            status_code=500, detail={"error": "Clean failed.", "details": str(exc)}
        ) from exc

    return {"cleaned": cleaned}


# =============================================================================
# STAGE 4: SERVER ENTRY POINT
# =============================================================================


def serve(env_file: Optional[str] = None, host: str = "0.0.0.0") -> None:
    """Build the pipeline from the environment and serve on config.port."""
    config = PipelineConfiguration.from_environment(env_file=env_file)
    app.state.pipeline = VisitNotePipeline(config)

    logger.info(f"Serving visit note API | Port: {config.port} | Model: {config.active_model}")
    uvicorn.run(app, host=host, port=config.port, log_level=config.log_level.lower())

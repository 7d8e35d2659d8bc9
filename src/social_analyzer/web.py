import json
import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from fastapi import Depends, FastAPI, File, Form, UploadFile
from fastapi.responses import JSONResponse, Response

from .config import get_settings
from .document import load_upload
from .errors import ErrorKind, PipelineError
from .extractors import pdf_capability
from .pipeline import SuggestionPipeline
from .suggestions import SuggestionClient

logger = logging.getLogger(__name__)

# File size limit: 10MB
MAX_FILE_SIZE = 10 * 1024 * 1024

ERROR_STATUS = {
    ErrorKind.UNSUPPORTED_FORMAT: 400,
    ErrorKind.DECODE_FAILED: 400,
    ErrorKind.EXTRACTION_FAILED: 400,
    ErrorKind.INSUFFICIENT_TEXT: 400,
    ErrorKind.DEPENDENCY_NOT_READY: 503,
    ErrorKind.MISSING_CREDENTIAL: 500,
    ErrorKind.SERVICE_ERROR: 502,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    await pdf_capability.initialize()
    yield


app = FastAPI(title="Social Media Content Analyzer", lifespan=lifespan)


def get_pipeline() -> SuggestionPipeline:
    return SuggestionPipeline.from_settings(pdf=pdf_capability)


def _error_response(status_code: int, error: str, error_type: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "error_type": error_type},
    )


@app.get("/health")
async def health():
    return {"status": "ok", "pdf": pdf_capability.state.value}


@app.post("/api/analyze")
async def api_analyze(
    file: UploadFile = File(...),
    model: Optional[str] = Form(None),
    pipeline: SuggestionPipeline = Depends(get_pipeline),
):
    """Extract the upload's text and return engagement suggestions as JSON."""
    start_time = time.time()

    document = await load_upload(file)
    if document.size > MAX_FILE_SIZE:
        return _error_response(
            400,
            f"File is too large ({document.size / 1024 / 1024:.1f}MB). "
            f"The limit is {MAX_FILE_SIZE / 1024 / 1024:.0f}MB.",
            "file_too_large",
        )

    if model:
        settings = get_settings()
        pipeline.client = SuggestionClient(
            base_url=settings.base_url,
            model=model,
            timeout_seconds=settings.timeout_seconds,
        )

    try:
        result = await pipeline.run(document)
    except PipelineError as exc:
        return _error_response(ERROR_STATUS[exc.kind], exc.message, exc.kind.value)

    processing_time = time.time() - start_time
    logger.info("Analyzed %r in %.1fs", document.name, processing_time)
    return {
        "success": True,
        "filename": document.name,
        "file_size": f"{document.size / 1024:.1f}",
        "extracted_text": result.extracted_text,
        "suggestions": result.to_list(),
        "suggestions_json": result.suggestions_json(),
        "tier": result.tier.value,
        "model": pipeline.client.model,
        "processing_time": f"{processing_time:.1f}",
    }


@app.post("/api/download")
async def api_download(
    suggestions: str = Form(...),
    filename: Optional[str] = Form(None),
):
    """Return previously generated suggestions as a downloadable .json file."""
    try:
        data = json.loads(suggestions)
    except ValueError:
        return _error_response(
            400, "Suggestions must be valid JSON.", "invalid_suggestions"
        )

    name = Path(filename).name if filename else "tips"
    body = json.dumps(data, ensure_ascii=False, indent=2).encode("utf-8")
    return Response(
        content=body,
        media_type="application/json",
        headers={"Content-Disposition": content_disposition(f"{name}.tips.json")},
    )


def content_disposition(filename: str) -> str:
    """Attachment header in the form Starlette's FileResponse writes it."""
    quoted = quote(filename)
    if quoted != filename:
        return f"attachment; filename*=utf-8''{quoted}"
    return f'attachment; filename="{filename}"'

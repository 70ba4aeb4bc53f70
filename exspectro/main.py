import asyncio
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict

import uvicorn
from fastapi import FastAPI, File, HTTPException, UploadFile

from . import config
from .models import HealthResponse, QualityReportResponse
from .quality import analyze_track_quality

logger = logging.getLogger("exspectro")

_SPOOL_CHUNK_BYTES = 1024 * 1024

if config.QUALITY_ANALYSIS_DEBUG:
    logging.basicConfig(level=logging.INFO)

app = FastAPI(title="exspectro quality analyzer")


@app.get("/health", response_model=HealthResponse)
async def health():
    """Lightweight health endpoint for uptime checks.

    Does not touch ffmpeg or the numeric engine.
    """

    return HealthResponse(status="ok", quality_analysis_enabled=config.ENABLE_QUALITY_ANALYSIS)


def _spool_upload(file: UploadFile) -> Path:
    """Copy the upload to a temp file ffmpeg can seek in; enforce the size cap."""

    suffix = Path(file.filename or "upload").suffix or ".bin"
    fd, tmp_name = tempfile.mkstemp(prefix="exspectro-", suffix=suffix)
    tmp_path = Path(tmp_name)
    try:
        written = 0
        with os.fdopen(fd, "wb") as out:
            while True:
                chunk = file.file.read(_SPOOL_CHUNK_BYTES)
                if not chunk:
                    break
                written += len(chunk)
                if written > config.MAX_UPLOAD_BYTES:
                    raise HTTPException(
                        status_code=413,
                        detail={"error": "FILE_TOO_LARGE", "max_bytes": config.MAX_UPLOAD_BYTES},
                    )
                out.write(chunk)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    return tmp_path


@app.post("/analyze", response_model=QualityReportResponse)
async def analyze(file: UploadFile = File(...)):
    """Decode the uploaded track and return its quality report.

    The analysis is CPU bound, so it runs in a worker thread to keep the event
    loop free for other requests.
    """

    if not config.ENABLE_QUALITY_ANALYSIS:
        raise HTTPException(
            status_code=503,
            detail={"error": "QUALITY_ANALYSIS_DISABLED", "message": "quality analysis is turned off"},
        )

    tmp_path = await asyncio.to_thread(_spool_upload, file)
    try:
        report = await asyncio.to_thread(analyze_track_quality, tmp_path)
    except Exception as exc:
        logger.exception("[QUALITY] analysis failed for %s: %s", file.filename, exc)
        detail: Dict[str, Any] = {"error": "ANALYSIS_FAILED", "message": str(exc)}
        raise HTTPException(status_code=500, detail=detail) from exc
    finally:
        tmp_path.unlink(missing_ok=True)

    if report is None:
        raise HTTPException(
            status_code=422,
            detail={"error": "UNDECODABLE_AUDIO", "message": f"could not decode {file.filename}"},
        )

    return QualityReportResponse.from_report(report)


def run():
    """Serve the API with uvicorn (``exspectro`` console script)."""
    uvicorn.run(
        app,
        host=config.HOST,
        port=config.PORT,
        log_level="info",
    )


if __name__ == "__main__":
    run()

import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from proofing_api.config import load_settings
from proofing_api.errors import ProofingError
from proofing_api.models import AnalyzeRequest, RewriteRequest, RewriteResponse
from proofing_api.services.proofreader import run_analysis, run_rewrite

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
LOGGER = logging.getLogger(__name__)

app = FastAPI()

# Any origin may call the API; the editor front end is hosted separately
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET", "OPTIONS", "PATCH", "DELETE", "POST", "PUT"],
    allow_headers=[
        "X-CSRF-Token", "X-Requested-With", "Accept", "Accept-Version", "Content-Length",
        "Content-MD5", "Content-Type", "Date", "X-Api-Version",
    ],
)

@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    """Malformed bodies are a client error, reported with the same shape as every other error."""
    return JSONResponse(status_code=400, content={"error": "リクエストの形式が正しくありません", "details": str(exc.errors())})

def _failure(label: str, e: Exception) -> JSONResponse:
    if isinstance(e, ProofingError):
        LOGGER.error("%s failed: %s", label, e.message)
        return JSONResponse(status_code=500, content=e.to_payload())
    LOGGER.exception("%s failed unexpectedly", label)
    return JSONResponse(status_code=500, content={"error": str(e)})

@app.options("/api/{path:path}")
def preflight(path: str):
    """Answer bare OPTIONS requests; CORSMiddleware only intercepts real preflights."""
    return Response(status_code=200)

@app.get("/api/health")
def health():
    """Simple health check endpoint for deployment verification."""
    return {"status": "ok"}

@app.post("/api/analyze")
def analyze(request: AnalyzeRequest):
    """
    Proofread a manuscript.

    Returns every category key, each with a possibly empty list of findings.
    Unreachable links found by direct probing are merged into linkCheck.
    """
    if not request.text or not request.text.strip():
        return JSONResponse(status_code=400, content={"error": "テキストが必要です"})

    try:
        report = run_analysis(request.text, load_settings())
        return report.model_dump()
    except Exception as e:
        return _failure("Analysis", e)

@app.post("/api/rewrite")
def rewrite(request: RewriteRequest):
    """Expand previously returned findings into several alternative corrections each."""
    if not request.items:
        return JSONResponse(status_code=400, content={"error": "修正項目が必要です"})

    try:
        results = run_rewrite(request.items, load_settings())
        return RewriteResponse(results=results).model_dump()
    except Exception as e:
        return _failure("Rewrite", e)

from contextlib import asynccontextmanager
from typing import Annotated

import structlog
from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from canva_bridge.config import configure_logging, settings
from canva_bridge.errors import BridgeError, UpstreamError
from canva_bridge.ledger import CreditLedger
from canva_bridge.mcp import McpClient, build_payload, extract_design_id, extract_design_url
from canva_bridge.registry import JobRegistry
from canva_bridge.schemas import (
    CreditsResponse,
    GenerateRequest,
    GenerateResponse,
    JobStatusResponse,
    LedgerEntryResponse,
    LedgerResponse,
    MessageResponse,
    QueueResponse,
)

configure_logging(settings)
logger = structlog.get_logger()


def build_registry() -> JobRegistry:
    ledger = CreditLedger(
        initial=settings.initial_credits,
        bundle_size=settings.credits_in_bundle,
        history=settings.ledger_history,
    )
    return JobRegistry(ledger, delay_sec=settings.job_delay_sec)


def build_mcp_client() -> McpClient:
    return McpClient(
        base_url=settings.backend_url,
        api_token=settings.mcp_api_token,
        timeout_sec=settings.generate_timeout_sec,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("app.startup", backend_url=app.state.mcp.base_url, port=settings.port)
    yield
    app.state.registry.shutdown()
    logger.info("app.shutdown")


app = FastAPI(title="Canva Bridge", version=settings.app_version, lifespan=lifespan)
app.state.registry = build_registry()
app.state.mcp = build_mcp_client()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_registry(request: Request) -> JobRegistry:
    return request.app.state.registry


def get_mcp(request: Request) -> McpClient:
    return request.app.state.mcp


Registry = Annotated[JobRegistry, Depends(get_registry)]
Mcp = Annotated[McpClient, Depends(get_mcp)]


@app.exception_handler(UpstreamError)
async def upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message, "details": exc.details},
    )


@app.exception_handler(BridgeError)
async def bridge_error_handler(request: Request, exc: BridgeError) -> JSONResponse:
    logger.warning("request.rejected", path=request.url.path, status=exc.status_code, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("request.invalid", path=request.url.path, errors=jsonable_errors(exc))
    return JSONResponse(status_code=400, content={"error": "Invalid request", "details": jsonable_errors(exc)})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("request.failed", path=request.url.path, error=str(exc), exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal Server Error"})


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [{"loc": list(err.get("loc", ())), "msg": err.get("msg", "")} for err in exc.errors()]


@app.get("/", response_class=PlainTextResponse)
def root() -> str:
    return "Canva backend API is running!"


@app.get("/health")
async def health(registry: Registry) -> dict:
    return {"status": "ok", "service": "canva-bridge", "jobs": registry.counts()}


@app.get("/version")
def version() -> dict:
    return {"service": "canva-bridge", "version": settings.app_version}


@app.get("/api/credits")
async def get_credits(registry: Registry) -> CreditsResponse:
    return CreditsResponse(credits=registry.ledger.balance)


@app.get("/api/credits/ledger")
async def get_credit_ledger(registry: Registry, limit: int = Query(20, ge=1, le=500)) -> LedgerResponse:
    entries = [LedgerEntryResponse(**e.to_dict()) for e in registry.ledger.recent(limit)]
    return LedgerResponse(credits=registry.ledger.balance, entries=entries)


@app.post("/api/purchase-credits")
async def purchase_credits(registry: Registry) -> CreditsResponse:
    return CreditsResponse(credits=registry.ledger.purchase())


@app.get("/api/queue-image-generation")
async def queue_image_generation(registry: Registry, prompt: str | None = None) -> QueueResponse:
    return QueueResponse(jobId=registry.enqueue(prompt))


@app.get("/api/job-status", response_model_exclude_none=True)
async def job_status(registry: Registry, job_id: str | None = Query(None, alias="jobId")) -> JobStatusResponse:
    return registry.status(job_id)


@app.post("/api/job-status/cancel")
async def cancel_job(registry: Registry, job_id: str | None = Query(None, alias="jobId")) -> MessageResponse:
    registry.cancel(job_id)
    return MessageResponse(message="Job successfully cancelled")


@app.post("/generate")
async def generate(body: GenerateRequest, mcp: Mcp) -> GenerateResponse:
    payload = build_payload(body)
    logger.info("generate.requested", payload=payload)

    data = await mcp.generate_template(payload)
    design_url = extract_design_url(data) or settings.placeholder_design_url
    logger.info("generate.completed", design_url=design_url)
    return GenerateResponse(
        success=True,
        message="Design created successfully in Canva.",
        url=design_url,
        design_url=design_url,
        design_id=extract_design_id(data),
        raw_response=data,
    )

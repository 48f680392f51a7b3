import os
import time
import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import DEFAULT_CORS_ORIGINS, Settings, split_csv
from .deps import extract_bearer_token
from .gateway import Gateway, GatewayError, GatewayUnavailable
from .jsonlog import json_log
from .routers.system import OPERATION_ROUTERS, router as system_router
from .security import peek_token_subject

SERVICE_NAME = "posgate"
STARTED_AT_UTC = datetime.now(timezone.utc)

# Statuses whose framework-generated detail is replaced by a fixed message.
_FIXED_MESSAGES = {
    404: "Not found.",
    405: "Method not allowed.",
}


def _current_request_id(req: Request) -> str:
    return getattr(req.state, "request_id", "") or req.headers.get("x-request-id") or "startup"


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    def _http_exception(_req: Request, exc: StarletteHTTPException):
        message = _FIXED_MESSAGES.get(exc.status_code) or str(exc.detail or "Request failed.")
        return JSONResponse(status_code=exc.status_code, content={"error": message}, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    def _request_validation_error(_req: Request, _exc: Exception):
        return JSONResponse(status_code=400, content={"error": "Invalid request."})

    @app.exception_handler(GatewayUnavailable)
    def _gateway_unavailable(req: Request, exc: Exception):
        json_log("error", "gateway.unavailable", request_id=_current_request_id(req), path=req.url.path, error=str(exc))
        return JSONResponse(status_code=500, content={"error": "Upstream service unavailable."})

    @app.exception_handler(Exception)
    def _unhandled_exception(req: Request, exc: Exception):
        rid = _current_request_id(req)
        json_log(
            "error",
            "http.request.unhandled",
            request_id=rid,
            method=req.method,
            path=req.url.path,
            error=str(exc),
        )
        content = {"error": "Unexpected server error.", "request_id": rid}
        settings = getattr(req.app.state, "settings", None)
        if settings is not None and settings.exposes_error_detail:
            content["detail"] = str(exc)
        return JSONResponse(status_code=500, content=content)


def _install_request_logging(app: FastAPI) -> None:
    # Correlation id + basic structured request logging.
    @app.middleware("http")
    async def _request_logging(request: Request, call_next):
        rid = (request.headers.get("X-Request-Id") or "").strip() or uuid.uuid4().hex
        request.state.request_id = rid
        started = time.time()
        path = request.url.path
        method = request.method
        token = extract_bearer_token(request.headers)
        # Unverified; attribution only.
        subject = peek_token_subject(token) if token else None

        try:
            response = await call_next(request)
        except Exception as exc:
            dur_ms = int((time.time() - started) * 1000)
            json_log(
                "error",
                "http.request.error",
                request_id=rid,
                method=method,
                path=path,
                subject=subject,
                duration_ms=dur_ms,
                error=str(exc),
            )
            raise

        response.headers["X-Request-Id"] = rid
        response.headers["X-Content-Type-Options"] = "nosniff"
        if not path.startswith("/health"):
            dur_ms = int((time.time() - started) * 1000)
            json_log(
                "info",
                "http.request",
                request_id=rid,
                method=method,
                path=path,
                status_code=response.status_code,
                subject=subject,
                duration_ms=dur_ms,
            )
        return response


def _install_health_routes(app: FastAPI) -> None:
    def _gateway_health(req: Request):
        try:
            req.app.state.gateway.health()
            return True, None
        except (GatewayError, GatewayUnavailable) as exc:
            return False, str(exc)

    @app.get("/health")
    def health(req: Request):
        settings = req.app.state.settings
        request_id = _current_request_id(req)
        ok, err = _gateway_health(req)
        content = {
            "status": "ok" if ok else "degraded",
            "env": settings.env,
            "gateway": "ok" if ok else "down",
            "service": SERVICE_NAME,
            "version": settings.api_version,
            "started_at": STARTED_AT_UTC.isoformat(),
            "request_id": request_id,
        }
        if not ok:
            if settings.exposes_error_detail:
                content["detail"] = err
            return JSONResponse(status_code=503, content=content)
        return content

    @app.get("/health/live")
    def health_live(req: Request):
        return {
            "status": "ok",
            "env": req.app.state.settings.env,
            "service": SERVICE_NAME,
            "request_id": _current_request_id(req),
        }

    @app.get("/meta")
    def meta(req: Request):
        settings = req.app.state.settings
        return {
            "service": SERVICE_NAME,
            "version": settings.api_version,
            "env": settings.env,
            "uptime_seconds": int((datetime.now(timezone.utc) - STARTED_AT_UTC).total_seconds()),
            "started_at": STARTED_AT_UTC.isoformat(),
        }


def create_app(settings: Optional[Settings] = None, gateway: Optional[Gateway] = None) -> FastAPI:
    """
    Build the API. Without explicit settings they are read from the environment
    on startup, and a missing gateway variable aborts startup.
    """
    app = FastAPI(title="POS Gateway API", version=settings.api_version if settings else "0.1.0")

    def _configure(s: Settings) -> None:
        app.state.settings = s
        app.state.gateway = gateway or Gateway(s)

    if settings is not None:
        _configure(settings)
    else:
        @app.on_event("startup")
        def _startup():
            s = Settings.from_env()
            _configure(s)
            json_log("info", "startup.configured", env=s.env, version=s.api_version, gateway_url=s.gateway_url)

    _install_error_handlers(app)
    _install_request_logging(app)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins if settings else split_csv(os.getenv("CORS_ORIGINS", ""), default=DEFAULT_CORS_ORIGINS),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    for op_router in OPERATION_ROUTERS:
        app.include_router(op_router)
    app.include_router(system_router)
    _install_health_routes(app)
    return app


app = create_app()

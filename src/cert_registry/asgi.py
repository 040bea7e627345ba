"""
FastAPI + Uvicorn ASGI application — the certificate registry HTTP API.

Architecture:
  - FastAPI: routes, multipart upload, request body validation
  - Uvicorn: production ASGI server (handles signals, graceful shutdown)
  - AppContext on app.state: built and started in the lifespan, stopped on shutdown

Every certificate route requires `Authorization: Bearer <token>`; the
token is resolved to a CallerContext and the route's privilege is enforced
before the service is called. Failures are rendered through
railway.http_support as {"error_code", "message", "timestamp"}.

Entry point for production: uvicorn cert_registry.asgi:app --host 0.0.0.0 --port 3220
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import fields, is_dataclass
from typing import Annotated, Any

import structlog
from fastapi import Depends, FastAPI, File, Form, Header, Query, Request, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field
from railway import ErrorCode, FailureDescription
from railway.http_support import build_error_response, build_fastapi_response
from railway.result import Result

from cert_registry import __version__
from cert_registry.config import AppSettings
from cert_registry.context import AppContext, build_context, start_context, stop_context
from cert_registry.domain.models import CallerContext, CertificateRequest
from cert_registry.domain.privileges import CertificatePrivilege
from cert_registry.main import configure_structlog

log = structlog.get_logger()


class FailureRaised(Exception):
    """Carries a failure out of a dependency; rendered by the app's exception handler."""

    def __init__(self, failure: FailureDescription) -> None:
        super().__init__(failure.message)
        self.failure = failure


class CertificateIdsBody(BaseModel):
    certificate_ids: list[str] = Field(alias="certificateIds", min_length=1)


# ─────────────────────── JSON rendering ───────────────────────


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def to_json(value: Any) -> Any:
    """Render domain dataclasses as camelCase JSON-compatible structures."""
    if is_dataclass(value) and not isinstance(value, type):
        body = {_camel(f.name): to_json(getattr(value, f.name)) for f in fields(value)}
        if isinstance(value, CertificateRequest):
            body["approved"] = value.approved
            body["rejected"] = value.rejected
        return body
    if isinstance(value, list | tuple):
        return [to_json(item) for item in value]
    if isinstance(value, dict):
        return {key: to_json(item) for key, item in value.items()}
    return jsonable_encoder(value)


def respond(result: Result[Any], success_status: int = 200) -> JSONResponse:
    return build_fastapi_response(result.map(to_json), success_status)


# ─────────────────────── Dependencies ───────────────────────


def get_context(request: Request) -> AppContext:
    context: AppContext | None = getattr(request.app.state, "context", None)
    if context is None:
        raise FailureRaised(
            FailureDescription(ErrorCode.TECHNICAL_ERROR, "Service is not started")
        )
    return context


def _bearer_token(authorization: str | None) -> Result[str]:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return Result.failure(ErrorCode.AUTHENTICATION_ERROR, "Bearer token is required")
    return Result.success(token.strip())


def require(privilege: CertificatePrivilege) -> Callable[..., CallerContext]:
    """Dependency factory: authenticate the caller and enforce one privilege."""

    def dependency(
        context: Annotated[AppContext, Depends(get_context)],
        authorization: Annotated[str | None, Header()] = None,
    ) -> CallerContext:
        result = (
            _bearer_token(authorization)
            .flat_map(context.callers.resolve)
            .ensure(
                lambda caller: caller.has_privilege(privilege),
                ErrorCode.AUTHORIZATION_ERROR,
                f"Missing privilege {privilege.value}",
            )
        )
        return result.either(
            on_success=lambda caller: caller,
            on_failure=_raise,
        )

    return dependency


def _raise(failure: FailureDescription) -> CallerContext:
    log.info("asgi.caller_refused", code=failure.code.value, reason=failure.message)
    raise FailureRaised(failure)


ContextDep = Annotated[AppContext, Depends(get_context)]
Viewer = Annotated[CallerContext, Depends(require(CertificatePrivilege.VIEW_CERTIFICATES))]
Creator = Annotated[CallerContext, Depends(require(CertificatePrivilege.CREATE_CERTIFICATE_REQUEST))]
Approver = Annotated[CallerContext, Depends(require(CertificatePrivilege.APPROVE_CERTIFICATE_REQUEST))]
Rejecter = Annotated[CallerContext, Depends(require(CertificatePrivilege.REJECT_CERTIFICATE_REQUEST))]


# ─────────────────────── Application factory ───────────────────────


def _context_from_environment() -> AppContext:
    try:
        settings = AppSettings()
    except Exception as e:
        log.error("asgi.startup_error", error=f"Configuration error: {e}")
        raise
    configure_structlog(settings.log_level)
    return build_context(settings)


def create_app(context: AppContext | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    With no `context` the lifespan loads AppSettings from the environment
    and builds one; tests pass a ready-made context instead.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("asgi.startup", version=__version__)
        active = context or _context_from_environment()
        started = start_context(active)
        if started.is_failure():
            raise RuntimeError(f"Startup failed: {started.error().message}")
        app.state.context = active
        log.info("asgi.startup_complete")

        yield  # ← App is running here; Uvicorn handles requests

        log.info("asgi.shutdown", reason="SIGTERM or server stop")
        stop_context(active)
        log.info("asgi.shutdown_complete")

    app = FastAPI(
        title="cert-registry",
        description="Participant certificate registry with maker-checker approval",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.context = context
    app.add_exception_handler(FailureRaised, _failure_handler)
    app.add_exception_handler(RequestValidationError, _validation_handler)
    _register_routes(app)
    return app


async def _failure_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, FailureRaised)
    return build_error_response(exc.failure)


async def _validation_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, RequestValidationError)
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'][1:]) or 'body'}: {error['msg']}"
        for error in exc.errors()
    )
    return build_error_response(
        FailureDescription(ErrorCode.VALIDATION_ERROR, f"Invalid request: {problems}")
    )


# ─────────────────────── Routes ───────────────────────


def _register_routes(app: FastAPI) -> None:
    @app.get("/health")
    def health(request: Request) -> JSONResponse:
        """Liveness probe — 200 once the context is started, 503 otherwise."""
        context: AppContext | None = getattr(request.app.state, "context", None)
        if context is None or not context.running:
            return JSONResponse(status_code=503, content={"status": "unhealthy"})
        return JSONResponse(status_code=200, content={"status": "healthy"})

    @app.get("/info")
    def info(request: Request) -> dict[str, Any]:
        context: AppContext | None = getattr(request.app.state, "context", None)
        started_at = context.started_at if context is not None else None
        return {
            "name": "cert-registry",
            "version": __version__,
            "started_at": started_at.isoformat() if started_at else None,
        }

    @app.get("/certs")
    def list_certificates(context: ContextDep, caller: Viewer) -> JSONResponse:
        return respond(context.service.list_certificates())

    @app.get("/certs/public-keys")
    def list_public_keys(context: ContextDep, caller: Viewer) -> JSONResponse:
        return respond(context.service.list_public_keys())

    @app.get("/certs/requests")
    def list_requests(
        context: ContextDep,
        caller: Viewer,
        participant_id: Annotated[str | None, Query(alias="participantId")] = None,
    ) -> JSONResponse:
        return respond(context.service.list_requests(participant_id))

    @app.get("/certs/requests/pending")
    def list_pending_requests(context: ContextDep, caller: Viewer) -> JSONResponse:
        return respond(context.service.list_pending_requests())

    @app.get("/certs/download/{certificate_id}", response_model=None)
    def download_public_key(
        certificate_id: str, context: ContextDep, caller: Viewer
    ) -> Response:
        """The participant's approved public key as a PEM file attachment."""
        return context.service.get_certificate_by_id(certificate_id).either(
            on_success=lambda cert: Response(
                content=cert.public_key,
                media_type="application/x-pem-file",
                headers={
                    "Content-Disposition": f'attachment; filename="{cert.participant_id}.pem"'
                },
            ),
            on_failure=build_error_response,
        )

    @app.get("/certs/{participant_id}")
    def get_certificate(participant_id: str, context: ContextDep, caller: Viewer) -> JSONResponse:
        return respond(context.service.get_certificate(participant_id))

    @app.post("/certs/file")
    def submit_request(
        context: ContextDep,
        caller: Creator,
        participant_id: Annotated[str | None, Form(alias="participantId")] = None,
        cert: Annotated[UploadFile | None, File()] = None,
        description: Annotated[str | None, Form()] = None,
    ) -> JSONResponse:
        """Upload a PEM certificate as `<participantId>.(cer|crt|pem)`; 201 with the new request id."""
        if cert is None:
            return build_error_response(
                FailureDescription(ErrorCode.VALIDATION_ERROR, "No file uploaded")
            )
        pem = Result.from_computation(
            lambda: cert.file.read().decode("utf-8"),
            ErrorCode.VALIDATION_ERROR,
            "Invalid certificate data",
        )
        result = pem.flat_map(
            lambda text: context.service.submit_request(
                participant_id or "",
                text,
                created_by=caller.username,
                filename=cert.filename or "",
                description=description,
            )
        )
        return respond(result.map(lambda request_id: {"id": request_id}), success_status=201)

    @app.post("/certs/bulkapprove")
    def bulk_approve(body: CertificateIdsBody, context: ContextDep, caller: Approver) -> JSONResponse:
        return respond(context.service.bulk_approve(body.certificate_ids, caller.username))

    @app.post("/certs/bulkreject")
    def bulk_reject(body: CertificateIdsBody, context: ContextDep, caller: Rejecter) -> JSONResponse:
        return respond(context.service.bulk_reject(body.certificate_ids, caller.username))

    @app.post("/certs/{request_id}/approve")
    def approve(request_id: str, context: ContextDep, caller: Approver) -> JSONResponse:
        return respond(context.service.approve(request_id, caller.username))

    @app.post("/certs/{request_id}/reject")
    def reject(request_id: str, context: ContextDep, caller: Rejecter) -> JSONResponse:
        return respond(context.service.reject(request_id, caller.username))


# ─────────────────────── Default application ───────────────────────

app = create_app()

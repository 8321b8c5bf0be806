"""HTTP middleware: rate limit, authentication, audit trail, JSON-only POST.

Order per request (outermost first):

    rate_limit_request    -> 429 once the shared request budget is spent
    authenticate_request  -> request.state.user_id (None when anonymous)
    audit_request         -> record_attempt, run the endpoint, record_outcome
    require_json_post     -> 415 for POST bodies that are not JSON

Authentication never rejects a request by itself; endpoints that need a
user raise AuthenticationError. Failed logins are logged as AUTH_DENY lines
with masked identifiers.

The two layers outside the audit step record their own rejections, so every
request leaves exactly one audit entry.
"""

import logging

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse, Response
from fastapi.security import HTTPBasic

from natter.api.dependencies import get_audit_log, get_session_factory
from natter.errors import (
    AuditWriteError,
    AuthenticationError,
    NatterError,
    TooManyRequestsError,
    UnsupportedMediaTypeError,
)
from natter.services.users import UserService

logger = logging.getLogger("natter.security")

_basic = HTTPBasic(auto_error=False)

WWW_AUTHENTICATE = 'Basic realm="/", charset="UTF-8"'
RETRY_AFTER_SECONDS = "2"
RATE_LIMIT_KEY = "natter"
RATE_LIMIT_EXEMPT_PATHS = frozenset({"/health"})


def natter_error_response(exc: NatterError) -> JSONResponse:
    headers = None
    if isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": WWW_AUTHENTICATE}
    elif isinstance(exc, TooManyRequestsError):
        headers = {"Retry-After": RETRY_AFTER_SECONDS}
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
        headers=headers,
    )


def rate_limit_key(request: Request) -> str:
    """One budget for the whole API, not per client."""
    return RATE_LIMIT_KEY


def _mask_user_id(user_id: str | None) -> str:
    value = (user_id or "").strip()
    if not value:
        return "-"
    if len(value) <= 8:
        return value
    return f"{value[:4]}...{value[-4:]}"


def _log_auth_failure(request: Request, reason: str, claimed_user_id: str | None = None) -> None:
    client = request.client
    logger.warning(
        "AUTH_DENY reason=%s method=%s path=%s ip=%s claimed=%s",
        reason,
        request.method,
        request.url.path,
        client.host if client else "-",
        _mask_user_id(claimed_user_id),
    )


async def _reject(request: Request, exc: NatterError) -> Response:
    """Answer with ``exc`` from outside audit_request, auditing it first."""
    audit = get_audit_log(request)
    try:
        handle = await audit.record_attempt(
            request.method, request.url.path, getattr(request.state, "user_id", None),
        )
        await audit.record_outcome(handle, exc.status_code)
    except AuditWriteError as audit_exc:
        return natter_error_response(audit_exc)
    return natter_error_response(exc)


async def rate_limit_request(request: Request, call_next) -> Response:
    limiter = request.app.state.limiter
    if not limiter.enabled or request.url.path in RATE_LIMIT_EXEMPT_PATHS:
        return await call_next(request)
    if not limiter.limiter.hit(request.app.state.rate_limit, rate_limit_key(request)):
        logger.warning("RATE_LIMITED method=%s path=%s", request.method, request.url.path)
        return await _reject(request, TooManyRequestsError("too many requests"))
    return await call_next(request)


async def authenticate_request(request: Request, call_next) -> Response:
    request.state.user_id = None
    try:
        credentials = await _basic(request)
    except HTTPException:
        _log_auth_failure(request, "malformed_credentials")
        credentials = None

    if credentials is not None:
        users = UserService(get_session_factory(request))
        try:
            request.state.user_id = await users.authenticate(
                credentials.username, credentials.password,
            )
        except AuthenticationError:
            _log_auth_failure(request, "invalid_credentials", credentials.username)
        except NatterError as exc:
            return await _reject(request, exc)

    return await call_next(request)


async def audit_request(request: Request, call_next) -> Response:
    audit = get_audit_log(request)
    try:
        handle = await audit.record_attempt(
            request.method, request.url.path, request.state.user_id,
        )
    except AuditWriteError as exc:
        # no trail, no operation
        return natter_error_response(exc)

    try:
        response = await call_next(request)
    except Exception:
        try:
            await audit.record_outcome(handle, 500)
        except AuditWriteError:
            logger.error("AUDIT_OUTCOME_LOST audit_id=%s", handle.audit_id)
        raise

    try:
        await audit.record_outcome(handle, response.status_code)
    except AuditWriteError as exc:
        return natter_error_response(exc)
    return response


async def require_json_post(request: Request, call_next) -> Response:
    if request.method == "POST":
        media_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
        if media_type != "application/json":
            return natter_error_response(
                UnsupportedMediaTypeError("POST bodies must be application/json")
            )
    return await call_next(request)

"""Authentication endpoints: sign-in, refresh rotation, sign-out, password reset."""

from __future__ import annotations

from flask import Blueprint, Response, current_app, request, url_for

from gzclp_api.api.deps import current_user_id, json_response, rate_limit, require_auth, timing
from gzclp_api.core.errors import Unauthorized, problem_response
from gzclp_api.infra.wiring import password_reset_service, session_token_service, token_config
from gzclp_api.schemas import (
    ForgotPasswordSchema,
    LoginSchema,
    MessageSchema,
    ResetPasswordSchema,
    TokenResponseSchema,
)
from gzclp_api.services._shared.base import BaseService
from gzclp_api.services._shared.errors import ExpiredTokenError, InvalidTokenError, ServiceError
from gzclp_api.services.auth.dto import RefreshIn, SignInIn, TokenPairOut
from gzclp_api.services.password_reset.dto import ResetCompleteIn, ResetRequestIn

bp = Blueprint("auth", __name__)

login_schema = LoginSchema()
token_schema = TokenResponseSchema()
forgot_schema = ForgotPasswordSchema()
reset_schema = ResetPasswordSchema()
message_schema = MessageSchema()

RESET_RATE_LIMIT = 5
LOGIN_RATE_LIMIT = 10


# ------------------------------ Cookie helpers -------------------------------


def _cookie_name() -> str:
    return str(current_app.config.get("REFRESH_COOKIE_NAME", "refresh_token"))


def _cookie_path() -> str:
    # Scope the cookie to this blueprint: /api/v1/auth
    return url_for("auth.refresh").rsplit("/", 1)[0]


def _set_refresh_cookie(response: Response, raw_token: str) -> None:
    response.set_cookie(
        _cookie_name(),
        raw_token,
        max_age=int(token_config().refresh_expires.total_seconds()),
        path=_cookie_path(),
        secure=bool(current_app.config.get("REFRESH_COOKIE_SECURE", True)),
        httponly=True,
        samesite="Strict",
    )


def _clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(
        _cookie_name(),
        path=_cookie_path(),
        secure=bool(current_app.config.get("REFRESH_COOKIE_SECURE", True)),
        httponly=True,
        samesite="Strict",
    )


def _token_response(pair: TokenPairOut) -> Response:
    body = {
        "data": token_schema.dump(
            {
                "access_token": pair.access_token,
                "expires_in": int(token_config().access_expires.total_seconds()),
            }
        )
    }
    response = json_response(body)
    _set_refresh_cookie(response, pair.refresh_token)
    response.headers["Cache-Control"] = "no-store"
    return response


def _rejected(exc: ServiceError) -> Response:
    """401 for a refused token, with the stale cookie removed."""
    response = problem_response(BaseService.translate_exceptions(exc))
    _clear_refresh_cookie(response)
    return response


# --------------------------------- Sessions ----------------------------------


@bp.post("/login")
@rate_limit("auth.login", max_requests=LOGIN_RATE_LIMIT)
@timing
def login():
    """Verify credentials, return an access token and set the refresh cookie."""

    data = login_schema.load(request.get_json(silent=True) or {})
    try:
        pair = session_token_service().sign_in(
            SignInIn(email=data["email"], password=data["password"])
        )
    except ServiceError as exc:
        raise BaseService.translate_exceptions(exc) from exc
    return _token_response(pair)


@bp.post("/refresh")
@rate_limit("auth.refresh")
@timing
def refresh():
    """Rotate the refresh cookie and return a new access token."""

    raw = request.cookies.get(_cookie_name())
    if not raw:
        response = problem_response(Unauthorized("Missing refresh token", code="auth_invalid_token"))
        _clear_refresh_cookie(response)
        return response
    try:
        pair = session_token_service().rotate(RefreshIn(refresh_token=raw))
    except (ExpiredTokenError, InvalidTokenError) as exc:
        return _rejected(exc)
    except ServiceError as exc:
        raise BaseService.translate_exceptions(exc) from exc
    return _token_response(pair)


@bp.post("/signout")
@rate_limit("auth.signout")
@timing
def signout():
    """Revoke the presented refresh token (if any) and clear the cookie."""

    raw = request.cookies.get(_cookie_name())
    if raw:
        try:
            session_token_service().revoke(raw)
        except ServiceError as exc:
            raise BaseService.translate_exceptions(exc) from exc
    response = Response(status=204)
    _clear_refresh_cookie(response)
    return response


@bp.post("/signout-all")
@rate_limit("auth.signout_all")
@require_auth
@timing
def signout_all():
    """Revoke every refresh token of the authenticated user."""

    try:
        session_token_service().revoke_all(current_user_id())
    except ServiceError as exc:
        raise BaseService.translate_exceptions(exc) from exc
    response = Response(status=204)
    _clear_refresh_cookie(response)
    return response


# ------------------------------ Password reset -------------------------------


@bp.post("/password/forgot")
@rate_limit("auth.password_forgot", max_requests=RESET_RATE_LIMIT)
@timing
def forgot_password():
    """Start a reset. The answer never reveals whether the address exists."""

    data = forgot_schema.load(request.get_json(silent=True) or {})
    try:
        result = password_reset_service().request_reset(ResetRequestIn(email=data["email"]))
    except ServiceError as exc:
        raise BaseService.translate_exceptions(exc) from exc
    return json_response({"data": message_schema.dump({"message": result.message})}, status=202)


@bp.post("/password/reset")
@rate_limit("auth.password_reset", max_requests=RESET_RATE_LIMIT)
@timing
def reset_password():
    """Redeem a reset token; every session of the user is signed out."""

    data = reset_schema.load(request.get_json(silent=True) or {})
    try:
        password_reset_service().complete_reset(
            ResetCompleteIn(token=data["token"], new_password=data["new_password"])
        )
    except InvalidTokenError as exc:
        return _rejected(exc)
    except ServiceError as exc:
        raise BaseService.translate_exceptions(exc) from exc
    response = Response(status=204)
    _clear_refresh_cookie(response)
    return response

"""Authentication endpoints using the service layer."""

from __future__ import annotations

from flask import Blueprint, request

from solips_auth.api.deps import (
    authenticated_principal,
    empty_response,
    get_auth_service,
    json_body,
    json_response,
    require_auth,
    timing,
)
from solips_auth.schemas import (
    AvailabilitySchema,
    LoginResponseSchema,
    LoginSchema,
    RefreshSchema,
    SignupSchema,
    TokenResponseSchema,
    UserIdQuerySchema,
    UserInfoSchema,
)

bp = Blueprint("auth", __name__)

signup_schema = SignupSchema()
login_schema = LoginSchema()
refresh_schema = RefreshSchema()
user_id_query_schema = UserIdQuerySchema()
user_info_schema = UserInfoSchema()
login_response_schema = LoginResponseSchema()
token_response_schema = TokenResponseSchema()
availability_schema = AvailabilitySchema()


@bp.post("/signup")
@timing
def signup():
    """Register a new user and return its identity."""

    dto = signup_schema.load(json_body())
    user = get_auth_service().signup(dto)
    return json_response(user_info_schema.dump(user), status=201)


@bp.post("/login")
@timing
def login():
    """Authenticate credentials and issue an access/refresh token pair."""

    dto = login_schema.load(json_body())
    result = get_auth_service().login(dto)
    return json_response(login_response_schema.dump(result))


@bp.post("/logout")
@require_auth
@timing
def logout():
    """Clear the caller's stored refresh token."""

    get_auth_service().logout(authenticated_principal().subject)
    return empty_response()


@bp.post("/refresh")
@timing
def refresh():
    """Exchange the stored refresh token for a new access token."""

    dto = refresh_schema.load(json_body())
    result = get_auth_service().refresh_token(dto)
    return json_response(token_response_schema.dump(result))


@bp.get("/check-userid")
@timing
def check_user_id():
    """Report whether a user id is still free."""

    args = user_id_query_schema.load(request.args)
    available = get_auth_service().is_user_id_available(args["user_id"])
    message = "User id is available" if available else "User id is already in use"
    return json_response(availability_schema.dump({"available": available, "message": message}))

"""
FastAPI router for accounts: authentication, self-service and admin.

Routes that start a session return the token in the body and set it as
an HTTP-only ``jwt`` cookie (``Secure`` in production).
"""

from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from tourbook.application.tours.account_service import AccountService
from tourbook.application.tours.dtos import (
    AuthResult,
    ForgotPasswordCommand,
    LoginCommand,
    ResetPasswordCommand,
    SignupCommand,
    UpdatePasswordCommand,
)
from tourbook.core.config import Settings
from tourbook.domain.tours.entities import Account, Role
from tourbook.domain.tours.query import ParamValue
from tourbook.interfaces.tours.auth import LOGGED_OUT, SESSION_COOKIE, protect, restrict_to
from tourbook.interfaces.tours.dependencies import get_account_service, get_settings
from tourbook.interfaces.tours.query_params import query_params
from tourbook.interfaces.tours.responses import envelope, listing
from tourbook.interfaces.tours.schemas import (
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    SignupRequest,
    UpdateMeRequest,
    UpdatePasswordRequest,
    UserUpdateRequest,
)

router = APIRouter(prefix="/users", tags=["users"])

admin_only = restrict_to(Role.ADMIN)

LOGOUT_COOKIE_SECONDS = 10


def send_session(result: AuthResult, settings: Settings, status_code: int = 200) -> JSONResponse:
    """Body with token and user, plus the session cookie."""
    response = JSONResponse(
        status_code=status_code,
        content={
            "status": "success",
            "token": result.token,
            "data": {"user": result.account.to_document()},
        },
    )
    response.set_cookie(
        SESSION_COOKIE,
        result.token,
        expires=datetime.now(timezone.utc) + timedelta(days=settings.jwt_cookie_expires_in_days),
        httponly=True,
        secure=settings.is_production,
    )
    return response


@router.post("/signup", status_code=201, summary="Create an account")
def signup(
    request: SignupRequest,
    http_request: Request,
    settings: Settings = Depends(get_settings),
    service: AccountService = Depends(get_account_service),
) -> JSONResponse:
    result = service.signup(
        SignupCommand(
            name=request.name,
            email=request.email,
            password=request.password,
            account_url=f"{http_request.base_url}me",
        )
    )
    return send_session(result, settings, status_code=201)


@router.post("/login", summary="Log in")
def login(
    request: LoginRequest,
    settings: Settings = Depends(get_settings),
    service: AccountService = Depends(get_account_service),
) -> JSONResponse:
    result = service.login(LoginCommand(email=request.email, password=request.password))
    return send_session(result, settings)


@router.get("/logout", summary="Log out")
def logout(settings: Settings = Depends(get_settings)) -> JSONResponse:
    """Overwrite the session cookie with a short-lived sentinel."""
    response = JSONResponse(content={"status": "success"})
    response.set_cookie(
        SESSION_COOKIE,
        LOGGED_OUT,
        expires=datetime.now(timezone.utc) + timedelta(seconds=LOGOUT_COOKIE_SECONDS),
        httponly=True,
        secure=settings.is_production,
    )
    return response


@router.post("/forgotPassword", summary="Email a password reset link")
def forgot_password(
    request: ForgotPasswordRequest,
    http_request: Request,
    service: AccountService = Depends(get_account_service),
) -> dict:
    service.forgot_password(
        ForgotPasswordCommand(
            email=request.email,
            reset_url=f"{http_request.base_url}api/v1/users/resetPassword/",
        )
    )
    return {"status": "success", "message": "Token sent to email!"}


@router.patch("/resetPassword/{token}", summary="Reset a password with an emailed token")
def reset_password(
    token: str,
    request: ResetPasswordRequest,
    settings: Settings = Depends(get_settings),
    service: AccountService = Depends(get_account_service),
) -> JSONResponse:
    result = service.reset_password(ResetPasswordCommand(token=token, password=request.password))
    return send_session(result, settings)


@router.get("/me", summary="Current account")
def get_me(
    account: Account = Depends(protect),
    service: AccountService = Depends(get_account_service),
) -> dict:
    return envelope(data=service.get_one(account.id))


@router.patch("/updateMyPassword", summary="Change the current password")
def update_my_password(
    request: UpdatePasswordRequest,
    account: Account = Depends(protect),
    settings: Settings = Depends(get_settings),
    service: AccountService = Depends(get_account_service),
) -> JSONResponse:
    result = service.update_password(
        account,
        UpdatePasswordCommand(
            current_password=request.password_current, password=request.new_password
        ),
    )
    return send_session(result, settings)


@router.patch("/updateMe", summary="Update name or email")
def update_me(
    request: UpdateMeRequest,
    account: Account = Depends(protect),
    service: AccountService = Depends(get_account_service),
) -> dict:
    return envelope(user=service.update_me(account, request.to_values()))


@router.delete(
    "/deleteMe", status_code=204, response_class=Response, summary="Deactivate own account"
)
def delete_me(
    account: Account = Depends(protect),
    service: AccountService = Depends(get_account_service),
) -> Response:
    service.delete_me(account)
    return Response(status_code=204)


@router.get("", summary="List accounts", dependencies=[Depends(admin_only)])
def get_all_users(
    params: dict[str, ParamValue] = Depends(query_params),
    service: AccountService = Depends(get_account_service),
) -> dict:
    return listing(service.get_all(params))


@router.get("/{user_id}", summary="Get an account", dependencies=[Depends(admin_only)])
def get_user(
    user_id: str, service: AccountService = Depends(get_account_service)
) -> dict:
    return envelope(data=service.get_one(user_id))


@router.patch("/{user_id}", summary="Update an account", dependencies=[Depends(admin_only)])
def update_user(
    user_id: str,
    request: UserUpdateRequest,
    service: AccountService = Depends(get_account_service),
) -> dict:
    return envelope(data=service.update_one(user_id, request.to_values()))


@router.delete(
    "/{user_id}",
    status_code=204,
    response_class=Response,
    summary="Deactivate an account",
    dependencies=[Depends(admin_only)],
)
def delete_user(
    user_id: str, service: AccountService = Depends(get_account_service)
) -> Response:
    service.delete_one(user_id)
    return Response(status_code=204)

"""
Deskmate Backend — Account Route Handlers
===========================================

What:  Registration, login, current user and account deletion.
How:   Thin handlers: CredentialStore does the work, TokenService signs the
       session token, global exception handlers format every failure.

Endpoints:
    POST   /create-account   (public)  → user + secretToken
    POST   /login            (public)  → secretToken
    GET    /get-user         (bearer)  → user
    DELETE /delete-account   (bearer)  → acknowledgement
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from deskmate.auth import get_credential_store, get_token_service, require_claim
from deskmate.database import get_db_session
from deskmate.exceptions import UnauthorizedError
from deskmate.schemas.account import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    UserEnvelope,
    UserResponse,
)
from deskmate.schemas.common import ErrorResponse, MessageResponse
from deskmate.schemas.token import Claim
from deskmate.services.credential_store import CredentialStore
from deskmate.services.token_service import TokenService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Accounts"])


@router.post(
    "/create-account",
    response_model=RegisterResponse,
    responses={
        400: {"description": "Missing field", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
    },
    summary="Register an account and start a session",
)
async def create_account(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
    credentials: CredentialStore = Depends(get_credential_store),
    tokens: TokenService = Depends(get_token_service),
) -> RegisterResponse:
    """
    Register a new account and return a session token for it.

    The response never includes the password hash.
    """
    account = await credentials.register(
        db,
        username=payload.username,
        email=payload.email,
        password=payload.password,
    )
    return RegisterResponse(
        user=UserResponse.model_validate(account),
        secret_token=tokens.issue(account),
    )


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={400: {"description": "Bad credentials", "model": ErrorResponse}},
    summary="Exchange email and password for a session token",
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
    credentials: CredentialStore = Depends(get_credential_store),
    tokens: TokenService = Depends(get_token_service),
) -> LoginResponse:
    """Every login issues a fresh token; earlier tokens stay valid until they expire."""
    account = await credentials.authenticate(db, payload.email, payload.password)
    logger.info("Account %s logged in", account.id)
    return LoginResponse(email=account.email, secret_token=tokens.issue(account))


@router.get(
    "/get-user",
    response_model=UserEnvelope,
    responses={401: {"description": "Not authenticated", "model": ErrorResponse}},
    summary="Current account",
)
async def get_user(
    claim: Claim = Depends(require_claim),
    db: AsyncSession = Depends(get_db_session),
    credentials: CredentialStore = Depends(get_credential_store),
) -> UserEnvelope:
    """
    Return the caller's account as currently stored.

    The token alone is not enough: if the account was deleted after the
    token was issued, the request is unauthorized.
    """
    account = await credentials.get_account(db, claim.account_id)
    if account is None:
        logger.info("Token for deleted account %s presented to /get-user", claim.account_id)
        raise UnauthorizedError()
    return UserEnvelope(user=UserResponse.model_validate(account))


@router.delete(
    "/delete-account",
    response_model=MessageResponse,
    responses={
        401: {"description": "Not authenticated", "model": ErrorResponse},
        404: {"description": "Account already deleted", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Delete the current account and everything it owns",
)
async def delete_account(
    claim: Claim = Depends(require_claim),
    db: AsyncSession = Depends(get_db_session),
    credentials: CredentialStore = Depends(get_credential_store),
) -> MessageResponse:
    await credentials.delete_account(db, claim.account_id)
    return MessageResponse(message="Account deleted successfully")

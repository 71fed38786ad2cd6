"""
Deskmate Backend — Authentication Gate
========================================

What:  FastAPI dependencies that turn an `Authorization: Bearer <token>`
       header into a verified Claim.
How:   HTTPBearer extracts the token; the TokenService stored on `app.state`
       verifies it. Every TokenError becomes a generic UnauthorizedError, and
       the specific reason is logged only.
Who:   Depended on by every route except registration, login and health.

The gate never touches the database. Handlers that need the account row to
still exist (GET /get-user, resource creation) check it themselves.

Usage:
    @router.get("/get-all-notes")
    async def list_notes(owner_id: UUID = Depends(current_owner)):
        ...
"""

import logging
import uuid
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from deskmate.exceptions import TokenError, UnauthorizedError
from deskmate.schemas.token import Claim
from deskmate.services.credential_store import CredentialStore
from deskmate.services.token_service import TokenService

logger = logging.getLogger(__name__)

# auto_error=False: a missing header reaches require_claim as None and is
# rejected there, through the same path as every other token failure
bearer_scheme = HTTPBearer(auto_error=False)


def get_token_service(request: Request) -> TokenService:
    """The process-wide TokenService built by the app factory."""
    return request.app.state.token_service


def get_credential_store(request: Request) -> CredentialStore:
    """The process-wide CredentialStore built by the app factory."""
    return request.app.state.credential_store


async def require_claim(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    token_service: TokenService = Depends(get_token_service),
) -> Claim:
    """
    Verify the bearer token and attach the caller's identity to the request.

    Returns:
        The verified Claim. `request.state.account_id` is set as a side effect.

    Raises:
        UnauthorizedError: header absent, or the token failed verification
    """
    token = credentials.credentials if credentials else None
    try:
        claim = token_service.verify(token)
    except TokenError as e:
        logger.info(
            "Rejected session token (%s) for %s %s",
            e.reason, request.method, request.url.path,
        )
        raise UnauthorizedError() from e

    request.state.account_id = claim.account_id
    return claim


async def current_owner(claim: Claim = Depends(require_claim)) -> uuid.UUID:
    """Owner id for resource routes: the account id embedded in the claim."""
    return claim.account_id

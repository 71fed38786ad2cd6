"""
Deskmate Backend — Credential Store
=====================================

What:  Persists accounts and checks passwords.
How:   passlib's bcrypt CryptContext hashes and verifies passwords; hashing
       runs in a worker thread so the event loop keeps serving other
       requests. Accounts live in the `accounts` table.
Who:   Used by the account routes (register, login, get-user, delete).

Deleting an account purges its notes, todos and journal units in the same
transaction. Outstanding tokens for the account still verify until they
expire, but they no longer reach any data.
"""

import asyncio
import logging
import secrets
import uuid
from typing import Optional

from passlib.context import CryptContext
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from deskmate.exceptions import (
    DatabaseError,
    DuplicateIdentityError,
    NotFoundError,
    ValidationError,
)
from deskmate.models.account import Account
from deskmate.models.resource import JournalUnit, Note, Todo

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


def normalize_email(email: str) -> str:
    return email.strip().lower()


class CredentialStore:
    """
    Account persistence and password verification.

    Args:
        bcrypt_rounds: bcrypt work factor (log2 rounds), 10 by default
    """

    def __init__(self, bcrypt_rounds: int = 10):
        self.pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=bcrypt_rounds,
        )
        # Checked against on an unknown email so that branch costs one bcrypt verify too
        self._dummy_hash = self.pwd_context.hash(secrets.token_urlsafe(16))

    # ── Passwords ─────────────────────────────────────────────────────────

    async def hash_password(self, raw_password: str) -> str:
        """Salted one-way hash of a password."""
        return await asyncio.to_thread(self.pwd_context.hash, raw_password)

    async def verify_password(self, raw_password: str, stored_hash: str) -> bool:
        """
        Check a password against a stored hash.

        The comparison is passlib's constant-time verify. A hash passlib
        cannot identify verifies as False rather than raising.
        """
        try:
            return await asyncio.to_thread(self.pwd_context.verify, raw_password, stored_hash)
        except ValueError:
            logger.warning("Stored password hash could not be identified")
            return False

    # ── Accounts ──────────────────────────────────────────────────────────

    async def register(
        self,
        db: AsyncSession,
        username: Optional[str],
        email: Optional[str],
        password: Optional[str],
    ) -> Account:
        """
        Create an account.

        Raises:
            ValidationError:        username, email or password missing/empty
            DuplicateIdentityError: email already registered
            DatabaseError:          insert failed for another reason
        """
        if not username or not username.strip():
            raise ValidationError("Please type in your complete name", field="username")
        if not email or not email.strip():
            raise ValidationError("Please type in your E-Mail", field="email")
        if not password:
            raise ValidationError("Please type in your password", field="password")

        identity = normalize_email(email)
        if await self.find_by_identity(db, identity) is not None:
            raise DuplicateIdentityError(context={"email": identity})

        account = Account(
            username=username.strip(),
            email=identity,
            password_hash=await self.hash_password(password),
        )
        try:
            db.add(account)
            await db.flush()
        except IntegrityError as e:
            # Lost a race with a concurrent registration of the same email
            await db.rollback()
            raise DuplicateIdentityError(context={"email": identity}) from e
        except SQLAlchemyError as e:
            logger.error("Database error registering account: %s", str(e))
            raise DatabaseError(
                message="Failed to create account",
                context={"error_type": type(e).__name__},
            ) from e

        logger.info("Registered account %s", account.id)
        return account

    async def find_by_identity(self, db: AsyncSession, email: str) -> Optional[Account]:
        """Look an account up by email. Returns None if there is none."""
        try:
            result = await db.execute(
                select(Account).where(Account.email == normalize_email(email))
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error looking up account: %s", str(e))
            raise DatabaseError(context={"error_type": type(e).__name__}) from e

    async def get_account(self, db: AsyncSession, account_id: uuid.UUID) -> Optional[Account]:
        """Look an account up by id. Returns None if there is none."""
        try:
            return await db.get(Account, account_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching account %s: %s", account_id, str(e))
            raise DatabaseError(context={"account_id": str(account_id)}) from e

    async def authenticate(
        self,
        db: AsyncSession,
        email: Optional[str],
        password: Optional[str],
    ) -> Account:
        """
        Resolve login credentials to an account.

        Raises:
            ValidationError: missing field, unknown email or wrong password.
                             Unknown email and wrong password share one message.
        """
        if not email or not email.strip():
            raise ValidationError("Please enter your email", field="email")
        if not password:
            raise ValidationError("Please enter your password", field="password")

        account = await self.find_by_identity(db, email)
        if account is None:
            await self.verify_password(password, self._dummy_hash)
            logger.info("Login failed: unknown email")
            raise ValidationError(INVALID_CREDENTIALS)

        if not await self.verify_password(password, account.password_hash):
            logger.info("Login failed: wrong password for account %s", account.id)
            raise ValidationError(INVALID_CREDENTIALS)

        return account

    async def delete_account(self, db: AsyncSession, account_id: uuid.UUID) -> None:
        """
        Delete an account and everything it owns.

        Raises:
            NotFoundError: no account with this id
            DatabaseError: delete failed
        """
        account = await self.get_account(db, account_id)
        if account is None:
            raise NotFoundError(resource="Account", resource_id=str(account_id))

        try:
            for model in (Note, Todo, JournalUnit):
                await db.execute(delete(model).where(model.owner_id == account_id))
            await db.delete(account)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting account %s: %s", account_id, str(e))
            raise DatabaseError(
                message="Error deleting account",
                context={"account_id": str(account_id)},
            ) from e

        logger.info("Deleted account %s and its resources", account_id)

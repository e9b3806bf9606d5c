"""
VideoTube Backend — Password Hashing and Session Tokens
========================================================

Password hashes are one-way argon2 digests (passlib). Hashing is CPU-bound,
so the async helpers run it in the threadpool; the entity layer awaits them
before a User row is flushed.

Refresh tokens are opaque random strings stored on the user row and handed
to the browser in the `refreshToken` cookie.
"""

import secrets

from passlib.context import CryptContext
from starlette.concurrency import run_in_threadpool

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


async def hash_password(plain: str) -> str:
    """Hash a plaintext password. Never store the plaintext."""
    return await run_in_threadpool(pwd_context.hash, plain)


async def verify_password(plain: str, hashed: str) -> bool:
    return await run_in_threadpool(pwd_context.verify, plain, hashed)


def generate_refresh_token() -> str:
    return secrets.token_urlsafe(32)

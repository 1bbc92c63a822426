"""
Credential Crypto

Password hashing, secure token generation, constant-time comparison and
password strength scoring. Plain functions with no shared state.

Passwords use bcrypt (slow, salted). Reset and session tokens use SHA-256:
tokens are high-entropy already and must support exact-match lookup, which
an adaptive salted hash cannot provide.
"""

import hashlib
import hmac
import re
import secrets
from typing import List, Union

import bcrypt
from pydantic import BaseModel

DEFAULT_BCRYPT_ROUNDS = 12
DEFAULT_TOKEN_BYTES = 32
BCRYPT_MAX_PASSWORD_BYTES = 72

MIN_PASSWORD_LENGTH = 8
SPECIAL_CHARACTERS = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]")
COMMON_PATTERNS = [
    re.compile(r"123456"),
    re.compile(r"password", re.IGNORECASE),
    re.compile(r"qwerty", re.IGNORECASE),
    re.compile(r"admin", re.IGNORECASE),
    re.compile(r"letmein", re.IGNORECASE),
]


class EmptyInputError(ValueError):
    """Raised when a password to hash is empty"""


class PasswordStrength(BaseModel):
    """Outcome of password strength scoring"""

    score: int
    feedback: List[str]
    is_valid: bool


def hash_password(plaintext: str, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """
    Hash a password with bcrypt.

    Raises:
        EmptyInputError: plaintext is empty
        ValueError: plaintext exceeds bcrypt's 72-byte input limit
    """
    if not plaintext:
        raise EmptyInputError("Password cannot be empty")

    encoded = plaintext.encode()
    if len(encoded) > BCRYPT_MAX_PASSWORD_BYTES:
        raise ValueError(f"Password cannot exceed {BCRYPT_MAX_PASSWORD_BYTES} bytes")

    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds)).decode()


def verify_password(plaintext: str, password_hash: str) -> bool:
    """Check a password against a bcrypt hash. Never raises."""
    if not plaintext or not password_hash:
        return False

    try:
        return bcrypt.checkpw(plaintext.encode(), password_hash.encode())
    except (ValueError, TypeError):
        # Malformed hash or oversized input
        return False


def generate_secure_token(byte_length: int = DEFAULT_TOKEN_BYTES) -> str:
    """Hex-encoded token drawn from the OS CSPRNG"""
    if byte_length < 1:
        raise ValueError("byte_length must be positive")
    return secrets.token_bytes(byte_length).hex()


def hash_token(token: str) -> str:
    """Deterministic SHA-256 hex digest used as the stored form of a token"""
    return hashlib.sha256(token.encode()).hexdigest()


def timing_safe_equal(a: Union[str, bytes], b: Union[str, bytes]) -> bool:
    """Constant-time comparison; False when lengths differ"""
    if isinstance(a, str):
        a = a.encode()
    if isinstance(b, str):
        b = b.encode()
    return hmac.compare_digest(a, b)


def check_password_strength(password: str) -> PasswordStrength:
    """
    Score a password from its character classes.

    +1 each for length >= 8, uppercase, lowercase, digit, special character;
    -1 if it contains a common pattern. Valid when score >= 4 and length >= 8.
    """
    if not password:
        return PasswordStrength(score=0, feedback=["Password is required"], is_valid=False)

    feedback: List[str] = []
    score = 0

    if len(password) >= MIN_PASSWORD_LENGTH:
        score += 1
    else:
        feedback.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    if re.search(r"[A-Z]", password):
        score += 1
    else:
        feedback.append("Password must contain at least one uppercase letter")

    if re.search(r"[a-z]", password):
        score += 1
    else:
        feedback.append("Password must contain at least one lowercase letter")

    if re.search(r"\d", password):
        score += 1
    else:
        feedback.append("Password must contain at least one number")

    if SPECIAL_CHARACTERS.search(password):
        score += 1
    else:
        feedback.append("Password must contain at least one special character")

    if any(pattern.search(password) for pattern in COMMON_PATTERNS):
        score -= 1
        feedback.append("Password contains common patterns")

    is_valid = score >= 4 and len(password) >= MIN_PASSWORD_LENGTH
    return PasswordStrength(score=score, feedback=feedback, is_valid=is_valid)


def mask_sensitive(value: str, visible_chars: int = 4) -> str:
    """Mask the middle of a secret for logging"""
    if len(value) <= visible_chars * 2:
        return "*" * len(value)
    hidden = len(value) - visible_chars * 2
    return f"{value[:visible_chars]}{'*' * hidden}{value[-visible_chars:]}"

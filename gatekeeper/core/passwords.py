"""Password hashing with argon2id in a self-describing encoded format.

Encoded digests look like::

    $argon2id$v=19$m=65536,t=1,p=4$<base64 salt>$<base64 digest>

Salt and digest use standard base64 without padding. Every parameter needed to
verify a password travels with the digest, so changing the configured costs
never invalidates stored passwords.
"""

import base64
import binascii
import hmac
import re
import secrets
from dataclasses import dataclass
from typing import TYPE_CHECKING

from argon2.exceptions import HashingError
from argon2.low_level import ARGON2_VERSION, Type, hash_secret_raw

from gatekeeper.core.errors import IncompatibleHashVersionError, InvalidHashError

if TYPE_CHECKING:
    from gatekeeper.core.config import Settings

ALGORITHM = "argon2id"

DEFAULT_TIME_COST = 1
DEFAULT_MEMORY_COST = 64 * 1024
DEFAULT_PARALLELISM = 4
DEFAULT_HASH_LENGTH = 32
DEFAULT_SALT_LENGTH = 16

_VERSION_RE = re.compile(r"^v=(\d+)$")
_PARAMS_RE = re.compile(r"^m=(\d+),t=(\d+),p=(\d+)$")


@dataclass(frozen=True)
class HashParams:
    """Cost parameters of one encoded digest."""

    memory_cost: int
    time_cost: int
    parallelism: int
    hash_length: int


def _b64encode(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii").rstrip("=")


def _b64decode(value: str) -> bytes:
    padded = value + "=" * (-len(value) % 4)
    try:
        return base64.b64decode(padded.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise InvalidHashError() from exc


def decode_hash(encoded: str) -> tuple[HashParams, bytes, bytes]:
    """
    Parse an encoded digest into (params, salt, digest).

    Raises InvalidHashError if the string is malformed and
    IncompatibleHashVersionError if it was produced by another argon2 version.
    """
    parts = encoded.split("$") if isinstance(encoded, str) else []
    if len(parts) != 6 or parts[0] != "" or parts[1] != ALGORITHM:
        raise InvalidHashError()

    version_match = _VERSION_RE.match(parts[2])
    if version_match is None:
        raise InvalidHashError()
    if int(version_match.group(1)) != ARGON2_VERSION:
        raise IncompatibleHashVersionError()

    params_match = _PARAMS_RE.match(parts[3])
    if params_match is None:
        raise InvalidHashError()

    salt = _b64decode(parts[4])
    digest = _b64decode(parts[5])
    if not salt or not digest:
        raise InvalidHashError()

    memory_cost, time_cost, parallelism = (int(g) for g in params_match.groups())
    params = HashParams(
        memory_cost=memory_cost,
        time_cost=time_cost,
        parallelism=parallelism,
        hash_length=len(digest),
    )
    return params, salt, digest


class PasswordHasher:
    """
    Derives and verifies argon2id password digests.

    Instances are immutable and hold no per-call state, so one instance is
    shared by the whole process. Hashing is intentionally slow (tens of
    milliseconds with the defaults); call it outside of any unrelated lock.
    """

    def __init__(
        self,
        time_cost: int = DEFAULT_TIME_COST,
        memory_cost: int = DEFAULT_MEMORY_COST,
        parallelism: int = DEFAULT_PARALLELISM,
        hash_length: int = DEFAULT_HASH_LENGTH,
        salt_length: int = DEFAULT_SALT_LENGTH,
    ) -> None:
        self.time_cost = time_cost
        self.memory_cost = memory_cost
        self.parallelism = parallelism
        self.hash_length = hash_length
        self.salt_length = salt_length
        # Verified against when a login names an unknown user, so that path costs
        # the same as a wrong password for a real one. Built here so the first
        # such login does not also pay for deriving it.
        self.dummy_hash = self.hash_password(secrets.token_urlsafe(16))

    @classmethod
    def from_settings(cls, settings: "Settings") -> "PasswordHasher":
        return cls(
            time_cost=settings.ARGON2_TIME_COST,
            memory_cost=settings.ARGON2_MEMORY_COST,
            parallelism=settings.ARGON2_PARALLELISM,
            hash_length=settings.ARGON2_HASH_LENGTH,
            salt_length=settings.ARGON2_SALT_LENGTH,
        )

    def hash_password(self, plain_password: str) -> str:
        """Hash a plain-text password for storage. Do not store plain passwords."""
        salt = secrets.token_bytes(self.salt_length)
        digest = hash_secret_raw(
            plain_password.encode("utf-8"),
            salt,
            time_cost=self.time_cost,
            memory_cost=self.memory_cost,
            parallelism=self.parallelism,
            hash_len=self.hash_length,
            type=Type.ID,
            version=ARGON2_VERSION,
        )
        return (
            f"${ALGORITHM}$v={ARGON2_VERSION}"
            f"$m={self.memory_cost},t={self.time_cost},p={self.parallelism}"
            f"${_b64encode(salt)}${_b64encode(digest)}"
        )

    def verify_password(self, plain_password: str, encoded: str) -> bool:
        """
        Verify a plain password against an encoded digest.

        Returns False on mismatch. Raises InvalidHashError or
        IncompatibleHashVersionError when the digest itself is unusable.
        """
        params, salt, digest = decode_hash(encoded)
        try:
            candidate = hash_secret_raw(
                plain_password.encode("utf-8"),
                salt,
                time_cost=params.time_cost,
                memory_cost=params.memory_cost,
                parallelism=params.parallelism,
                hash_len=params.hash_length,
                type=Type.ID,
                version=ARGON2_VERSION,
            )
        except (HashingError, OverflowError) as exc:
            # Parameters parsed but argon2 rejects them (e.g. p=0, salt too short).
            raise InvalidHashError() from exc
        return hmac.compare_digest(candidate, digest)

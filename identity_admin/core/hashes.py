"""Password hash descriptors for user import.

Each descriptor names a hashing algorithm and carries its tunable
parameters. Parameters are only validated when the property map is built,
so a descriptor can be assembled incrementally before use.

Usage:
    from identity_admin.core.hashes import Scrypt, Sha256

    Sha256(rounds=100).get_properties()
    # {"rounds": 100, "hashAlgorithm": "SHA256"}
"""
from __future__ import annotations
import base64
from typing import Any, Dict, Optional


def _check_range(value: Optional[int], label: str, minimum: int, maximum: Optional[int] = None) -> int:
    """Shared bounds check used by every variant (inclusive on both ends)."""
    if value is None:
        raise ValueError(f"{label} must be initialized.")
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{label} must be an integer: {value!r}.")
    if value < minimum or (maximum is not None and value > maximum):
        upper = maximum if maximum is not None else "unbounded"
        raise ValueError(f"{label} must be between {minimum} and {upper} (inclusive): {value}.")
    return value


def _encode_key(key: Optional[bytes], label: str) -> str:
    if not key or not isinstance(key, (bytes, bytearray)):
        raise ValueError(f"{label} must be a non-empty byte sequence.")
    return base64.urlsafe_b64encode(bytes(key)).decode("ascii")


class UserImportHash:
    """A hash algorithm and the parameters used to hash imported user passwords.

    Not meant to be subclassed by applications; use one of the concrete
    variants in this module.
    """

    hash_name = ""

    def get_properties(self) -> Dict[str, Any]:
        """Return the algorithm parameters plus a ``hashAlgorithm`` entry.

        Raises:
            ValueError: If the hash name is empty or a parameter is invalid
        """
        if not self.hash_name:
            raise ValueError("User import hash name must not be null or empty.")
        properties = dict(self._options())
        properties["hashAlgorithm"] = self.hash_name
        return properties

    def _options(self) -> Dict[str, Any]:
        return {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class RepeatableHash(UserImportHash):
    """Hash that is applied a configurable number of rounds."""

    MIN_ROUNDS = 0
    MAX_ROUNDS = 0

    def __init__(self, rounds: Optional[int] = None):
        self.rounds = rounds

    def _options(self) -> Dict[str, Any]:
        rounds = _check_range(self.rounds, "Rounds", self.MIN_ROUNDS, self.MAX_ROUNDS)
        return {"rounds": rounds}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(rounds={self.rounds!r})"


class Md5(RepeatableHash):
    hash_name = "MD5"
    MIN_ROUNDS = 0
    MAX_ROUNDS = 8192


class Sha1(RepeatableHash):
    hash_name = "SHA1"
    MIN_ROUNDS = 1
    MAX_ROUNDS = 8192


class Sha256(RepeatableHash):
    hash_name = "SHA256"
    MIN_ROUNDS = 1
    MAX_ROUNDS = 8192


class Sha512(RepeatableHash):
    hash_name = "SHA512"
    MIN_ROUNDS = 1
    MAX_ROUNDS = 8192


class Pbkdf2Sha256(RepeatableHash):
    hash_name = "PBKDF2_SHA256"
    MIN_ROUNDS = 0
    MAX_ROUNDS = 120000


class PbkdfSha1(RepeatableHash):
    hash_name = "PBKDF_SHA1"
    MIN_ROUNDS = 0
    MAX_ROUNDS = 120000


class HmacHash(UserImportHash):
    """Keyed hash; the signer key is sent url-safe base64 encoded."""

    def __init__(self, key: Optional[bytes] = None):
        self.key = key

    def _options(self) -> Dict[str, Any]:
        return {"signerKey": _encode_key(self.key, "Key")}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(key=<redacted>)"


class HmacMd5(HmacHash):
    hash_name = "HMAC_MD5"


class HmacSha1(HmacHash):
    hash_name = "HMAC_SHA1"


class HmacSha256(HmacHash):
    hash_name = "HMAC_SHA256"


class HmacSha512(HmacHash):
    hash_name = "HMAC_SHA512"


class Scrypt(RepeatableHash):
    """The modified scrypt algorithm used by the hosted auth service."""

    hash_name = "SCRYPT"
    MIN_ROUNDS = 1
    MAX_ROUNDS = 8

    def __init__(
        self,
        key: Optional[bytes] = None,
        rounds: Optional[int] = None,
        memory_cost: Optional[int] = None,
        salt_separator: Optional[bytes] = None,
    ):
        super().__init__(rounds)
        self.key = key
        self.memory_cost = memory_cost
        self.salt_separator = salt_separator

    def _options(self) -> Dict[str, Any]:
        options = super()._options()
        options["signerKey"] = _encode_key(self.key, "Key")
        options["memoryCost"] = _check_range(self.memory_cost, "Memory cost", 1, 14)
        if self.salt_separator is not None:
            options["saltSeparator"] = _encode_key(self.salt_separator, "Salt separator")
        return options

    def __repr__(self) -> str:
        return f"Scrypt(rounds={self.rounds!r}, memory_cost={self.memory_cost!r})"


class StandardScrypt(UserImportHash):
    """Standard scrypt as described in RFC 7914."""

    hash_name = "STANDARD_SCRYPT"

    def __init__(
        self,
        memory_cost: Optional[int] = None,
        parallelization: Optional[int] = None,
        block_size: Optional[int] = None,
        derived_key_length: Optional[int] = None,
    ):
        self.memory_cost = memory_cost
        self.parallelization = parallelization
        self.block_size = block_size
        self.derived_key_length = derived_key_length

    def _options(self) -> Dict[str, Any]:
        return {
            "cpuMemCost": _check_range(self.memory_cost, "Memory cost", 0),
            "parallelization": _check_range(self.parallelization, "Parallelization", 0),
            "blockSize": _check_range(self.block_size, "Block size", 0),
            "dkLen": _check_range(self.derived_key_length, "Derived key length", 0),
        }

    def __repr__(self) -> str:
        return (
            f"StandardScrypt(memory_cost={self.memory_cost!r}, parallelization={self.parallelization!r}, "
            f"block_size={self.block_size!r}, derived_key_length={self.derived_key_length!r})"
        )


class Bcrypt(UserImportHash):
    hash_name = "BCRYPT"

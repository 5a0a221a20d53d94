# Copyright 2025 Hathor Labs
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#    http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Twisted ElGamal encryption of amounts.

A ciphertext of `amount` under public key `P = s*G` with randomness `r` is the pair

    commitment = r*P + amount*G
    handle     = r*G

and the secret key holder recovers `amount*G = commitment - s*handle`. Ciphertexts under the same key add up
homomorphically. Recovering `amount` from `amount*G` needs a discrete log, so only small amounts can be decrypted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import TracebackType
from typing import Optional

import base58
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from structlog import get_logger

from confidential_ct.conf import get_global_settings
from confidential_ct.crypto.amount import validate_amount
from confidential_ct.crypto.discrete_log import get_decoder
from confidential_ct.crypto.exceptions import InvalidSecretKeyError, ProofSizeMismatchError
from confidential_ct.crypto.group import (
    GROUP_ORDER,
    IDENTITY,
    POINT_SIZE,
    SCALAR_SIZE,
    G,
    GroupElement,
    hash_to_scalar,
    random_scalar,
    scalar_to_bytes,
)
from confidential_ct.serialization import Deserializer, Serializer
from confidential_ct.serialization.encoding.point import decode_point, encode_point

logger = get_logger()

CIPHERTEXT_SIZE = 2 * POINT_SIZE

_SECRET_KEY_DOMAIN = b'confidential-ct/elgamal-secret-key'
_DERIVATION_MESSAGE = b'ElGamalSecretKey'


class ElGamalSecretKey:
    """Secret scalar kept in a mutable buffer so it can be wiped.

    Use it as a context manager to guarantee `zeroize()` runs when the block exits, exceptions included. A zeroized
    key raises `InvalidSecretKeyError` on any further use.
    """

    __slots__ = ('_buffer', '_zeroized')

    def __init__(self, scalar: int) -> None:
        scalar %= GROUP_ORDER
        if scalar == 0:
            raise InvalidSecretKeyError('secret key scalar is zero')
        self._buffer = bytearray(scalar_to_bytes(scalar))
        self._zeroized = False

    @classmethod
    def from_bytes(cls, data: bytes) -> ElGamalSecretKey:
        if len(data) != SCALAR_SIZE:
            raise InvalidSecretKeyError(f'secret key must be {SCALAR_SIZE} bytes')
        return cls(int.from_bytes(data, 'little'))

    def scalar(self) -> int:
        if self._zeroized:
            raise InvalidSecretKeyError('secret key was zeroized')
        return int.from_bytes(self._buffer, 'little')

    def to_bytes(self) -> bytes:
        return scalar_to_bytes(self.scalar())

    def public_key(self) -> GroupElement:
        return G * self.scalar()

    def is_zeroized(self) -> bool:
        return self._zeroized

    def zeroize(self) -> None:
        for i in range(len(self._buffer)):
            self._buffer[i] = 0
        self._zeroized = True

    def __enter__(self) -> ElGamalSecretKey:
        return self

    def __exit__(self, exc_type: Optional[type[BaseException]], exc_value: Optional[BaseException],
                 traceback: Optional[TracebackType]) -> None:
        self.zeroize()

    def __repr__(self) -> str:
        return 'ElGamalSecretKey(<zeroized>)' if self._zeroized else 'ElGamalSecretKey(<redacted>)'


@dataclass(frozen=True, slots=True)
class ElGamalKeypair:
    public_key: GroupElement
    secret_key: ElGamalSecretKey

    def __enter__(self) -> ElGamalKeypair:
        return self

    def __exit__(self, exc_type: Optional[type[BaseException]], exc_value: Optional[BaseException],
                 traceback: Optional[TracebackType]) -> None:
        self.secret_key.zeroize()


@dataclass(frozen=True, slots=True)
class ElGamalCiphertext:
    commitment: GroupElement
    handle: GroupElement

    def __add__(self, other: ElGamalCiphertext) -> ElGamalCiphertext:
        return ElGamalCiphertext(self.commitment + other.commitment, self.handle + other.handle)

    def __sub__(self, other: ElGamalCiphertext) -> ElGamalCiphertext:
        return ElGamalCiphertext(self.commitment - other.commitment, self.handle - other.handle)

    def __mul__(self, scalar: int) -> ElGamalCiphertext:
        if not isinstance(scalar, int):
            return NotImplemented
        return ElGamalCiphertext(self.commitment * scalar, self.handle * scalar)

    __rmul__ = __mul__

    def add_amount(self, amount: int) -> ElGamalCiphertext:
        """Add a public amount without touching the handle."""
        return ElGamalCiphertext(self.commitment + G * amount, self.handle)

    def subtract_amount(self, amount: int) -> ElGamalCiphertext:
        return ElGamalCiphertext(self.commitment - G * amount, self.handle)

    def to_bytes(self) -> bytes:
        return serialize_ciphertext(self)

    @classmethod
    def from_bytes(cls, data: bytes | memoryview) -> ElGamalCiphertext:
        return deserialize_ciphertext(data)


@dataclass(frozen=True, slots=True)
class EncryptionResult:
    ciphertext: ElGamalCiphertext
    randomness: int = field(repr=False)


def generate_keypair(seed: Optional[bytes] = None) -> ElGamalKeypair:
    """Generate a keypair, deterministically when `seed` is given.

    A random key is resampled until it is non-zero; a seed deriving the zero scalar raises `InvalidSecretKeyError`.
    """
    if seed is not None:
        scalar = hash_to_scalar(_SECRET_KEY_DOMAIN, seed)
        if scalar == 0:
            raise InvalidSecretKeyError('seed derives a zero secret key')
    else:
        scalar = random_scalar()
    return ElGamalKeypair(public_key=G * scalar, secret_key=ElGamalSecretKey(scalar))


def derive_keypair(signer: Ed25519PrivateKey, account: str) -> ElGamalKeypair:
    """Derive the keypair that `signer` uses for the token account at base58 address `account`.

    Ed25519 signatures are deterministic, so the signature over the account works as a per-account seed that only
    the signer can reproduce.
    """
    account_bytes = base58.b58decode(account)
    if len(account_bytes) != 32:
        raise ValueError('account address must decode to 32 bytes')
    signature = signer.sign(_DERIVATION_MESSAGE + account_bytes)
    return generate_keypair(seed=signature)


def encrypt(amount: int, public_key: GroupElement, randomness: Optional[int] = None) -> EncryptionResult:
    """Encrypt `amount` under `public_key`.

    The randomness is returned with the ciphertext because proofs about the ciphertext need it. Passing explicit
    `randomness` makes the encryption deterministic.
    """
    validate_amount(amount)
    r = random_scalar() if randomness is None else randomness % GROUP_ORDER
    ciphertext = ElGamalCiphertext(
        commitment=public_key * r + G * amount,
        handle=G * r,
    )
    return EncryptionResult(ciphertext=ciphertext, randomness=r)


def encrypt_trivial(amount: int) -> ElGamalCiphertext:
    """Encryption of a public amount with zero randomness, decryptable under any key."""
    validate_amount(amount)
    return ElGamalCiphertext(commitment=G * amount, handle=IDENTITY)


def rerandomize(ciphertext: ElGamalCiphertext, public_key: GroupElement) -> EncryptionResult:
    """Return a fresh-looking ciphertext of the same amount, along with the randomness that was added."""
    zero = encrypt(0, public_key)
    return EncryptionResult(ciphertext=ciphertext + zero.ciphertext, randomness=zero.randomness)


def decrypt_to_point(ciphertext: ElGamalCiphertext, secret_key: ElGamalSecretKey) -> GroupElement:
    """Return `amount * G`."""
    return ciphertext.commitment - ciphertext.handle * secret_key.scalar()


def decrypt(ciphertext: ElGamalCiphertext, secret_key: ElGamalSecretKey,
            search_bound: Optional[int] = None) -> Optional[int]:
    """Decrypt by linear search over `[0, search_bound]`.

    Returns None when the amount is not within the bound, which does not mean the ciphertext is invalid. Only suitable
    for small amounts; `decrypt_with_decoder` scales to much larger ones.
    """
    if search_bound is None:
        search_bound = get_global_settings().DECRYPT_SEARCH_BOUND
    amount_point = decrypt_to_point(ciphertext, secret_key)
    if amount_point.is_identity():
        return 0
    candidate = G
    for amount in range(1, search_bound + 1):
        if candidate == amount_point:
            return amount
        candidate = candidate + G
    log = logger.new()
    log.debug('amount not found within search bound', search_bound=search_bound)
    return None


def decrypt_with_decoder(ciphertext: ElGamalCiphertext, secret_key: ElGamalSecretKey,
                         max_bits: Optional[int] = None) -> Optional[int]:
    """Decrypt amounts in `[0, 2**max_bits)` with baby-step giant-step."""
    if max_bits is None:
        max_bits = get_global_settings().DISCRETE_LOG_MAX_BITS
    return get_decoder(max_bits).try_decode(decrypt_to_point(ciphertext, secret_key))


def encode_ciphertext(serializer: Serializer, ciphertext: ElGamalCiphertext) -> None:
    encode_point(serializer, ciphertext.commitment)
    encode_point(serializer, ciphertext.handle)


def decode_ciphertext(deserializer: Deserializer) -> ElGamalCiphertext:
    commitment = decode_point(deserializer)
    handle = decode_point(deserializer)
    return ElGamalCiphertext(commitment=commitment, handle=handle)


def serialize_ciphertext(ciphertext: ElGamalCiphertext) -> bytes:
    """Serialize as `commitment (32 bytes) || handle (32 bytes)`."""
    serializer = Serializer.build_bytes_serializer()
    encode_ciphertext(serializer, ciphertext)
    return serializer.finalize()


def deserialize_ciphertext(data: bytes | memoryview) -> ElGamalCiphertext:
    if len(data) != CIPHERTEXT_SIZE:
        raise ProofSizeMismatchError(f'ciphertext must be {CIPHERTEXT_SIZE} bytes, got {len(data)}')
    deserializer = Deserializer.build_bytes_deserializer(data)
    ciphertext = decode_ciphertext(deserializer)
    deserializer.finalize()
    return ciphertext

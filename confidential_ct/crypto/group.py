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

"""Scalar and group element primitives over the prime-order subgroup of ed25519.

Point arithmetic is delegated to libsodium through PyNaCl. Scalars are plain Python ints reduced modulo
`GROUP_ORDER`. libsodium refuses to multiply by a zero scalar or to multiply the identity, so those cases are resolved
here before reaching it.
"""

from __future__ import annotations

import functools
import hashlib
import secrets
import threading
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from nacl.bindings import (
    crypto_core_ed25519_add,
    crypto_core_ed25519_is_valid_point,
    crypto_core_ed25519_sub,
    crypto_scalarmult_ed25519_base_noclamp,
    crypto_scalarmult_ed25519_noclamp,
)
from nacl.exceptions import CryptoError as NaClCryptoError
from structlog import get_logger

from confidential_ct.crypto.exceptions import InvalidGroupElementError, InvalidScalarError

logger = get_logger()

# Order of the ed25519 prime-order subgroup.
GROUP_ORDER = 2**252 + 27742317777372353535851937790883648493

SCALAR_SIZE = 32
POINT_SIZE = 32

IDENTITY_BYTES = b'\x01' + b'\x00' * 31

# Both are protocol constants: every party must derive the very same H.
_PEDERSEN_H_DOMAIN = b'confidential-ct/pedersen-H'
_GENERATOR_MAX_ATTEMPTS = 256


def reduce_scalar(data: bytes) -> int:
    """Interpret `data` as a little-endian integer and reduce it modulo the group order."""
    return int.from_bytes(data, 'little') % GROUP_ORDER


def hash_to_scalar(*parts: bytes) -> int:
    """SHA-512 over the concatenation of `parts`, reduced modulo the group order."""
    hasher = hashlib.sha512()
    for part in parts:
        hasher.update(part)
    return reduce_scalar(hasher.digest())


def random_scalar() -> int:
    """Sample a uniformly random non-zero scalar from the OS CSPRNG."""
    while True:
        scalar = reduce_scalar(secrets.token_bytes(64))
        if scalar != 0:
            return scalar


def scalar_to_bytes(scalar: int) -> bytes:
    return (scalar % GROUP_ORDER).to_bytes(SCALAR_SIZE, 'little')


def scalar_from_bytes(data: bytes) -> int:
    """Decode a canonical 32-byte little-endian scalar."""
    if len(data) != SCALAR_SIZE:
        raise InvalidScalarError(f'scalar must be {SCALAR_SIZE} bytes, got {len(data)}')
    scalar = int.from_bytes(data, 'little')
    if scalar >= GROUP_ORDER:
        raise InvalidScalarError('scalar is not reduced modulo the group order')
    return scalar


def scalar_inverse(scalar: int) -> int:
    scalar %= GROUP_ORDER
    if scalar == 0:
        raise ZeroDivisionError('zero has no inverse')
    return pow(scalar, -1, GROUP_ORDER)


@dataclass(frozen=True, slots=True)
class GroupElement:
    """A point of the prime-order subgroup, held as its 32-byte compressed encoding.

    The constructor trusts its input and is meant for results of group operations. Untrusted bytes must go through
    `GroupElement.from_bytes`, which checks the encoding.
    """
    data: bytes

    @classmethod
    def from_bytes(cls, data: bytes | memoryview) -> GroupElement:
        data = bytes(data)
        if len(data) != POINT_SIZE:
            raise InvalidGroupElementError(f'group element must be {POINT_SIZE} bytes, got {len(data)}')
        if data == IDENTITY_BYTES:
            return IDENTITY
        if not crypto_core_ed25519_is_valid_point(data):
            raise InvalidGroupElementError('not a canonical encoding of a prime-order subgroup point')
        return cls(data)

    def is_identity(self) -> bool:
        return self.data == IDENTITY_BYTES

    def __bytes__(self) -> bytes:
        return self.data

    def __repr__(self) -> str:
        return f'GroupElement({self.data.hex()})'

    def __add__(self, other: GroupElement) -> GroupElement:
        if other.is_identity():
            return self
        if self.is_identity():
            return other
        try:
            return GroupElement(crypto_core_ed25519_add(self.data, other.data))
        except NaClCryptoError as e:
            raise InvalidGroupElementError('cannot add points') from e

    def __sub__(self, other: GroupElement) -> GroupElement:
        if other.is_identity():
            return self
        try:
            return GroupElement(crypto_core_ed25519_sub(self.data, other.data))
        except NaClCryptoError as e:
            raise InvalidGroupElementError('cannot subtract points') from e

    def __neg__(self) -> GroupElement:
        return IDENTITY - self

    def __mul__(self, scalar: int) -> GroupElement:
        if not isinstance(scalar, int):
            return NotImplemented
        scalar %= GROUP_ORDER
        if scalar == 0 or self.is_identity():
            return IDENTITY
        if scalar == 1:
            return self
        try:
            if self.data == BASEPOINT_BYTES:
                return GroupElement(crypto_scalarmult_ed25519_base_noclamp(scalar_to_bytes(scalar)))
            return GroupElement(crypto_scalarmult_ed25519_noclamp(scalar_to_bytes(scalar), self.data))
        except NaClCryptoError as e:
            raise InvalidGroupElementError('point is not in the prime-order subgroup') from e

    __rmul__ = __mul__


IDENTITY = GroupElement(IDENTITY_BYTES)

BASEPOINT_BYTES = crypto_scalarmult_ed25519_base_noclamp(scalar_to_bytes(1))

# The ed25519 base point, used as the value generator.
G = GroupElement(BASEPOINT_BYTES)


def multiscalar_mul(scalars: Iterable[int], points: Iterable[GroupElement]) -> GroupElement:
    """Compute `sum(s_i * P_i)`.

    Terms with scalar 0 are skipped and scalars 1 and -1 become plain additions and subtractions, which is the common
    case for bit vectors in range proofs.
    """
    result = IDENTITY
    for scalar, point in zip(scalars, points, strict=True):
        scalar %= GROUP_ORDER
        if scalar == 0:
            continue
        if scalar == 1:
            result = result + point
        elif scalar == GROUP_ORDER - 1:
            result = result - point
        else:
            result = result + point * scalar
    return result


def sum_points(points: Iterable[GroupElement]) -> GroupElement:
    result = IDENTITY
    for point in points:
        result = result + point
    return result


def _derive_generator(domain: bytes, max_attempts: int = _GENERATOR_MAX_ATTEMPTS) -> GroupElement:
    """Hash `domain` with an increasing counter until the digest is a valid point.

    Nobody knows the discrete log of the result with respect to G. If no candidate is found within `max_attempts`
    the generator falls back to a scalar multiple of G, which always terminates.
    """
    for counter in range(max_attempts):
        candidate = hashlib.sha256(domain + counter.to_bytes(4, 'little')).digest()
        if candidate != IDENTITY_BYTES and crypto_core_ed25519_is_valid_point(candidate):
            return GroupElement(candidate)
    log = logger.new()
    log.warn('generator derivation fell back to a multiple of G', domain=domain, attempts=max_attempts)
    return G * hash_to_scalar(domain)


_h_lock = threading.Lock()
_h_generator: Optional[GroupElement] = None


def get_generator_h() -> GroupElement:
    """Return the Pedersen blinding generator H.

    It is derived on first use and then shared, read-only, by every caller in the process.
    """
    global _h_generator
    if _h_generator is None:
        with _h_lock:
            if _h_generator is None:
                _h_generator = _derive_generator(_PEDERSEN_H_DOMAIN)
    return _h_generator


@functools.lru_cache(maxsize=None)
def derive_generators(label: bytes, count: int) -> Sequence[GroupElement]:
    """Derive `count` independent generators for `label`, the i-th one depends only on `label` and `i`."""
    return tuple(
        _derive_generator(b'confidential-ct/generators/' + label + b'/' + index.to_bytes(4, 'little'))
        for index in range(count)
    )

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

"""Bulletproofs range proofs proving that committed amounts are in [0, 2^64).

A proof covers `m` Pedersen commitments `V_j = v_j * G + gamma_j * H`, where `m` is a power of two. The bits of all
amounts are committed as one vector of length `64 * m`, and the inner-product argument proves the polynomial
identities that force every entry to be a bit and the bits of block `j` to add up to `v_j`.

Wire layout, all points and scalars 32 bytes:

    A, S, T1, T2 || t, tau_x, mu || (L_i, R_i) for log2(64 * m) rounds || a, b

which is 672 bytes for one amount and 736 bytes for two.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Union

from structlog import get_logger

from confidential_ct.conf import get_global_settings
from confidential_ct.crypto import inner_product
from confidential_ct.crypto.amount import AMOUNT_BITS, validate_amount
from confidential_ct.crypto.exceptions import InvalidGroupElementError, InvalidScalarError, ProofSizeMismatchError
from confidential_ct.crypto.group import (
    GROUP_ORDER,
    POINT_SIZE,
    SCALAR_SIZE,
    G,
    GroupElement,
    derive_generators,
    get_generator_h,
    multiscalar_mul,
    random_scalar,
    scalar_inverse,
    sum_points,
)
from confidential_ct.crypto.pedersen import PedersenCommitment
from confidential_ct.crypto.transcript import Transcript
from confidential_ct.serialization import Deserializer, Serializer
from confidential_ct.serialization.encoding.point import decode_point, encode_point
from confidential_ct.serialization.encoding.scalar import decode_scalar, encode_scalar

logger = get_logger()

RANGE_BITS = AMOUNT_BITS


@dataclass(frozen=True, slots=True)
class RangeProof:
    proof: bytes
    commitments: tuple[PedersenCommitment, ...]

    @property
    def commitment(self) -> PedersenCommitment:
        """The commitment of a proof covering a single amount."""
        if len(self.commitments) != 1:
            raise ValueError(f'range proof covers {len(self.commitments)} commitments')
        return self.commitments[0]


def range_proof_size(num_values: int) -> int:
    """Serialized size of a proof covering `num_values` amounts."""
    n = RANGE_BITS * num_values
    return 4 * POINT_SIZE + 3 * SCALAR_SIZE + inner_product.proof_size(n)


def _check_num_values(num_values: int) -> None:
    max_values = get_global_settings().MAX_RANGE_PROOF_AGGREGATION
    if num_values < 1 or num_values & (num_values - 1) != 0:
        raise ValueError('the number of aggregated values must be a power of 2')
    if num_values > max_values:
        raise ValueError(f'cannot aggregate more than {max_values} values')


def _powers(base: int, count: int) -> list[int]:
    result = []
    value = 1
    for _ in range(count):
        result.append(value)
        value = value * base % GROUP_ORDER
    return result


def _new_transcript(commitments: Sequence[GroupElement]) -> Transcript:
    transcript = Transcript(b'range-proof')
    transcript.append_u64(b'n', RANGE_BITS)
    transcript.append_u64(b'm', len(commitments))
    for commitment in commitments:
        transcript.append_point(b'V', commitment)
    return transcript


def _delta(y: int, z: int, num_values: int) -> int:
    """delta(y, z) = (z - z^2) * <1, y^(n*m)> - sum_j z^(j+3) * <1, 2^n>"""
    sum_y = sum(_powers(y, RANGE_BITS * num_values)) % GROUP_ORDER
    sum_2 = (1 << RANGE_BITS) - 1
    z_sq = z * z % GROUP_ORDER
    result = (z - z_sq) * sum_y
    z_pow = z_sq * z % GROUP_ORDER
    for _ in range(num_values):
        result -= z_pow * sum_2
        z_pow = z_pow * z % GROUP_ORDER
    return result % GROUP_ORDER


def generate_range_proof(amount: int, commitment: PedersenCommitment, blinding: int) -> RangeProof:
    """Prove that `commitment = amount * G + blinding * H` holds an amount in [0, 2^64).

    The commitment is not recomputed: a proof for a commitment that does not open to `amount` and `blinding` will
    simply fail verification.
    """
    validate_amount(amount)
    return _generate([amount], [blinding], (commitment,))


def generate_aggregated_range_proof(amounts: Sequence[int], blindings: Sequence[int]) -> RangeProof:
    """Prove that every amount is in [0, 2^64), committing to each with the matching blinding."""
    if len(amounts) != len(blindings):
        raise ValueError('amounts and blindings must have the same length')
    for amount in amounts:
        validate_amount(amount)
    h = get_generator_h()
    commitments = tuple(G * amount + h * blinding for amount, blinding in zip(amounts, blindings))
    return _generate(amounts, blindings, commitments)


def _generate(amounts: Sequence[int], blindings: Sequence[int],
              commitments: tuple[PedersenCommitment, ...]) -> RangeProof:
    log = logger.new()
    m = len(amounts)
    _check_num_values(m)
    nm = RANGE_BITS * m
    h = get_generator_h()
    g_vec = derive_generators(b'G', nm)
    h_vec = derive_generators(b'H', nm)

    transcript = _new_transcript(commitments)

    a_l = [(amount >> i) & 1 for amount in amounts for i in range(RANGE_BITS)]
    a_r = [(bit - 1) % GROUP_ORDER for bit in a_l]
    alpha = random_scalar()
    big_a = h * alpha + multiscalar_mul(a_l + a_r, list(g_vec) + list(h_vec))

    s_l = [random_scalar() for _ in range(nm)]
    s_r = [random_scalar() for _ in range(nm)]
    rho = random_scalar()
    big_s = h * rho + multiscalar_mul(s_l + s_r, list(g_vec) + list(h_vec))

    transcript.append_point(b'A', big_a)
    transcript.append_point(b'S', big_s)
    y = transcript.challenge_scalar(b'y')
    z = transcript.challenge_scalar(b'z')

    y_pow = _powers(y, nm)
    z_pow = _powers(z, m + 2)
    l0 = [(bit - z) % GROUP_ORDER for bit in a_l]
    l1 = s_l
    r0 = [
        (y_pow[i] * (a_r[i] + z) + z_pow[2 + i // RANGE_BITS] * (1 << (i % RANGE_BITS))) % GROUP_ORDER
        for i in range(nm)
    ]
    r1 = [y_pow[i] * s_r[i] % GROUP_ORDER for i in range(nm)]

    t1 = (inner_product.inner_product(l0, r1) + inner_product.inner_product(l1, r0)) % GROUP_ORDER
    t2 = inner_product.inner_product(l1, r1)
    tau1 = random_scalar()
    tau2 = random_scalar()
    big_t1 = G * t1 + h * tau1
    big_t2 = G * t2 + h * tau2

    transcript.append_point(b'T1', big_t1)
    transcript.append_point(b'T2', big_t2)
    x = transcript.challenge_scalar(b'x')

    l_vec = [(l0[i] + l1[i] * x) % GROUP_ORDER for i in range(nm)]
    r_vec = [(r0[i] + r1[i] * x) % GROUP_ORDER for i in range(nm)]
    t = inner_product.inner_product(l_vec, r_vec)
    tau_x = (tau2 * x * x + tau1 * x + sum(z_pow[2 + j] * blindings[j] for j in range(m))) % GROUP_ORDER
    mu = (alpha + rho * x) % GROUP_ORDER

    transcript.append_scalar(b't', t)
    transcript.append_scalar(b'tau_x', tau_x)
    transcript.append_scalar(b'mu', mu)
    w = transcript.challenge_scalar(b'w')
    q = G * w

    y_inv_pow = _powers(scalar_inverse(y), nm)
    h_prime = [h_i * y_inv for h_i, y_inv in zip(h_vec, y_inv_pow)]
    ipp = inner_product.prove(transcript, q, g_vec, h_prime, l_vec, r_vec)

    serializer = Serializer.build_bytes_serializer()
    for point in (big_a, big_s, big_t1, big_t2):
        encode_point(serializer, point)
    for scalar in (t, tau_x, mu):
        encode_scalar(serializer, scalar)
    inner_product.encode_inner_product_proof(serializer, ipp)
    proof = serializer.finalize()
    log.debug('range proof generated', values=m, size=len(proof))
    return RangeProof(proof=proof, commitments=commitments)


def verify_range_proof(range_proof: RangeProof,
                       commitments: Optional[Union[PedersenCommitment, Sequence[PedersenCommitment]]] = None) -> bool:
    """Verify that every commitment holds an amount in [0, 2^64).

    The commitments carried by `range_proof` are used unless others are given. A proof whose length does not match
    the number of commitments raises `ProofSizeMismatchError`, any other defect makes it return False.
    """
    log = logger.new()
    if commitments is None:
        commitments = range_proof.commitments
    elif isinstance(commitments, GroupElement):
        commitments = (commitments,)
    commitments = tuple(commitments)
    m = len(commitments)
    _check_num_values(m)
    expected_size = range_proof_size(m)
    if len(range_proof.proof) != expected_size:
        raise ProofSizeMismatchError(f'range proof must be {expected_size} bytes, got {len(range_proof.proof)}')

    nm = RANGE_BITS * m
    deserializer = Deserializer.build_bytes_deserializer(range_proof.proof)
    try:
        big_a, big_s, big_t1, big_t2 = (decode_point(deserializer) for _ in range(4))
        t, tau_x, mu = (decode_scalar(deserializer) for _ in range(3))
        ipp = inner_product.decode_inner_product_proof(deserializer, nm)
    except (InvalidGroupElementError, InvalidScalarError):
        log.debug('range proof rejected', check='encoding')
        return False
    deserializer.finalize()

    h = get_generator_h()
    g_vec = derive_generators(b'G', nm)
    h_vec = derive_generators(b'H', nm)

    transcript = _new_transcript(commitments)
    transcript.append_point(b'A', big_a)
    transcript.append_point(b'S', big_s)
    y = transcript.challenge_scalar(b'y')
    z = transcript.challenge_scalar(b'z')
    transcript.append_point(b'T1', big_t1)
    transcript.append_point(b'T2', big_t2)
    x = transcript.challenge_scalar(b'x')
    transcript.append_scalar(b't', t)
    transcript.append_scalar(b'tau_x', tau_x)
    transcript.append_scalar(b'mu', mu)
    w = transcript.challenge_scalar(b'w')
    if 0 in (y, z, x, w):
        return False

    z_pow = _powers(z, m + 3)

    # t*G + tau_x*H == sum_j z^(j+2) * V_j + delta(y, z)*G + x*T1 + x^2*T2
    lhs = G * t + h * tau_x
    rhs = multiscalar_mul(
        [z_pow[2 + j] for j in range(m)] + [_delta(y, z, m), x, x * x],
        list(commitments) + [G, big_t1, big_t2],
    )
    if lhs != rhs:
        log.debug('range proof rejected', check='polynomial')
        return False

    # P = A + x*S - z*sum(G_i) + sum_i (z*y^i + z^(2+j)*2^(i mod n)) * H'_i - mu*H + t*Q, with H'_i = y^-i * H_i
    y_inv_pow = _powers(scalar_inverse(y), nm)
    h_prime = [h_i * y_inv for h_i, y_inv in zip(h_vec, y_inv_pow)]
    h_coefficients = [
        (z + z_pow[2 + i // RANGE_BITS] * (1 << (i % RANGE_BITS)) * y_inv_pow[i]) % GROUP_ORDER
        for i in range(nm)
    ]
    q = G * w
    p = multiscalar_mul(
        [1, x, -z, -mu, t] + h_coefficients,
        [big_a, big_s, sum_points(g_vec), h, q] + list(h_vec),
    )
    if not inner_product.verify(transcript, q, g_vec, h_prime, p, ipp):
        log.debug('range proof rejected', check='inner-product')
        return False
    return True

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

"""Bulletproofs inner-product argument.

Proves knowledge of vectors `a`, `b` of length `n` (a power of two) such that

    P = <a, G> + <b, H> + <a, b> * Q

with `2 * log2(n)` points and two scalars. Every round halves the vectors, folding them with a transcript challenge
`x`:

    a' = x * a_lo + x^-1 * a_hi        G' = x^-1 * G_lo + x * G_hi
    b' = x^-1 * b_lo + x * b_hi        H' = x * H_lo + x^-1 * H_hi
    P' = x^2 * L + P + x^-2 * R

The verifier does not fold the generators round by round. It expands the final `G` and `H` into one combination of
the original generators and checks everything with a single multiscalar multiplication.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from structlog import get_logger

from confidential_ct.crypto.group import GROUP_ORDER, GroupElement, multiscalar_mul, scalar_inverse
from confidential_ct.crypto.transcript import Transcript
from confidential_ct.serialization import Deserializer, Serializer
from confidential_ct.serialization.encoding.point import decode_point, encode_point
from confidential_ct.serialization.encoding.scalar import decode_scalar, encode_scalar

logger = get_logger()


@dataclass(frozen=True, slots=True)
class InnerProductProof:
    l_vec: tuple[GroupElement, ...]
    r_vec: tuple[GroupElement, ...]
    a: int
    b: int


def inner_product(a: Sequence[int], b: Sequence[int]) -> int:
    return sum(x * y for x, y in zip(a, b, strict=True)) % GROUP_ORDER


def num_rounds(n: int) -> int:
    if n < 1 or n & (n - 1) != 0:
        raise ValueError('vector length must be a power of 2')
    return n.bit_length() - 1


def prove(
    transcript: Transcript,
    q: GroupElement,
    g_vec: Sequence[GroupElement],
    h_vec: Sequence[GroupElement],
    a_vec: Sequence[int],
    b_vec: Sequence[int],
) -> InnerProductProof:
    n = len(g_vec)
    num_rounds(n)
    if not len(h_vec) == len(a_vec) == len(b_vec) == n:
        raise ValueError('all vectors must have the same length')

    g = list(g_vec)
    h = list(h_vec)
    a = [x % GROUP_ORDER for x in a_vec]
    b = [x % GROUP_ORDER for x in b_vec]
    l_vec: list[GroupElement] = []
    r_vec: list[GroupElement] = []

    while n > 1:
        n //= 2
        a_lo, a_hi = a[:n], a[n:]
        b_lo, b_hi = b[:n], b[n:]
        g_lo, g_hi = g[:n], g[n:]
        h_lo, h_hi = h[:n], h[n:]

        c_l = inner_product(a_lo, b_hi)
        c_r = inner_product(a_hi, b_lo)
        left = multiscalar_mul(a_lo + b_hi + [c_l], g_hi + h_lo + [q])
        right = multiscalar_mul(a_hi + b_lo + [c_r], g_lo + h_hi + [q])
        l_vec.append(left)
        r_vec.append(right)

        transcript.append_point(b'L', left)
        transcript.append_point(b'R', right)
        x = transcript.challenge_scalar(b'x')
        x_inv = scalar_inverse(x)

        a = [(lo * x + hi * x_inv) % GROUP_ORDER for lo, hi in zip(a_lo, a_hi)]
        b = [(lo * x_inv + hi * x) % GROUP_ORDER for lo, hi in zip(b_lo, b_hi)]
        if n > 1:
            g = [multiscalar_mul((x_inv, x), (lo, hi)) for lo, hi in zip(g_lo, g_hi)]
            h = [multiscalar_mul((x, x_inv), (lo, hi)) for lo, hi in zip(h_lo, h_hi)]

    return InnerProductProof(l_vec=tuple(l_vec), r_vec=tuple(r_vec), a=a[0], b=b[0])


def verify(
    transcript: Transcript,
    q: GroupElement,
    g_vec: Sequence[GroupElement],
    h_vec: Sequence[GroupElement],
    p: GroupElement,
    proof: InnerProductProof,
) -> bool:
    log = logger.new()
    n = len(g_vec)
    rounds = num_rounds(n)
    if len(h_vec) != n or len(proof.l_vec) != rounds or len(proof.r_vec) != rounds:
        log.debug('inner product proof has the wrong number of rounds', expected=rounds)
        return False

    challenges: list[int] = []
    for left, right in zip(proof.l_vec, proof.r_vec):
        transcript.append_point(b'L', left)
        transcript.append_point(b'R', right)
        x = transcript.challenge_scalar(b'x')
        if x == 0:
            return False
        challenges.append(x)
    inverses = [scalar_inverse(x) for x in challenges]

    # s[i] is the coefficient of G_i in the fully folded G, the coefficient of H_i is its inverse, which is
    # s[n - 1 - i]. Round j splits on bit (rounds - 1 - j) of the index.
    s = []
    for i in range(n):
        coefficient = 1
        for j in range(rounds):
            bit = (i >> (rounds - 1 - j)) & 1
            coefficient = coefficient * (challenges[j] if bit else inverses[j]) % GROUP_ORDER
        s.append(coefficient)

    folded_p = multiscalar_mul(
        [1] + [x * x for x in challenges] + [x_inv * x_inv for x_inv in inverses],
        [p] + list(proof.l_vec) + list(proof.r_vec),
    )
    expected = multiscalar_mul(
        [proof.a * s_i for s_i in s] + [proof.b * s_i for s_i in reversed(s)] + [proof.a * proof.b],
        list(g_vec) + list(h_vec) + [q],
    )
    if folded_p != expected:
        log.debug('inner product proof rejected')
        return False
    return True


def proof_size(n: int) -> int:
    return 64 * num_rounds(n) + 64


def encode_inner_product_proof(serializer: Serializer, proof: InnerProductProof) -> None:
    for left, right in zip(proof.l_vec, proof.r_vec, strict=True):
        encode_point(serializer, left)
        encode_point(serializer, right)
    encode_scalar(serializer, proof.a)
    encode_scalar(serializer, proof.b)


def decode_inner_product_proof(deserializer: Deserializer, n: int) -> InnerProductProof:
    l_vec: list[GroupElement] = []
    r_vec: list[GroupElement] = []
    for _ in range(num_rounds(n)):
        l_vec.append(decode_point(deserializer))
        r_vec.append(decode_point(deserializer))
    a = decode_scalar(deserializer)
    b = decode_scalar(deserializer)
    return InnerProductProof(l_vec=tuple(l_vec), r_vec=tuple(r_vec), a=a, b=b)

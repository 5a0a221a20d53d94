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

"""Ciphertext validity proofs.

For a ciphertext `(C, D)` under public key `P`, proves knowledge of `(a, r)` with `C = a*G + r*P` and `D = r*G`. The
prover commits to nonces `Y0 = k_a*G + k_r*P`, `Y1 = k_r*G` and answers the challenge `c` with `z_a = k_a + c*a`,
`z_r = k_r + c*r`. Only `c` and the responses are sent, the verifier rebuilds

    Y0 = z_a*G + z_r*P - c*C
    Y1 = z_r*G - c*D

and accepts when hashing them gives back `c`.

Several ciphertexts can be proven together under one challenge: the layout is `c || (z_a, z_r) * k`, so a single
proof is 96 bytes and a batch of two is 160.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from structlog import get_logger

from confidential_ct.crypto.elgamal import ElGamalCiphertext
from confidential_ct.crypto.exceptions import ProofSizeMismatchError
from confidential_ct.crypto.group import GROUP_ORDER, SCALAR_SIZE, G, GroupElement, multiscalar_mul, random_scalar
from confidential_ct.crypto.transcript import Transcript
from confidential_ct.serialization import Deserializer, Serializer
from confidential_ct.serialization.encoding.scalar import decode_scalar, encode_scalar

logger = get_logger()

VALIDITY_PROOF_SIZE = 3 * SCALAR_SIZE


def validity_proof_size(count: int) -> int:
    return SCALAR_SIZE + 2 * SCALAR_SIZE * count


@dataclass(frozen=True, slots=True)
class ValidityOpening:
    """A ciphertext together with what the prover knows about it."""
    ciphertext: ElGamalCiphertext
    public_key: GroupElement
    amount: int = field(repr=False)
    randomness: int = field(repr=False)


@dataclass(frozen=True, slots=True)
class ValidityProof:
    challenge: int
    responses: tuple[tuple[int, int], ...]

    def to_bytes(self) -> bytes:
        serializer = Serializer.build_bytes_serializer()
        encode_scalar(serializer, self.challenge)
        for z_a, z_r in self.responses:
            encode_scalar(serializer, z_a)
            encode_scalar(serializer, z_r)
        return serializer.finalize()

    @classmethod
    def from_bytes(cls, data: bytes, count: int = 1) -> ValidityProof:
        """Parse a proof covering `count` ciphertexts.

        Raises ProofSizeMismatchError on a wrong length and InvalidScalarError on a non-canonical scalar.
        """
        expected_size = validity_proof_size(count)
        if len(data) != expected_size:
            raise ProofSizeMismatchError(f'validity proof must be {expected_size} bytes, got {len(data)}')
        deserializer = Deserializer.build_bytes_deserializer(data)
        challenge = decode_scalar(deserializer)
        responses = tuple((decode_scalar(deserializer), decode_scalar(deserializer)) for _ in range(count))
        deserializer.finalize()
        return cls(challenge=challenge, responses=responses)


def _challenge(statements: Sequence[tuple[ElGamalCiphertext, GroupElement]],
               nonce_commitments: Sequence[tuple[GroupElement, GroupElement]]) -> int:
    transcript = Transcript(b'validity-proof')
    transcript.append_u64(b'k', len(statements))
    for (ciphertext, public_key), (y0, y1) in zip(statements, nonce_commitments, strict=True):
        transcript.append_point(b'P', public_key)
        transcript.append_point(b'C', ciphertext.commitment)
        transcript.append_point(b'D', ciphertext.handle)
        transcript.append_point(b'Y0', y0)
        transcript.append_point(b'Y1', y1)
    return transcript.challenge_scalar(b'c')


def generate_batched_validity_proof(openings: Sequence[ValidityOpening]) -> ValidityProof:
    """Prove that every ciphertext in `openings` is well formed, sharing one challenge.

    The openings are not checked: a wrong amount, randomness or public key yields a proof that fails verification.
    """
    if not openings:
        raise ValueError('at least one ciphertext is required')
    nonces = [(random_scalar(), random_scalar()) for _ in openings]
    nonce_commitments = [
        (multiscalar_mul((k_a, k_r), (G, opening.public_key)), G * k_r)
        for opening, (k_a, k_r) in zip(openings, nonces)
    ]
    statements = [(opening.ciphertext, opening.public_key) for opening in openings]
    c = _challenge(statements, nonce_commitments)
    responses = tuple(
        ((k_a + c * opening.amount) % GROUP_ORDER, (k_r + c * opening.randomness) % GROUP_ORDER)
        for opening, (k_a, k_r) in zip(openings, nonces)
    )
    return ValidityProof(challenge=c, responses=responses)


def verify_batched_validity_proof(proof: ValidityProof,
                                  statements: Sequence[tuple[ElGamalCiphertext, GroupElement]]) -> bool:
    """Verify `proof` against `(ciphertext, public_key)` pairs, in the order they were proven."""
    log = logger.new()
    if len(proof.responses) != len(statements):
        raise ProofSizeMismatchError(
            f'validity proof covers {len(proof.responses)} ciphertexts, {len(statements)} were given'
        )
    c = proof.challenge
    nonce_commitments = [
        (
            multiscalar_mul((z_a, z_r, -c), (G, public_key, ciphertext.commitment)),
            multiscalar_mul((z_r, -c), (G, ciphertext.handle)),
        )
        for (ciphertext, public_key), (z_a, z_r) in zip(statements, proof.responses)
    ]
    if _challenge(statements, nonce_commitments) != c:
        log.debug('validity proof rejected', ciphertexts=len(statements))
        return False
    return True


def generate_validity_proof(ciphertext: ElGamalCiphertext, public_key: GroupElement, amount: int,
                            randomness: int) -> ValidityProof:
    """Prove that `ciphertext` encrypts `amount` under `public_key` with `randomness`."""
    opening = ValidityOpening(ciphertext=ciphertext, public_key=public_key, amount=amount, randomness=randomness)
    return generate_batched_validity_proof([opening])


def verify_validity_proof(proof: ValidityProof, ciphertext: ElGamalCiphertext, public_key: GroupElement) -> bool:
    return verify_batched_validity_proof(proof, [(ciphertext, public_key)])

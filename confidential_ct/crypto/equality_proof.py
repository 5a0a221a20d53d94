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

"""Proofs of linear relations between encrypted amounts.

`EqualityProof` shows that two ciphertexts, possibly under different public keys, encrypt the same amount. It is used
when a balance is re-encrypted for another key.

`ConservationProof` shows that `dec(old) = dec(new) + dec(transfer)` for the three ciphertexts of a transfer, where
`old` and `new` are under the source key and `transfer` under the destination key. It also shows that two Pedersen
commitments hold the same amounts as `new` and `transfer`, which is what lets range proofs over those commitments
speak about the ciphertexts. Withdrawals reuse it with `transfer` set to the trivial encryption `(amount*G, 0)` and an
identity destination key.

Both are Schnorr proofs in compact form: only the challenge and the responses are sent.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from structlog import get_logger

from confidential_ct.crypto.elgamal import ElGamalCiphertext, ElGamalSecretKey
from confidential_ct.crypto.exceptions import ProofSizeMismatchError
from confidential_ct.crypto.group import (
    GROUP_ORDER,
    SCALAR_SIZE,
    G,
    GroupElement,
    get_generator_h,
    multiscalar_mul,
    random_scalar,
)
from confidential_ct.crypto.pedersen import PedersenCommitment
from confidential_ct.crypto.transcript import Transcript
from confidential_ct.serialization import Deserializer, Serializer
from confidential_ct.serialization.encoding.scalar import decode_scalar, encode_scalar

logger = get_logger()

EQUALITY_PROOF_SIZE = 3 * SCALAR_SIZE
CONSERVATION_PROOF_SIZE = 6 * SCALAR_SIZE


def _scalars_to_bytes(*scalars: int) -> bytes:
    serializer = Serializer.build_bytes_serializer()
    for scalar in scalars:
        encode_scalar(serializer, scalar)
    return serializer.finalize()


def _scalars_from_bytes(data: bytes, count: int, name: str) -> list[int]:
    expected_size = count * SCALAR_SIZE
    if len(data) != expected_size:
        raise ProofSizeMismatchError(f'{name} must be {expected_size} bytes, got {len(data)}')
    deserializer = Deserializer.build_bytes_deserializer(data)
    scalars = [decode_scalar(deserializer) for _ in range(count)]
    deserializer.finalize()
    return scalars


@dataclass(frozen=True, slots=True)
class EqualityProof:
    challenge: int
    z1: int
    z2: int

    def to_bytes(self) -> bytes:
        return _scalars_to_bytes(self.challenge, self.z1, self.z2)

    @classmethod
    def from_bytes(cls, data: bytes) -> EqualityProof:
        challenge, z1, z2 = _scalars_from_bytes(data, 3, 'equality proof')
        return cls(challenge=challenge, z1=z1, z2=z2)


def _equality_challenge(ciphertext1: ElGamalCiphertext, public_key1: GroupElement,
                        ciphertext2: ElGamalCiphertext, public_key2: GroupElement,
                        y0: GroupElement, y1: GroupElement, y2: GroupElement) -> int:
    transcript = Transcript(b'equality-proof')
    transcript.append_point(b'P1', public_key1)
    transcript.append_point(b'C1', ciphertext1.commitment)
    transcript.append_point(b'D1', ciphertext1.handle)
    transcript.append_point(b'P2', public_key2)
    transcript.append_point(b'C2', ciphertext2.commitment)
    transcript.append_point(b'D2', ciphertext2.handle)
    transcript.append_point(b'Y0', y0)
    transcript.append_point(b'Y1', y1)
    transcript.append_point(b'Y2', y2)
    return transcript.challenge_scalar(b'c')


def generate_equality_proof(ciphertext1: ElGamalCiphertext, public_key1: GroupElement, randomness1: int,
                            ciphertext2: ElGamalCiphertext, public_key2: GroupElement,
                            randomness2: int) -> EqualityProof:
    """Prove that both ciphertexts encrypt the same amount.

    The relations proven are `D1 = r1*G`, `D2 = r2*G` and `C1 - C2 = r1*P1 - r2*P2`, which hold exactly when the
    amounts match.
    """
    k1 = random_scalar()
    k2 = random_scalar()
    y0 = multiscalar_mul((k1, -k2), (public_key1, public_key2))
    y1 = G * k1
    y2 = G * k2
    c = _equality_challenge(ciphertext1, public_key1, ciphertext2, public_key2, y0, y1, y2)
    return EqualityProof(
        challenge=c,
        z1=(k1 + c * randomness1) % GROUP_ORDER,
        z2=(k2 + c * randomness2) % GROUP_ORDER,
    )


def verify_equality_proof(proof: EqualityProof, ciphertext1: ElGamalCiphertext, public_key1: GroupElement,
                          ciphertext2: ElGamalCiphertext, public_key2: GroupElement) -> bool:
    c = proof.challenge
    difference = ciphertext1.commitment - ciphertext2.commitment
    y0 = multiscalar_mul((proof.z1, -proof.z2, -c), (public_key1, public_key2, difference))
    y1 = multiscalar_mul((proof.z1, -c), (G, ciphertext1.handle))
    y2 = multiscalar_mul((proof.z2, -c), (G, ciphertext2.handle))
    if _equality_challenge(ciphertext1, public_key1, ciphertext2, public_key2, y0, y1, y2) != c:
        logger.new().debug('equality proof rejected')
        return False
    return True


@dataclass(frozen=True, slots=True)
class ConservationStatement:
    """Public values of a transfer: `old` and `new` are under `source_pubkey`, `transfer` under `dest_pubkey`."""
    source_pubkey: GroupElement
    dest_pubkey: GroupElement
    old_ciphertext: ElGamalCiphertext
    new_ciphertext: ElGamalCiphertext
    transfer_ciphertext: ElGamalCiphertext
    new_commitment: PedersenCommitment
    transfer_commitment: PedersenCommitment


@dataclass(frozen=True, slots=True)
class ConservationWitness:
    source_secret_key: ElGamalSecretKey
    new_randomness: int = field(repr=False)
    transfer_randomness: int = field(repr=False)
    new_blinding: int = field(repr=False)
    transfer_blinding: int = field(repr=False)


@dataclass(frozen=True, slots=True)
class ConservationProof:
    challenge: int
    z_secret: int
    z_new: int
    z_transfer: int
    z_new_blinding: int
    z_transfer_blinding: int

    def to_bytes(self) -> bytes:
        return _scalars_to_bytes(self.challenge, self.z_secret, self.z_new, self.z_transfer, self.z_new_blinding,
                                 self.z_transfer_blinding)

    @classmethod
    def from_bytes(cls, data: bytes) -> ConservationProof:
        c, z_s, z_n, z_t, z_gn, z_gt = _scalars_from_bytes(data, 6, 'conservation proof')
        return cls(challenge=c, z_secret=z_s, z_new=z_n, z_transfer=z_t, z_new_blinding=z_gn,
                   z_transfer_blinding=z_gt)


def _conservation_challenge(statement: ConservationStatement, nonce_commitments: tuple[GroupElement, ...]) -> int:
    transcript = Transcript(b'conservation-proof')
    transcript.append_point(b'P_s', statement.source_pubkey)
    transcript.append_point(b'P_d', statement.dest_pubkey)
    for label, ciphertext in ((b'old', statement.old_ciphertext), (b'new', statement.new_ciphertext),
                              (b'transfer', statement.transfer_ciphertext)):
        transcript.append_point(label + b'.C', ciphertext.commitment)
        transcript.append_point(label + b'.D', ciphertext.handle)
    transcript.append_point(b'V_n', statement.new_commitment)
    transcript.append_point(b'V_t', statement.transfer_commitment)
    for index, point in enumerate(nonce_commitments):
        transcript.append_point(b'Y%d' % index, point)
    return transcript.challenge_scalar(b'c')


def generate_conservation_proof(statement: ConservationStatement, witness: ConservationWitness) -> ConservationProof:
    """Prove `dec(old) = dec(new) + dec(transfer)` and that the commitments match `new` and `transfer`.

    Relations, with `s` the source secret key and `g_n`, `g_t` the commitment blindings:

        P_s = s*G
        D_n = r_n*G
        D_t = r_t*G
        C_o - C_n - C_t = s*D_o - r_n*P_s - r_t*P_d
        V_n - C_n = g_n*H - r_n*P_s
        V_t - C_t = g_t*H - r_t*P_d
    """
    h = get_generator_h()
    s = witness.source_secret_key.scalar()
    k_s, k_n, k_t, k_gn, k_gt = (random_scalar() for _ in range(5))
    p_s = statement.source_pubkey
    p_d = statement.dest_pubkey
    nonce_commitments = (
        G * k_s,
        G * k_n,
        G * k_t,
        multiscalar_mul((k_s, -k_n, -k_t), (statement.old_ciphertext.handle, p_s, p_d)),
        multiscalar_mul((k_gn, -k_n), (h, p_s)),
        multiscalar_mul((k_gt, -k_t), (h, p_d)),
    )
    c = _conservation_challenge(statement, nonce_commitments)
    return ConservationProof(
        challenge=c,
        z_secret=(k_s + c * s) % GROUP_ORDER,
        z_new=(k_n + c * witness.new_randomness) % GROUP_ORDER,
        z_transfer=(k_t + c * witness.transfer_randomness) % GROUP_ORDER,
        z_new_blinding=(k_gn + c * witness.new_blinding) % GROUP_ORDER,
        z_transfer_blinding=(k_gt + c * witness.transfer_blinding) % GROUP_ORDER,
    )


def verify_conservation_proof(proof: ConservationProof, statement: ConservationStatement) -> bool:
    h = get_generator_h()
    c = proof.challenge
    p_s = statement.source_pubkey
    p_d = statement.dest_pubkey
    old = statement.old_ciphertext
    new = statement.new_ciphertext
    transfer = statement.transfer_ciphertext
    balance = old.commitment - new.commitment - transfer.commitment
    nonce_commitments = (
        multiscalar_mul((proof.z_secret, -c), (G, p_s)),
        multiscalar_mul((proof.z_new, -c), (G, new.handle)),
        multiscalar_mul((proof.z_transfer, -c), (G, transfer.handle)),
        multiscalar_mul((proof.z_secret, -proof.z_new, -proof.z_transfer, -c), (old.handle, p_s, p_d, balance)),
        multiscalar_mul((proof.z_new_blinding, -proof.z_new, -c),
                        (h, p_s, statement.new_commitment - new.commitment)),
        multiscalar_mul((proof.z_transfer_blinding, -proof.z_transfer, -c),
                        (h, p_d, statement.transfer_commitment - transfer.commitment)),
    )
    if _conservation_challenge(statement, nonce_commitments) != c:
        logger.new().debug('conservation proof rejected')
        return False
    return True

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

import pytest

from confidential_ct.crypto.elgamal import encrypt, generate_keypair
from confidential_ct.crypto.exceptions import InvalidScalarError, ProofSizeMismatchError
from confidential_ct.crypto.group import GROUP_ORDER
from confidential_ct.crypto.validity_proof import (
    VALIDITY_PROOF_SIZE,
    ValidityOpening,
    ValidityProof,
    generate_batched_validity_proof,
    generate_validity_proof,
    validity_proof_size,
    verify_batched_validity_proof,
    verify_validity_proof,
)


class TestValidityProof:
    def test_valid_proof(self) -> None:
        keypair = generate_keypair()
        result = encrypt(55, keypair.public_key)
        proof = generate_validity_proof(result.ciphertext, keypair.public_key, 55, result.randomness)
        assert verify_validity_proof(proof, result.ciphertext, keypair.public_key)

    def test_mismatched_public_key(self) -> None:
        keypair = generate_keypair()
        other = generate_keypair()
        result = encrypt(55, keypair.public_key)
        proof = generate_validity_proof(result.ciphertext, other.public_key, 55, result.randomness)
        assert not verify_validity_proof(proof, result.ciphertext, other.public_key)
        proof = generate_validity_proof(result.ciphertext, keypair.public_key, 55, result.randomness)
        assert not verify_validity_proof(proof, result.ciphertext, other.public_key)

    def test_wrong_witness(self) -> None:
        keypair = generate_keypair()
        result = encrypt(55, keypair.public_key)
        proof = generate_validity_proof(result.ciphertext, keypair.public_key, 56, result.randomness)
        assert not verify_validity_proof(proof, result.ciphertext, keypair.public_key)

    def test_other_ciphertext(self) -> None:
        keypair = generate_keypair()
        result = encrypt(55, keypair.public_key)
        other = encrypt(55, keypair.public_key)
        proof = generate_validity_proof(result.ciphertext, keypair.public_key, 55, result.randomness)
        assert not verify_validity_proof(proof, other.ciphertext, keypair.public_key)

    def test_serialization(self) -> None:
        keypair = generate_keypair()
        result = encrypt(1, keypair.public_key)
        proof = generate_validity_proof(result.ciphertext, keypair.public_key, 1, result.randomness)
        data = proof.to_bytes()
        assert len(data) == VALIDITY_PROOF_SIZE == 96
        assert ValidityProof.from_bytes(data) == proof

    def test_tampered_bytes(self) -> None:
        keypair = generate_keypair()
        result = encrypt(1, keypair.public_key)
        data = generate_validity_proof(result.ciphertext, keypair.public_key, 1, result.randomness).to_bytes()
        for index in (0, 31, 32, 50, 64, 95):
            tampered = bytearray(data)
            tampered[index] ^= 0x01
            try:
                proof = ValidityProof.from_bytes(bytes(tampered))
            except InvalidScalarError:
                continue
            assert not verify_validity_proof(proof, result.ciphertext, keypair.public_key)

    def test_non_canonical_scalar(self) -> None:
        with pytest.raises(InvalidScalarError):
            ValidityProof.from_bytes(GROUP_ORDER.to_bytes(32, 'little') + b'\x00' * 64)

    @pytest.mark.parametrize('size', [0, 95, 97, 160])
    def test_wrong_size(self, size: int) -> None:
        with pytest.raises(ProofSizeMismatchError):
            ValidityProof.from_bytes(b'\x00' * size)


class TestBatchedValidityProof:
    def _openings(self) -> list[ValidityOpening]:
        source = generate_keypair()
        dest = generate_keypair()
        first = encrypt(10, source.public_key)
        second = encrypt(20, dest.public_key)
        return [
            ValidityOpening(first.ciphertext, source.public_key, 10, first.randomness),
            ValidityOpening(second.ciphertext, dest.public_key, 20, second.randomness),
        ]

    def test_valid_batch(self) -> None:
        openings = self._openings()
        proof = generate_batched_validity_proof(openings)
        statements = [(opening.ciphertext, opening.public_key) for opening in openings]
        assert verify_batched_validity_proof(proof, statements)
        data = proof.to_bytes()
        assert len(data) == validity_proof_size(2) == 160
        assert ValidityProof.from_bytes(data, count=2) == proof

    def test_swapped_statements(self) -> None:
        openings = self._openings()
        proof = generate_batched_validity_proof(openings)
        statements = [(opening.ciphertext, opening.public_key) for opening in reversed(openings)]
        assert not verify_batched_validity_proof(proof, statements)

    def test_one_bad_opening_breaks_the_batch(self) -> None:
        good, bad = self._openings()
        bad = ValidityOpening(bad.ciphertext, bad.public_key, bad.amount + 1, bad.randomness)
        proof = generate_batched_validity_proof([good, bad])
        statements = [(good.ciphertext, good.public_key), (bad.ciphertext, bad.public_key)]
        assert not verify_batched_validity_proof(proof, statements)

    def test_statement_count_mismatch(self) -> None:
        openings = self._openings()
        proof = generate_batched_validity_proof(openings)
        with pytest.raises(ProofSizeMismatchError):
            verify_batched_validity_proof(proof, [(openings[0].ciphertext, openings[0].public_key)])

    def test_empty_batch(self) -> None:
        with pytest.raises(ValueError):
            generate_batched_validity_proof([])

    def test_openings_hide_witness(self) -> None:
        opening = self._openings()[0]
        assert str(opening.randomness) not in repr(opening)

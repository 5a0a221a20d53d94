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

from confidential_ct.crypto.amount import MAX_AMOUNT
from confidential_ct.crypto.exceptions import ProofSizeMismatchError, ValueOutOfRangeError
from confidential_ct.crypto.group import GROUP_ORDER, G, get_generator_h, random_scalar
from confidential_ct.crypto.pedersen import create_commitment
from confidential_ct.crypto.range_proof import (
    RangeProof,
    generate_aggregated_range_proof,
    generate_range_proof,
    range_proof_size,
    verify_range_proof,
)


def _flip(data: bytes, index: int) -> bytes:
    return data[:index] + bytes([data[index] ^ 0x01]) + data[index + 1:]


class TestRangeProof:
    @pytest.mark.parametrize('amount', [0, 1, 1000, MAX_AMOUNT])
    def test_valid_proof(self, amount: int) -> None:
        commitment, blinding = create_commitment(amount)
        proof = generate_range_proof(amount, commitment, blinding)
        assert len(proof.proof) == range_proof_size(1) == 672
        assert proof.commitment == commitment
        assert verify_range_proof(proof, commitment)
        assert verify_range_proof(proof)

    def test_out_of_range(self) -> None:
        with pytest.raises(ValueOutOfRangeError):
            generate_range_proof(-1, G, 1)
        with pytest.raises(ValueOutOfRangeError):
            generate_range_proof(MAX_AMOUNT + 1, G, 1)

    def test_commitment_to_negative_amount_is_rejected(self) -> None:
        # -1 mod the group order is far above 2^64, so no bit decomposition can explain it
        blinding = random_scalar()
        commitment = G * (GROUP_ORDER - 1) + get_generator_h() * blinding
        proof = generate_range_proof(MAX_AMOUNT, commitment, blinding)
        assert not verify_range_proof(proof)

    def test_wrong_commitment(self) -> None:
        commitment, blinding = create_commitment(10)
        other, _ = create_commitment(10)
        proof = generate_range_proof(10, commitment, blinding)
        assert not verify_range_proof(proof, other)

    def test_tampered_bytes(self) -> None:
        commitment, blinding = create_commitment(123456)
        proof = generate_range_proof(123456, commitment, blinding)
        # A, S, T1, T2, t, tau_x, mu, first L, last R, a and b
        for index in (0, 40, 70, 100, 130, 170, 200, 230, 607, 620, 671):
            tampered = RangeProof(proof=_flip(proof.proof, index), commitments=proof.commitments)
            assert not verify_range_proof(tampered), index

    def test_wrong_size(self) -> None:
        commitment, blinding = create_commitment(5)
        proof = generate_range_proof(5, commitment, blinding)
        with pytest.raises(ProofSizeMismatchError):
            verify_range_proof(RangeProof(proof=proof.proof[:-1], commitments=proof.commitments))
        with pytest.raises(ProofSizeMismatchError):
            verify_range_proof(RangeProof(proof=proof.proof + b'\x00', commitments=proof.commitments))


class TestAggregatedRangeProof:
    def test_two_values(self) -> None:
        amounts = [7, MAX_AMOUNT]
        blindings = [random_scalar(), random_scalar()]
        proof = generate_aggregated_range_proof(amounts, blindings)
        assert len(proof.proof) == range_proof_size(2) == 736
        assert proof.commitments == tuple(
            G * amount + get_generator_h() * blinding for amount, blinding in zip(amounts, blindings)
        )
        assert verify_range_proof(proof)

    def test_four_values(self) -> None:
        proof = generate_aggregated_range_proof([1, 2, 3, 4], [random_scalar() for _ in range(4)])
        assert len(proof.proof) == range_proof_size(4) == 800
        assert verify_range_proof(proof)

    def test_swapped_commitments(self) -> None:
        proof = generate_aggregated_range_proof([1, 2], [random_scalar(), random_scalar()])
        swapped = (proof.commitments[1], proof.commitments[0])
        assert not verify_range_proof(proof, swapped)

    def test_commitment_property_requires_one_value(self) -> None:
        proof = generate_aggregated_range_proof([1, 2], [random_scalar(), random_scalar()])
        with pytest.raises(ValueError):
            proof.commitment

    def test_proof_for_other_count(self) -> None:
        proof = generate_aggregated_range_proof([1, 2], [random_scalar(), random_scalar()])
        with pytest.raises(ProofSizeMismatchError):
            verify_range_proof(proof, proof.commitments[:1])

    def test_invalid_counts(self) -> None:
        with pytest.raises(ValueError):
            generate_aggregated_range_proof([1, 2, 3], [1, 2, 3])
        with pytest.raises(ValueError):
            generate_aggregated_range_proof([], [])
        with pytest.raises(ValueError):
            generate_aggregated_range_proof([1] * 16, [1] * 16)
        with pytest.raises(ValueError):
            generate_aggregated_range_proof([1, 2], [1])

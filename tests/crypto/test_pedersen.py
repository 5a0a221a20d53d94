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

from confidential_ct.crypto.exceptions import ValueOutOfRangeError
from confidential_ct.crypto.group import GROUP_ORDER, G, get_generator_h, random_scalar
from confidential_ct.crypto.pedersen import (
    COMMITMENT_SIZE,
    create_commitment,
    create_trivial_commitment,
    validate_commitment,
    verify_commitments_sum,
)


class TestPedersenCommitment:
    def test_commitment_opens(self) -> None:
        commitment, blinding = create_commitment(100)
        assert commitment == G * 100 + get_generator_h() * blinding
        assert len(commitment.data) == COMMITMENT_SIZE

    def test_explicit_blinding(self) -> None:
        r = random_scalar()
        assert create_commitment(5, r) == create_commitment(5, r)
        assert create_commitment(5, r)[0] != create_commitment(6, r)[0]

    def test_fresh_blinding_hides(self) -> None:
        assert create_commitment(5)[0] != create_commitment(5)[0]

    def test_homomorphic(self) -> None:
        c1, r1 = create_commitment(30)
        c2, r2 = create_commitment(12)
        c3, _ = create_commitment(42, (r1 + r2) % GROUP_ORDER)
        assert c1 + c2 == c3

    def test_trivial_commitment(self) -> None:
        assert create_trivial_commitment(7) == G * 7
        assert create_trivial_commitment(0).is_identity()

    def test_verify_commitments_sum(self) -> None:
        c_in, r_in = create_commitment(100)
        c_out1, r_out1 = create_commitment(60)
        c_out2, _ = create_commitment(40, r_in - r_out1)
        assert verify_commitments_sum([c_in], [c_out1, c_out2])
        assert not verify_commitments_sum([c_in], [c_out1])
        c_fee = create_trivial_commitment(10)
        c_out3, _ = create_commitment(30, r_in - r_out1)
        assert verify_commitments_sum([c_in], [c_out1, c_out3, c_fee])

    def test_amount_range(self) -> None:
        with pytest.raises(ValueOutOfRangeError):
            create_commitment(-1)
        with pytest.raises(ValueOutOfRangeError):
            create_trivial_commitment(2**64)

    def test_validate_commitment(self) -> None:
        commitment, _ = create_commitment(1)
        assert validate_commitment(commitment.data)
        assert not validate_commitment(b'\x00' * 32)
        assert not validate_commitment(commitment.data[:31])

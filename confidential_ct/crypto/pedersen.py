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

"""Pedersen commitment helpers."""

from typing import Optional, Sequence

from confidential_ct.crypto.amount import validate_amount
from confidential_ct.crypto.exceptions import InvalidGroupElementError
from confidential_ct.crypto.group import GROUP_ORDER, G, GroupElement, get_generator_h, random_scalar, sum_points

COMMITMENT_SIZE: int = 32

PedersenCommitment = GroupElement


def create_commitment(amount: int, blinding: Optional[int] = None) -> tuple[PedersenCommitment, int]:
    """Create a Pedersen commitment: C = amount * G + blinding * H.

    A fresh blinding is drawn when none is given. The blinding is returned because the prover needs it later.
    """
    validate_amount(amount)
    r = random_scalar() if blinding is None else blinding % GROUP_ORDER
    return G * amount + get_generator_h() * r, r


def create_trivial_commitment(amount: int) -> PedersenCommitment:
    """Create a trivial (zero-blinding) Pedersen commitment: C = amount * G."""
    validate_amount(amount)
    return G * amount


def verify_commitments_sum(positive: Sequence[PedersenCommitment], negative: Sequence[PedersenCommitment]) -> bool:
    """Verify that sum(positive) == sum(negative)."""
    return sum_points(positive) == sum_points(negative)


def validate_commitment(data: bytes) -> bool:
    """Validate that bytes represent a valid Pedersen commitment (subgroup point)."""
    try:
        GroupElement.from_bytes(data)
    except InvalidGroupElementError:
        return False
    return True

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

from confidential_ct.crypto.exceptions import ValueOutOfRangeError

# Amounts are unsigned 64-bit integers.
AMOUNT_BITS = 64
MAX_AMOUNT = 2**AMOUNT_BITS - 1


def validate_amount(amount: int) -> None:
    """Raise ValueOutOfRangeError unless 0 <= amount < 2**64."""
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise ValueOutOfRangeError(f'amount must be an int, got {type(amount).__name__}')
    if not 0 <= amount <= MAX_AMOUNT:
        raise ValueOutOfRangeError(f'amount must be in [0, 2**{AMOUNT_BITS})')

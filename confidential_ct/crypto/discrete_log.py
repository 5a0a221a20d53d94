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

"""Baby-step giant-step recovery of small plaintexts from `amount * G`."""

import functools
from typing import Optional

from structlog import get_logger

from confidential_ct.crypto.exceptions import DecryptionFailedError
from confidential_ct.crypto.group import IDENTITY, G, GroupElement

logger = get_logger()


class DiscreteLogDecoder:
    """Solve `x * G == point` for `0 <= x < 2**max_bits`.

    Keeps a table of `2**ceil(max_bits/2)` baby steps and walks at most `2**floor(max_bits/2)` giant steps, so the
    cost of a decode is about the square root of the searched range.
    """

    def __init__(self, max_bits: int) -> None:
        if not 1 <= max_bits <= 64:
            raise ValueError('max_bits must be in [1, 64]')
        self.log = logger.new()
        self.max_bits = max_bits
        baby_bits = (max_bits + 1) // 2
        self._baby_steps = 1 << baby_bits
        self._giant_steps = 1 << (max_bits - baby_bits)
        self._table = _baby_step_table(self._baby_steps)
        self._giant_stride = -(G * self._baby_steps)

    def decode(self, point: GroupElement) -> int:
        current = point
        for giant in range(self._giant_steps):
            baby = self._table.get(current.data)
            if baby is not None:
                return giant * self._baby_steps + baby
            current = current + self._giant_stride
        self.log.debug('discrete log not found', max_bits=self.max_bits)
        raise DecryptionFailedError(f'value is not in [0, 2**{self.max_bits})')

    def try_decode(self, point: GroupElement) -> Optional[int]:
        try:
            return self.decode(point)
        except DecryptionFailedError:
            return None


@functools.lru_cache(maxsize=None)
def _baby_step_table(size: int) -> dict[bytes, int]:
    log = logger.new()
    table: dict[bytes, int] = {}
    point = IDENTITY
    for index in range(size):
        table[point.data] = index
        point = point + G
    log.debug('baby-step table built', size=size)
    return table


@functools.lru_cache(maxsize=None)
def get_decoder(max_bits: int) -> DiscreteLogDecoder:
    """Return a shared decoder for `max_bits`, building its table on first use."""
    return DiscreteLogDecoder(max_bits)

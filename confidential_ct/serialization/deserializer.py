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

from __future__ import annotations

from .consts import DEFAULT_BYTES_MAX_LENGTH
from .exceptions import OutOfDataError, SerializationError, TooLongError


class Deserializer:
    """Reads values off a byte sequence, front to back.

    Errors carry the offset where reading failed, which is what matters when a fixed-layout proof is corrupted.
    """

    def __init__(self, data: bytes | memoryview) -> None:
        self._view = memoryview(data)
        self._offset = 0

    @classmethod
    def build_bytes_deserializer(cls, data: bytes | memoryview) -> Deserializer:
        return cls(data)

    def offset(self) -> int:
        return self._offset

    def is_empty(self) -> bool:
        return not self._view

    def finalize(self) -> None:
        """Check that all bytes were consumed, raises `SerializationError` otherwise."""
        if not self.is_empty():
            raise SerializationError(f'{len(self._view)} bytes of trailing data at offset {self._offset}')

    def peek_bytes(self, n: int) -> memoryview:
        """Return the next n bytes without consuming them."""
        if n < 0:
            raise SerializationError('value cannot be negative')
        if len(self._view) < n:
            raise OutOfDataError(f'need {n} bytes at offset {self._offset}, only {len(self._view)} left')
        return self._view[:n]

    def read_byte(self) -> int:
        return self.read_bytes(1)[0]

    def read_bytes(self, n: int, *, max_bytes: int | None = DEFAULT_BYTES_MAX_LENGTH) -> memoryview:
        """Read n bytes, errors if there isn't enough data"""
        if max_bytes is not None and n > max_bytes:
            raise TooLongError(f'cannot read {n} bytes, limit is {max_bytes}')
        data = self.peek_bytes(n)
        self._view = self._view[n:]
        self._offset += n
        return data

    def read_all(self) -> memoryview:
        return self.read_bytes(len(self._view), max_bytes=None)

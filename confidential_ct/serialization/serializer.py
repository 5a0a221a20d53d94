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

import struct
from typing import Any

from .consts import DEFAULT_BYTES_MAX_LENGTH
from .exceptions import TooLongError


class Serializer:
    """Collects the parts of a wire object and joins them once, on `finalize`."""

    def __init__(self) -> None:
        self._parts: list[bytes] = []
        self._size = 0

    @classmethod
    def build_bytes_serializer(cls) -> Serializer:
        return cls()

    def size(self) -> int:
        """Number of bytes written so far."""
        return self._size

    def write_byte(self, data: int) -> None:
        # int.to_bytes checks for correct range
        self._write(data.to_bytes(1, 'little'))

    def write_bytes(self, data: bytes | memoryview, *, max_bytes: int | None = DEFAULT_BYTES_MAX_LENGTH) -> None:
        """Write a byte sequence.

        There is a default limit on the length written per call, `max_bytes=None` removes it.
        """
        if max_bytes is not None and len(data) > max_bytes:
            raise TooLongError(f'cannot write {len(data)} bytes, limit is {max_bytes}')
        self._write(bytes(data))

    def write_struct(self, format: str, *values: Any) -> None:
        self.write_bytes(struct.pack(format, *values))

    def _write(self, data: bytes) -> None:
        self._parts.append(data)
        self._size += len(data)

    def finalize(self) -> bytes:
        return b''.join(self._parts)

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

"""
This module implements encoding of scalars as 32-byte little-endian integers.

Decoding rejects values that are not reduced modulo the group order, so every scalar has exactly one encoding.
"""

from confidential_ct.crypto.group import SCALAR_SIZE, scalar_from_bytes, scalar_to_bytes
from confidential_ct.serialization import Deserializer, Serializer


def encode_scalar(serializer: Serializer, scalar: int) -> None:
    serializer.write_bytes(scalar_to_bytes(scalar))


def decode_scalar(deserializer: Deserializer) -> int:
    data = deserializer.read_bytes(SCALAR_SIZE)
    return scalar_from_bytes(bytes(data))

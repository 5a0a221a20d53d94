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
This module implements encoding of group elements as their 32-byte compressed form.

Decoding validates the point: a non-canonical encoding, a point off the curve or outside the prime-order subgroup
raises `InvalidGroupElementError`.
"""

from confidential_ct.crypto.group import POINT_SIZE, GroupElement
from confidential_ct.serialization import Deserializer, Serializer


def encode_point(serializer: Serializer, point: GroupElement) -> None:
    serializer.write_bytes(point.data)


def decode_point(deserializer: Deserializer) -> GroupElement:
    data = deserializer.read_bytes(POINT_SIZE)
    return GroupElement.from_bytes(data)

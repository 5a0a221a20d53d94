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
This module implements encoding of unsigned integers with a fixed size in little-endian.

>>> from confidential_ct.serialization import Deserializer, Serializer
>>> se = Serializer.build_bytes_serializer()
>>> encode_uint(se, 1234, length=8)
>>> se.finalize().hex()
'd204000000000000'
>>> de = Deserializer.build_bytes_deserializer(bytes.fromhex('d204000000000000'))
>>> decode_uint(de, length=8)
1234
>>> de.finalize()
"""

from confidential_ct.serialization import Deserializer, Serializer


def encode_uint(serializer: Serializer, number: int, *, length: int) -> None:
    """ Encode a non-negative int using the given byte-length.

    This modules's docstring has more details and examples.
    """
    try:
        data = number.to_bytes(length, byteorder='little', signed=False)
    except OverflowError:
        raise ValueError('too big to encode')
    serializer.write_bytes(data)


def decode_uint(deserializer: Deserializer, *, length: int) -> int:
    """ Decode a non-negative int using the given byte-length.

    This modules's docstring has more details and examples.
    """
    data = deserializer.read_bytes(length)
    return int.from_bytes(data, byteorder='little', signed=False)


def encode_u64(serializer: Serializer, number: int) -> None:
    encode_uint(serializer, number, length=8)


def decode_u64(deserializer: Deserializer) -> int:
    return decode_uint(deserializer, length=8)

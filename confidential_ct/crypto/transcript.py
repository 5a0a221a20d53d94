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

"""Fiat-Shamir transcript.

Prover and verifier feed the same public values, in the same order, and derive the same challenges. Every message is
framed with its label and length so that distinct transcripts can never hash to the same byte stream.
"""

import hashlib
import struct

from confidential_ct.crypto.group import GroupElement, reduce_scalar, scalar_to_bytes

# Bumped whenever a proof layout or the order of transcript messages changes.
WIRE_VERSION = 1

_PROTOCOL_LABEL = b'confidential-ct'


class Transcript:
    def __init__(self, label: bytes) -> None:
        self._hasher = hashlib.sha512()
        self.append_message(b'protocol', _PROTOCOL_LABEL)
        self.append_message(b'version', struct.pack('<I', WIRE_VERSION))
        self.append_message(b'domain', label)

    def append_message(self, label: bytes, message: bytes) -> None:
        self._hasher.update(struct.pack('<I', len(label)))
        self._hasher.update(label)
        self._hasher.update(struct.pack('<I', len(message)))
        self._hasher.update(message)

    def append_point(self, label: bytes, point: GroupElement) -> None:
        self.append_message(label, point.data)

    def append_scalar(self, label: bytes, scalar: int) -> None:
        self.append_message(label, scalar_to_bytes(scalar))

    def append_u64(self, label: bytes, value: int) -> None:
        self.append_message(label, struct.pack('<Q', value))

    def challenge_scalar(self, label: bytes) -> int:
        """Derive a challenge from everything appended so far, and append the challenge itself."""
        hasher = self._hasher.copy()
        hasher.update(b'challenge')
        hasher.update(label)
        digest = hasher.digest()
        self.append_message(label, digest)
        return reduce_scalar(digest)

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

from confidential_ct.exception import ConfidentialCTError


class CryptoError(ConfidentialCTError):
    """Base class for errors raised by the confidential cryptography layer."""


class ValueOutOfRangeError(CryptoError, ValueError):
    """Amount is not in [0, 2**64)"""


class InsufficientBalanceError(CryptoError):
    """Balance is lower than the requested amount, or it could not be recovered"""


class InvalidSecretKeyError(CryptoError):
    """Secret key scalar is zero or was already zeroized"""


class ProofSizeMismatchError(CryptoError):
    """Serialized proof or ciphertext does not have its fixed expected length"""


class DecryptionFailedError(CryptoError):
    """Plaintext was not found within the decoding bound"""


class InvalidGroupElementError(CryptoError):
    """Bytes are not the canonical encoding of a prime-order subgroup point"""


class InvalidScalarError(CryptoError):
    """Bytes are not the canonical encoding of a scalar"""

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

import random

import base58
import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from confidential_ct.crypto.amount import MAX_AMOUNT
from confidential_ct.crypto.elgamal import (
    CIPHERTEXT_SIZE,
    ElGamalCiphertext,
    ElGamalSecretKey,
    decrypt,
    decrypt_to_point,
    decrypt_with_decoder,
    derive_keypair,
    deserialize_ciphertext,
    encrypt,
    encrypt_trivial,
    generate_keypair,
    rerandomize,
    serialize_ciphertext,
)
from confidential_ct.crypto.exceptions import (
    InvalidGroupElementError,
    InvalidSecretKeyError,
    ProofSizeMismatchError,
    ValueOutOfRangeError,
)
from confidential_ct.crypto.group import GROUP_ORDER, IDENTITY, G, random_scalar


class TestKeypair:
    def test_public_key_matches_secret(self) -> None:
        keypair = generate_keypair()
        assert keypair.public_key == G * keypair.secret_key.scalar()
        assert keypair.secret_key.public_key() == keypair.public_key

    def test_seeded_keypair_is_deterministic(self) -> None:
        assert generate_keypair(b'seed').public_key == generate_keypair(b'seed').public_key
        assert generate_keypair(b'seed').public_key != generate_keypair(b'other seed').public_key

    def test_random_keypairs_differ(self) -> None:
        assert generate_keypair().public_key != generate_keypair().public_key

    def test_zero_secret_key(self) -> None:
        with pytest.raises(InvalidSecretKeyError):
            ElGamalSecretKey(0)
        with pytest.raises(InvalidSecretKeyError):
            ElGamalSecretKey(GROUP_ORDER)

    def test_secret_key_bytes(self) -> None:
        secret_key = generate_keypair().secret_key
        assert ElGamalSecretKey.from_bytes(secret_key.to_bytes()).scalar() == secret_key.scalar()
        with pytest.raises(InvalidSecretKeyError):
            ElGamalSecretKey.from_bytes(b'\x01' * 31)

    def test_zeroize(self) -> None:
        secret_key = generate_keypair().secret_key
        secret_key.zeroize()
        assert secret_key.is_zeroized()
        with pytest.raises(InvalidSecretKeyError):
            secret_key.scalar()

    def test_context_manager_zeroizes_on_exception(self) -> None:
        keypair = generate_keypair()
        with pytest.raises(RuntimeError):
            with keypair:
                raise RuntimeError('boom')
        assert keypair.secret_key.is_zeroized()

    def test_secret_key_context_manager(self) -> None:
        with ElGamalSecretKey(random_scalar()) as secret_key:
            assert not secret_key.is_zeroized()
        assert secret_key.is_zeroized()

    def test_repr_hides_secret(self) -> None:
        keypair = generate_keypair()
        secret_hex = keypair.secret_key.to_bytes().hex()
        assert secret_hex not in repr(keypair)
        assert str(keypair.secret_key.scalar()) not in repr(keypair)
        assert 'redacted' in repr(keypair.secret_key)


class TestDeriveKeypair:
    def test_deterministic_per_signer_and_account(self) -> None:
        signer = Ed25519PrivateKey.generate()
        account = base58.b58encode(bytes(range(32))).decode()
        other_account = base58.b58encode(bytes(range(1, 33))).decode()
        assert derive_keypair(signer, account).public_key == derive_keypair(signer, account).public_key
        assert derive_keypair(signer, account).public_key != derive_keypair(signer, other_account).public_key
        other_signer = Ed25519PrivateKey.generate()
        assert derive_keypair(signer, account).public_key != derive_keypair(other_signer, account).public_key

    def test_invalid_account(self) -> None:
        signer = Ed25519PrivateKey.generate()
        with pytest.raises(ValueError):
            derive_keypair(signer, base58.b58encode(b'short').decode())


class TestEncryption:
    def test_round_trip(self) -> None:
        keypair = generate_keypair()
        amounts = [0, 1, 2, 999, 1000] + random.sample(range(3, 999), 5)
        for amount in amounts:
            result = encrypt(amount, keypair.public_key)
            assert decrypt(result.ciphertext, keypair.secret_key, 1000) == amount

    def test_zero_decrypts_without_search(self) -> None:
        keypair = generate_keypair()
        result = encrypt(0, keypair.public_key)
        assert decrypt(result.ciphertext, keypair.secret_key, 0) == 0

    def test_out_of_bound_returns_none(self) -> None:
        keypair = generate_keypair()
        result = encrypt(MAX_AMOUNT, keypair.public_key)
        assert decrypt(result.ciphertext, keypair.secret_key, 100) is None
        result = encrypt(101, keypair.public_key)
        assert decrypt(result.ciphertext, keypair.secret_key, 100) is None

    def test_default_search_bound(self) -> None:
        keypair = generate_keypair()
        # unittests settings bound the search at 2000
        assert decrypt(encrypt(2000, keypair.public_key).ciphertext, keypair.secret_key) == 2000
        assert decrypt(encrypt(2001, keypair.public_key).ciphertext, keypair.secret_key) is None

    def test_wrong_key_does_not_decrypt(self) -> None:
        keypair = generate_keypair()
        other = generate_keypair()
        result = encrypt(10, keypair.public_key)
        assert decrypt(result.ciphertext, other.secret_key, 100) is None

    def test_amount_range(self) -> None:
        keypair = generate_keypair()
        encrypt(MAX_AMOUNT, keypair.public_key)
        with pytest.raises(ValueOutOfRangeError):
            encrypt(-1, keypair.public_key)
        with pytest.raises(ValueOutOfRangeError):
            encrypt(MAX_AMOUNT + 1, keypair.public_key)
        with pytest.raises(ValueOutOfRangeError):
            encrypt(True, keypair.public_key)

    def test_explicit_randomness(self) -> None:
        keypair = generate_keypair()
        r = random_scalar()
        first = encrypt(42, keypair.public_key, r)
        second = encrypt(42, keypair.public_key, r)
        assert first.ciphertext == second.ciphertext
        assert first.randomness == r
        assert first.ciphertext.handle == G * r
        assert str(r) not in repr(first)

    def test_decrypt_to_point(self) -> None:
        keypair = generate_keypair()
        result = encrypt(77, keypair.public_key)
        assert decrypt_to_point(result.ciphertext, keypair.secret_key) == G * 77

    def test_decrypt_with_decoder(self) -> None:
        keypair = generate_keypair()
        amount = 654_321
        result = encrypt(amount, keypair.public_key)
        assert decrypt_with_decoder(result.ciphertext, keypair.secret_key) == amount
        assert decrypt_with_decoder(result.ciphertext, keypair.secret_key, max_bits=10) is None

    def test_trivial_encryption(self) -> None:
        keypair = generate_keypair()
        ciphertext = encrypt_trivial(5)
        assert ciphertext.handle == IDENTITY
        assert decrypt(ciphertext, keypair.secret_key, 10) == 5


class TestHomomorphism:
    def test_addition_matches_sum_of_plaintexts(self) -> None:
        keypair = generate_keypair()
        r1, r2 = random_scalar(), random_scalar()
        a, b = 123, 456
        total = encrypt(a, keypair.public_key, r1).ciphertext + encrypt(b, keypair.public_key, r2).ciphertext
        assert total == encrypt(a + b, keypair.public_key, r1 + r2).ciphertext
        assert decrypt(total, keypair.secret_key, 1000) == a + b

    def test_large_amounts(self) -> None:
        keypair = generate_keypair()
        r1, r2 = random_scalar(), random_scalar()
        a, b = MAX_AMOUNT - 10, 10
        total = encrypt(a, keypair.public_key, r1).ciphertext + encrypt(b, keypair.public_key, r2).ciphertext
        assert total.commitment == encrypt(a + b, keypair.public_key, r1 + r2).ciphertext.commitment

    def test_subtraction_and_scaling(self) -> None:
        keypair = generate_keypair()
        c1 = encrypt(50, keypair.public_key).ciphertext
        c2 = encrypt(20, keypair.public_key).ciphertext
        assert decrypt(c1 - c2, keypair.secret_key, 100) == 30
        assert decrypt(c2 * 3, keypair.secret_key, 100) == 60
        assert decrypt(3 * c2, keypair.secret_key, 100) == 60

    def test_public_amounts(self) -> None:
        keypair = generate_keypair()
        ciphertext = encrypt(50, keypair.public_key).ciphertext
        assert decrypt(ciphertext.add_amount(7), keypair.secret_key, 100) == 57
        assert decrypt(ciphertext.subtract_amount(7), keypair.secret_key, 100) == 43

    def test_rerandomize(self) -> None:
        keypair = generate_keypair()
        original = encrypt(9, keypair.public_key).ciphertext
        fresh = rerandomize(original, keypair.public_key)
        assert fresh.ciphertext != original
        assert decrypt(fresh.ciphertext, keypair.secret_key, 100) == 9


class TestCiphertextSerialization:
    def test_round_trip(self) -> None:
        keypair = generate_keypair()
        ciphertext = encrypt(31, keypair.public_key).ciphertext
        data = serialize_ciphertext(ciphertext)
        assert len(data) == CIPHERTEXT_SIZE == 64
        assert data[:32] == ciphertext.commitment.data
        assert data[32:] == ciphertext.handle.data
        assert deserialize_ciphertext(data) == ciphertext
        assert ElGamalCiphertext.from_bytes(ciphertext.to_bytes()) == ciphertext

    def test_identity_handle(self) -> None:
        ciphertext = encrypt_trivial(0)
        assert deserialize_ciphertext(serialize_ciphertext(ciphertext)) == ciphertext

    @pytest.mark.parametrize('size', [0, 32, 63, 65, 128])
    def test_wrong_size(self, size: int) -> None:
        with pytest.raises(ProofSizeMismatchError):
            deserialize_ciphertext(b'\x01' * size)

    def test_invalid_point(self) -> None:
        keypair = generate_keypair()
        data = serialize_ciphertext(encrypt(1, keypair.public_key).ciphertext)
        with pytest.raises(InvalidGroupElementError):
            deserialize_ciphertext(b'\x00' * 32 + data[32:])

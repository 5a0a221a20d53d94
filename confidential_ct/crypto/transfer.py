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

"""Transfer and withdraw proof bundles.

A transfer moves `amount` from an encrypted source balance to a destination key. The bundle carries the amount
encrypted for the destination, the new source balance, Pedersen commitments to both, and the proofs tying everything
together:

* an aggregated range proof that both committed amounts are in [0, 2^64), so the new balance did not underflow;
* a batched validity proof that both new ciphertexts are well formed;
* a conservation proof that `old = new + transfer` and that the commitments hold the ciphertexts' amounts.

A withdraw is the same without a destination: the amount leaves the confidential system in the clear.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional

from structlog import get_logger

from confidential_ct.conf import get_global_settings
from confidential_ct.crypto.amount import validate_amount
from confidential_ct.crypto.discrete_log import get_decoder
from confidential_ct.crypto.elgamal import (
    CIPHERTEXT_SIZE,
    ElGamalCiphertext,
    ElGamalKeypair,
    decrypt_to_point,
    deserialize_ciphertext,
    encrypt,
    encrypt_trivial,
)
from confidential_ct.crypto.equality_proof import (
    CONSERVATION_PROOF_SIZE,
    ConservationProof,
    ConservationStatement,
    ConservationWitness,
    generate_conservation_proof,
    verify_conservation_proof,
)
from confidential_ct.crypto.exceptions import (
    DecryptionFailedError,
    InsufficientBalanceError,
    InvalidGroupElementError,
    InvalidScalarError,
    ProofSizeMismatchError,
)
from confidential_ct.crypto.group import IDENTITY, POINT_SIZE, G, GroupElement
from confidential_ct.crypto.pedersen import create_commitment
from confidential_ct.crypto.range_proof import (
    RangeProof,
    generate_aggregated_range_proof,
    range_proof_size,
    verify_range_proof,
)
from confidential_ct.crypto.validity_proof import (
    ValidityOpening,
    ValidityProof,
    generate_batched_validity_proof,
    validity_proof_size,
    verify_batched_validity_proof,
)
from confidential_ct.serialization import Deserializer, Serializer
from confidential_ct.serialization.encoding.int import decode_u64, encode_u64

logger = get_logger()


def _check_field_sizes(bundle: object, sizes: dict[str, int]) -> None:
    for name, size in sizes.items():
        value = getattr(bundle, name)
        if len(value) != size:
            raise ProofSizeMismatchError(f'{name} must be {size} bytes, got {len(value)}')


@dataclass(frozen=True, slots=True)
class TransferProofBundle:
    encrypted_transfer_amount: bytes
    new_source_commitment: bytes
    new_source_handle: bytes
    range_commitments: bytes
    equality_proof: bytes
    validity_proof: bytes
    range_proof: bytes

    FIELD_SIZES: ClassVar[dict[str, int]] = {
        'encrypted_transfer_amount': CIPHERTEXT_SIZE,
        'new_source_commitment': POINT_SIZE,
        'new_source_handle': POINT_SIZE,
        'range_commitments': 2 * POINT_SIZE,
        'equality_proof': CONSERVATION_PROOF_SIZE,
        'validity_proof': validity_proof_size(2),
        'range_proof': range_proof_size(2),
    }
    SIZE: ClassVar[int] = sum(FIELD_SIZES.values())

    def __post_init__(self) -> None:
        _check_field_sizes(self, self.FIELD_SIZES)

    def to_bytes(self) -> bytes:
        serializer = Serializer.build_bytes_serializer()
        for name in self.FIELD_SIZES:
            serializer.write_bytes(getattr(self, name))
        return serializer.finalize()

    @classmethod
    def from_bytes(cls, data: bytes) -> TransferProofBundle:
        if len(data) != cls.SIZE:
            raise ProofSizeMismatchError(f'transfer proof must be {cls.SIZE} bytes, got {len(data)}')
        deserializer = Deserializer.build_bytes_deserializer(data)
        fields = {name: bytes(deserializer.read_bytes(size)) for name, size in cls.FIELD_SIZES.items()}
        deserializer.finalize()
        return cls(**fields)


@dataclass(frozen=True, slots=True)
class WithdrawProofBundle:
    withdraw_amount: int
    new_source_commitment: bytes
    new_source_handle: bytes
    range_commitment: bytes
    equality_proof: bytes
    range_proof: bytes

    FIELD_SIZES: ClassVar[dict[str, int]] = {
        'new_source_commitment': POINT_SIZE,
        'new_source_handle': POINT_SIZE,
        'range_commitment': POINT_SIZE,
        'equality_proof': CONSERVATION_PROOF_SIZE,
        'range_proof': range_proof_size(1),
    }
    # The amount is sent in the clear as a u64.
    SIZE: ClassVar[int] = 8 + sum(FIELD_SIZES.values())

    def __post_init__(self) -> None:
        validate_amount(self.withdraw_amount)
        _check_field_sizes(self, self.FIELD_SIZES)

    def to_bytes(self) -> bytes:
        serializer = Serializer.build_bytes_serializer()
        encode_u64(serializer, self.withdraw_amount)
        for name in self.FIELD_SIZES:
            serializer.write_bytes(getattr(self, name))
        return serializer.finalize()

    @classmethod
    def from_bytes(cls, data: bytes) -> WithdrawProofBundle:
        if len(data) != cls.SIZE:
            raise ProofSizeMismatchError(f'withdraw proof must be {cls.SIZE} bytes, got {len(data)}')
        deserializer = Deserializer.build_bytes_deserializer(data)
        withdraw_amount = decode_u64(deserializer)
        fields = {name: bytes(deserializer.read_bytes(size)) for name, size in cls.FIELD_SIZES.items()}
        deserializer.finalize()
        return cls(withdraw_amount=withdraw_amount, **fields)


@dataclass(frozen=True, slots=True)
class TransferProofResult:
    bundle: TransferProofBundle
    new_source_balance: ElGamalCiphertext
    dest_ciphertext: ElGamalCiphertext


@dataclass(frozen=True, slots=True)
class WithdrawProofResult:
    bundle: WithdrawProofBundle
    new_source_balance: ElGamalCiphertext


def _current_balance(source_balance: ElGamalCiphertext, source_keypair: ElGamalKeypair,
                     current_balance: Optional[int]) -> int:
    """Recover the plaintext source balance.

    A caller that tracks its own balance passes it as `current_balance` and it only gets checked against the
    ciphertext. Otherwise the balance is decoded, which only works up to `DISCRETE_LOG_MAX_BITS` bits.
    """
    amount_point = decrypt_to_point(source_balance, source_keypair.secret_key)
    if current_balance is not None:
        validate_amount(current_balance)
        if G * current_balance != amount_point:
            raise InsufficientBalanceError('current balance does not match the encrypted source balance')
        return current_balance
    decoder = get_decoder(get_global_settings().DISCRETE_LOG_MAX_BITS)
    try:
        return decoder.decode(amount_point)
    except DecryptionFailedError as e:
        raise InsufficientBalanceError('source balance could not be decrypted') from e


def generate_transfer_proof(source_balance: ElGamalCiphertext, amount: int, source_keypair: ElGamalKeypair,
                            dest_pubkey: GroupElement, *,
                            current_balance: Optional[int] = None) -> TransferProofResult:
    """Move `amount` out of `source_balance` to `dest_pubkey`.

    Raises InsufficientBalanceError when the amount exceeds the balance or the balance cannot be recovered.
    """
    log = logger.new()
    validate_amount(amount)
    balance = _current_balance(source_balance, source_keypair, current_balance)
    if amount > balance:
        raise InsufficientBalanceError('transfer amount exceeds the source balance')
    new_amount = balance - amount
    source_pubkey = source_keypair.public_key

    new_source = encrypt(new_amount, source_pubkey)
    dest = encrypt(amount, dest_pubkey)
    new_commitment, new_blinding = create_commitment(new_amount)
    transfer_commitment, transfer_blinding = create_commitment(amount)

    range_proof = generate_aggregated_range_proof([new_amount, amount], [new_blinding, transfer_blinding])
    validity_proof = generate_batched_validity_proof([
        ValidityOpening(new_source.ciphertext, source_pubkey, new_amount, new_source.randomness),
        ValidityOpening(dest.ciphertext, dest_pubkey, amount, dest.randomness),
    ])
    statement = ConservationStatement(
        source_pubkey=source_pubkey,
        dest_pubkey=dest_pubkey,
        old_ciphertext=source_balance,
        new_ciphertext=new_source.ciphertext,
        transfer_ciphertext=dest.ciphertext,
        new_commitment=new_commitment,
        transfer_commitment=transfer_commitment,
    )
    witness = ConservationWitness(
        source_secret_key=source_keypair.secret_key,
        new_randomness=new_source.randomness,
        transfer_randomness=dest.randomness,
        new_blinding=new_blinding,
        transfer_blinding=transfer_blinding,
    )
    conservation_proof = generate_conservation_proof(statement, witness)

    bundle = TransferProofBundle(
        encrypted_transfer_amount=dest.ciphertext.to_bytes(),
        new_source_commitment=new_source.ciphertext.commitment.data,
        new_source_handle=new_source.ciphertext.handle.data,
        range_commitments=new_commitment.data + transfer_commitment.data,
        equality_proof=conservation_proof.to_bytes(),
        validity_proof=validity_proof.to_bytes(),
        range_proof=range_proof.proof,
    )
    log.debug('transfer proof generated', size=TransferProofBundle.SIZE)
    return TransferProofResult(bundle=bundle, new_source_balance=new_source.ciphertext,
                               dest_ciphertext=dest.ciphertext)


def verify_transfer_proof(bundle: TransferProofBundle, source_balance: ElGamalCiphertext,
                          source_pubkey: GroupElement, dest_pubkey: GroupElement) -> bool:
    log = logger.new()
    try:
        dest_ciphertext = deserialize_ciphertext(bundle.encrypted_transfer_amount)
        new_ciphertext = ElGamalCiphertext(
            commitment=GroupElement.from_bytes(bundle.new_source_commitment),
            handle=GroupElement.from_bytes(bundle.new_source_handle),
        )
        new_commitment = GroupElement.from_bytes(bundle.range_commitments[:POINT_SIZE])
        transfer_commitment = GroupElement.from_bytes(bundle.range_commitments[POINT_SIZE:])
        conservation_proof = ConservationProof.from_bytes(bundle.equality_proof)
        validity_proof = ValidityProof.from_bytes(bundle.validity_proof, count=2)
    except (InvalidGroupElementError, InvalidScalarError):
        log.debug('transfer proof rejected', check='encoding')
        return False

    if not verify_batched_validity_proof(validity_proof, [(new_ciphertext, source_pubkey),
                                                          (dest_ciphertext, dest_pubkey)]):
        log.debug('transfer proof rejected', check='validity')
        return False
    statement = ConservationStatement(
        source_pubkey=source_pubkey,
        dest_pubkey=dest_pubkey,
        old_ciphertext=source_balance,
        new_ciphertext=new_ciphertext,
        transfer_ciphertext=dest_ciphertext,
        new_commitment=new_commitment,
        transfer_commitment=transfer_commitment,
    )
    if not verify_conservation_proof(conservation_proof, statement):
        log.debug('transfer proof rejected', check='conservation')
        return False
    if not verify_range_proof(RangeProof(bundle.range_proof, (new_commitment, transfer_commitment))):
        log.debug('transfer proof rejected', check='range')
        return False
    return True


def generate_withdraw_proof(source_balance: ElGamalCiphertext, amount: int, source_keypair: ElGamalKeypair, *,
                            current_balance: Optional[int] = None) -> WithdrawProofResult:
    """Take `amount` out of `source_balance`, disclosing it."""
    log = logger.new()
    validate_amount(amount)
    balance = _current_balance(source_balance, source_keypair, current_balance)
    if amount > balance:
        raise InsufficientBalanceError('withdraw amount exceeds the source balance')
    new_amount = balance - amount
    source_pubkey = source_keypair.public_key

    new_source = encrypt(new_amount, source_pubkey)
    new_commitment, new_blinding = create_commitment(new_amount)
    range_proof = generate_aggregated_range_proof([new_amount], [new_blinding])
    statement = _withdraw_statement(source_pubkey, source_balance, new_source.ciphertext, new_commitment, amount)
    witness = ConservationWitness(
        source_secret_key=source_keypair.secret_key,
        new_randomness=new_source.randomness,
        transfer_randomness=0,
        new_blinding=new_blinding,
        transfer_blinding=0,
    )
    conservation_proof = generate_conservation_proof(statement, witness)

    bundle = WithdrawProofBundle(
        withdraw_amount=amount,
        new_source_commitment=new_source.ciphertext.commitment.data,
        new_source_handle=new_source.ciphertext.handle.data,
        range_commitment=new_commitment.data,
        equality_proof=conservation_proof.to_bytes(),
        range_proof=range_proof.proof,
    )
    log.debug('withdraw proof generated', size=WithdrawProofBundle.SIZE)
    return WithdrawProofResult(bundle=bundle, new_source_balance=new_source.ciphertext)


def _withdraw_statement(source_pubkey: GroupElement, old_ciphertext: ElGamalCiphertext,
                        new_ciphertext: ElGamalCiphertext, new_commitment: GroupElement,
                        amount: int) -> ConservationStatement:
    withdrawn = encrypt_trivial(amount)
    return ConservationStatement(
        source_pubkey=source_pubkey,
        dest_pubkey=IDENTITY,
        old_ciphertext=old_ciphertext,
        new_ciphertext=new_ciphertext,
        transfer_ciphertext=withdrawn,
        new_commitment=new_commitment,
        transfer_commitment=withdrawn.commitment,
    )


def verify_withdraw_proof(bundle: WithdrawProofBundle, source_balance: ElGamalCiphertext,
                          source_pubkey: GroupElement) -> bool:
    log = logger.new()
    try:
        new_ciphertext = ElGamalCiphertext(
            commitment=GroupElement.from_bytes(bundle.new_source_commitment),
            handle=GroupElement.from_bytes(bundle.new_source_handle),
        )
        new_commitment = GroupElement.from_bytes(bundle.range_commitment)
        conservation_proof = ConservationProof.from_bytes(bundle.equality_proof)
    except (InvalidGroupElementError, InvalidScalarError):
        log.debug('withdraw proof rejected', check='encoding')
        return False

    statement = _withdraw_statement(source_pubkey, source_balance, new_ciphertext, new_commitment,
                                    bundle.withdraw_amount)
    if not verify_conservation_proof(conservation_proof, statement):
        log.debug('withdraw proof rejected', check='conservation')
        return False
    if not verify_range_proof(RangeProof(bundle.range_proof, (new_commitment,))):
        log.debug('withdraw proof rejected', check='range')
        return False
    return True

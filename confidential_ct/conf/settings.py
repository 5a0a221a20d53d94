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

from pathlib import Path
from typing import Union

from pydantic import field_validator

from confidential_ct.utils import pydantic
from confidential_ct.utils.yaml import dict_from_extended_yaml


class CryptoSettings(pydantic.BaseModel):
    # Name of the environment these settings belong to: "default", "unittests", ...
    NETWORK_NAME: str

    # Upper bound of the linear search used by `decrypt()` when the caller does not provide one.
    DECRYPT_SEARCH_BOUND: int = 65536

    # Plaintexts in [0, 2**DISCRETE_LOG_MAX_BITS) can be recovered by the baby-step giant-step decoder. The decoder
    # keeps a table of 2**ceil(bits/2) points in memory.
    DISCRETE_LOG_MAX_BITS: int = 32

    # Maximum number of values proven by a single aggregated range proof, must be a power of 2.
    MAX_RANGE_PROOF_AGGREGATION: int = 8

    @field_validator('DECRYPT_SEARCH_BOUND')
    @classmethod
    def _validate_search_bound(cls, value: int) -> int:
        if value < 0:
            raise ValueError('DECRYPT_SEARCH_BOUND must be non-negative')
        return value

    @field_validator('DISCRETE_LOG_MAX_BITS')
    @classmethod
    def _validate_discrete_log_bits(cls, value: int) -> int:
        if not 1 <= value <= 64:
            raise ValueError('DISCRETE_LOG_MAX_BITS must be in [1, 64]')
        return value

    @field_validator('MAX_RANGE_PROOF_AGGREGATION')
    @classmethod
    def _validate_max_aggregation(cls, value: int) -> int:
        if value < 1 or value & (value - 1) != 0:
            raise ValueError('MAX_RANGE_PROOF_AGGREGATION must be a power of 2')
        return value

    @classmethod
    def from_yaml(cls, *, filepath: Union[Path, str]) -> 'CryptoSettings':
        """Takes a filepath to a yaml file and returns a validated CryptoSettings instance."""
        settings_dict = dict_from_extended_yaml(filepath=filepath)
        return cls.model_validate(settings_dict)

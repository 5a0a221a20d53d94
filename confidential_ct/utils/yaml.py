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

"""Loading of settings files written in YAML.

A file may name another one under the `extends` key: the other file is loaded first (recursively) and the keys of the
extending file override it, nested mappings being merged key by key.
"""

import os
from pathlib import Path
from typing import Any, Union

import yaml

_EXTENDS_KEY = 'extends'


def dict_from_yaml(*, filepath: Union[Path, str]) -> dict[str, Any]:
    """Takes a filepath to a yaml file and returns a dictionary with its contents."""
    if not os.path.isfile(filepath):
        raise ValueError(f"'{filepath}' is not a file")

    with open(filepath, 'r') as file:
        contents = yaml.safe_load(file)

    if contents is None:
        return {}
    if not isinstance(contents, dict):
        raise ValueError(f"'{filepath}' cannot be parsed as a dictionary")
    return contents


def merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict with the keys of `override` applied over `base`.

    >>> merge_dicts(dict(a=1, b=dict(c=2, d=3)), dict(b=dict(d=5), e=7))
    {'a': 1, 'b': {'c': 2, 'd': 5}, 'e': 7}
    """
    merged = dict(base)
    for key, value in override.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = merge_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged


def dict_from_extended_yaml(*, filepath: Union[Path, str]) -> dict[str, Any]:
    """Like `dict_from_yaml`, following the `extends` key. The key itself is not part of the result."""
    contents = dict_from_yaml(filepath=filepath)
    base_file = contents.pop(_EXTENDS_KEY, None)
    if not base_file:
        return contents

    base_filepath = Path(filepath).parent / str(base_file)
    if base_filepath.resolve() == Path(filepath).resolve():
        raise ValueError(f"'{filepath}' cannot extend itself")

    return merge_dicts(dict_from_extended_yaml(filepath=base_filepath), contents)

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

import os
import threading
from typing import NamedTuple, Optional

from structlog import get_logger

from confidential_ct.conf.settings import CryptoSettings

logger = get_logger()

CONFIG_YAML_ENV_VAR = 'CONFIDENTIAL_CT_CONFIG_YAML'


class _LoadedSettings(NamedTuple):
    source: str
    settings: CryptoSettings


_settings_lock = threading.Lock()
_loaded_settings: Optional[_LoadedSettings] = None


def get_global_settings() -> CryptoSettings:
    """Return the settings shared by the whole process.

    They come from the yaml file named by the `CONFIDENTIAL_CT_CONFIG_YAML` env var, or from `default.yml` when it
    is not set. The file is read once, asking again with the env var pointing somewhere else is an error.
    """
    from confidential_ct import conf
    source = os.environ.get(CONFIG_YAML_ENV_VAR, conf.DEFAULT_SETTINGS_FILEPATH)
    with _settings_lock:
        return _load_once(source)


def get_settings_source() -> str:
    """Path of the yaml file the settings were loaded from.

    XXX: Will raise an assertion error if get_global_settings() wasn't used before.
    """
    assert _loaded_settings is not None, 'get_global_settings() not called before'
    return _loaded_settings.source


def _load_once(source: str) -> CryptoSettings:
    global _loaded_settings

    if _loaded_settings is not None:
        if _loaded_settings.source != source:
            raise Exception(f'settings already loaded from {_loaded_settings.source}, cannot load {source}')
        return _loaded_settings.settings

    log = logger.new()
    settings = CryptoSettings.from_yaml(filepath=source)
    log.debug('settings loaded', source=source, network=settings.NETWORK_NAME)
    _loaded_settings = _LoadedSettings(source=source, settings=settings)
    return settings

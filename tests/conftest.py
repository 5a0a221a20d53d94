import os

from confidential_ct.conf import UNITTESTS_SETTINGS_FILEPATH

os.environ['CONFIDENTIAL_CT_CONFIG_YAML'] = os.environ.get('CONFIDENTIAL_CT_TEST_CONFIG_YAML',
                                                           UNITTESTS_SETTINGS_FILEPATH)

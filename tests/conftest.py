import logging

import pytest

from vault_tasks import config as config_module

CONFIG_KEYS = (
    config_module.VAULT_PATH_KEY,
    config_module.SERVICE_TOKEN_KEY,
    config_module.LOG_LEVEL_KEY,
    config_module.LOG_FILE_KEY,
    config_module.HOST_KEY,
    config_module.PORT_KEY,
    config_module.MAX_RESPONSE_TOKENS_KEY,
)


@pytest.fixture(autouse=True)
def clean_config_env(monkeypatch):
    for key in CONFIG_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def restore_root_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
    logging.captureWarnings(False)

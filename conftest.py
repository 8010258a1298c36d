"""Root conftest: test environment is in place before rentease_messaging.config is imported."""
from __future__ import annotations

import os
from pathlib import Path

_TEST_DEFAULTS = {
    "API_BASE_URL": "http://testserver/api",
    "API_ACCESS_TOKEN": "",
    "AUTO_PROVISION_TENANT_CONVERSATIONS": "true",
}

_env_test = Path(__file__).resolve().parent / ".env.test"
if _env_test.exists():
    for line in _env_test.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        key, _, value = line.partition("=")
        os.environ.setdefault(key.strip(), value.strip())

for _key, _value in _TEST_DEFAULTS.items():
    os.environ.setdefault(_key, _value)

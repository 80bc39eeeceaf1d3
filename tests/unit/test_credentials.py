import json

import pytest

from pageview_service.backends.credentials import (
    ANALYTICS_READONLY_SCOPE,
    load_credentials,
)
from pageview_service.domain.exceptions import InvalidConfigurationError


def test_load_credentials_from_service_account_file(service_account_file):
    credentials = load_credentials(service_account_file)

    assert credentials.service_account_email == (
        "reader@example-project.iam.gserviceaccount.com"
    )
    assert credentials.scopes == [ANALYTICS_READONLY_SCOPE]
    assert not credentials.valid


@pytest.mark.parametrize(
    "content",
    [
        "not json",
        json.dumps(["list"]),
        json.dumps({"access_token": "abc"}),
        json.dumps({"type": "authorized_user", "client_id": "x"}),
        json.dumps({"type": "service_account", "private_key": "nope"}),
    ],
)
def test_load_credentials_rejects_unusable_files(tmp_path, content):
    path = tmp_path / "credentials.json"
    path.write_text(content)
    with pytest.raises(InvalidConfigurationError):
        load_credentials(path)


def test_load_credentials_rejects_missing_file(tmp_path):
    with pytest.raises(InvalidConfigurationError):
        load_credentials(tmp_path / "missing.json")

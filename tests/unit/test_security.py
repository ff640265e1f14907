import pytest

from supply_chain_partners.services.security import (
    MAX_DISPLAY_NAME_LENGTH,
    resolve_api_key,
    sanitize_display_name,
    validate_request_size,
)


@pytest.mark.parametrize(
    "raw,expected",
    [
        (None, None),
        ("", None),
        ("   ", None),
        ("Acme Farms", "Acme Farms"),
        ("  Acme \t Farms\n", "Acme Farms"),
        ("Acme\x00Farms", "Acme Farms"),
    ],
)
def test_sanitize_display_name(raw, expected):
    assert sanitize_display_name(raw) == expected


def test_sanitize_display_name_rejects_long_names():
    assert sanitize_display_name("a" * MAX_DISPLAY_NAME_LENGTH)
    with pytest.raises(ValueError):
        sanitize_display_name("a" * (MAX_DISPLAY_NAME_LENGTH + 1))


def test_validate_request_size():
    validate_request_size(None, 1)
    validate_request_size(1024 * 1024, 1)
    with pytest.raises(ValueError):
        validate_request_size(1024 * 1024 + 1, 1)


def test_resolve_api_key():
    assert resolve_api_key("test-admin-key") == "ops"
    assert resolve_api_key("nope") is None
    assert resolve_api_key(None) is None

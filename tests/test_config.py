import pytest
from pydantic import ValidationError

from chunkcsv.config import Settings
from chunkcsv.rules import CHUNK_SIZE


def test_defaults(monkeypatch):
    for name in ("CHUNK_SIZE", "STRICT", "ALLOW_BARE_LF", "ALLOW_BARE_CR", "ON_TRUNCATED", "LOG_LEVEL"):
        monkeypatch.delenv(f"CHUNKCSV_{name}", raising=False)

    settings = Settings(_env_file=None)

    assert settings.chunk_size == CHUNK_SIZE == 1024 * 1024
    assert settings.on_truncated == "warn"
    options = settings.default_options()
    assert (options.strict, options.allow_bare_lf, options.allow_bare_cr) == (True, False, False)


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("CHUNKCSV_CHUNK_SIZE", "4096")
    monkeypatch.setenv("CHUNKCSV_STRICT", "false")
    monkeypatch.setenv("CHUNKCSV_ALLOW_BARE_LF", "1")
    monkeypatch.setenv("CHUNKCSV_ON_TRUNCATED", "error")
    monkeypatch.setenv("CHUNKCSV_LOG_LEVEL", "debug")

    settings = Settings(_env_file=None)

    assert settings.chunk_size == 4096
    assert settings.on_truncated == "error"
    assert settings.log_level == "DEBUG"
    assert settings.default_options().strict is False
    assert settings.default_options().allow_bare_lf is True


@pytest.mark.parametrize("field,value", [
    ("chunk_size", 0),
    ("sniff_bytes", -1),
    ("on_truncated", "ignore"),
    ("log_level", "LOUD"),
])
def test_invalid_values(field, value):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **{field: value})

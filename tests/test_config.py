import pytest

from panopto_upload import config as config_module
from panopto_upload.config import MIN_MULTIPART_CHUNKSIZE, UploadClientConfig, load_config

_real_load_repo_env = config_module._load_repo_env

_VARS = [
    "PANOPTO_HOST",
    "PANOPTO_PATH_PREFIX",
    "PANOPTO_HTTP_TIMEOUT_SECONDS",
    "PANOPTO_MULTIPART_THRESHOLD_BYTES",
    "PANOPTO_MULTIPART_CHUNKSIZE_BYTES",
    "PANOPTO_MAX_TRANSFER_ATTEMPTS",
    "PANOPTO_POLL_INTERVAL_SECONDS",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config_module, "_load_repo_env", lambda: None)


def test_defaults():
    cfg = load_config()

    assert cfg.path_prefix == "/Panopto"
    assert cfg.storage_region == "us-east-1"
    assert cfg.http_timeout_seconds is None
    assert cfg.max_transfer_attempts is None
    assert cfg.multipart_chunksize_bytes == MIN_MULTIPART_CHUNKSIZE


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("PANOPTO_HOST", "https://demo.example.com")
    monkeypatch.setenv("PANOPTO_HTTP_TIMEOUT_SECONDS", "12.5")
    monkeypatch.setenv("PANOPTO_MAX_TRANSFER_ATTEMPTS", "7")
    monkeypatch.setenv("PANOPTO_MULTIPART_THRESHOLD_BYTES", "1024")

    cfg = load_config()

    assert cfg.host == "https://demo.example.com"
    assert cfg.http_timeout_seconds == 12.5
    assert cfg.max_transfer_attempts == 7
    assert cfg.multipart_threshold_bytes == 1024


def test_invalid_integer_names_the_variable(monkeypatch):
    monkeypatch.setenv("PANOPTO_MAX_TRANSFER_ATTEMPTS", "lots")

    with pytest.raises(ValueError, match="PANOPTO_MAX_TRANSFER_ATTEMPTS"):
        load_config()


def test_chunksize_below_s3_minimum_is_rejected():
    with pytest.raises(ValueError):
        UploadClientConfig(multipart_chunksize_bytes=1024)


@pytest.mark.parametrize(
    "prefix, expected",
    [("/Panopto", "/Panopto"), ("Panopto/", "/Panopto"), ("", ""), ("/", "")],
)
def test_normalized_path_prefix(prefix, expected):
    assert UploadClientConfig(path_prefix=prefix).normalized_path_prefix == expected


def test_load_repo_env_reads_nearest_dotenv(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("PANOPTO_HOST=https://from-dotenv.example.com\n")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    monkeypatch.chdir(nested)
    # Registers PANOPTO_HOST so teardown removes what load_dotenv sets.
    monkeypatch.setenv("PANOPTO_HOST", "placeholder")
    monkeypatch.delenv("PANOPTO_HOST")

    _real_load_repo_env()

    assert config_module.os.getenv("PANOPTO_HOST") == "https://from-dotenv.example.com"

import pytest

from replicate_imagegen.config import DEFAULT_MODEL, load_config

ENV_VARS = (
    "REPLICATE_API_TOKEN",
    "REPLICATE_POLL_INTERVAL",
    "IMAGEGEN_FALLBACK_MODELS",
    "IMAGEGEN_DEFAULT_MODEL",
    "JWT_SECRET",
    "APP_ENV",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    # setenv first so values loaded from .env files are rolled back too
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


def test_missing_token_leaves_provider_unconfigured():
    config = load_config()

    assert config.replicate is None
    assert config.default_model == DEFAULT_MODEL
    assert config.auth.jwt_secret == "dev-secret"
    assert config.development is False


def test_values_from_environment(monkeypatch):
    monkeypatch.setenv("REPLICATE_API_TOKEN", "r8_abc")
    monkeypatch.setenv("REPLICATE_POLL_INTERVAL", "0.5")
    monkeypatch.setenv("IMAGEGEN_FALLBACK_MODELS", "a/b, c/d ,")
    monkeypatch.setenv("APP_ENV", "development")

    config = load_config()

    assert config.replicate.api_token == "r8_abc"
    assert config.replicate.poll_interval_seconds == 0.5
    assert config.fallback_models == ["a/b", "c/d"]
    assert config.development is True


def test_dotenv_file_is_read(tmp_path):
    env_file = tmp_path / "custom.env"
    env_file.write_text("REPLICATE_API_TOKEN=r8_from_file\nJWT_SECRET=s3cret\n", encoding="utf-8")

    config = load_config(env_file)

    assert config.replicate.api_token == "r8_from_file"
    assert config.auth.jwt_secret == "s3cret"


def test_malformed_number_is_rejected(monkeypatch):
    monkeypatch.setenv("REPLICATE_API_TOKEN", "r8_abc")
    monkeypatch.setenv("REPLICATE_POLL_INTERVAL", "soon")

    with pytest.raises(RuntimeError, match="Invalid float value"):
        load_config()


def test_out_of_range_value_is_rejected(monkeypatch):
    monkeypatch.setenv("REPLICATE_API_TOKEN", "r8_abc")
    monkeypatch.setenv("REPLICATE_POLL_INTERVAL", "100")

    with pytest.raises(RuntimeError, match="replicate/poll_interval_seconds"):
        load_config()


def test_production_requires_jwt_secret(monkeypatch):
    monkeypatch.setenv("APP_ENV", "production")

    with pytest.raises(RuntimeError, match="JWT_SECRET"):
        load_config()

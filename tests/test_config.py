"""Tests for shared.config -- settings loading and validation."""

import json

import pytest

from shared.config import PurgeConfig, load_config
from shared.errors import ConfigurationError


def _env(**values):
    base = {"S3_BUCKET": "media-bucket", "S3_PATH": "products"}
    base.update(values)
    return base


class TestLoadConfig:
    def test_required_and_defaults(self):
        config = load_config(env=_env(), settings_files=())

        assert config.bucket == "media-bucket"
        assert config.primary_path == "products/"
        assert config.secondary_path is None
        assert config.cdn_distribution_id is None
        assert config.extension == ".webp"
        assert config.workers == 1
        assert config.retry_attempts == 1
        assert config.edge_check_enabled is True
        assert config.invalidation_dry_run is False

    def test_absent_optionals_disable_features(self):
        config = load_config(env=_env(), settings_files=())

        assert not config.secondary_enabled
        assert not config.cdn_enabled

    def test_blank_optional_counts_as_absent(self):
        config = load_config(env=_env(S3_SECONDARY_PATH="  ", CDN_DISTRIBUTION_ID=""), settings_files=())

        assert not config.secondary_enabled
        assert not config.cdn_enabled

    def test_prefix_keeps_existing_separator(self):
        config = load_config(env=_env(S3_PATH="images\\", S3_SECONDARY_PATH="products/200/"), settings_files=())

        assert config.primary_path == "images\\"
        assert config.secondary_path == "products/200/"

    def test_settings_files_layered_under_environment(self, tmp_path):
        base = tmp_path / "appsettings.json"
        local = tmp_path / "appsettings.local.json"
        base.write_text(json.dumps({"S3_BUCKET": "from-base", "S3_PATH": "base/", "CDN_DISTRIBUTION_ID": "E1"}))
        local.write_text(json.dumps({"S3_PATH": "local/"}))

        config = load_config(env={"CDN_DISTRIBUTION_ID": "E2"}, settings_files=(str(base), str(local)))

        assert config.bucket == "from-base"
        assert config.primary_path == "local/"
        assert config.cdn_distribution_id == "E2"

    def test_missing_settings_file_is_skipped(self, tmp_path):
        config = load_config(env=_env(), settings_files=(str(tmp_path / "absent.json"),))

        assert config.bucket == "media-bucket"

    def test_settings_file_must_be_object(self, tmp_path):
        path = tmp_path / "appsettings.json"
        path.write_text("[1, 2]")

        with pytest.raises(ConfigurationError, match="JSON object"):
            load_config(env=_env(), settings_files=(str(path),))

    def test_malformed_settings_file(self, tmp_path):
        path = tmp_path / "appsettings.json"
        path.write_text("{not json")

        with pytest.raises(ConfigurationError, match="Error reading settings file"):
            load_config(env=_env(), settings_files=(str(path),))

    @pytest.mark.parametrize(
        "name,value",
        [("PURGE_WORKERS", "many"), ("PURGE_WORKERS", "0"), ("REMOTE_TIMEOUT", "-1"), ("EDGE_CHECK_ENABLED", "maybe")],
    )
    def test_invalid_values_rejected(self, name, value):
        with pytest.raises(ConfigurationError, match=name):
            load_config(env=_env(**{name: value}), settings_files=())

    def test_flags_and_numbers_parsed(self):
        config = load_config(
            env=_env(PURGE_WORKERS="8", REMOTE_TIMEOUT="2.5", EDGE_CHECK_ENABLED="no", INVALIDATION_DRY_RUN="TRUE"),
            settings_files=(),
        )

        assert config.workers == 8
        assert config.timeout == 2.5
        assert config.edge_check_enabled is False
        assert config.invalidation_dry_run is True


class TestValidate:
    def test_valid(self):
        assert PurgeConfig(bucket="b", primary_path="p/").validate() is True

    def test_lists_every_missing_key(self):
        with pytest.raises(ConfigurationError) as excinfo:
            PurgeConfig(bucket=None, primary_path=None).validate()

        assert "S3_BUCKET" in str(excinfo.value)
        assert "S3_PATH" in str(excinfo.value)

    def test_half_credentials_rejected(self):
        with pytest.raises(ConfigurationError, match="together"):
            PurgeConfig(bucket="b", primary_path="p/", access_key="AKIA").validate()

    def test_config_is_immutable(self):
        config = PurgeConfig(bucket="b", primary_path="p/")

        with pytest.raises(AttributeError):
            config.bucket = "other"

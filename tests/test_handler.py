"""Tests for asset_purger.handler -- CLI exit codes and Lambda responses."""

import json
import logging
from types import SimpleNamespace

import pytest

from asset_purger import coordinator, handler
from asset_purger.coordinator import PurgeClients
from shared import logger as shared_logger
from shared.errors import CDNInvalidationError, S3Error
from tests.fakes import FakeCloudFront, FakeEdge, FakeS3

SETTING_NAMES = (
    "S3_BUCKET",
    "S3_PATH",
    "S3_SECONDARY_PATH",
    "CDN_DISTRIBUTION_ID",
    "FILE_EXTENSION",
    "PURGE_WORKERS",
    "REMOTE_TIMEOUT",
    "RETRY_ATTEMPTS",
    "EDGE_CHECK_ENABLED",
    "INVALIDATION_DRY_RUN",
    "AWS_ACCESS_KEY",
    "AWS_SECRET_KEY",
)


@pytest.fixture(autouse=True)
def _reset_log_handlers():
    """main() attaches a stderr handler bound to the captured stream."""
    yield
    for log_handler in list(shared_logger.logger.handlers):
        shared_logger.logger.removeHandler(log_handler)
    shared_logger.logger.setLevel(logging.INFO)


@pytest.fixture
def environment(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in SETTING_NAMES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("S3_BUCKET", "media-bucket")
    monkeypatch.setenv("S3_PATH", "products/")
    monkeypatch.setenv("S3_SECONDARY_PATH", "products/200/")
    monkeypatch.setenv("CDN_DISTRIBUTION_ID", "E2EXAMPLE")
    return tmp_path


@pytest.fixture
def remote(monkeypatch):
    """Route run_purge through in-memory clients and keep the config it saw."""
    edge = FakeEdge(cached=["/products/abc123.webp"])
    state = SimpleNamespace(
        s3=FakeS3(existing=["products/abc123.webp"]),
        edge=edge,
        cloudfront=FakeCloudFront(edge=edge),
        configs=[],
    )
    real_run_purge = coordinator.run_purge

    def connect(config):
        state.configs.append(config)
        return PurgeClients(
            s3=state.s3,
            cloudfront=state.cloudfront,
            edge_checker=state.edge,
            distribution_domain="d1.cloudfront.net",
        )

    def run_purge(config, identifiers, **kwargs):
        return real_run_purge(config, identifiers, connect=connect, **kwargs)

    monkeypatch.setattr(handler, "run_purge", run_purge)
    return state


def _write_identifiers(directory, text):
    path = directory / "FileNamesToDelete.txt"
    path.write_text(text, encoding="utf-8")
    return str(path)


class TestMain:
    def test_clean_run_exits_zero(self, environment, remote, capsys):
        path = _write_identifiers(environment, "abc123\n# comment\ndef456\n")

        code = handler.main(["--file", path])

        out = capsys.readouterr().out
        assert code == handler.EXIT_OK
        assert "2 base file names to delete" in out
        assert "s3://media-bucket/products/abc123.webp" in out
        assert "cloudfront:/products/abc123.webp" in out
        assert remote.cloudfront.invalidations == [["/products/abc123.webp"]]

    def test_failures_exit_one(self, environment, remote):
        remote.s3.errors["products/200/def456.webp"] = S3Error("reset")
        path = _write_identifiers(environment, "abc123\ndef456\n")

        assert handler.main(["--file", path]) == handler.EXIT_PROBLEMS

    def test_empty_input_has_its_own_exit_code(self, environment, remote, capsys):
        path = _write_identifiers(environment, "# only comments\n\n")

        code = handler.main(["--file", path])

        assert code == handler.EXIT_EMPTY_INPUT
        assert "No lines found" in capsys.readouterr().err
        assert remote.configs == []

    def test_missing_configuration(self, environment, remote, monkeypatch, capsys):
        monkeypatch.delenv("S3_BUCKET")
        path = _write_identifiers(environment, "abc123\n")

        code = handler.main(["--file", path])

        assert code == handler.EXIT_PRECONDITION
        assert "S3_BUCKET" in capsys.readouterr().err
        assert remote.configs == []

    def test_missing_identifier_file(self, environment, remote):
        assert handler.main(["--file", str(environment / "absent.txt")]) == handler.EXIT_PRECONDITION

    def test_flags_override_settings(self, environment, remote):
        path = _write_identifiers(environment, "abc123\n")

        handler.main(["--file", path, "--workers", "3", "--dry-run-invalidation", "--no-edge-check"])

        config = remote.configs[0]
        assert config.workers == 3
        assert config.invalidation_dry_run is True
        assert config.edge_check_enabled is False
        assert remote.cloudfront.invalidations == []

    def test_settings_file_option(self, environment, remote, monkeypatch):
        monkeypatch.delenv("S3_PATH")
        settings = environment / "custom.json"
        settings.write_text(json.dumps({"S3_PATH": "archive"}))
        path = _write_identifiers(environment, "abc123\n")

        handler.main(["--file", path, "--settings", str(settings)])

        assert remote.configs[0].primary_path == "archive/"


class TestLambdaHandler:
    CONTEXT = SimpleNamespace(request_id="req-1")

    def test_success(self, environment, remote):
        response = handler.lambda_handler({"identifiers": ["abc123", "# note", "def456"]}, self.CONTEXT)

        body = json.loads(response["body"])
        assert response["statusCode"] == 200
        assert body["summary"]["identifiers_processed"] == 2
        assert body["summary"]["total_outcomes"] == len(body["outcomes"]) == 8
        assert body["outcomes"][0]["status"] == "deleted"

    def test_problems_reported_as_multi_status(self, environment, remote):
        remote.cloudfront.errors["/products/abc123.webp"] = CDNInvalidationError("denied", "AccessDenied")

        response = handler.lambda_handler({"identifiers": ["abc123"]}, self.CONTEXT)

        assert response["statusCode"] == 207

    def test_empty_identifiers_rejected(self, environment, remote):
        response = handler.lambda_handler({"identifiers": []}, self.CONTEXT)

        assert response["statusCode"] == 400
        assert json.loads(response["body"])["error_type"] == "EmptyInputError"

    @pytest.mark.parametrize("value", ["abc123", None, {"abc123": True}, ["abc123", 7]])
    def test_identifiers_must_be_list_of_strings(self, environment, remote, value):
        response = handler.lambda_handler({"identifiers": value}, self.CONTEXT)

        assert response["statusCode"] == 400
        assert json.loads(response["body"])["error_type"] == "ConfigurationError"
        assert remote.configs == []
        assert remote.s3.delete_calls == []

    def test_unexpected_error(self, environment, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(handler, "run_purge", explode)

        response = handler.lambda_handler({"identifiers": ["abc123"]}, self.CONTEXT)

        assert response["statusCode"] == 500

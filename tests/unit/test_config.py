# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from pathlib import Path

import pytest
from s3_presigner import ConfigurationError
from s3_presigner.config import PresignerConfig


def empty() -> dict[str, str]:
    return {}


def resolve(config: PresignerConfig, env: dict[str, str] | None = None, **loaders):
    return config.resolve(
        environment_loader=lambda: env or {},
        config_file_loader=loaders.get("config_file", empty),
        credentials_file_loader=loaders.get("credentials_file", empty),
    )


class TestPresignerConfig:
    def test_defaults(self) -> None:
        config = resolve(PresignerConfig())
        assert config.aws_access_key_id is None
        assert config.region is None
        assert config.expires_in == 3600
        assert config.probe_timeout == 15.0
        assert config.get_source("expires_in") == "default"

    def test_precedence(self) -> None:
        config = resolve(
            PresignerConfig(region="eu-west-1"),
            env={"AWS_REGION": "us-west-2", "AWS_ACCESS_KEY_ID": "env-akid"},
            credentials_file=lambda: {
                "aws_access_key_id": "file-akid",
                "aws_secret_access_key": "file-secret",
            },
            config_file=lambda: {"region": "ap-south-1", "aws_session_token": "cfg"},
        )
        assert config.region == "eu-west-1"
        assert config.get_source("region") == "constructor"
        assert config.aws_access_key_id == "env-akid"
        assert config.get_source("aws_access_key_id") == "environment"
        assert config.aws_secret_access_key == "file-secret"
        assert config.get_source("aws_secret_access_key") == "credentials_file"
        assert config.aws_session_token == "cfg"
        assert config.get_source("aws_session_token") == "config_file"

    def test_explicit_none_wins_over_environment(self) -> None:
        config = resolve(
            PresignerConfig(aws_session_token=None),
            env={"AWS_SESSION_TOKEN": "env-token"},
        )
        assert config.aws_session_token is None
        assert config.get_source("aws_session_token") == "constructor"

    def test_numeric_values_from_environment(self) -> None:
        config = resolve(
            PresignerConfig(),
            env={"S3_PRESIGNER_EXPIRES": "900", "S3_PRESIGNER_PROBE_TIMEOUT": "2.5"},
        )
        assert config.expires_in == 900
        assert config.probe_timeout == 2.5

    @pytest.mark.parametrize("value", ["soon", "0", "604801"])
    def test_invalid_expires_in(self, value: str) -> None:
        with pytest.raises(ConfigurationError):
            resolve(PresignerConfig(), env={"S3_PRESIGNER_EXPIRES": value})

    def test_invalid_probe_timeout(self) -> None:
        with pytest.raises(ConfigurationError):
            resolve(PresignerConfig(probe_timeout=0))

    def test_resolve_only_once(self) -> None:
        config = resolve(PresignerConfig())
        with pytest.raises(RuntimeError):
            resolve(config)

    def test_read_before_resolve(self) -> None:
        with pytest.raises(RuntimeError):
            _ = PresignerConfig(region="us-east-1").region

    def test_in_code_update(self) -> None:
        config = resolve(PresignerConfig())
        config.bucket = "demo-bucket"
        config.expires_in = 60
        assert config.bucket == "demo-bucket"
        assert config.get_source("bucket") == "in_code_update"
        assert config.expires_in == 60
        with pytest.raises(ConfigurationError):
            config.expires_in = 0

    def test_get_identity(self) -> None:
        config = resolve(
            PresignerConfig(aws_access_key_id="akid", aws_secret_access_key="secret")
        )
        identity = config.get_identity()
        assert identity.access_key_id == "akid"
        assert identity.secret_access_key == "secret"
        assert identity.session_token is None

    def test_get_identity_from_environment(self) -> None:
        config = resolve(
            PresignerConfig(),
            env={
                "AWS_ACCESS_KEY_ID": "akid",
                "AWS_SECRET_ACCESS_KEY": "secret",
                "AWS_SESSION_TOKEN": "session",
            },
        )
        identity = config.get_identity()
        assert identity.access_key_id == "akid"
        assert identity.secret_access_key == "secret"
        assert identity.session_token == "session"
        assert config.get_source("aws_session_token") == "environment"

    def test_shared_files(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        aws_dir = tmp_path / ".aws"
        aws_dir.mkdir()
        (aws_dir / "credentials").write_text(
            "[default]\naws_access_key_id = default-akid\n"
            "[media]\naws_access_key_id = media-akid\n"
            "aws_secret_access_key = media-secret\n"
        )
        (aws_dir / "config").write_text(
            "[default]\nregion = us-east-1\n[profile media]\nregion = eu-central-1\n"
        )
        monkeypatch.setattr(Path, "home", lambda: tmp_path)
        monkeypatch.setenv("AWS_PROFILE", "media")

        config = PresignerConfig().resolve(environment_loader=empty)
        assert config.aws_access_key_id == "media-akid"
        assert config.aws_secret_access_key == "media-secret"
        assert config.region == "eu-central-1"

    def test_missing_shared_files(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(Path, "home", lambda: tmp_path)
        config = PresignerConfig().resolve(environment_loader=empty)
        assert config.aws_access_key_id is None
        assert config.region is None


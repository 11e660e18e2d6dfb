# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import configparser
import logging
import os
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, ClassVar, Final, Literal, TypeAlias

from ._identity import AWSCredentialIdentity
from .exceptions import ConfigurationError
from .signers import DEFAULT_EXPIRES_IN, MAX_EXPIRES_IN

logger: Final = logging.getLogger(__name__)

SOURCE_CONSTRUCTOR = "constructor"
SOURCE_ENVIRONMENT = "environment"
SOURCE_CREDENTIALS_FILE = "credentials_file"
SOURCE_CONFIG_FILE = "config_file"
SOURCE_DEFAULT = "default"
SOURCE_IN_CODE_UPDATE = "in_code_update"

SourceType = Literal[
    "constructor",
    "environment",
    "credentials_file",
    "config_file",
    "default",
    "in_code_update",
]

Loader: TypeAlias = Callable[[], Mapping[str, Any]]


class ConfigValue:
    """Configuration value with metadata about its source"""

    def __init__(self, value: Any, source: SourceType):
        self.value = value
        self.source = source

    def __repr__(self) -> str:
        return f"ConfigValue(source={self.source!r})"


class PresignerConfig:
    """
    Presigner configuration with precedence-based resolution.

    Each field is resolved from, in order: the constructor, the environment, the
    shared credentials file, the shared config file, and finally its default.
    The constructor uses the Ellipsis sentinel (...) for "not provided" so that an
    explicit ``None`` still takes precedence over the other sources.

    ``resolve`` must be called exactly once before any value is read.
    """

    CONFIG_FIELDS: ClassVar[dict[str, dict[str, Any]]] = {
        "aws_access_key_id": {
            "env_var": "AWS_ACCESS_KEY_ID",
            "config_key": "aws_access_key_id",
            "default": None,
        },
        "aws_secret_access_key": {
            "env_var": "AWS_SECRET_ACCESS_KEY",
            "config_key": "aws_secret_access_key",
            "default": None,
        },
        "aws_session_token": {
            "env_var": "AWS_SESSION_TOKEN",
            "config_key": "aws_session_token",
            "default": None,
        },
        "region": {
            "env_var": "AWS_REGION",
            "config_key": "region",
            "default": None,
        },
        "bucket": {
            "env_var": "S3_PRESIGNER_BUCKET",
            "default": None,
        },
        "expires_in": {
            "env_var": "S3_PRESIGNER_EXPIRES",
            "default": DEFAULT_EXPIRES_IN,
            "converter": "_to_expires_in",
        },
        "probe_timeout": {
            "env_var": "S3_PRESIGNER_PROBE_TIMEOUT",
            "default": 15.0,
            "converter": "_to_probe_timeout",
        },
    }

    def __init__(
        self,
        *,
        aws_access_key_id: str | None = ...,  # type: ignore[assignment]
        aws_secret_access_key: str | None = ...,  # type: ignore[assignment]
        aws_session_token: str | None = ...,  # type: ignore[assignment]
        region: str | None = ...,  # type: ignore[assignment]
        bucket: str | None = ...,  # type: ignore[assignment]
        expires_in: int = ...,  # type: ignore[assignment]
        probe_timeout: float = ...,  # type: ignore[assignment]
    ):
        self._constructor_values = {
            k: v for k, v in locals().items() if k != "self" and v is not ...
        }
        self._resolved = False

    def resolve(
        self,
        *,
        environment_loader: Loader | None = None,
        config_file_loader: Loader | None = None,
        credentials_file_loader: Loader | None = None,
    ) -> "PresignerConfig":
        """Resolve configuration from all sources.

        :param environment_loader: Custom environment loader function.
        :param config_file_loader: Custom config file loader function.
        :param credentials_file_loader: Custom credentials file loader function.
        """
        if self._resolved:
            raise RuntimeError(
                "Config has already been resolved. Multiple calls to resolve() are not allowed."
            )

        env_values = (environment_loader or self._load_environment_values)()
        config_file_values = (config_file_loader or self._load_config_file_values)()
        credentials_file_values = (
            credentials_file_loader or self._load_credentials_file_values
        )()

        for field_name, field_info in self.CONFIG_FIELDS.items():
            resolved = self._resolve_field(
                field_name,
                field_info,
                env_values,
                config_file_values,
                credentials_file_values,
            )
            logger.debug("Resolved %s from %s", field_name, resolved.source)
            setattr(self, f"_{field_name}", resolved)

        self._resolved = True
        return self

    def _resolve_field(
        self,
        field_name: str,
        field_info: Mapping[str, Any],
        env_values: Mapping[str, Any],
        config_file_values: Mapping[str, Any],
        credentials_file_values: Mapping[str, Any],
    ) -> ConfigValue:
        converter_name = field_info.get("converter")
        converter: Callable[[Any], Any] = (
            getattr(self, converter_name) if converter_name else lambda v: v
        )

        if field_name in self._constructor_values:
            return ConfigValue(
                converter(self._constructor_values[field_name]), SOURCE_CONSTRUCTOR
            )

        env_var = field_info.get("env_var")
        if env_var and env_values.get(env_var) is not None:
            return ConfigValue(converter(env_values[env_var]), SOURCE_ENVIRONMENT)

        config_key = field_info.get("config_key")
        if config_key:
            if credentials_file_values.get(config_key) is not None:
                return ConfigValue(
                    converter(credentials_file_values[config_key]),
                    SOURCE_CREDENTIALS_FILE,
                )
            if config_file_values.get(config_key) is not None:
                return ConfigValue(
                    converter(config_file_values[config_key]), SOURCE_CONFIG_FILE
                )

        return ConfigValue(field_info["default"], SOURCE_DEFAULT)

    def _to_expires_in(self, value: Any) -> int:
        try:
            expires_in = int(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid expires_in value: {value!r}") from e
        if not 1 <= expires_in <= MAX_EXPIRES_IN:
            raise ConfigurationError(
                f"expires_in must be between 1 and {MAX_EXPIRES_IN}, got {expires_in}"
            )
        return expires_in

    def _to_probe_timeout(self, value: Any) -> float:
        try:
            timeout = float(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid probe_timeout value: {value!r}") from e
        if timeout <= 0:
            raise ConfigurationError(f"probe_timeout must be positive, got {timeout}")
        return timeout

    def _load_environment_values(self) -> Mapping[str, str]:
        return os.environ

    def _load_config_file_values(self) -> dict[str, Any]:
        config_path = Path.home() / ".aws" / "config"
        if not config_path.exists():
            return {}

        parser = configparser.ConfigParser()
        parser.read(config_path)

        profile = os.environ.get("AWS_PROFILE", "default")
        section_name = f"profile {profile}" if profile != "default" else "default"

        if section_name not in parser:
            return {}

        return dict(parser[section_name])

    def _load_credentials_file_values(self) -> dict[str, Any]:
        credentials_path = Path.home() / ".aws" / "credentials"
        if not credentials_path.exists():
            return {}

        parser = configparser.ConfigParser()
        parser.read(credentials_path)

        profile = os.environ.get("AWS_PROFILE", "default")

        if profile not in parser:
            return {}

        return dict(parser[profile])

    def _get(self, field_name: str) -> ConfigValue:
        if not self._resolved:
            raise RuntimeError("Config must be resolved before values are read.")
        return getattr(self, f"_{field_name}")

    def get_source(self, field_name: str) -> SourceType:
        """Where the value of ``field_name`` was resolved from."""
        return self._get(field_name).source

    def get_identity(self) -> AWSCredentialIdentity:
        """Build the credential identity described by this configuration.

        Missing fields are left empty so that signing reports all of them at once.
        """
        return AWSCredentialIdentity(
            access_key_id=self.aws_access_key_id or "",
            secret_access_key=self.aws_secret_access_key or "",
            session_token=self.aws_session_token,
        )

    @property
    def aws_access_key_id(self) -> str | None:
        return self._get("aws_access_key_id").value

    @aws_access_key_id.setter
    def aws_access_key_id(self, value: str | None) -> None:
        self._aws_access_key_id = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def aws_secret_access_key(self) -> str | None:
        return self._get("aws_secret_access_key").value

    @aws_secret_access_key.setter
    def aws_secret_access_key(self, value: str | None) -> None:
        self._aws_secret_access_key = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def aws_session_token(self) -> str | None:
        return self._get("aws_session_token").value

    @aws_session_token.setter
    def aws_session_token(self, value: str | None) -> None:
        self._aws_session_token = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def region(self) -> str | None:
        return self._get("region").value

    @region.setter
    def region(self, value: str | None) -> None:
        self._region = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def bucket(self) -> str | None:
        return self._get("bucket").value

    @bucket.setter
    def bucket(self, value: str | None) -> None:
        self._bucket = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def expires_in(self) -> int:
        return self._get("expires_in").value

    @expires_in.setter
    def expires_in(self, value: int) -> None:
        self._expires_in = ConfigValue(self._to_expires_in(value), SOURCE_IN_CODE_UPDATE)

    @property
    def probe_timeout(self) -> float:
        return self._get("probe_timeout").value

    @probe_timeout.setter
    def probe_timeout(self, value: float) -> None:
        self._probe_timeout = ConfigValue(
            self._to_probe_timeout(value), SOURCE_IN_CODE_UPDATE
        )


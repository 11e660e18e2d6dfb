# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from collections.abc import Iterable


class S3PresignerError(Exception):
    """Top-level exception to capture presigning errors."""


class ConfigurationError(S3PresignerError, ValueError):
    """One or more required credential or location fields are missing or invalid."""

    def __init__(self, message: str, *, missing_fields: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.missing_fields: tuple[str, ...] = tuple(missing_fields)

    @classmethod
    def for_missing_fields(cls, missing_fields: Iterable[str]) -> "ConfigurationError":
        fields = tuple(missing_fields)
        return cls(
            f"Missing required presigning configuration: {', '.join(fields)}",
            missing_fields=fields,
        )


class EncodingError(S3PresignerError, ValueError):
    """An object key could not be percent-decoded or encoded."""


class HashingError(S3PresignerError):
    """The SHA-256 or HMAC-SHA256 primitives failed on the supplied input."""


class ExpiredCredentialsError(S3PresignerError, ValueError):
    """The supplied identity expired before signing was attempted."""


class MissingDependencyError(S3PresignerError):
    """An optional dependency required for the requested component is missing."""

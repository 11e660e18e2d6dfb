# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""S3 Presigner generates SigV4 presigned URLs granting temporary read access to
objects in S3, without performing any network I/O."""

from __future__ import annotations

from ._context import ObjectLocator, SigningContext
from ._http import URI
from ._identity import AWSCredentialIdentity
from .encoding import decode_key, encode_key
from .exceptions import (
    ConfigurationError,
    EncodingError,
    ExpiredCredentialsError,
    HashingError,
    S3PresignerError,
)
from .signers import S3PresignSigner, sign

__license__ = "Apache-2.0"
__version__ = "0.1.0"

__all__ = (
    "URI",
    "AWSCredentialIdentity",
    "ConfigurationError",
    "EncodingError",
    "ExpiredCredentialsError",
    "HashingError",
    "ObjectLocator",
    "S3PresignSigner",
    "S3PresignerError",
    "SigningContext",
    "decode_key",
    "encode_key",
    "sign",
)

# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import hmac
import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from hashlib import sha256
from typing import Final, TypeAlias

from ._context import ObjectLocator, SCOPE_TERMINATOR, SigningContext
from ._http import URI
from ._identity import AWSCredentialIdentity
from .encoding import LOGGED_KEY_LENGTH, encode_key, encode_query_component
from .exceptions import ConfigurationError, ExpiredCredentialsError, HashingError
from .interfaces.identity import AWSCredentialsIdentity as _AWSCredentialsIdentity

logger: Final = logging.getLogger(__name__)

SIGNING_ALGORITHM: str = "AWS4-HMAC-SHA256"
UNSIGNED_PAYLOAD: str = "UNSIGNED-PAYLOAD"
SIGNED_HEADERS: str = "host"
S3_SERVICE: str = "s3"
PRESIGN_METHOD: str = "GET"

DEFAULT_EXPIRES_IN: int = 3600
# SigV4 rejects presigned URLs valid for longer than seven days.
MAX_EXPIRES_IN: int = 604800

QueryParameters: TypeAlias = list[tuple[str, str]]


class S3PresignSigner:
    """Generates SigV4 query-string presigned ``GET`` URLs for S3 objects.

    The signer holds no mutable state and can be shared freely between threads.
    """

    def __init__(self, *, service: str = S3_SERVICE) -> None:
        self._service = service

    def presign(
        self,
        *,
        locator: ObjectLocator,
        identity: AWSCredentialIdentity,
        now: datetime | None = None,
        expires_in: int = DEFAULT_EXPIRES_IN,
    ) -> str:
        """Generate a presigned URL granting temporary read access to an object.

        :param locator: The bucket, key and region of the object to share.
        :param identity: A set of credentials representing an AWS Identity or role
            capacity.
        :param now: The signing instant. The current UTC time is used if omitted.
        :param expires_in: Number of seconds, counted from ``now``, for which the
            URL is accepted.
        :raises ConfigurationError: If a required field is missing or empty, or
            ``expires_in`` is out of range. Raised before any hashing is done.
        :raises ExpiredCredentialsError: If ``identity`` expired at or before ``now``.
        """
        context = SigningContext.capture(now)
        self._validate(
            locator=locator,
            identity=identity,
            expires_in=expires_in,
            signed_at=context.signed_at,
        )

        scope = context.scope(region=locator.region, service=self._service)
        canonical_uri = f"/{encode_key(locator.key)}"
        logger.debug(
            "Presigning %s of %r in bucket %r with scope %s",
            PRESIGN_METHOD,
            locator.key[:LOGGED_KEY_LENGTH],
            locator.bucket,
            scope,
        )

        query = self.presign_query(
            identity=identity, context=context, scope=scope, expires_in=expires_in
        )
        canonical_request = self.canonical_request(
            canonical_uri=canonical_uri, query=query, host=locator.host
        )
        string_to_sign = self.string_to_sign(
            canonical_request=canonical_request, context=context, scope=scope
        )
        signing_key = self.signing_key(
            secret_key=identity.secret_access_key,
            date_stamp=context.date_stamp,
            region=locator.region,
        )
        signature = self.signature(
            string_to_sign=string_to_sign, signing_key=signing_key
        )

        # X-Amz-Signature is always the final parameter.
        query.append(("X-Amz-Signature", signature))
        return URI(
            host=locator.host, path=canonical_uri, query=_format_query(query)
        ).build()

    def presign_query(
        self,
        *,
        identity: AWSCredentialIdentity,
        context: SigningContext,
        scope: str,
        expires_in: int = DEFAULT_EXPIRES_IN,
    ) -> QueryParameters:
        """The presigning parameters, in the order they are signed and emitted."""
        query: QueryParameters = [
            ("X-Amz-Algorithm", SIGNING_ALGORITHM),
            ("X-Amz-Credential", f"{identity.access_key_id}/{scope}"),
            ("X-Amz-Date", context.timestamp),
            ("X-Amz-Expires", str(expires_in)),
        ]
        # An empty token is treated the same as no token at all.
        if identity.session_token:
            query.append(("X-Amz-Security-Token", identity.session_token))
        query.append(("X-Amz-SignedHeaders", SIGNED_HEADERS))
        return query

    def canonical_request(
        self,
        *,
        canonical_uri: str,
        query: Sequence[tuple[str, str]],
        host: str,
    ) -> str:
        """The canonical request is a standardized string laying out the components used
        in the SigV4 signing algorithm. This is useful to quickly compare inputs to find
        signature mismatches and unintended variances.

        The SigV4 specification defines the canonical request to be:
            <HTTPMethod>\n
            <CanonicalURI>\n
            <CanonicalQueryString>\n
            <CanonicalHeaders>\n
            <SignedHeaders>\n
            <HashedPayload>

        For a presigned ``GET`` only the ``host`` header is signed and the body is
        never hashed, so the payload is the ``UNSIGNED-PAYLOAD`` sentinel.

        :param canonical_uri:
            The encoded object path, including the leading ``/``.
        :param query:
            Presigning parameters, excluding ``X-Amz-Signature``.
        :param host:
            Value of the ``host`` header the URL will be requested with.
        """
        return (
            f"{PRESIGN_METHOD}\n"
            f"{canonical_uri}\n"
            f"{_format_query(query)}\n"
            f"host:{host}\n"
            "\n"
            f"{SIGNED_HEADERS}\n"
            f"{UNSIGNED_PAYLOAD}"
        )

    def string_to_sign(
        self,
        *,
        canonical_request: str,
        context: SigningContext,
        scope: str,
    ) -> str:
        """The string to sign concatenates the formal identifier of our signing
        algorithm, the signing DateTime, the scope of our credentials, and a hash of
        our previously generated canonical request.

        The SigV4 specification defines the string to sign as:
            Algorithm \n
            RequestDateTime \n
            CredentialScope  \n
            HashedCanonicalRequest
        """
        hashed_request = sha256(_encode(canonical_request)).hexdigest()
        return f"{SIGNING_ALGORITHM}\n{context.timestamp}\n{scope}\n{hashed_request}"

    def signing_key(
        self,
        *,
        secret_key: str,
        date_stamp: str,
        region: str,
        service: str | None = None,
    ) -> bytes:
        """Derive the signing key scoped to a single day, region and service.

        Each step is keyed with the raw digest of the step before it.
        """
        # Components of Signing Key Calculation
        #
        # DateKey              = HMAC-SHA256("AWS4"+"<SecretAccessKey>", "<YYYYMMDD>")
        # DateRegionKey        = HMAC-SHA256(<DateKey>, "<aws-region>")
        # DateRegionServiceKey = HMAC-SHA256(<DateRegionKey>, "<aws-service>")
        # SigningKey = HMAC-SHA256(<DateRegionServiceKey>, "aws4_request")
        k_date = self._hash(key=_encode(f"AWS4{secret_key}"), value=date_stamp)
        k_region = self._hash(key=k_date, value=region)
        k_service = self._hash(key=k_region, value=service or self._service)
        return self._hash(key=k_service, value=SCOPE_TERMINATOR)

    def signature(self, *, string_to_sign: str, signing_key: bytes) -> str:
        """Sign the string to sign, returning the lowercase hex signature."""
        return self._hash(key=signing_key, value=string_to_sign).hex()

    def _hash(self, key: bytes, value: str) -> bytes:
        msg = _encode(value)
        try:
            return hmac.new(key=key, msg=msg, digestmod=sha256).digest()
        except (TypeError, ValueError) as e:
            raise HashingError("HMAC-SHA256 failed on the supplied input.") from e

    def _validate(
        self,
        *,
        locator: ObjectLocator,
        identity: AWSCredentialIdentity,
        expires_in: int,
        signed_at: datetime,
    ) -> None:
        """Perform all input checks before any signing work starts.

        Expiry is judged against the signing instant, never the wall clock.
        """
        if not isinstance(identity, _AWSCredentialsIdentity):  # pyright: ignore
            raise ConfigurationError(
                "Received unexpected value for identity parameter. Expected "
                f"AWSCredentialIdentity but received {type(identity)}."
            )

        required = {
            "bucket": locator.bucket,
            "key": locator.key,
            "region": locator.region,
            "access_key": identity.access_key_id,
            "secret_key": identity.secret_access_key,
        }
        if missing := [name for name, value in required.items() if not value]:
            raise ConfigurationError.for_missing_fields(missing)

        if (
            isinstance(expires_in, bool)
            or not isinstance(expires_in, int)
            or not 1 <= expires_in <= MAX_EXPIRES_IN
        ):
            raise ConfigurationError(
                f"expires_in must be an integer between 1 and {MAX_EXPIRES_IN} "
                f"seconds, got {expires_in!r}."
            )

        expiration = identity.expiration
        if expiration is not None and expiration.tzinfo is None:
            expiration = expiration.replace(tzinfo=UTC)
        if expiration is not None and signed_at >= expiration:
            raise ExpiredCredentialsError(
                f"Provided identity expired at {identity.expiration}. Please "
                "refresh the credentials or update the expiration parameter."
            )


_DEFAULT_SIGNER: Final = S3PresignSigner()


def sign(
    bucket: str | None,
    key: str | None,
    region: str | None,
    access_key: str | None,
    secret_key: str | None,
    session_token: str | None = None,
    now: datetime | None = None,
    *,
    expires_in: int = DEFAULT_EXPIRES_IN,
) -> str:
    """Generate a presigned ``GET`` URL for ``key`` in ``bucket``.

    Missing or empty ``bucket``, ``key``, ``region``, ``access_key`` and
    ``secret_key`` values are all reported together in a single
    :py:class:`ConfigurationError`. An empty ``session_token`` is treated as absent.
    """
    locator = ObjectLocator(bucket=bucket or "", key=key or "", region=region or "")
    identity = AWSCredentialIdentity(
        access_key_id=access_key or "",
        secret_access_key=secret_key or "",
        session_token=session_token,
    )
    return _DEFAULT_SIGNER.presign(
        locator=locator, identity=identity, now=now, expires_in=expires_in
    )


def _encode(value: str) -> bytes:
    try:
        return value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise HashingError("Signing input cannot be encoded as UTF-8.") from e


def _format_query(query: Sequence[tuple[str, str]]) -> str:
    return "&".join(
        f"{encode_query_component(name)}={encode_query_component(value)}"
        for name, value in query
    )

# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

SIGV4_TIMESTAMP_FORMAT: str = "%Y%m%dT%H%M%SZ"
SIGV4_DATE_FORMAT: str = "%Y%m%d"
SCOPE_TERMINATOR: str = "aws4_request"


@dataclass(kw_only=True, frozen=True)
class ObjectLocator:
    """Where the object to be presigned lives."""

    bucket: str
    key: str
    """The raw object key. It may already be fully or partially percent-encoded."""

    region: str

    @property
    def host(self) -> str:
        """Virtual-hosted-style endpoint host for the bucket."""
        return f"{self.bucket}.s3.{self.region}.amazonaws.com"


@dataclass(kw_only=True, frozen=True)
class SigningContext:
    """The single instant a presigning request is computed for.

    Both the timestamp and the date stamp are rendered from the same captured
    value so they can never disagree.
    """

    signed_at: datetime

    @classmethod
    def capture(cls, now: datetime | None = None) -> SigningContext:
        """Build a context from ``now`` or, when omitted, the current UTC time.

        Naive datetimes are taken to already be in UTC.
        """
        if now is None:
            now = datetime.now(UTC)
        elif now.tzinfo is None:
            now = now.replace(tzinfo=UTC)
        else:
            now = now.astimezone(UTC)
        return cls(signed_at=now.replace(microsecond=0))

    @property
    def timestamp(self) -> str:
        return self.signed_at.strftime(SIGV4_TIMESTAMP_FORMAT)

    @property
    def date_stamp(self) -> str:
        return self.signed_at.strftime(SIGV4_DATE_FORMAT)

    def scope(self, *, region: str, service: str) -> str:
        # Scope format: <YYYYMMDD>/<AWS Region>/<AWS Service>/aws4_request
        return f"{self.date_stamp}/{region}/{service}/{SCOPE_TERMINATOR}"

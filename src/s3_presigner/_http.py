# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from dataclasses import dataclass
from urllib.parse import urlunparse


@dataclass(kw_only=True, frozen=True)
class URI:
    """Universal Resource Identifier, target location of a presigned request."""

    scheme: str = "https"
    """For example ``http`` or ``https``."""

    host: str
    """The hostname, for example ``demo-bucket.s3.us-east-1.amazonaws.com``."""

    path: str | None = None
    """Path component of the URI, already in canonical (percent-encoded) form."""

    query: str | None = None
    """Query component of the URI as string, already encoded."""

    def build(self) -> str:
        """Construct URI string representation.

        Returns a string of the form ``{scheme}://{host}{path}?{query}``.
        Path and query are emitted verbatim, so they must already be encoded.
        """
        components = (
            self.scheme,
            self.host,
            self.path or "",
            "",  # params
            self.query or "",
            "",  # fragment
        )
        return urlunparse(components)

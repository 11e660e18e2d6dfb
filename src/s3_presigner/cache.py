# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""Caller-side reuse of presigned URLs within one expiry window.

This sits in front of :py:class:`S3PresignSigner`; the signer itself never
caches anything.
"""

import logging
import threading
from datetime import UTC, datetime
from hashlib import sha256
from typing import Final, TypeAlias

from cachetools import LRUCache

from ._context import ObjectLocator
from ._identity import AWSCredentialIdentity
from .signers import DEFAULT_EXPIRES_IN, S3PresignSigner

logger: Final = logging.getLogger(__name__)

CacheKey: TypeAlias = tuple[str, str, str, str, int, int]


def credential_fingerprint(identity: AWSCredentialIdentity) -> str:
    """A short, non-reversible stand-in for the access key and session token."""
    material = f"{identity.access_key_id}\0{identity.session_token or ''}"
    return sha256(material.encode("utf-8")).hexdigest()[:16]


class PresignedUrlCache:
    """Reuses a presigned URL for every request that falls in the same time bucket.

    Buckets are ``expires_in`` seconds wide. A URL is signed at the moment of the
    first miss inside a bucket, so it stays valid at least until the bucket ends.
    """

    def __init__(
        self,
        *,
        signer: S3PresignSigner | None = None,
        expires_in: int = DEFAULT_EXPIRES_IN,
        maxsize: int = 4096,
    ) -> None:
        self._signer = signer or S3PresignSigner()
        self._expires_in = expires_in
        self._cache: LRUCache[CacheKey, str] = LRUCache(maxsize=maxsize)
        self._lock = threading.Lock()

    @property
    def signer(self) -> S3PresignSigner:
        return self._signer

    def get(
        self,
        *,
        locator: ObjectLocator,
        identity: AWSCredentialIdentity,
        now: datetime | None = None,
        expires_in: int | None = None,
    ) -> str:
        """Return a cached URL for the object, presigning one on a miss.

        :param expires_in: Overrides the expiry window this cache was created
            with. The window width of the time bucket follows it.
        """
        if expires_in is None:
            expires_in = self._expires_in
        if now is None:
            now = datetime.now(UTC)
        elif now.tzinfo is None:
            now = now.replace(tzinfo=UTC)

        cache_key = self.cache_key(
            locator=locator, identity=identity, now=now, expires_in=expires_in
        )
        with self._lock:
            cached = self._cache.get(cache_key)
        if cached is not None:
            logger.debug("Reusing presigned URL for bucket window %s", cache_key[-1])
            return cached

        url = self._signer.presign(
            locator=locator, identity=identity, now=now, expires_in=expires_in
        )
        with self._lock:
            self._cache[cache_key] = url
        return url

    def cache_key(
        self,
        *,
        locator: ObjectLocator,
        identity: AWSCredentialIdentity,
        now: datetime,
        expires_in: int | None = None,
    ) -> CacheKey:
        if expires_in is None:
            expires_in = self._expires_in
        window = int(now.timestamp()) // expires_in
        return (
            locator.bucket,
            locator.key,
            locator.region,
            credential_fingerprint(identity),
            expires_in,
            window,
        )

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""Loading presigned media URLs for playback.

The loader is a consumer of the signer: it picks between audio and video
playback, presigns the object and optionally checks that the URL actually
serves media before handing it out.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    # pyright doesn't like optional imports. This is reasonable because if we use these
    # in type hints then they'd result in runtime errors.
    import aiohttp

try:
    import aiohttp  # noqa: F811
    from yarl import URL

    HAS_AIOHTTP = True
except ImportError:
    HAS_AIOHTTP = False  # type: ignore

from ._context import ObjectLocator
from .cache import PresignedUrlCache
from .config import PresignerConfig
from .encoding import LOGGED_KEY_LENGTH
from .exceptions import (
    ConfigurationError,
    EncodingError,
    ExpiredCredentialsError,
    MissingDependencyError,
)
from .signers import S3PresignSigner

logger: Final = logging.getLogger(__name__)

AUDIO_EXTENSIONS: Final = frozenset(
    {".mp3", ".wav", ".m4a", ".aac", ".ogg", ".flac", ".wma"}
)


def _assert_aiohttp() -> None:
    if not HAS_AIOHTTP:
        raise MissingDependencyError(
            "Attempted to use aiohttp component, but aiohttp is not installed."
        )


class MediaKind(Enum):
    AUDIO = "audio"
    VIDEO = "video"


def detect_media_kind(file_name: str | None) -> MediaKind:
    """Audio if the extension is a known audio format, video otherwise."""
    if not file_name:
        return MediaKind.VIDEO
    suffix = PurePosixPath(file_name).suffix.lower()
    return MediaKind.AUDIO if suffix in AUDIO_EXTENSIONS else MediaKind.VIDEO


class ProbeOutcome(Enum):
    REACHABLE = "reachable"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass(kw_only=True, frozen=True)
class ProbeResult:
    outcome: ProbeOutcome
    status: int | None = None
    detail: str | None = None


@dataclass(kw_only=True, frozen=True)
class MediaSource:
    """What a player needs: a URL to load, or an error to show instead."""

    kind: MediaKind
    request_id: str
    url: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.url is not None and self.error is None


class MediaProbe:
    """Checks that a presigned URL serves content, within a fixed deadline.

    The URL was signed for ``GET``, so the probe asks for the first byte only
    instead of sending a ``HEAD`` request the signature would not cover.
    """

    def __init__(
        self,
        *,
        timeout: float = 15.0,
        _session: "aiohttp.ClientSession | None" = None,
    ) -> None:
        _assert_aiohttp()
        self._timeout = timeout
        self._session = _session

    async def check(self, url: str) -> ProbeResult:
        if self._session is not None:
            return await self._check(self._session, url)
        async with aiohttp.ClientSession() as session:
            return await self._check(session, url)

    async def _check(self, session: "aiohttp.ClientSession", url: str) -> ProbeResult:
        try:
            async with asyncio.timeout(self._timeout):
                # The URL is already canonically encoded; it must not be requoted.
                async with session.get(
                    URL(url, encoded=True), headers={"Range": "bytes=0-0"}
                ) as resp:
                    status = resp.status
        except TimeoutError:
            return ProbeResult(outcome=ProbeOutcome.TIMED_OUT)
        except aiohttp.ClientError as e:
            return ProbeResult(outcome=ProbeOutcome.FAILED, detail=str(e))

        if status >= 400:
            return ProbeResult(outcome=ProbeOutcome.FAILED, status=status)
        return ProbeResult(outcome=ProbeOutcome.REACHABLE, status=status)


class MediaUrlLoader:
    """Turns a configured bucket and a file name into a playable media source.

    Configuration and encoding problems are reported in
    :py:attr:`MediaSource.error` rather than raised.
    """

    def __init__(
        self,
        *,
        config: PresignerConfig,
        signer: S3PresignSigner | None = None,
        cache: PresignedUrlCache | None = None,
        probe: MediaProbe | None = None,
        check_reachability: bool = False,
    ) -> None:
        """
        :param config: A resolved configuration naming the bucket, region and
            credentials.
        :param signer: Signer used on every cache miss. Defaults to the signer of
            ``cache`` when one is given.
        :param cache: Optional cache consulted before presigning.
        :param probe: Checker run against every URL before it is handed out.
        :param check_reachability: Build a :py:class:`MediaProbe` bounded by
            ``config.probe_timeout`` when no ``probe`` is given. Requires aiohttp.
        """
        if signer is not None and cache is not None and cache.signer is not signer:
            raise ValueError(
                "The cache must presign with the same signer as the loader."
            )
        if signer is None:
            signer = cache.signer if cache is not None else S3PresignSigner()
        if probe is None and check_reachability:
            probe = MediaProbe(timeout=config.probe_timeout)
        self._config = config
        self._signer = signer
        self._cache = cache
        self._probe = probe

    async def load(
        self, file_name: str | None, *, now: datetime | None = None
    ) -> MediaSource:
        request_id = uuid.uuid4().hex[:12]
        kind = detect_media_kind(file_name)
        logger.debug(
            "[%s] Loading %s media for %r",
            request_id,
            kind.value,
            (file_name or "")[:LOGGED_KEY_LENGTH],
        )

        try:
            url = self._presign(file_name, now=now)
        except (ConfigurationError, EncodingError, ExpiredCredentialsError) as e:
            logger.error("[%s] Unable to presign media URL: %s", request_id, e)
            return MediaSource(
                kind=kind,
                request_id=request_id,
                error=f"Failed to generate media URL: {e}",
            )

        if self._probe is None:
            return MediaSource(kind=kind, request_id=request_id, url=url)

        result = await self._probe.check(url)
        match result.outcome:
            case ProbeOutcome.FAILED:
                logger.error(
                    "[%s] %s failed to load (status=%s): %s",
                    request_id,
                    kind.value,
                    result.status,
                    result.detail,
                )
                return MediaSource(
                    kind=kind,
                    request_id=request_id,
                    error=(
                        f"Failed to load {kind.value}: Please check the file path "
                        "and AWS configuration"
                    ),
                )
            case ProbeOutcome.TIMED_OUT:
                logger.warning(
                    "[%s] %s load timed out, using the URL anyway",
                    request_id,
                    kind.value,
                )
            case ProbeOutcome.REACHABLE:
                logger.debug("[%s] %s is reachable", request_id, kind.value)
        return MediaSource(kind=kind, request_id=request_id, url=url)

    def _presign(self, file_name: str | None, *, now: datetime | None) -> str:
        locator = ObjectLocator(
            bucket=self._config.bucket or "",
            key=file_name or "",
            region=self._config.region or "",
        )
        identity = self._config.get_identity()
        if self._cache is not None:
            return self._cache.get(
                locator=locator,
                identity=identity,
                now=now,
                expires_in=self._config.expires_in,
            )
        return self._signer.presign(
            locator=locator,
            identity=identity,
            now=now,
            expires_in=self._config.expires_in,
        )

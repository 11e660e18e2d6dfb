# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""Percent-encoding of object keys and query components for SigV4 presigning.

Only the RFC 3986 unreserved characters (``A-Z a-z 0-9 - _ . ~``) are left as-is.
Everything else, including ``! ' ( ) * [ ] { } # ? & = +`` and space, is
escaped with uppercase hex digits.
"""

import logging
import re
from typing import Final
from urllib.parse import quote, unquote

from .exceptions import EncodingError

logger: Final = logging.getLogger(__name__)

# A "%" that does not start a two hex digit escape.
_MALFORMED_ESCAPE: Final = re.compile(r"%(?![0-9A-Fa-f]{2})")
# Object keys are cut to this many characters in log records.
LOGGED_KEY_LENGTH: Final = 50


def decode_key(key: str) -> str:
    """Percent-decode an object key.

    :param key: The raw object key, which may or may not already be encoded.
    :raises EncodingError: If ``key`` contains a malformed escape sequence or the
        escapes do not decode to valid UTF-8.
    """
    if match := _MALFORMED_ESCAPE.search(key):
        raise EncodingError(
            f"Malformed percent-escape at position {match.start()} of object key."
        )
    try:
        return unquote(key, encoding="utf-8", errors="strict")
    except UnicodeDecodeError as e:
        raise EncodingError("Percent-escapes in object key are not valid UTF-8.") from e


def encode_query_component(value: str) -> str:
    """Encode a single query name or value, escaping ``/`` as well."""
    return _quote(value)


def encode_key(key: str) -> str:
    """Encode an object key into its canonical URI form, without the leading ``/``.

    The key is decoded first so an already-encoded key is not escaped twice. If
    it cannot be decoded it is treated as raw text. Each ``/``-separated segment
    is then encoded on its own; empty segments are kept, so repeated, leading or
    trailing slashes survive unchanged.

    :raises EncodingError: If the key cannot be represented as UTF-8 at all.
    """
    try:
        decoded = decode_key(key)
    except EncodingError as e:
        logger.debug(
            "Using object key %r verbatim, it could not be decoded: %s",
            key[:LOGGED_KEY_LENGTH],
            e,
        )
        decoded = key
    return "/".join(_quote(segment) for segment in decoded.split("/"))


def _quote(value: str) -> str:
    try:
        return quote(value, safe="", encoding="utf-8", errors="strict")
    except UnicodeEncodeError as e:
        raise EncodingError("Value cannot be encoded as UTF-8.") from e

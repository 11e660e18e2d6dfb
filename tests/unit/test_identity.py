# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from datetime import UTC, datetime, timedelta, timezone

import pytest
from freezegun import freeze_time
from s3_presigner import AWSCredentialIdentity


@pytest.mark.parametrize(
    "access_key_id,secret_access_key,session_token,expiration",
    [
        (
            "AKID1234EXAMPLE",
            "SECRET1234",
            None,
            None,
        ),
        (
            "AKID1234EXAMPLE",
            "SECRET1234",
            "SESS_TOKEN_1234",
            None,
        ),
        (
            "AKID1234EXAMPLE",
            "SECRET1234",
            "SESS_TOKEN_1234",
            datetime(2024, 5, 1, 0, 0, 0, tzinfo=UTC),
        ),
    ],
)
def test_aws_credential_identity(
    access_key_id: str,
    secret_access_key: str,
    session_token: str | None,
    expiration: datetime | None,
) -> None:
    creds = AWSCredentialIdentity(
        access_key_id=access_key_id,
        secret_access_key=secret_access_key,
        session_token=session_token,
        expiration=expiration,
    )
    assert creds.access_key_id == access_key_id
    assert creds.secret_access_key == secret_access_key
    assert creds.session_token == session_token
    assert creds.expiration == expiration


def test_secrets_are_not_in_repr() -> None:
    creds = AWSCredentialIdentity(
        access_key_id="AKID1234EXAMPLE",
        secret_access_key="SECRET1234",
        session_token="SESS_TOKEN_1234",
    )
    assert "AKID1234EXAMPLE" in repr(creds)
    assert "SECRET1234" not in repr(creds)
    assert "SESS_TOKEN_1234" not in repr(creds)


def test_expiration_is_normalized_to_utc() -> None:
    creds = AWSCredentialIdentity(
        access_key_id="AKID",
        secret_access_key="SECRET",
        expiration=datetime(2024, 5, 1, 2, 0, 0, tzinfo=timezone(timedelta(hours=2))),
    )
    assert creds.expiration == datetime(2024, 5, 1, 0, 0, 0, tzinfo=UTC)
    assert creds.expiration is not None and creds.expiration.tzinfo is UTC

    naive = AWSCredentialIdentity(
        access_key_id="AKID",
        secret_access_key="SECRET",
        expiration=datetime(2024, 5, 1),
    )
    assert naive.expiration == datetime(2024, 5, 1, tzinfo=UTC)


@pytest.mark.parametrize(
    "expiration,expected",
    [
        (None, False),
        (datetime(2024, 5, 1, 0, 0, 1, tzinfo=UTC), False),
        (datetime(2024, 5, 1, 0, 0, 0, tzinfo=UTC), True),
        (datetime(2024, 4, 30, tzinfo=UTC), True),
    ],
)
@freeze_time("2024-05-01 00:00:00")
def test_is_expired(expiration: datetime | None, expected: bool) -> None:
    creds = AWSCredentialIdentity(
        access_key_id="AKID", secret_access_key="SECRET", expiration=expiration
    )
    assert creds.is_expired is expected

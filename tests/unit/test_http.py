# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import pytest
from s3_presigner import URI


@pytest.mark.parametrize(
    "uri,expected",
    [
        (
            URI(host="demo-bucket.s3.us-east-1.amazonaws.com"),
            "https://demo-bucket.s3.us-east-1.amazonaws.com",
        ),
        (
            URI(
                host="demo-bucket.s3.us-east-1.amazonaws.com",
                path="/videos/clip%201.mp4",
                query="X-Amz-Expires=3600&X-Amz-SignedHeaders=host",
            ),
            "https://demo-bucket.s3.us-east-1.amazonaws.com/videos/clip%201.mp4"
            "?X-Amz-Expires=3600&X-Amz-SignedHeaders=host",
        ),
        (
            URI(scheme="http", host="localhost", path="/a%2Fb"),
            "http://localhost/a%2Fb",
        ),
    ],
)
def test_build(uri: URI, expected: str) -> None:
    assert uri.build() == expected


def test_build_emits_components_verbatim() -> None:
    uri = URI(host="h", path="/a%25b%20c", query="X-Amz-Credential=AKID%2Fscope")
    assert uri.build() == "https://h/a%25b%20c?X-Amz-Credential=AKID%2Fscope"

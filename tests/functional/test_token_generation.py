# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from datetime import timedelta
from pathlib import Path
from urllib.parse import parse_qsl, urlsplit

import pytest
from aws_rds_signer import Signer, SignerBuilder
from freezegun import freeze_time

HOST = "mydb.cluster.us-east-1.rds.amazonaws.com"


@pytest.fixture
def aws_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    for name in (
        "AWS_ACCESS_KEY_ID",
        "AWS_SECRET_ACCESS_KEY",
        "AWS_SESSION_TOKEN",
        "AWS_REGION",
        "AWS_DEFAULT_REGION",
        "AWS_PROFILE",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("AWS_CONFIG_FILE", str(tmp_path / "config"))
    monkeypatch.setenv("AWS_SHARED_CREDENTIALS_FILE", str(tmp_path / "credentials"))
    return tmp_path


@freeze_time("2024-01-15 10:00:00")
async def test_default_chains_from_shared_files(aws_environment: Path) -> None:
    (aws_environment / "credentials").write_text(
        "[default]\n"
        "aws_access_key_id = AKIDEXAMPLE\n"
        "aws_secret_access_key = wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY\n"
    )
    (aws_environment / "config").write_text("[default]\nregion = us-east-1\n")

    signer = Signer.builder().host(HOST).user("appuser").build()
    token = await signer.fetch_token()

    assert token == (
        f"{HOST}:5432/?Action=connect&DBUser=appuser&"
        "X-Amz-Algorithm=AWS4-HMAC-SHA256&"
        "X-Amz-Credential=AKIDEXAMPLE%2F20240115%2Fus-east-1%2Frds-db%2F"
        "aws4_request&X-Amz-Date=20240115T100000Z&X-Amz-Expires=900&"
        "X-Amz-SignedHeaders=host&X-Amz-Signature="
        "41689373536cd99adea822b75df08443dd8522f653026dd6d33c8f6cb5cd3113"
    )


@freeze_time("2024-01-15 10:00:00")
async def test_environment_credentials_and_region(
    aws_environment: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "AKIDEXAMPLE")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "secret")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "session")
    monkeypatch.setenv("AWS_REGION", "eu-west-1")

    signer = SignerBuilder.from_environment(
        {"DB_HOST": HOST, "DB_USER": "appuser", "DB_PORT": "3306"}
    ).build()
    assert signer.config.expires_in == timedelta(seconds=900)

    parsed = urlsplit(f"https://{await signer.fetch_token()}")
    params = dict(parse_qsl(parsed.query))
    assert parsed.port == 3306
    assert params["X-Amz-Credential"] == (
        "AKIDEXAMPLE/20240115/eu-west-1/rds-db/aws4_request"
    )
    assert params["X-Amz-Security-Token"] == "session"

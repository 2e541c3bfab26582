"""
Unit tests for the operator CLI
validate-deletion prints the reference report and, with --delete, always
chains into the admin delete endpoint.
"""

import argparse
from uuid import uuid4

import httpx
import pytest

import cli
from config import ApplicationConfig
from libs.result import Return
from src.app.use_cases.diagnostics import ReferenceReportResponse, TableReferenceResult


def _report(user_id, count):
    return ReferenceReportResponse(
        identifier=str(user_id),
        tables=[TableReferenceResult(table="sales", columns=["created_by"], count=count)],
        total_references=count,
        clean=count == 0,
    )


@pytest.fixture
def validate_with(monkeypatch):
    def arrange(report):
        class StubValidateReferencesUseCase:
            def __init__(self, *args, **kwargs):
                pass

            async def execute(self, identifier):
                return Return.ok(report)

        monkeypatch.setattr(cli, "ValidateReferencesUseCase", StubValidateReferencesUseCase)

    return arrange


@pytest.fixture
def admin_posts(monkeypatch):
    calls = []

    def post(url, **kwargs):
        calls.append((url, kwargs))
        return httpx.Response(
            200, json={"ok": True, "type": "immediate"}, request=httpx.Request("POST", url)
        )

    monkeypatch.setattr(cli.httpx, "post", post)
    return calls


def test_validate_deletion_clean_report_still_deletes(validate_with, admin_posts, capsys):
    """Rows gone but identity left: --delete must still reach the admin API"""
    # Arrange
    user_id = uuid4()
    validate_with(_report(user_id, 0))

    # Act
    rc = cli.cmd_validate_deletion(argparse.Namespace(user_id=user_id, delete=True))

    # Assert
    assert rc == 0
    assert len(admin_posts) == 1
    url, kwargs = admin_posts[0]
    assert url == f"{ApplicationConfig.ADMIN_URL.rstrip('/')}/admin/delete-user"
    assert kwargs["json"] == {"userId": str(user_id), "immediate": True}
    assert kwargs["headers"] == {"X-Admin-API-Key": ApplicationConfig.ADMIN_API_KEY}
    assert "total references: 0" in capsys.readouterr().out


def test_validate_deletion_with_references_deletes(validate_with, admin_posts):
    user_id = uuid4()
    validate_with(_report(user_id, 2))

    rc = cli.cmd_validate_deletion(argparse.Namespace(user_id=user_id, delete=True))

    assert rc == 0
    assert len(admin_posts) == 1


def test_validate_deletion_without_delete_flag(validate_with, admin_posts):
    user_id = uuid4()
    validate_with(_report(user_id, 2))

    rc = cli.cmd_validate_deletion(argparse.Namespace(user_id=user_id, delete=False))

    assert rc == 1
    assert admin_posts == []


def test_validate_deletion_admin_rejects(validate_with, monkeypatch):
    user_id = uuid4()
    validate_with(_report(user_id, 0))

    def post(url, **kwargs):
        return httpx.Response(
            502,
            json={"error": {"code": "IDENTITY_DELETE_FAILED"}},
            request=httpx.Request("POST", url),
        )

    monkeypatch.setattr(cli.httpx, "post", post)

    rc = cli.cmd_validate_deletion(argparse.Namespace(user_id=user_id, delete=True))

    assert rc == 1

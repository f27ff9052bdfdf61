"""Tests for validation helpers."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from server.models.template import AddTemplatePayload
from server.utils.validators import format_validation_errors, parse_repository_url


def _errors_for(payload) -> str:
    with pytest.raises(ValidationError) as exc_info:
        AddTemplatePayload.model_validate(payload)
    return format_validation_errors(exc_info.value)


class TestFormatValidationErrors:
    def test_single_issue(self):
        message = _errors_for({"name": "ab", "templateId": "t", "appAuthorizationId": "a"})
        assert message.startswith("Code: string_too_short ~ Path: name ~ Message: ")
        assert " | " not in message

    def test_missing_fields_use_form_names(self):
        message = _errors_for({"name": "valid-name"})
        assert "Path: templateId" in message
        assert "Path: appAuthorizationId" in message
        assert "Code: missing" in message

    def test_root_level_issue(self):
        message = _errors_for("not a form")
        assert "Path: (root)" in message


class TestAddTemplatePayload:
    def test_checkbox_on(self):
        data = AddTemplatePayload.model_validate(
            {"name": "repo", "templateId": "t", "appAuthorizationId": "a", "private": "on"}
        )
        assert data.private is True

    def test_checkbox_absent(self):
        data = AddTemplatePayload.model_validate({"name": "repo", "templateId": "t", "appAuthorizationId": "a"})
        assert data.private is False

    def test_json_boolean(self):
        data = AddTemplatePayload.model_validate(
            {"name": "repo", "templateId": "t", "appAuthorizationId": "a", "private": True}
        )
        assert data.private is True

    def test_only_form_names_accepted(self):
        message = _errors_for({"name": "repo", "template_id": "t", "app_authorization_id": "a"})
        assert "Path: templateId" in message
        assert "Path: appAuthorizationId" in message


class TestParseRepositoryUrl:
    def test_owner_and_repo(self):
        assert parse_repository_url("https://github.com/acme/base-starter") == ("acme", "base-starter")

    def test_ignores_extra_segments(self):
        assert parse_repository_url("https://github.com/acme/base-starter/tree/main") == ("acme", "base-starter")

    @pytest.mark.parametrize("url", ["https://github.com/acme", "https://github.com/", "", "not a url"])
    def test_missing_owner_or_repo(self, url):
        assert parse_repository_url(url) is None

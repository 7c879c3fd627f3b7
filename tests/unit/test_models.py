"""Tests for vcs_toolkit.models.domain."""

import pytest
from pydantic import ValidationError

from vcs_toolkit.enums import Capability, FileOperation, ProviderName
from vcs_toolkit.models.domain import CommandResult, CurrentUser, FileChange, ToolResult, UploadResult


class TestCurrentUser:
    def test_from_gitea_payload(self):
        user = CurrentUser.from_payload(
            {"login": "alice", "id": 3, "email": "a@example.com", "full_name": "Alice A"}
        )

        assert user.login == "alice"
        assert user.id == 3
        assert user.name == "Alice A"
        assert user.raw["full_name"] == "Alice A"

    def test_from_github_payload(self):
        user = CurrentUser.from_payload({"login": "octocat", "id": 1, "name": "The Octocat"})
        assert user.name == "The Octocat"
        assert user.email is None


class TestToolResult:
    def test_success_omits_error(self):
        result = ToolResult(success=True, action="list", message="ok", data=[1, 2])
        assert result.to_dict() == {"success": True, "action": "list", "message": "ok", "data": [1, 2]}

    def test_failure_omits_data(self):
        result = ToolResult(success=False, action="get", message="failed", error="boom")
        assert result.to_dict() == {"success": False, "action": "get", "message": "failed", "error": "boom"}

    def test_nested_none_values_preserved(self):
        result = ToolResult(success=True, action="get", message="ok", data={"description": None})
        assert result.to_dict()["data"] == {"description": None}


class TestFileChange:
    def test_defaults_to_update(self):
        change = FileChange(path="README.md", content="hi")
        assert change.operation == FileOperation.UPDATE

    def test_delete_needs_no_content(self):
        change = FileChange(path="old.txt", operation="delete")
        assert change.content is None

    def test_create_requires_content(self):
        with pytest.raises(ValidationError):
            FileChange(path="new.txt", operation="create")

    def test_empty_path_rejected(self):
        with pytest.raises(ValidationError):
            FileChange(path="", content="x")


class TestSmallModels:
    def test_command_result_ok(self):
        assert CommandResult(exit_code=0, output="").ok
        assert not CommandResult(exit_code=2, output="").ok

    def test_upload_result_to_dict(self):
        result = UploadResult(uploaded=2, errors=["a.txt: boom"])
        assert result.to_dict() == {"uploaded": 2, "errors": ["a.txt: boom"]}

    def test_enum_str_is_value(self):
        assert str(ProviderName.GITHUB) == "github"
        assert str(Capability.LIST_WORKFLOW_RUNS) == "list_workflow_runs"

import os

import pytest

from vault_tasks.errors import McpError
from vault_tasks.paths import to_vault_relative, validate_path


def test_validate_path_returns_normalized_path(tmp_path):
    result = validate_path(tmp_path, "notes\\daily.md")

    assert result == tmp_path / "notes" / "daily.md"


def test_validate_path_rejects_absolute_path(tmp_path):
    with pytest.raises(McpError) as excinfo:
        validate_path(tmp_path, "/etc/passwd")

    assert excinfo.value.error.code == "ABSOLUTE_PATH"


def test_validate_path_rejects_traversal_without_fs_access(tmp_path, monkeypatch):
    def _unexpected_call(*_args, **_kwargs):
        raise AssertionError("symlink check should not run for traversal paths")

    monkeypatch.setattr("vault_tasks.paths._contains_symlink", _unexpected_call)

    with pytest.raises(McpError) as excinfo:
        validate_path(tmp_path, "../../etc/passwd")

    assert excinfo.value.error.code == "PATH_TRAVERSAL"


def test_validate_path_rejects_symlink(tmp_path):
    target = tmp_path / "target.md"
    target.write_text("- [ ] A", encoding="utf-8")
    os.symlink(target, tmp_path / "link.md")

    with pytest.raises(McpError) as excinfo:
        validate_path(tmp_path, "link.md")

    assert excinfo.value.error.code == "PATH_SYMLINK"


def test_validate_path_rejects_non_string(tmp_path):
    with pytest.raises(McpError) as excinfo:
        validate_path(tmp_path, 42)

    assert excinfo.value.error.code == "INVALID_TYPE"


def test_to_vault_relative_strips_vault_prefix(tmp_path):
    absolute = (tmp_path / "notes" / "daily.md").as_posix()

    assert to_vault_relative(tmp_path, absolute) == "notes/daily.md"
    assert to_vault_relative(tmp_path, "notes/daily.md") == "notes/daily.md"


def test_to_vault_relative_rejects_paths_outside_vault(tmp_path):
    with pytest.raises(McpError) as excinfo:
        to_vault_relative(tmp_path / "vault", (tmp_path / "other.md").as_posix())

    assert excinfo.value.error.code == "PATH_OUTSIDE_VAULT"

from datetime import date
from types import SimpleNamespace

import pytest

from vault_tasks import mcp, mcp_tasks
from vault_tasks.errors import McpError

TODAY = date(2025, 8, 5)


def _build_request(vault_root, **config):
    state = SimpleNamespace(vault_path=vault_root)
    if config:
        state.config = SimpleNamespace(vault_path=vault_root, **config)
    return SimpleNamespace(app=SimpleNamespace(state=state))


def _write(path, content):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


@pytest.fixture
def vault(tmp_path, monkeypatch):
    monkeypatch.setattr(mcp_tasks, "_today", lambda: TODAY)
    _write(
        tmp_path / "projects" / "alpha.md",
        "# Alpha\n- [ ] Write report #work 📅 2025-08-04 ⏫\n- [x] Ship v1 ✅ 2025-08-01\n",
    )
    _write(tmp_path / "daily.md", "- [ ] Water plants 🔁 every week 📅 2025-08-05\n")
    _write(tmp_path / "projects" / "notes.txt", "- [ ] Not markdown\n")
    _write(tmp_path / ".obsidian" / "hidden.md", "- [ ] Hidden\n")
    return tmp_path


def test_list_all_tasks_scans_the_vault(vault):
    response = mcp.list_all_tasks({}, _build_request(vault))

    assert response["ok"] is True
    ids = [task["id"] for task in response["data"]["tasks"]]
    assert ids == ["daily.md:1", "projects/alpha.md:2", "projects/alpha.md:3"]
    water = response["data"]["tasks"][0]
    assert water["recurrence"] == "every week"
    assert water["urgency"] == pytest.approx(8.8 + 1.95)


@pytest.mark.parametrize("path", ["projects", "projects/alpha.md"])
def test_list_all_tasks_limits_to_path(vault, path):
    response = mcp.list_all_tasks({"path": path}, _build_request(vault))

    ids = [task["id"] for task in response["data"]["tasks"]]
    assert ids == ["projects/alpha.md:2", "projects/alpha.md:3"]


@pytest.mark.parametrize(
    ("payload", "code"),
    [
        ({"path": "../outside"}, "PATH_TRAVERSAL"),
        ({"path": "missing"}, "FILE_NOT_FOUND"),
        ({"path": "projects/notes.txt"}, "NOT_MARKDOWN"),
        ({"path": 3}, "INVALID_TYPE"),
        ({"folder": "projects"}, "UNKNOWN_FIELD"),
        (["not", "a", "dict"], "INVALID_TYPE"),
    ],
)
def test_list_all_tasks_rejects_bad_payloads(vault, payload, code):
    with pytest.raises(McpError) as excinfo:
        mcp.list_all_tasks(payload, _build_request(vault))

    assert excinfo.value.error.code == code


def test_query_tasks_filters_and_sorts(vault):
    response = mcp.query_tasks({"query": "not done"}, _build_request(vault))

    data = response["data"]
    assert [task["id"] for task in data["tasks"]] == [
        "projects/alpha.md:2",
        "daily.md:1",
    ]
    assert data["total"] == 2
    assert data["returned"] == 2
    assert data["truncated"] is False
    assert data["notice"] is None


def test_query_tasks_requires_query(vault):
    with pytest.raises(McpError) as excinfo:
        mcp.query_tasks({"path": "projects"}, _build_request(vault))

    assert excinfo.value.error.code == "MISSING_FIELDS"


def test_query_tasks_truncates_large_responses(tmp_path, monkeypatch):
    monkeypatch.setattr(mcp_tasks, "_today", lambda: TODAY)
    lines = [f"- [ ] Task number {index} #bulk 📅 2025-08-{index:02d}" for index in range(1, 21)]
    _write(tmp_path / "bulk.md", "\n".join(lines))

    response = mcp.query_tasks(
        {"query": "has tag bulk"},
        _build_request(tmp_path, max_response_tokens=500),
    )

    data = response["data"]
    assert data["truncated"] is True
    assert data["total"] == 20
    assert 0 < data["returned"] < 20
    assert len(data["tasks"]) == data["returned"]
    assert f"of {data['total']}" in data["notice"]


def test_complete_task_rewrites_file_with_successor(vault):
    response = mcp.complete_task({"id": "daily.md:1"}, _build_request(vault))

    data = response["data"]
    assert data["successorCreated"] is True
    assert data["completedLine"] == "- [x] Water plants 🔁 every week 📅 2025-08-05 ✅ 2025-08-05"
    assert data["successorLine"] == "- [ ] Water plants 🔁 every week 📅 2025-08-12"
    assert data["warning"] is None
    assert data["task"]["id"] == "daily.md:1"
    assert (vault / "daily.md").read_text(encoding="utf-8") == (
        "- [x] Water plants 🔁 every week 📅 2025-08-05 ✅ 2025-08-05\n"
        "- [ ] Water plants 🔁 every week 📅 2025-08-12\n"
    )


def test_complete_task_accepts_absolute_path_inside_vault(vault):
    task_id = f"{(vault / 'projects' / 'alpha.md').as_posix()}:2"

    response = mcp.complete_task({"id": task_id}, _build_request(vault))

    assert response["data"]["successorCreated"] is False
    assert response["data"]["task"]["id"] == "projects/alpha.md:2"
    content = (vault / "projects" / "alpha.md").read_text(encoding="utf-8")
    assert "- [x] Write report #work 📅 2025-08-04 ⏫ ✅ 2025-08-05" in content


def test_complete_task_keeps_crlf_line_endings(vault):
    (vault / "crlf.md").write_bytes("- [ ] One\r\n- [ ] Two\r\n".encode("utf-8"))

    mcp.complete_task({"id": "crlf.md:2"}, _build_request(vault))

    assert (vault / "crlf.md").read_bytes() == (
        "- [ ] One\r\n- [x] Two ✅ 2025-08-05\r\n".encode("utf-8")
    )


def test_complete_task_reports_unparseable_recurrence(vault):
    _write(vault / "odd.md", "- [ ] Odd 🔁 every blue moon 📅 2025-08-05\n")

    response = mcp.complete_task({"id": "odd.md:1"}, _build_request(vault))

    data = response["data"]
    assert data["successorCreated"] is False
    assert data["warning"]["code"] == "UNPARSEABLE_RECURRENCE"
    assert (vault / "odd.md").read_text(encoding="utf-8").startswith("- [x] Odd")


@pytest.mark.parametrize(
    ("task_id", "code"),
    [
        ("projects/alpha.md:3", "ALREADY_COMPLETE"),
        ("projects/alpha.md:1", "NOT_A_TASK"),
        ("projects/alpha.md:99", "LINE_OUT_OF_RANGE"),
        ("projects/alpha.md", "MALFORMED_IDENTIFIER"),
        ("missing.md:1", "FILE_NOT_FOUND"),
        ("projects/notes.txt:1", "NOT_MARKDOWN"),
        ("../escape.md:1", "PATH_TRAVERSAL"),
        ("/somewhere/else.md:1", "PATH_OUTSIDE_VAULT"),
    ],
)
def test_complete_task_errors_leave_files_untouched(vault, task_id, code):
    before = (vault / "projects" / "alpha.md").read_text(encoding="utf-8")

    with pytest.raises(McpError) as excinfo:
        mcp.complete_task({"id": task_id}, _build_request(vault))

    assert excinfo.value.error.code == code
    assert (vault / "projects" / "alpha.md").read_text(encoding="utf-8") == before

from svcbuild.model import (
    Blocked,
    Completed,
    Failed,
    Skipped,
    Task,
    TaskUtils,
    ensure_task,
    is_success,
    status_of,
)


def _noop(requirements, utils):
    return {}


def test_ensure_task_keeps_first_task_with_same_title():
    tasks = []
    first = Task(title="Pull Docker Image heroku/heroku:18", run=_noop, provides=["a"])
    second = Task(title="Pull Docker Image heroku/heroku:18", run=lambda r, u: {"b": 1}, provides=["b"])

    assert ensure_task(tasks, first) is first
    assert ensure_task(tasks, second) is first
    assert tasks == [first]
    assert tasks[0].provides == ["a"]


def test_ensure_task_appends_distinct_titles():
    tasks = []
    ensure_task(tasks, Task(title="one", run=_noop))
    ensure_task(tasks, Task(title="two", run=_noop))
    assert [t.title for t in tasks] == ["one", "two"]


def test_skip_wraps_provides():
    utils = TaskUtils("t")
    result = utils.skip({"k": "v"})
    assert isinstance(result, Skipped)
    assert result.provides == {"k": "v"}
    assert utils.skip().provides == {}


def test_step_records_titles(capsys):
    utils = TaskUtils("t")
    utils.step("Copy Source Repository")
    assert utils.steps == ["Copy Source Repository"]
    assert "STEP: Copy Source Repository" in capsys.readouterr().out


def test_outcome_helpers():
    assert is_success(Completed({}))
    assert is_success(Skipped({}))
    assert not is_success(Failed(RuntimeError("x")))
    assert not is_success(Blocked(["k"]))
    assert [status_of(r) for r in (Completed(), Skipped(), Failed(ValueError()), Blocked())] == [
        "succeeded", "skipped", "failed", "blocked",
    ]

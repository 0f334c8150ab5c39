import os
import shutil
import stat
import subprocess

import pytest

from svcbuild.procfile import Process
from svcbuild.templates import render_dockerfile, render_entrypoint, write_entrypoint


def test_entrypoint_has_one_case_per_process():
    text = render_entrypoint([Process("web", "node app.js"), Process("worker", "run --name 'x'")])

    assert text.startswith("#! /bin/bash\n")
    assert "  web) exec bash -c 'node app.js' \"$process\" \"$@\" ;;" in text
    assert "  worker) exec bash -c 'run --name '\"'\"'x'\"'\"'' \"$process\" \"$@\" ;;" in text
    assert "echo \"processes:\" web worker >&2" in text


def test_write_entrypoint_is_executable(tmp_path):
    path = write_entrypoint(tmp_path / "entrypoint", [Process("web", "x")])
    mode = os.stat(path).st_mode
    assert mode & stat.S_IXUSR and mode & stat.S_IXGRP and mode & stat.S_IXOTH


def test_dockerfile_uses_stack_image():
    text = render_dockerfile("heroku/heroku:18")
    assert text.splitlines()[0] == "FROM heroku/heroku:18"
    assert 'ENTRYPOINT ["/app/entrypoint"]' in text


def test_process_names_are_shell_quoted():
    text = render_entrypoint([Process("$(touch pwned)", "echo hi"), Process("my web", "x")])

    assert "  '$(touch pwned)') exec bash -c" in text
    assert "  'my web') exec bash -c" in text
    assert "echo \"processes:\" '$(touch pwned)' 'my web' >&2" in text


@pytest.mark.skipif(shutil.which("bash") is None, reason="bash not installed")
def test_entrypoint_with_odd_names_is_valid_bash(tmp_path):
    path = write_entrypoint(
        tmp_path / "entrypoint",
        [Process("my web", "echo hi"), Process("web)", "x"), Process("worker", "run 'a b'")],
    )
    proc = subprocess.run(["bash", "-n", str(path)], capture_output=True, text=True)
    assert proc.returncode == 0, proc.stderr

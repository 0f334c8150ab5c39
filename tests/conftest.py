from pathlib import Path

import pytest

from svcbuild.buildspec import BuildSpec, UserConfig
from svcbuild.cache import StampStore
from svcbuild.git_facts.git import split_source
from svcbuild.tasks import BuildTools
from svcbuild.ui.console import Console, set_console

SERVICE_URL = "https://github.com/example/queue"
BUILDPACK_URL = "https://github.com/heroku/heroku-buildpack-nodejs"


class FakeDocker:
    """Records calls; keeps local and registry image sets in memory."""

    def __init__(self, local=(), registry=()):
        self.local = set(local)
        self.registry = set(registry)
        self.calls = []
        self.on_run = None

    def pull(self, image, *, logfile=None):
        self.calls.append(("pull", image))
        self.local.add(image)

    def local_tags(self):
        self.calls.append(("local_tags",))
        return sorted(self.local)

    def registry_check(self, tag):
        self.calls.append(("registry_check", tag))
        return tag in self.registry

    def build(self, tarball, tag, *, logfile=None):
        self.calls.append(("build", tag))
        self.local.add(tag)

    def push(self, tag, *, logfile=None):
        self.calls.append(("push", tag))
        self.registry.add(tag)

    def run(self, image, command, *, binds=(), env=(), logfile=None):
        self.calls.append(("run", image, list(command)))
        if self.on_run is not None:
            self.on_run(image, list(command), list(binds))

    def count(self, kind):
        return sum(1 for c in self.calls if c[0] == kind)


class FakeGit:
    """Resolves every url to a fixed revision and 'clones' from an in-memory file map."""

    def __init__(self):
        self.revisions = {
            SERVICE_URL: "a" * 40,
            BUILDPACK_URL: "b" * 40,
        }
        self.files = {
            SERVICE_URL: {
                "Procfile": "web: node app.js\n# workers\n\nworker: node worker.js --queue 'jobs'\n",
                "app.js": "console.log('hi')\n",
            },
            BUILDPACK_URL: {"bin/detect": "#!/bin/sh\n", "bin/compile": "#!/bin/sh\n"},
        }
        self.clones = []

    def exact_source(self, source):
        url, _ref = split_source(source)
        return f"{url}#{self.revisions[url]}"

    def clone_repository(self, source, dest):
        url, _ref = split_source(source)
        self.clones.append((source, str(dest)))
        dest = Path(dest)
        (dest / ".git").mkdir(parents=True)
        (dest / ".git" / "HEAD").write_text("ref: refs/heads/main\n")
        for rel, content in self.files[url].items():
            path = dest / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        return source


@pytest.fixture(autouse=True)
def quiet_console():
    console = Console()
    set_console(console)
    return console


@pytest.fixture
def docker():
    return FakeDocker()


@pytest.fixture
def git():
    return FakeGit()


@pytest.fixture
def tools(docker, git):
    return BuildTools(docker=docker, git=git, stamps=StampStore())


@pytest.fixture
def base_dir(tmp_path):
    d = tmp_path / "base"
    d.mkdir()
    return d


def make_spec(**service_overrides):
    service = {
        "buildtype": "heroku-buildpack",
        "stack": "heroku-18",
        "buildpack": BUILDPACK_URL,
    }
    service.update(service_overrides)
    return BuildSpec.model_validate({
        "build": {
            "repositories": [
                {"name": "queue", "source": f"{SERVICE_URL}#main", "service": service},
                {"name": "libs", "source": "https://github.com/example/libs"},
            ]
        }
    })


@pytest.fixture
def spec():
    return make_spec()


@pytest.fixture
def config():
    return UserConfig.model_validate({"docker": {"repositoryPrefix": "registry.example.com/"}})

import textwrap

import pytest

from svcbuild.buildspec import (
    build_image,
    buildpack_name,
    check_buildpack_url,
    image_tag,
    load_build_spec,
    load_user_config,
    revision_of,
    stack_image,
)
from svcbuild.errors import ConfigError

SPEC_YAML = textwrap.dedent("""\
    build:
      repositories:
        - name: queue
          source: https://github.com/example/queue#main
          service:
            buildtype: heroku-buildpack
            stack: heroku-18
            buildpack: https://github.com/heroku/heroku-buildpack-nodejs
        - name: shared-lib
          source: https://github.com/example/shared-lib
""")


def _write(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text)
    return path


def test_load_build_spec(tmp_path):
    spec = load_build_spec(_write(tmp_path, "build.yml", SPEC_YAML))

    assert spec.service_names() == ["queue"]
    queue = spec.repository("queue")
    assert queue.service.stack == "heroku-18"
    assert spec.repository("shared-lib").service is None


def test_unknown_repository(tmp_path):
    spec = load_build_spec(_write(tmp_path, "build.yml", SPEC_YAML))
    with pytest.raises(ConfigError) as exc:
        spec.repository("web")
    assert exc.value.details["known"] == ["queue", "shared-lib"]


def test_schema_violation_is_config_error(tmp_path):
    path = _write(tmp_path, "build.yml", SPEC_YAML.replace("stack: heroku-18", "stak: heroku-18"))
    with pytest.raises(ConfigError):
        load_build_spec(path)


def test_invalid_yaml(tmp_path):
    with pytest.raises(ConfigError):
        load_build_spec(_write(tmp_path, "build.yml", "build: [unclosed"))


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError):
        load_build_spec(tmp_path / "nope.yml")


def test_user_config(tmp_path):
    cfg = load_user_config(_write(tmp_path, "cfg.yml", "docker:\n  repositoryPrefix: reg.example.com/\n"))
    assert cfg.docker.repository_prefix == "reg.example.com/"
    assert load_user_config(None).docker.repository_prefix == ""


def test_image_names():
    assert stack_image("heroku-18") == "heroku/heroku:18"
    assert build_image("heroku-18") == "heroku/heroku:18-build"
    assert stack_image("cedar-14-x") == "heroku/cedar:14-x"


def test_buildpack_name():
    assert buildpack_name("https://github.com/heroku/heroku-buildpack-python") == "heroku-buildpack-python"
    assert buildpack_name("https://github.com/heroku/heroku-buildpack-python#v150") == "heroku-buildpack-python"
    assert buildpack_name("https://example.com/bp/custom.git") == "https___example.com_bp_custom.git"


def test_check_buildpack_url():
    check_buildpack_url("https://github.com/heroku/heroku-buildpack-python")
    with pytest.raises(ConfigError):
        check_buildpack_url("heroku-buildpack-python")


def test_image_tag_uses_revision():
    assert image_tag("reg/", "queue", "https://github.com/x/queue#abc123") == "reg/queue:abc123"
    assert revision_of("u#r#x") == "r#x"
    with pytest.raises(ConfigError):
        revision_of("https://github.com/x/queue")

from __future__ import annotations

from pathlib import Path

import pytest

from provision_runner.errors import PlanError
from provision_runner.plan import Plan, load_plan
from provision_runner.steps import CommandAction, FileAction

REPO_ROOT = Path(__file__).resolve().parent.parent


def test_load_plan_builds_steps(write_plan, monkeypatch):
    monkeypatch.setenv("TARGET_USER", "nvidia")
    path = write_plan(
        """
        name: demo
        steps:
          - description: Update
            run:
              - [apt-get, update]
              - apt-get upgrade -y
          - description: JetPack
            run: apt-get install -y nvidia-jetpack
            requires_reboot: true
          - description: Group
            run: [[usermod, -aG, docker, "$TARGET_USER"]]
            env: {DEBIAN_FRONTEND: noninteractive}
          - description: Daemon config
            write_file:
              path: /etc/docker/daemon.json
              content: "{}"
              mode: "0644"
        """
    )

    plan = load_plan(str(path))
    steps = plan.steps

    assert plan.name == "demo"
    assert [s.index for s in steps] == [1, 2, 3, 4]
    assert [s.requires_reboot for s in steps] == [False, True, False, False]

    update = steps[0].action
    assert isinstance(update, CommandAction)
    assert update.commands == [["apt-get", "update"], ["apt-get", "upgrade", "-y"]]
    assert steps[1].action.commands == [["apt-get", "install", "-y", "nvidia-jetpack"]]
    assert steps[2].action.commands == [["usermod", "-aG", "docker", "nvidia"]]
    assert steps[2].action.env == {"DEBIAN_FRONTEND": "noninteractive"}

    daemon = steps[3].action
    assert isinstance(daemon, FileAction)
    assert daemon.path == "/etc/docker/daemon.json"
    assert daemon.mode == 0o644


def test_home_is_expanded_in_paths(write_plan, monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    path = write_plan(
        """
        steps:
          - description: bashrc
            write_file: {path: ~/.bashrc, content: "alias cc=clear\\n", append: true}
        """
    )
    step = load_plan(str(path)).steps[0]
    assert step.action.path == str(tmp_path / ".bashrc")
    assert step.action.append is True


def test_plan_name_defaults_to_file_stem(write_plan):
    path = write_plan("steps: [{description: a, run: 'true'}]", name="jetson.yml")
    assert load_plan(str(path)).name == "jetson"


@pytest.mark.parametrize(
    "body",
    [
        "steps: []",
        "steps: [{run: 'true'}]",
        "steps: [{description: a}]",
        "steps: [{description: a, run: 'true', write_file: {path: /x}}]",
        "steps: [{description: a, run: []}]",
        "steps: [{description: a, run: ['']}]",
        "steps: [{description: a, run: [{cmd: x}]}]",
        "steps: [{description: a, write_file: {content: x}}]",
        "steps: [{description: a, write_file: {path: /x, mode: rw}}]",
        "steps: [{description: a, run: 'true', env: [A]}]",
        "steps: [{description: a, run: 'true', index: 2}]",
        "steps: [{description: a, run: 'true', index: one}]",
        "steps: ['just a string']",
        "[1, 2]",
        "steps: [unterminated",
    ],
)
def test_invalid_plans(write_plan, body):
    path = write_plan(body)
    with pytest.raises(PlanError):
        load_plan(str(path)).steps


def test_plan_must_be_yaml(write_plan):
    path = write_plan("{}", name="plan.json")
    with pytest.raises(PlanError):
        load_plan(str(path))


def test_missing_plan(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_plan(str(tmp_path / "nope.yaml"))


def test_plan_error_names_step():
    with pytest.raises(PlanError) as exc:
        Plan(raw={"steps": [{"description": "ok", "run": "true"}, {"run": "true"}]}).steps
    assert exc.value.step == 2


def test_bundled_jetson_plan_loads():
    plan = load_plan(str(REPO_ROOT / "plans" / "robot_jetson.yaml"))
    steps = plan.steps

    assert plan.name == "robot-jetson"
    assert len(steps) == 12
    assert [s.index for s in steps if s.requires_reboot] == [2]
    assert steps[1].action.commands == [["apt-get", "install", "-y", "nvidia-jetpack"]]

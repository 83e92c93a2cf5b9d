# test/test_docker.py
"""Docker wrappers, run against a fake `docker` that only logs its calls."""
from __future__ import annotations

import pytest

from bashwrap.errors import ConfigurationError
from conftest import make_config, run_wrapper

OUTPUT_ARGUMENTS = [
    {"name": "--input", "type": "file"},
    {"name": "--inputs", "type": "file", "multiple": True},
    {"name": "--output", "type": "file", "direction": "output"},
]


def docker_config(tmp_path, arguments=None, **platform):
    spec = {"type": "docker", "image": "bash:5", **platform}
    return make_config(tmp_path, arguments=arguments or OUTPUT_ARGUMENTS, platforms=[spec])


def calls(log) -> list:
    return [ln for ln in log.read_text().splitlines() if ln]


def container_env(stdout: str) -> dict:
    """BW_PAR_* variables as the fake container saw them"""
    return dict(ln.split("=", 1) for ln in stdout.splitlines() if ln.startswith("BW_PAR_"))


def test_run_passes_environment_and_image(tmp_path, build, fake_docker):
    wrapper = build(docker_config(tmp_path))
    res = run_wrapper(wrapper, cwd=tmp_path)
    assert res.returncode == 0, res.stderr
    run = [c for c in calls(fake_docker) if c.startswith("run --entrypoint= ")]
    assert len(run) == 1
    assert " -e BW_META_FUNCTIONALITY_NAME " in run[0]
    assert " -e BW_PAR_OUTPUT " in run[0]
    assert " bash:5 bash /bw_automount" in run[0]


def test_image_inspected_before_run(tmp_path, build, fake_docker):
    wrapper = build(docker_config(tmp_path))
    run_wrapper(wrapper, cwd=tmp_path)
    log = calls(fake_docker)
    assert log[0] == "image inspect bash:5"
    assert not any(c.startswith("pull ") for c in log)


def test_automount_rewrites_file_arguments(tmp_path, build, fake_docker):
    wrapper = build(docker_config(tmp_path))
    cwd = tmp_path.resolve()
    res = run_wrapper(
        wrapper, "--input", "in.txt", "--inputs", "a.txt:sub/b.txt", "--output", "res/out.txt",
        cwd=cwd,
    )
    assert res.returncode == 0, res.stderr
    lines = container_env(res.stdout)
    assert lines["BW_PAR_INPUT"] == f"/bw_automount{cwd}/in.txt"
    assert lines["BW_PAR_INPUTS"] == f"/bw_automount{cwd}/a.txt:/bw_automount{cwd}/sub/b.txt"
    assert lines["BW_PAR_OUTPUT"] == f"/bw_automount{cwd}/res/out.txt"

    run = [c for c in calls(fake_docker) if c.startswith("run --entrypoint= ")][0]
    assert f"-v {cwd}:/bw_automount{cwd} " in run
    assert f"-v {cwd}/sub:/bw_automount{cwd}/sub " in run
    # 같은 디렉토리는 한 번만 mount
    assert run.count(f"-v {cwd}:/bw_automount{cwd} ") == 1


def test_manual_volumes_leave_paths_alone(tmp_path, build, fake_docker):
    wrapper = build(docker_config(tmp_path, resolve_volume="manual"))
    res = run_wrapper(wrapper, "--input", "in.txt", cwd=tmp_path)
    assert container_env(res.stdout)["BW_PAR_INPUT"] == "in.txt"


def test_extra_and_declared_volumes(tmp_path, build, fake_docker):
    wrapper = build(docker_config(tmp_path, volumes=[{"name": "data", "mount": "/data"}]))
    cwd = tmp_path.resolve()
    res = run_wrapper(wrapper, "---v", "/host:/ctr", "--data", "store", cwd=cwd)
    assert res.returncode == 0, res.stderr
    run = [c for c in calls(fake_docker) if c.startswith("run --entrypoint= ")][0]
    assert "-v /host:/ctr " in run
    assert f"-v {cwd}/store:/data " in run
    assert " -e BW_PAR_DATA " in run


def test_chown_runs_once_on_success(tmp_path, build, fake_docker):
    wrapper = build(docker_config(tmp_path))
    res = run_wrapper(wrapper, "--output", "out.txt", cwd=tmp_path)
    assert res.returncode == 0, res.stderr
    chowns = [c for c in calls(fake_docker) if "--entrypoint=chown" in c]
    assert len(chowns) == 1
    assert chowns[0].endswith(f"-R /bw_automount{tmp_path.resolve()}/out.txt")


def test_chown_keeps_exit_code_of_failed_run(tmp_path, build, fake_docker):
    wrapper = build(docker_config(tmp_path))
    res = run_wrapper(wrapper, "--output", "out.txt", cwd=tmp_path, env={"FAKE_DOCKER_EXIT": "7"})
    assert res.returncode == 7
    assert len([c for c in calls(fake_docker) if "--entrypoint=chown" in c]) == 1


def test_chown_failure_is_a_warning(tmp_path, build, fake_docker):
    wrapper = build(docker_config(tmp_path))
    res = run_wrapper(wrapper, "--output", "out.txt", cwd=tmp_path, env={"FAKE_DOCKER_CHOWN": "1"})
    assert res.returncode == 0
    assert "WARNING: Could not change the owner" in res.stderr


def test_chown_disabled(tmp_path, build, fake_docker):
    wrapper = build(docker_config(tmp_path, chown=False))
    run_wrapper(wrapper, "--output", "out.txt", cwd=tmp_path)
    assert not any("--entrypoint=chown" in c for c in calls(fake_docker))


def test_setup_failure_stops_the_run(tmp_path, build, fake_docker):
    wrapper = build(docker_config(tmp_path))
    res = run_wrapper(
        wrapper, cwd=tmp_path, env={"FAKE_DOCKER_INSPECT": "1", "FAKE_DOCKER_SETUP": "3"},
    )
    assert res.returncode == 3
    assert "Docker setup failed with exit code 3" in res.stderr
    log = calls(fake_docker)
    assert "pull bash:5" in log
    assert not any(c.startswith("run ") for c in log)


def test_setup_flag_pulls(tmp_path, build, fake_docker):
    wrapper = build(docker_config(tmp_path))
    res = run_wrapper(wrapper, "---setup", cwd=tmp_path)
    assert res.returncode == 0
    assert calls(fake_docker) == ["pull bash:5"]


def test_setup_flag_builds_from_requirements(tmp_path, build, fake_docker):
    wrapper = build(docker_config(
        tmp_path,
        apt={"packages": ["curl"]},
        docker={"build_args": ["GITHUB_PAT=abc"]},
    ))
    res = run_wrapper(wrapper, "---setup", cwd=tmp_path)
    assert res.returncode == 0, res.stderr
    log = calls(fake_docker)
    assert len(log) == 1
    assert log[0].startswith("build -t testbash:0.1 --build-arg GITHUB_PAT=abc ")


def test_dockerfile_flag(tmp_path, build, fake_docker):
    wrapper = build(docker_config(
        tmp_path,
        image="python:3.10",
        apt={"packages": ["curl", "jq"]},
        python={"packages": ["numpy"]},
    ))
    res = run_wrapper(wrapper, "---dockerfile", cwd=tmp_path)
    assert res.returncode == 0
    out = res.stdout
    assert out.startswith("FROM python:3.10\n")
    assert "apt-get install -y curl jq" in out
    assert "pip install --upgrade --no-cache-dir numpy" in out
    assert out.index("apt-get") < out.index("pip install")
    assert calls(fake_docker) == []


def test_dockerfile_without_requirements(tmp_path, build, fake_docker):
    wrapper = build(docker_config(tmp_path))
    res = run_wrapper(wrapper, "---dockerfile")
    assert res.stdout.strip() == "FROM bash:5"


def test_debug_opens_a_shell(tmp_path, build, fake_docker):
    wrapper = build(docker_config(tmp_path))
    res = run_wrapper(wrapper, "---debug", cwd=tmp_path)
    assert res.returncode == 0
    log = calls(fake_docker)
    assert any(c.startswith("run --entrypoint=bash -i --rm -t ") and c.endswith(" bash:5") for c in log)
    assert not any(c.startswith("run --entrypoint= ") for c in log)


def test_help_lists_docker_flags(tmp_path, build, fake_docker):
    wrapper = build(docker_config(tmp_path))
    res = run_wrapper(wrapper, "--help")
    assert "---dockerfile" in res.stdout
    assert "---v, ---volume=HOST:CONTAINER" in res.stdout
    assert calls(fake_docker) == []


def test_parse_errors_happen_before_docker(tmp_path, build, fake_docker):
    wrapper = build(docker_config(tmp_path))
    res = run_wrapper(wrapper, "--bogus")
    assert res.returncode == 1
    assert calls(fake_docker) == []


@pytest.mark.parametrize("platform,message", [
    ({"type": "docker"}, "image is required"),
    ({"type": "docker", "image": "bash:5", "resolve_volume": "sometimes"}, "resolve_volume"),
    ({"type": "docker", "image": "bash:5", "volumes": [{"name": "x"}]}, "volumes need a name and a mount"),
    ({"type": "docker", "image": "bash:5", "gpu": True}, "Unknown field(s) for docker platform: gpu"),
    ({"type": "kubernetes"}, "Unknown platform type: kubernetes"),
])
def test_invalid_platforms(tmp_path, build, platform, message):
    cfg = make_config(tmp_path, platforms=[platform])
    with pytest.raises(ConfigurationError) as exc:
        build(cfg)
    assert message in str(exc.value)

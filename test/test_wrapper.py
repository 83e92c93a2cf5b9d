# test/test_wrapper.py
"""End-to-end: build a native wrapper and run it with bash."""
from __future__ import annotations

import pytest

from bashwrap.utils.memory import parse_memory
from conftest import make_config, parsed, run_wrapper


@pytest.fixture
def wrapper(tmp_path, build):
    return build(make_config(tmp_path))


def test_parses_all_flag_forms(wrapper):
    res = run_wrapper(
        wrapper, "X", "--real_number", "10.5", "--whole_number=10", "--truth",
        "--multiple", "one", "--multiple=two",
    )
    assert res.returncode == 0, res.stderr
    out = parsed(res.stdout)
    assert out["input"] == ">X<"
    assert out["real_number"] == ">10.5<"
    assert out["whole_number"] == ">10<"
    assert out["truth"] == ">true<"
    assert out["falsehood"] == ">true<"
    assert out["multiple"] == ">one:two<"
    assert out["output"] == "unset"


def test_defaults_and_unset_values(wrapper):
    res = run_wrapper(wrapper, "X")
    out = parsed(res.stdout)
    assert out["whole_number"] == ">5<"
    assert out["truth"] == ">false<"
    assert out["real_number"] == "unset"


def test_alternative_spelling(wrapper):
    out = parsed(run_wrapper(wrapper, "X", "-r", "2", "-w", "3").stdout)
    assert out["real_number"] == ">2<"
    assert out["whole_number"] == ">3<"


@pytest.mark.parametrize("args", [
    ["--multiple", "a", "--multiple", "b", "--multiple", "c"],
    ["--multiple", "a:b:c"],
    ["--multiple=a:b", "--multiple", "c"],
])
def test_multiple_forms_are_equivalent(wrapper, args):
    out = parsed(run_wrapper(wrapper, "X", *args).stdout)
    assert out["multiple"] == ">a:b:c<"


def test_unknown_flag(wrapper):
    res = run_wrapper(wrapper, "X", "--bogus", "x")
    assert res.returncode != 0
    assert "--bogus" in res.stderr
    assert "ran: yes" not in res.stdout


def test_missing_required_positional(wrapper):
    res = run_wrapper(wrapper, "--truth")
    assert res.returncode != 0
    assert "'input' is a required argument" in res.stderr
    assert "ran: yes" not in res.stdout


def test_missing_value(wrapper):
    res = run_wrapper(wrapper, "X", "--real_number")
    assert res.returncode == 1
    assert "Not enough arguments passed to --real_number" in res.stderr


def test_non_multiple_given_twice(wrapper):
    res = run_wrapper(wrapper, "X", "--real_number", "1", "--real_number=2")
    assert res.returncode == 1
    assert "got more than one value" in res.stderr


def test_surplus_positional(wrapper):
    res = run_wrapper(wrapper, "X", "Y")
    assert res.returncode == 1
    assert "Unrecognized positional argument(s): Y" in res.stderr


def test_double_dash_ends_options(wrapper):
    out = parsed(run_wrapper(wrapper, "--truth", "--", "-dash").stdout)
    assert out["input"] == ">-dash<"
    assert out["truth"] == ">true<"


def test_empty_string_is_a_value(wrapper):
    res = run_wrapper(wrapper, "")
    assert res.returncode == 0, res.stderr
    assert parsed(res.stdout)["input"] == "><"


def test_special_characters_pass_through(wrapper):
    value = 'a "b" $HOME `id` \\ c'
    res = run_wrapper(wrapper, value)
    assert parsed(res.stdout)["input"] == f">{value}<"


@pytest.mark.parametrize("value", ["0", "10", "+7", "007", "0000000000000000000010", "-0"])
def test_integer_bounds_accepted(wrapper, value):
    assert run_wrapper(wrapper, "X", "--whole_number", value).returncode == 0


@pytest.mark.parametrize("value,message", [
    ("-1", "larger than or equal to 0"),
    ("11", "smaller than or equal to 10"),
    ("99999999999999999999", "smaller than or equal to 10"),
    ("-99999999999999999999", "larger than or equal to 0"),
    ("1.5", "has to be of type integer"),
])
def test_integer_bounds_rejected(wrapper, value, message):
    res = run_wrapper(wrapper, "X", "--whole_number", value)
    assert res.returncode == 1
    assert message in res.stderr
    assert "--whole_number" in res.stderr


@pytest.mark.parametrize("value", ["-1.5", "100", "100.0", "1e1", ".5"])
def test_double_bounds_accepted(wrapper, value):
    res = run_wrapper(wrapper, "X", "--real_number", value)
    assert res.returncode == 0, res.stderr


@pytest.mark.parametrize("value", ["-1.51", "100.01", "abc"])
def test_double_bounds_rejected(wrapper, value):
    res = run_wrapper(wrapper, "X", "--real_number", value)
    assert res.returncode == 1
    assert "--real_number" in res.stderr


def test_help(wrapper):
    res = run_wrapper(wrapper, "--help")
    assert res.returncode == 0
    assert "--real_number, -r" in res.stdout
    assert "min: -1.5" in res.stdout
    assert "Meta flags:" in res.stdout
    assert "ran: yes" not in res.stdout


def test_version(wrapper):
    res = run_wrapper(wrapper, "--version")
    assert res.returncode == 0
    assert res.stdout.strip() == "testbash 0.1"


def test_output_parent_is_created(wrapper, tmp_path):
    res = run_wrapper(wrapper, "X", "--output", "sub/dir/out.txt", cwd=tmp_path)
    assert res.returncode == 0, res.stderr
    assert (tmp_path / "sub" / "dir").is_dir()


def test_choices(tmp_path, build):
    wrapper = build(make_config(tmp_path, arguments=[
        {"name": "--mode", "type": "string", "choices": ["fast", "slow"], "default": "fast"},
    ]))
    assert run_wrapper(wrapper, "--mode", "slow").returncode == 0
    res = run_wrapper(wrapper, "--mode", "medium")
    assert res.returncode == 1
    assert "not one of the allowed choices: fast, slow" in res.stderr


def test_multiple_integer_checks_every_value(tmp_path, build):
    wrapper = build(make_config(tmp_path, arguments=[
        {"name": "--sizes", "type": "integer", "multiple": True, "multiple_sep": ",", "max": 5},
    ]))
    assert run_wrapper(wrapper, "--sizes", "1,2", "--sizes", "5").returncode == 0
    res = run_wrapper(wrapper, "--sizes", "1", "--sizes", "6")
    assert res.returncode == 1
    assert "got '6'" in res.stderr


def test_trailing_multiple_positional(tmp_path, build):
    wrapper = build(make_config(tmp_path, arguments=[
        {"name": "input", "type": "string"},
        {"name": "multiple", "type": "string", "multiple": True},
    ]))
    out = parsed(run_wrapper(wrapper, "a", "b", "c", "d").stdout)
    assert out["input"] == ">a<"
    assert out["multiple"] == ">b:c:d<"


def test_flags_between_positionals(tmp_path, build):
    wrapper = build(make_config(tmp_path, arguments=[
        {"name": "multiple", "type": "string", "multiple": True},
        {"name": "--output", "type": "file", "direction": "output"},
    ]))
    res = run_wrapper(wrapper, "a", "b", "c", "d", "--output", "out.txt", "e", "f", cwd=tmp_path)
    assert res.returncode == 0, res.stderr
    out = parsed(res.stdout)
    assert out["multiple"] == ">a:b:c:d:e:f<"
    assert out["output"] == ">out.txt<"


def test_input_file_must_exist(tmp_path, build):
    wrapper = build(make_config(tmp_path, arguments=[
        {"name": "--input", "type": "file", "must_exist": True},
    ]))
    (tmp_path / "present.txt").write_text("x")
    assert run_wrapper(wrapper, "--input", "present.txt", cwd=tmp_path).returncode == 0
    res = run_wrapper(wrapper, "--input", "absent.txt", cwd=tmp_path)
    assert res.returncode == 1
    assert "absent.txt" in res.stderr


def test_inherited_environment_does_not_leak(wrapper):
    res = run_wrapper(wrapper, "X", env={"BW_PAR_REAL_NUMBER": "3.0"})
    assert parsed(res.stdout)["real_number"] == "unset"


# ---- meta flags ----
def test_memory_units_are_floor_divided(wrapper):
    res = run_wrapper(wrapper, "X", "---memory", "100PB")
    assert res.returncode == 0, res.stderr
    out = parsed(res.stdout)
    assert out["memory_b"] == ">112589990684262400<"
    assert out["memory_kb"] == ">109951162777600<"
    assert out["memory_mb"] == ">107374182400<"
    assert out["memory_gb"] == ">104857600<"
    assert out["memory_tb"] == ">102400<"
    assert out["memory_pb"] == ">100<"


def test_memory_decimal_and_lowercase(wrapper):
    out = parsed(run_wrapper(wrapper, "X", "---memory=1.5kb").stdout)
    assert out["memory_b"] == ">1536<"
    assert out["memory_kb"] == ">1<"
    assert out["memory_mb"] == ">0<"


@pytest.mark.parametrize("value", ["10.3PB", "1.999999999999999999999kb", "0.1b", "8191PB"])
def test_memory_matches_python_parser(wrapper, value):
    res = run_wrapper(wrapper, "X", "---memory", value)
    assert res.returncode == 0, res.stderr
    assert parsed(res.stdout)["memory_b"] == f">{parse_memory(value)}<"


def test_memory_largest_value(wrapper):
    out = parsed(run_wrapper(wrapper, "X", "---memory", "8191PB").stdout)
    assert out["memory_pb"] == ">8191<"


@pytest.mark.parametrize("value", ["9000PB", "8192pb", "99999999999999999999999b"])
def test_memory_too_large(wrapper, value):
    res = run_wrapper(wrapper, "X", "---memory", value)
    assert res.returncode == 1
    assert "too large" in res.stderr
    assert "ran: yes" not in res.stdout


def test_meta_defaults_and_empty_value_clears(tmp_path, build):
    wrapper = build(make_config(tmp_path, requirements={"n_proc": 4, "memory": "2GB"}))
    out = parsed(run_wrapper(wrapper, "X").stdout)
    assert out["n_proc"] == ">4<"
    assert out["memory_b"] == ">2147483648<"
    assert out["memory_gb"] == ">2<"
    assert out["memory_tb"] == ">0<"

    out = parsed(run_wrapper(wrapper, "X", "---n_proc=", "---memory", "").stdout)
    assert out["n_proc"] == "><"
    for unit in ("b", "kb", "mb", "gb", "tb", "pb"):
        assert out[f"memory_{unit}"] == "><"


def test_meta_last_value_wins(wrapper):
    out = parsed(run_wrapper(wrapper, "X", "---n_proc", "2", "---n_proc=8").stdout)
    assert out["n_proc"] == ">8<"


@pytest.mark.parametrize("args", [["---memory", "lots"], ["---n_proc", "two"]])
def test_invalid_meta_values(wrapper, args):
    res = run_wrapper(wrapper, "X", *args)
    assert res.returncode == 1
    assert "ran: yes" not in res.stdout

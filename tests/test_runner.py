"""Tests for the headless runner."""

from particle_life.__main__ import build_parser, main
from particle_life.persistence import load_state
from particle_life.state import Command


def test_run_and_save(tmp_path):
    out = tmp_path / "final.json"
    code = main(["--particles", "30", "--ticks", "4", "--backend", "python",
                 "--seed", "5", "--colors", "2", "4", "--report-every", "2",
                 "--at", "1:double_speed", "--at", "2:regenerate_palette=2",
                 "--save", str(out), "--log-level", "WARNING"])
    assert code == 0
    state = load_state(out)
    assert len(state.particles) == 30
    assert state.palette_size == 2
    assert state.params.speed == 200.0


def test_resume(tmp_path):
    first = tmp_path / "a.json"
    second = tmp_path / "b.json"
    assert main(["--particles", "10", "--ticks", "1", "--backend", "python",
                 "--seed", "1", "--save", str(first), "--log-level", "WARNING"]) == 0
    assert main(["--load", str(first), "--ticks", "2", "--backend", "python",
                 "--save", str(second), "--log-level", "WARNING"]) == 0
    assert len(load_state(second).particles) == 10


def test_schedule_parsing():
    args = build_parser().parse_args(["--at", "10:regenerate_palette=4", "--at", "3:halve_speed"])
    assert args.at == [(10, Command.REGENERATE_PALETTE, 4), (3, Command.HALVE_SPEED, None)]


def test_bad_load_path_reports_error(tmp_path):
    bad = tmp_path / "broken.json"
    bad.write_text('{"behavior_matrix": [[5.0]], "physics": {"beta": 0.2, "gamma": 0.8, '
                   '"attraction_radius": 10.0}}')
    assert main(["--load", str(bad), "--ticks", "1", "--backend", "python",
                 "--log-level", "CRITICAL"]) == 1


def test_resume_keeps_saved_force_law(tmp_path):
    first = tmp_path / "flat.json"
    second = tmp_path / "resumed.json"
    assert main(["--particles", "10", "--ticks", "1", "--backend", "python", "--law", "flat",
                 "--seed", "2", "--save", str(first), "--log-level", "WARNING"]) == 0
    assert main(["--load", str(first), "--ticks", "1", "--backend", "python",
                 "--save", str(second), "--log-level", "WARNING"]) == 0
    assert load_state(second).engine.law == "flat"


def test_explicit_law_overrides_saved_one(tmp_path):
    first = tmp_path / "flat.json"
    second = tmp_path / "piecewise.json"
    assert main(["--particles", "10", "--ticks", "1", "--backend", "python", "--law", "flat",
                 "--seed", "2", "--save", str(first), "--log-level", "WARNING"]) == 0
    assert main(["--load", str(first), "--ticks", "1", "--backend", "python",
                 "--law", "piecewise", "--save", str(second), "--log-level", "WARNING"]) == 0
    assert load_state(second).engine.law == "piecewise"

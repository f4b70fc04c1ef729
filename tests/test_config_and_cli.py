"""Tests for settings handling and the command-line entry points."""

import json

import pytest

import main
from DecimalCalc import config_manager, error as E
from DecimalCalc.MathEngine import Calculator, calculate, repl


@pytest.fixture()
def config_file(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    monkeypatch.setattr(config_manager, "config_json", path)
    return path


# --- config_manager ---

def test_missing_file_gives_defaults(config_file):
    assert config_manager.load_setting_value("all") == config_manager.DEFAULT_SETTINGS
    assert config_manager.load_setting_value("precision") == 34


def test_partial_file_is_merged_with_defaults(config_file):
    config_file.write_text(json.dumps({"degrees": True}), encoding="utf-8")
    settings = config_manager.load_setting_value("all")
    assert settings["degrees"] is True
    assert settings["precision"] == 34


def test_broken_file_gives_defaults(config_file):
    config_file.write_text("{not json", encoding="utf-8")
    assert config_manager.load_setting_value("max_exponent") == 100000


def test_save_and_reload(config_file):
    settings = dict(config_manager.DEFAULT_SETTINGS, precision=50)
    assert config_manager.save_setting(settings) == settings
    assert config_manager.load_setting_value("precision") == 50


def test_shipped_files_cover_every_setting():
    shipped = json.loads(config_manager.config_json.read_text(encoding="utf-8"))
    descriptions = config_manager.load_setting_description("all")
    assert set(shipped) == set(config_manager.DEFAULT_SETTINGS)
    assert set(descriptions) == set(config_manager.DEFAULT_SETTINGS)


def test_context_reads_settings_from_file(config_file):
    config_file.write_text(json.dumps({"precision": 5}), encoding="utf-8")
    assert Calculator().evaluate("1/3") == "0.33333"


# --- calculate ---

def test_calculate_attaches_equation(settings):
    with pytest.raises(E.CalculationError) as excinfo:
        calculate("1/0", Calculator(settings))
    assert excinfo.value.equation == "1/0"
    assert excinfo.value.code == "3003"


def test_calculate_keeps_the_session(calc):
    calculate("x = 4", calc)
    assert calculate("x*x", calc) == "16"


# --- REPL ---

def fake_input(lines):
    remaining = list(lines)

    def read_line(prompt):
        if not remaining:
            raise EOFError
        return remaining.pop(0)
    return read_line


def test_repl_prints_results_and_errors(calc, capsys):
    repl(calc, read_line=fake_input(["a = 6", "", "a*7", "1/0"]))
    assert capsys.readouterr().out.splitlines() == ["6", "42", "Error 3003: Division by zero"]


def test_repl_stops_on_quit(calc, capsys):
    repl(calc, read_line=fake_input(["1+1", "quit", "2+2"]))
    assert capsys.readouterr().out.splitlines() == ["2"]


# --- main ---

def test_main_evaluates_expression(config_file, capsys):
    assert main.main(["-e", "1+2"]) == 0
    assert capsys.readouterr().out.strip() == "3"


def test_main_reports_errors(config_file, capsys):
    assert main.main(["-e", "1+"]) == 1
    assert "Error 3013" in capsys.readouterr().err


def test_main_repl(config_file, capsys, monkeypatch):
    monkeypatch.setattr("builtins.input", fake_input(["2^10"]))
    assert main.main(["--repl"]) == 0
    assert capsys.readouterr().out.strip() == "1024"

"""Tests for config loading and CLI > config > default resolution."""

import argparse

import pytest

from wealth_race.config import (
    DEFAULTS,
    build_config,
    create_parser,
    load_config,
    parse_multipliers,
    resolve,
)
from wealth_race.params import GameConfig


class TestLoadConfig:
    def test_missing_file(self, tmp_path):
        assert load_config(tmp_path / "nope.toml") == {}

    def test_tables_merged(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text(
            'difficulty = "hard"\n'
            "seed = 7\n"
            "[game]\n"
            "tick_interval_ms = 250\n"
            "[events]\n"
            "expense_probability = 0.01\n"
            "[ai]\n"
            "ai_bonus_multipliers = [0.1, 0.2]\n",
            encoding="utf-8",
        )
        config = load_config(path)
        assert config["difficulty"] == "hard"
        assert config["seed"] == 7
        assert config["tick_interval_ms"] == 250
        assert config["expense_probability"] == 0.01
        assert config["ai_bonus_multipliers"] == (0.1, 0.2)

    def test_malformed_exits(self, tmp_path, capsys):
        path = tmp_path / "config.toml"
        path.write_text("difficulty = = 'x'\n", encoding="utf-8")
        with pytest.raises(SystemExit):
            load_config(path)
        assert "Failed to read config file" in capsys.readouterr().err


class TestParseMultipliers:
    def test_string(self):
        assert parse_multipliers("0.05, 0.1") == (0.05, 0.1)

    def test_list(self):
        assert parse_multipliers([0.2]) == (0.2,)

    def test_empty(self):
        with pytest.raises(ValueError):
            parse_multipliers("")

    def test_negative(self):
        with pytest.raises(ValueError):
            parse_multipliers([-0.1])


class TestResolve:
    def setup_method(self):
        self.parser = create_parser("test")

    def test_defaults(self):
        r = resolve(self.parser.parse_args([]), {})
        assert r == DEFAULTS

    def test_config_over_default(self):
        r = resolve(self.parser.parse_args([]), {"difficulty": "medium"})
        assert r["difficulty"] == "medium"

    def test_cli_over_config(self):
        args = self.parser.parse_args(["--difficulty", "hard", "--tick-interval-ms", "50"])
        r = resolve(args, {"difficulty": "medium", "tick_interval_ms": 500})
        assert r["difficulty"] == "hard"
        assert r["tick_interval_ms"] == 50

    def test_flags(self):
        args = self.parser.parse_args(["--no-return-noise", "--income-requires-ack"])
        r = resolve(args, {"return_noise": True})
        assert r["return_noise"] is False
        assert r["income_requires_ack"] is True

    def test_multiplier_flag(self):
        args = self.parser.parse_args(["--ai-bonus-multipliers", "0.1,0.3"])
        assert resolve(args, {})["ai_bonus_multipliers"] == (0.1, 0.3)

    def test_unknown_difficulty_rejected_by_parser(self):
        with pytest.raises(SystemExit):
            self.parser.parse_args(["--difficulty", "nightmare"])


class TestBuildConfig:
    def test_defaults_round_trip(self):
        assert build_config(dict(DEFAULTS)) == GameConfig()

    def test_overrides(self):
        r = dict(DEFAULTS, expense_probability=0.02, profit_share=0.5)
        config = build_config(r)
        assert config.expense_probability == 0.02
        assert config.profit_share == 0.5

    @pytest.mark.parametrize("key,value", [
        ("expense_probability", 1.5),
        ("income_probability", -0.1),
        ("profit_share", 2.0),
        ("game_duration_ms", 0),
        ("tick_interval_ms", -10),
    ])
    def test_out_of_range(self, key, value):
        with pytest.raises(ValueError):
            build_config(dict(DEFAULTS, **{key: value}))

    def test_ms_per_month(self):
        assert GameConfig().ms_per_month(10) == 5000
        assert GameConfig(game_duration_ms=120_000).ms_per_month(10) == 1000


class TestParserExtras:
    def test_verbose(self):
        parser = create_parser("test")
        assert parser.parse_args(["-v"]).verbose is True
        assert isinstance(parser.parse_args([]), argparse.Namespace)

"""Tests for the command line demo."""

import pytest

from reagent.__main__ import build_parser, main


class TestMain:
    def test_prints_generations(self, capsys):
        code = main(["--pattern", "*-*", "--iterations", "3", "--period", "0.1"])
        assert code == 0
        assert capsys.readouterr().out.splitlines() == ["*-*", "-*-", "*-*"]

    def test_cells_pad_pattern(self, capsys):
        code = main(["--pattern", "*", "--cells", "3", "--iterations", "2", "--period", "0.1"])
        assert code == 0
        assert capsys.readouterr().out.splitlines() == ["*--", "-*-"]

    def test_single_iteration_never_ticks(self, capsys):
        assert main(["--pattern", "**", "--iterations", "1"]) == 0
        assert capsys.readouterr().out.splitlines() == ["**"]

    def test_bad_pool_config(self, capsys):
        assert main(["--pool", "fixed"]) == 1
        assert "fixed pool" in capsys.readouterr().err

    def test_bad_iterations(self, capsys):
        assert main(["--iterations", "0"]) == 2

    def test_log_level_is_case_insensitive(self):
        assert build_parser().parse_args(["--log-level", "debug"]).log_level == "DEBUG"

    def test_unknown_log_level_is_a_usage_error(self, capsys):
        with pytest.raises(SystemExit) as info:
            main(["--log-level", "loud"])
        assert info.value.code == 2
        assert "--log-level" in capsys.readouterr().err

    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.pool == "cached"
        assert args.pattern == "*-*"

"""Tests for the command-line entry point."""

import pytest

from stratcom.cli import build_parser, config_from_args, main
from stratcom.run_types import BackendKind

HELLO = "Align Assets to Sales and Legal\nDeliver Assets\n"


def _write(tmp_path, source, name="program.biz"):
    path = tmp_path / name
    path.write_text(source, encoding="utf-8")
    return str(path)


class TestConfigFromArgs:
    def test_defaults_to_interpreter(self):
        config = config_from_args(build_parser().parse_args(["prog.biz"]))
        assert config.backend == BackendKind.INTERPRETER
        assert config.opt_level == 0

    @pytest.mark.parametrize("flag", ["--compile", "-c", "--print-ir", "--view-cfg"])
    def test_compiler_flags(self, flag):
        config = config_from_args(build_parser().parse_args(["prog.biz", flag]))
        assert config.backend == BackendKind.COMPILER

    def test_opt_level(self):
        args = build_parser().parse_args(["prog.biz", "-c", "-O", "3"])
        assert config_from_args(args).opt_level == 3

    def test_rejects_unknown_opt_level(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["prog.biz", "-O", "4"])


class TestMain:
    def test_interprets_file(self, tmp_path, capsys):
        assert main([_write(tmp_path, HELLO)]) == 0
        assert capsys.readouterr().out == "H"

    def test_compiles_file(self, tmp_path, capsys):
        assert main([_write(tmp_path, HELLO), "--compile"]) == 0
        assert capsys.readouterr().out == "H"

    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / "missing.biz")]) == 1
        assert "error: cannot open file" in capsys.readouterr().err

    def test_program_error_exit_code(self, tmp_path, capsys):
        path = _write(tmp_path, "deliver assets\nleverage assets\n")
        assert main([path]) == 1
        assert "line 2: unexpected expression: leverage assets" in capsys.readouterr().err

    def test_duplicate_label_diagnostic(self, tmp_path, capsys):
        path = _write(tmp_path, "moving forward, a\ngoing forward, a\n")
        assert main([path, "-c"]) == 1
        err = capsys.readouterr().err
        assert "error: label 'a' defined on line 2 was already defined on line 1" in err

    def test_print_ir(self, tmp_path, capsys):
        assert main([_write(tmp_path, HELLO), "--print-ir"]) == 0
        captured = capsys.readouterr()
        assert captured.out == "H"
        assert "@main()" in captured.err

    def test_view_cfg(self, tmp_path, capsys):
        assert main([_write(tmp_path, HELLO), "--view-cfg"]) == 0
        assert "flowchart TD" in capsys.readouterr().err

    def test_trace(self, tmp_path, capsys):
        assert main([_write(tmp_path, HELLO), "--trace"]) == 0
        err = capsys.readouterr().err
        assert "═══ Trace ═══" in err
        assert "[0] line 1: align assets to sales and legal  (assets=72)" in err

    def test_trace_printed_when_run_fails(self, tmp_path, capsys):
        path = _write(tmp_path, HELLO + "revamp assets\ndeliver assets\n")
        assert main([path, "--trace"]) == 1
        err = capsys.readouterr().err
        assert "═══ Trace ═══" in err
        assert "[2] line 3: revamp assets  (assets=-72)" in err
        assert err.rstrip().endswith(
            "line 4: -72 does not correspond to a valid UTF-8 character"
        )

    def test_trace_with_compiler_is_rejected(self, tmp_path):
        with pytest.raises(SystemExit):
            main([_write(tmp_path, HELLO), "--trace", "--compile"])

    def test_verbose_reports_statistics(self, tmp_path, capsys):
        assert main([_write(tmp_path, HELLO), "-v"]) == 0
        err = capsys.readouterr().err
        assert "═══ Run Statistics ═══" in err
        assert "2 steps" in err

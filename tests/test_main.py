# tests/test_main.py
"""Tests for the implnew command-line interface."""

import json
import logging

import pytest

from implnew import __version__
from implnew.main import EXIT_ERROR, EXIT_INFRA, EXIT_OK, main
from tests.conftest import AMBIGUOUS_RS, MULTI_ITEM_RS, PERSON_RS, WRAPPER_SEXP


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    logger = logging.getLogger("implnew")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def write(tmp_path):
    def _write(name, text):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return str(path)
    return _write


class TestExpandCommand:

    def test_prints_generated_code(self, write, capsys):
        path = write("person.rs", PERSON_RS)
        assert main(["expand", path]) == EXIT_OK
        out = capsys.readouterr().out
        assert out.startswith("impl Person {\n")
        assert "secret: Default::default()," in out

    def test_diagnostic_sets_exit_code(self, write, capsys):
        path = write("retry.rs", AMBIGUOUS_RS)
        assert main(["expand", path]) == EXIT_ERROR
        captured = capsys.readouterr()
        assert captured.out == ""
        assert f"{path}:5:5: error:" in captured.err
        assert "[IMPLNEW-2001]" in captured.err

    def test_json_diagnostics(self, write, capsys):
        path = write("retry.rs", AMBIGUOUS_RS)
        assert main(["expand", path, "--format", "json"]) == EXIT_ERROR
        line = capsys.readouterr().err.strip().splitlines()[-1]
        payload = json.loads(line)
        assert payload["code"] == "IMPLNEW-2001"
        assert payload["location"]["line"] == 5

    def test_mixed_file_still_emits_good_structs(self, write, capsys):
        path = write("lib.rs", MULTI_ITEM_RS)
        assert main(["expand", path]) == EXIT_ERROR
        captured = capsys.readouterr()
        assert "impl First {" in captured.out
        assert "impl Nested {" in captured.out
        assert "[IMPLNEW-2002]" in captured.err
        assert "[IMPLNEW-2000]" in captured.err

    def test_splice_to_file(self, write, tmp_path):
        path = write("person.rs", PERSON_RS)
        out = tmp_path / "out" / "person.rs"
        assert main(["expand", path, "--splice", "-o", str(out)]) == EXIT_OK
        text = out.read_text(encoding="utf-8")
        assert text.startswith(PERSON_RS.rstrip("\n") + "\n\nimpl Person {")

    def test_generator_options(self, write, capsys):
        path = write("person.rs", PERSON_RS)
        argv = ["expand", path, "--fn-name", "create", "--fn-vis", "pub(crate)",
                "--no-must-use", "--default-expr", "Zero::zero()"]
        assert main(argv) == EXIT_OK
        out = capsys.readouterr().out
        assert "pub(crate) fn create(name: String, age: u32) -> Self {" in out
        assert "#[must_use]" not in out
        assert "secret: Zero::zero()," in out

    def test_custom_attribute_and_derive(self, write, capsys):
        src = "#[derive(New)]\nstruct S {\n    #[init(9)]\n    x: u8,\n}\n"
        path = write("s.rs", src)
        assert main(["expand", path, "--derive", "New", "--attribute", "init"]) == EXIT_OK
        assert "x: 9," in capsys.readouterr().out

    def test_no_derives_is_not_an_error(self, write, capsys):
        path = write("plain.rs", "struct Plain { pub x: u8 }\n")
        assert main(["expand", path]) == EXIT_OK
        assert capsys.readouterr().out == ""


class TestOtherCommands:

    def test_inspect(self, write, capsys):
        path = write("person.rs", PERSON_RS)
        assert main(["inspect", path]) == EXIT_OK
        out = capsys.readouterr().out
        assert "struct Person" in out
        assert "parameters:  name: String, age: u32" in out
        assert "auto fields: secret" in out
        assert "(default)" in out

    def test_inspect_reports_failures(self, write, capsys):
        path = write("retry.rs", AMBIGUOUS_RS)
        assert main(["inspect", path]) == EXIT_ERROR
        assert "not generated" in capsys.readouterr().out

    def test_request(self, write, capsys):
        path = write("wrapper.sexp", WRAPPER_SEXP)
        assert main(["request", path]) == EXIT_OK
        out = capsys.readouterr().out
        assert "Wrapper<T, 'a, N> where T: Default {" in out
        assert "count: 5," in out

    def test_dump_sexp(self, write, capsys):
        path = write("person.rs", PERSON_RS)
        assert main(["dump-sexp", path]) == EXIT_OK
        out = capsys.readouterr().out
        assert out.startswith("(constructor Person ")
        assert out.count("\n") == 1

    def test_dump_sexp_from_request(self, write, capsys):
        path = write("wrapper.sexp", WRAPPER_SEXP)
        assert main(["dump-sexp", "--request", path]) == EXIT_OK
        assert capsys.readouterr().out.startswith("(constructor Wrapper ")


class TestFailures:

    def test_missing_file(self, tmp_path):
        assert main(["expand", str(tmp_path / "nope.rs")]) == EXIT_INFRA

    def test_bad_configuration(self, write, capsys):
        path = write("person.rs", PERSON_RS)
        assert main(["expand", path, "--fn-name", "1bad"]) == EXIT_INFRA
        assert "fn_name" in capsys.readouterr().err

    def test_syntax_error(self, write, capsys):
        path = write("bad.rs", "#[derive(ImplNew)]\nstruct S { a u8 }\n")
        assert main(["expand", path]) == EXIT_ERROR
        assert "[IMPLNEW-1000]" in capsys.readouterr().err

    def test_bad_request(self, write, capsys):
        path = write("bad.sexp", "(struct A (method x))")
        assert main(["request", path]) == EXIT_ERROR
        assert "[IMPLNEW-1001]" in capsys.readouterr().err

    def test_no_command(self):
        assert main([]) == EXIT_INFRA

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out

"""End-to-end tests for the mdconcat command line."""

import logging

import pytest
from colorama import Fore, Style

from mdconcat import __version__
from mdconcat.cli import ColorFormatter, _csv, _parse_args, main


def _run(capsys, *argv):
    with pytest.raises(SystemExit) as exc:
        main(list(argv))
        raise SystemExit(0)
    out, err = capsys.readouterr()
    return exc.value.code, out, err


class TestParseArgs:
    def test_csv(self):
        assert _csv(" py, rs ,,toml") == ["py", "rs", "toml"]

    def test_defaults(self, tmp_path):
        ns = _parse_args([str(tmp_path / "o.md"), "--extensions", "py"])
        assert ns.extensions == ["py"]
        assert ns.input_dirs is None
        assert ns.exclude_dirs == []
        assert ns.respect_gitignore is True
        assert ns.additional_gitignore == []

    def test_repeated_and_comma_separated(self, tmp_path):
        ns = _parse_args(
            [
                "o.md",
                "--extensions", "py,rs",
                "--extensions", "toml",
                "--input-dirs", "a,b",
                "--exclude-dirs", "target,.git",
                "--no-gitignore",
            ]
        )
        assert ns.extensions == ["py", "rs", "toml"]
        assert ns.input_dirs == ["a", "b"]
        assert ns.exclude_dirs == ["target", ".git"]
        assert ns.respect_gitignore is False

    def test_extensions_required(self, capsys):
        with pytest.raises(SystemExit) as exc:
            _parse_args(["o.md"])
        assert exc.value.code == 2

    def test_version(self, capsys):
        with pytest.raises(SystemExit):
            _parse_args(["--version"])
        assert __version__ in capsys.readouterr().out


class TestMain:
    def test_success_summary(self, make_tree, tmp_path, capsys):
        root = make_tree({"a.py": "x=1", "b.py": "y=2", "c.txt": "no"})
        out = tmp_path / "context.md"
        code, stdout, _ = _run(
            capsys, str(out), "--extensions", "py", "--input-dirs", str(root), "-q"
        )
        assert code == 0
        text = out.read_text()
        assert text == (
            "## a.py\n\n```python\nx=1\n```\n\n"
            "## b.py\n\n```python\ny=2\n```\n\n"
        )
        chars = len(text)
        assert f"Successfully concatenated 2 files into {out}" in stdout
        assert "=== Token Count Estimates ===" in stdout
        assert f"Characters: {chars}\n" in stdout
        assert f"Conservative: ~{chars // 3} tokens" in stdout
        assert "Skipped" not in stdout

    def test_empty_extension_list_fails(self, tmp_path, capsys):
        out = tmp_path / "context.md"
        code, _, err = _run(capsys, str(out), "--extensions", ",")
        assert code == 1
        assert "extension" in err
        assert not out.exists()

    def test_missing_root_fails(self, tmp_path, capsys):
        out = tmp_path / "context.md"
        code, _, err = _run(
            capsys, str(out), "--extensions", "py", "--input-dirs", str(tmp_path / "nope")
        )
        assert code == 1
        assert "not accessible" in err
        assert not out.exists()

    def test_unwritable_output_fails(self, make_tree, capsys):
        root = make_tree({"a.py": "a"})
        code, _, err = _run(capsys, str(root), "--extensions", "py", "--input-dirs", str(root))
        assert code == 1
        assert "output" in err

    def test_skipped_files_still_succeed(self, make_tree, tmp_path, capsys):
        root = make_tree({"a.py": "a", "b.py": b"\xff\xfe", "c.py": "c"})
        out = tmp_path / "context.md"
        code, stdout, err = _run(
            capsys, str(out), "--extensions", "py", "--input-dirs", str(root)
        )
        assert code == 0
        assert "Successfully concatenated 2 files" in stdout
        assert "Skipped 1 unreadable files" in stdout
        assert "b.py" in err

    def test_additional_gitignore(self, make_tree, tmp_path, capsys):
        root = make_tree({"keep.py": "k", "gen_x.py": "g"})
        extra = tmp_path / "extra.ignore"
        extra.write_text("gen_*.py\n")
        out = tmp_path / "context.md"
        code, stdout, _ = _run(
            capsys,
            str(out),
            "--extensions", "py",
            "--input-dirs", str(root),
            "--additional-gitignore", str(extra),
        )
        assert code == 0
        assert "## keep.py" in out.read_text()
        assert "gen_x.py" not in out.read_text()

    def test_verbose_logs_configuration(self, make_tree, tmp_path, capsys):
        root = make_tree({"a.py": "a"})
        code, _, err = _run(
            capsys, str(tmp_path / "o.md"), "--extensions", "py",
            "--input-dirs", str(root), "-v",
        )
        assert code == 0
        assert "Input directory:" in err
        assert "Extensions: py" in err
        assert "Added a.py" in err


class TestColorFormatter:
    def _record(self, level):
        return logging.LogRecord("mdconcat", level, __file__, 1, "hello", None, None)

    def test_colors_warnings(self):
        text = ColorFormatter("%(message)s").format(self._record(logging.WARNING))
        assert text == f"{Fore.YELLOW}hello{Style.RESET_ALL}"

    def test_info_uncolored(self):
        assert ColorFormatter("%(message)s").format(self._record(logging.INFO)) == "hello"

    def test_plain_when_disabled(self):
        fmt = ColorFormatter("[mdconcat] %(message)s", use_color=False)
        assert fmt.format(self._record(logging.ERROR)) == "[mdconcat] hello"

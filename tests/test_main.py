"""Tests for main.py CLI functionality."""

import io
import json
import logging
from unittest.mock import patch

import pytest

from imgproxy_optimizer.main import main

ENVIRON = {
    "IMGPROXY_OPTIMIZER_URL": "https://px.example.com",
    "IMGPROXY_OPTIMIZER_KEY": "abcd",
    "IMGPROXY_OPTIMIZER_SALT": "ef01",
}


@pytest.fixture
def options_file(tmp_path):
    path = tmp_path / "options.json"
    path.write_text(
        json.dumps(
            {
                "imgproxy_optimizer_url": "https://px.example.com",
                "imgproxy_optimizer_key": "abcd",
                "imgproxy_optimizer_salt": "ef01",
                "imgproxy_optimizer_widths": "320,640",
            }
        )
    )
    return path


@pytest.fixture(autouse=True)
def reset_cli_logger():
    """Drop handlers the CLI bound to this test's capture streams."""
    yield
    cli_logger = logging.getLogger("imgproxy-optimizer")
    for handler in list(cli_logger.handlers):
        cli_logger.removeHandler(handler)


def run_cli(argv):
    with patch("sys.argv", ["imgproxy-optimizer"] + argv):
        with pytest.raises(SystemExit) as excinfo:
            main()
    return excinfo.value.code


class TestMainCLI:
    """Tests for the main CLI functionality."""

    def test_main_with_no_args_shows_help(self):
        """Test that running main without arguments shows help."""
        with patch("sys.argv", ["imgproxy-optimizer"]):
            with patch("argparse.ArgumentParser.print_help") as mock_help:
                with patch("sys.exit") as mock_exit:
                    main()
                    mock_help.assert_called_once()
                    mock_exit.assert_called_once_with(1)

    def test_main_version_command(self):
        """Test version command output."""
        with patch("sys.argv", ["imgproxy-optimizer", "version"]):
            with patch("builtins.print") as mock_print:
                with patch("sys.exit") as mock_exit:
                    main()
                    mock_print.assert_any_call("Imgproxy Image Optimizer")
                    mock_print.assert_any_call("Version 1.0.0")
                    mock_exit.assert_called_once_with(0)

    def test_sign_command(self, options_file, capsys):
        """Test sign prints a proxy URL."""
        code = run_cli(["sign", "/photo.jpg", "--width", "640", "--options-file", str(options_file)])

        assert code == 0
        out = capsys.readouterr().out.strip()
        assert out.startswith("https://px.example.com/")
        assert out.endswith("/rt:fit/w:640/h:0/q:65/f:avif/L3Bob3RvLmpwZw/photo.avif")

    def test_sign_command_from_environment(self, capsys):
        """Test sign reads settings from the environment."""
        with patch.dict("os.environ", ENVIRON):
            code = run_cli(["sign", "/photo.jpg"])

        assert code == 0
        assert capsys.readouterr().out.startswith("https://px.example.com/")

    def test_srcset_command(self, options_file, capsys):
        """Test srcset honours the original width."""
        code = run_cli(
            ["srcset", "/photo.jpg", "--widths", "320,640,1024",
             "--original-width", "700", "--options-file", str(options_file)]
        )

        assert code == 0
        out = capsys.readouterr().out
        assert " 320w, " in out
        assert "640w" in out
        assert "1024w" not in out

    def test_rewrite_command_files(self, options_file, tmp_path):
        """Test rewrite between files."""
        source = tmp_path / "page.html"
        source.write_text('<html><head></head><body><img src="/a.jpg" class="hero"></body></html>')
        target = tmp_path / "out.html"

        code = run_cli(
            ["rewrite", "--input", str(source), "--output", str(target),
             "--options-file", str(options_file)]
        )

        assert code == 0
        output = target.read_text()
        assert '<link rel="dns-prefetch" href="//px.example.com">' in output
        assert 'loading="eager"' in output

    def test_rewrite_command_without_hints(self, options_file, tmp_path):
        """Test --no-head-hints leaves the head alone."""
        source = tmp_path / "page.html"
        source.write_text('<head></head><img src="/a.jpg" class="hero">')
        target = tmp_path / "out.html"

        run_cli(
            ["rewrite", "--input", str(source), "--output", str(target),
             "--options-file", str(options_file), "--no-head-hints"]
        )

        assert target.read_text().startswith("<head></head><img src=\"https://px.example.com/")

    def test_missing_options_file_fails(self, tmp_path):
        """Test configuration errors exit with status 1."""
        code = run_cli(["sign", "/a.jpg", "--options-file", str(tmp_path / "missing.json")])

        assert code == 1

    def test_repeated_runs_survive_closed_log_stream(self, options_file, capsys):
        """Test a handler left on a closed stream does not break the next run."""
        stale = io.StringIO()
        cli_logger = logging.getLogger("imgproxy-optimizer")
        for handler in list(cli_logger.handlers):
            cli_logger.removeHandler(handler)
        cli_logger.addHandler(logging.StreamHandler(stale))
        stale.close()

        first = run_cli(["sign", "/photo.jpg", "--options-file", str(options_file)])
        second = run_cli(["sign", "/photo.jpg", "--options-file", str(options_file)])

        assert first == second == 0
        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 2
        assert lines[0] == lines[1]

    def test_logs_go_to_stderr(self, options_file, capsys):
        """Test log records stay out of stdout."""
        run_cli(["sign", "/photo.jpg", "--options-file", "/nonexistent/options.json"])

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Command failed" in captured.err

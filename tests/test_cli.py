"""Tests for the graphgen command line."""

import json
import logging

import pytest

from graphgen import __version__
from graphgen.cli import EXIT_ERROR, EXIT_OK, EXIT_USAGE, create_parser, main
from graphgen.logging_config import LOGGER_NAME

from conftest import entity_source


def flat(text):
    """Collapse the line wrapping rich applies to long messages."""
    return " ".join(text.split())


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logger.propagate = True


class TestParser:
    def test_generate_flags(self):
        args = create_parser().parse_args(
            ["generate", "--pkg", "movies", "--output", "out", "--cli-name", "film-db", "--with-validator", "--no-cli"]
        )
        assert (args.pkg, args.output, args.cli_name) == ("movies", "out", "film-db")
        assert args.with_validator is True
        assert args.generate_cli is False

    def test_unset_flags_are_none(self):
        args = create_parser().parse_args(["generate"])
        assert args.with_validator is None
        assert args.generate_cli is None
        assert args.workers is None

    def test_verify_requires_golden(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            create_parser().parse_args(["verify"])
        assert excinfo.value.code == 2

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main(["--version"])
        assert excinfo.value.code == 0
        assert __version__ in capsys.readouterr().out

    def test_no_command(self, capsys):
        assert main([]) == EXIT_USAGE


class TestGenerate:
    def test_writes_client_and_cli(self, movies_dir, tmp_path, capsys):
        out = tmp_path / "out"
        assert main(["generate", "--pkg", str(movies_dir), "--output", str(out)]) == EXIT_OK
        assert (out / "film_gen.go").is_file()
        assert (out / "cmd" / "movies" / "main.go").is_file()
        assert "Wrote 31 files" in flat(capsys.readouterr().out)

    def test_dry_run(self, movies_dir, tmp_path, capsys):
        out = tmp_path / "out"
        assert main(["generate", "--pkg", str(movies_dir), "--output", str(out), "--dry-run"]) == EXIT_OK
        assert not out.exists()
        assert "would write" in capsys.readouterr().out

    def test_command_options(self, movies_dir, tmp_path):
        out = tmp_path / "out"
        cli_dir = tmp_path / "filmctl"
        code = main(
            [
                "generate",
                "--pkg",
                str(movies_dir),
                "--output",
                str(out),
                "--cli-dir",
                str(cli_dir),
                "--cli-name",
                "film-db",
                "--with-validator",
                "--workers",
                "3",
            ]
        )
        assert code == EXIT_OK
        main_go = (cli_dir / "main.go").read_text(encoding="utf-8")
        assert 'kong.Name("film-db")' in main_go
        assert "modusgraph.WithValidator(modusgraph.NewValidator())" in main_go
        assert not (out / "cmd").exists()

    def test_no_cli(self, movies_dir, tmp_path):
        out = tmp_path / "out"
        assert main(["generate", "--pkg", str(movies_dir), "--output", str(out), "--no-cli"]) == EXIT_OK
        assert (out / "client_gen.go").is_file()
        assert not (out / "cmd").exists()

    def test_config_file(self, movies_dir, tmp_path):
        config = tmp_path / "graphgen.json"
        config.write_text(json.dumps({"cli_name": "from-file", "page_size": 20}), encoding="utf-8")
        out = tmp_path / "out"
        assert main(["generate", "--pkg", str(movies_dir), "--output", str(out), "--config", str(config)]) == EXIT_OK
        assert 'kong.Name("from-file")' in (out / "cmd" / "movies" / "main.go").read_text(encoding="utf-8")
        assert "const DefaultPageSize = 20" in (out / "page_options_gen.go").read_text(encoding="utf-8")

    def test_inference_error_writes_nothing(self, make_package, tmp_path, capsys):
        pkg = make_package(
            {"film.go": entity_source("Film", 'Name string `json:"name"`\nTitle string `json:"title" dgraph:"predicate=name"`')}
        )
        out = tmp_path / "out"
        assert main(["generate", "--pkg", str(pkg), "--output", str(out)]) == EXIT_ERROR
        assert not out.exists()
        output = flat(capsys.readouterr().out)
        assert "InferenceError" in output
        assert "Name and Title" in output

    def test_parse_error(self, make_package, tmp_path, capsys):
        pkg = make_package({"film.go": entity_source("Film", 'Name string `json:"name" dgraph:"index=bogus"`')})
        assert main(["generate", "--pkg", str(pkg), "--output", str(tmp_path / "out")]) == EXIT_ERROR
        assert "Film.Name: unknown index kind 'bogus'" in flat(capsys.readouterr().out)

    def test_no_entities_is_usage_error(self, make_package, tmp_path):
        pkg = make_package({"a.go": "package app\n"})
        assert main(["generate", "--pkg", str(pkg), "--output", str(tmp_path / "out")]) == EXIT_USAGE

    def test_invalid_config(self, movies_dir, tmp_path, capsys):
        assert main(["generate", "--pkg", str(movies_dir), "--workers", "0"]) == EXIT_ERROR
        assert "Invalid workers" in flat(capsys.readouterr().out)


class TestVerify:
    def test_update_then_verify(self, movies_dir, tmp_path, capsys):
        golden = tmp_path / "golden"
        base = ["verify", "--pkg", str(movies_dir), "--golden", str(golden)]

        assert main(base + ["--update"]) == EXIT_OK
        assert (golden / "film_gen.go").is_file()
        assert (golden / "cmd" / "movies" / "main.go").is_file()

        assert main(base) == EXIT_OK
        assert "31 files match" in flat(capsys.readouterr().out)

    def test_mismatch(self, movies_dir, tmp_path, capsys):
        golden = tmp_path / "golden"
        base = ["verify", "--pkg", str(movies_dir), "--golden", str(golden)]
        assert main(base + ["--update"]) == EXIT_OK
        capsys.readouterr()

        film = golden / "film_gen.go"
        film.write_text(film.read_text(encoding="utf-8").replace("FilmClient", "MovieClient"), encoding="utf-8")

        assert main(base) == EXIT_ERROR
        output = flat(capsys.readouterr().out)
        assert "Golden verification failed" in output
        assert "film_gen.go" in output

    def test_option_changes_are_caught(self, movies_dir, tmp_path):
        golden = tmp_path / "golden"
        base = ["verify", "--pkg", str(movies_dir), "--golden", str(golden)]
        assert main(base + ["--update"]) == EXIT_OK
        assert main(base + ["--cli-name", "film-db"]) == EXIT_ERROR

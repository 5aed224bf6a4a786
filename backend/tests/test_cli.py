"""
Tests for the management CLI.
"""

from unittest.mock import patch

import pytest

import cli


class TestParser:
    def test_create_user_arguments(self):
        args = cli.build_parser().parse_args(
            [
                "create-user",
                "--name", "Admin",
                "--email", "admin@example.com",
                "--password", "secret123",
                "--role", "admin",
                "--role", "editor",
            ]
        )
        assert args.func is cli.cmd_create_user
        assert args.role == ["admin", "editor"]

    def test_command_is_required(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])

    def test_serve_arguments(self):
        args = cli.build_parser().parse_args(["serve", "--port", "9001", "--reload"])
        assert args.port == 9001
        assert args.reload is True


class TestCommands:
    def test_short_password_is_refused(self, capsys):
        exit_code = cli.main(
            ["create-user", "--name", "A", "--email", "a@example.com", "--password", "123"]
        )
        assert exit_code == 1
        assert "at least 6 characters" in capsys.readouterr().err

    def test_init_db_runs_schema_creation(self):
        with patch("cli.asyncio.run") as run:
            assert cli.main(["init-db"]) == 0
        run.assert_called_once()
        # Close the coroutine handed to the patched runner
        run.call_args.args[0].close()

    def test_serve_starts_uvicorn(self):
        with patch("uvicorn.run") as run:
            assert cli.main(["serve", "--port", "9001"]) == 0
        assert run.call_args.args[0] == "main:app"
        assert run.call_args.kwargs["port"] == 9001

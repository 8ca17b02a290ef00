"""Unit tests for shared utilities (appforge.utils).

Tests cover:
- run_command: list and shell forms, cwd, env, stdin, timeout
- run_checked: CommandError on failure or a missing binary
- format_command
- JSON helpers and file helpers
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from appforge.errors import CommandError
from appforge.utils import (
    append_text,
    dump_json,
    format_command,
    run_checked,
    run_command,
    write_text,
)


# ---------------------------------------------------------------------------
# run_command
# ---------------------------------------------------------------------------


class TestRunCommand:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_successful_command_list(self):
        returncode, stdout, stderr = await run_command(["echo", "hello"])
        assert returncode == 0
        assert stdout == "hello\n"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_successful_command_string(self):
        returncode, stdout, stderr = await run_command("echo hello")
        assert returncode == 0
        assert "hello" in stdout

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failed_command(self):
        returncode, stdout, stderr = await run_command(
            [sys.executable, "-c", "import sys; sys.exit(3)"]
        )
        assert returncode == 3

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_command_with_cwd(self, tmp_path: Path):
        returncode, stdout, stderr = await run_command(
            [sys.executable, "-c", "import os; print(os.getcwd())"], cwd=tmp_path
        )
        assert returncode == 0
        assert Path(stdout.strip()).resolve() == tmp_path.resolve()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_command_with_env(self):
        returncode, stdout, stderr = await run_command(
            [sys.executable, "-c", "import os; print(os.environ['APPFORGE_TEST'])"],
            env={"APPFORGE_TEST": "value"},
        )
        assert returncode == 0
        assert stdout.strip() == "value"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_input_text_sent_to_stdin(self):
        returncode, stdout, stderr = await run_command(
            [sys.executable, "-c", "import sys; sys.stdout.write(sys.stdin.read().upper())"],
            input_text="const a = 1\n",
        )
        assert returncode == 0
        assert stdout == "CONST A = 1\n"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_command_timeout(self):
        returncode, stdout, stderr = await run_command(
            [sys.executable, "-c", "import time; time.sleep(10)"], timeout=1
        )
        assert returncode == -1
        assert "timed out" in stderr

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_command_returns_stderr(self):
        returncode, stdout, stderr = await run_command(
            [sys.executable, "-c", "import sys; sys.stderr.write('error_msg\\n')"]
        )
        assert stderr == "error_msg"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_binary_raises(self):
        with pytest.raises(FileNotFoundError):
            await run_command(["nonexistent-binary-12345-xyz"])


# ---------------------------------------------------------------------------
# run_checked
# ---------------------------------------------------------------------------


class TestRunChecked:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_returns_stdout(self):
        assert await run_checked(["echo", "done"]) == "done\n"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_shows_output_of_successful_command(self, capsys):
        cmd = [
            sys.executable,
            "-c",
            "import sys; print('added'); sys.stderr.write('npm warn deprecated')",
        ]
        assert await run_checked(cmd) == "added\n"
        out = capsys.readouterr().out
        assert "added" in out
        assert "npm warn deprecated" in out

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_non_zero_exit(self):
        cmd = [sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(2)"]
        with pytest.raises(CommandError) as exc_info:
            await run_checked(cmd)
        assert exc_info.value.returncode == 2
        assert exc_info.value.stderr == "boom"
        assert exc_info.value.command == format_command(cmd)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_binary(self):
        with pytest.raises(CommandError, match="Command not found") as exc_info:
            await run_checked(["nonexistent-binary-12345-xyz", "add"])
        assert exc_info.value.returncode == 127


# ---------------------------------------------------------------------------
# format_command
# ---------------------------------------------------------------------------


class TestFormatCommand:
    @pytest.mark.unit
    def test_list(self):
        assert format_command(["npx", "shadcn@canary", "add", "button"]) == "npx shadcn@canary add button"

    @pytest.mark.unit
    def test_string(self):
        assert format_command("npm install") == "npm install"


# ---------------------------------------------------------------------------
# JSON and file helpers
# ---------------------------------------------------------------------------


class TestJsonIO:
    @pytest.mark.unit
    def test_dump_json(self):
        assert dump_json({"b": 1, "a": "é"}) == '{\n  "b": 1,\n  "a": "é"\n}\n'


class TestFileHelpers:
    @pytest.mark.unit
    def test_write_text_creates_parents(self, tmp_path: Path):
        path = tmp_path / "a" / "b" / "c.txt"
        write_text(path, "hi")
        assert path.read_text(encoding="utf-8") == "hi"

    @pytest.mark.unit
    def test_append_text(self, tmp_path: Path):
        path = tmp_path / "c.txt"
        path.write_text("one\n", encoding="utf-8")
        append_text(path, "two\n")
        assert path.read_text(encoding="utf-8") == "one\ntwo\n"

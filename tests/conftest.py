import os
import shlex
import sys

import pytest

from core.errors import ToolNotFoundError
from core.models.connection_parameters import ConnectionParameters

if sys.platform == "win32":
    collect_ignore_glob = ["test_mysql_*.py"]


class FakeTool:
    """A shell script standing in for mysql/mysqldump.

    It records its argv (one per line) to ``args_file``, copies stdin to
    ``stdin_file`` when ``capture_stdin`` is set, writes ``stdout`` and
    ``stderr`` and exits with ``exit_code``.
    """

    def __init__(self, directory, name, stdout=b"", stderr="", exit_code=0, capture_stdin=False):
        self.path = str(directory / name)
        self.args_file = str(directory / f"{name}.args")
        self.stdin_file = str(directory / f"{name}.stdin")
        stdout_file = directory / f"{name}.out"
        stderr_file = directory / f"{name}.err"
        stdout_file.write_bytes(stdout)
        stderr_file.write_text(stderr)

        lines = [
            "#!/bin/sh",
            f"printf '%s\\n' \"$@\" > {shlex.quote(self.args_file)}",
        ]
        if capture_stdin:
            lines.append(f"cat > {shlex.quote(self.stdin_file)}")
        lines += [
            f"cat {shlex.quote(str(stdout_file))}",
            f"cat {shlex.quote(str(stderr_file))} >&2",
            f"exit {exit_code}",
        ]
        with open(self.path, "w") as fh:
            fh.write("\n".join(lines) + "\n")
        os.chmod(self.path, 0o755)

    @property
    def called(self) -> bool:
        return os.path.exists(self.args_file)

    @property
    def args(self) -> list[str]:
        with open(self.args_file) as fh:
            return fh.read().splitlines()

    @property
    def stdin(self) -> bytes:
        with open(self.stdin_file, "rb") as fh:
            return fh.read()


@pytest.fixture
def params() -> ConnectionParameters:
    return ConnectionParameters(
        host="db.local", port="3307", username="backup", password="secret", name="app_db",
    )


@pytest.fixture
def tools(tmp_path):
    """Registry of fake tools plus a resolver that only finds registered ones."""
    directory = tmp_path / "bin"
    directory.mkdir()
    registry: dict[str, FakeTool] = {}

    def make(name, **kwargs) -> FakeTool:
        registry[name] = FakeTool(directory, name, **kwargs)
        return registry[name]

    def which(name: str) -> str:
        if name not in registry:
            raise ToolNotFoundError(f"'{name}' not found in PATH")
        return registry[name].path

    make.which = which
    return make


@pytest.fixture
def sample_binary_file(tmp_path) -> str:
    path = str(tmp_path / "sample.bin")
    with open(path, "wb") as fh:
        fh.write(b"sqlpak-test-content " * 200)
    return path

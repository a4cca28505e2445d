import asyncio
import gzip
import logging
import os
import shutil
import subprocess
import tempfile
import zlib
from typing import Callable, Optional

from core import errors
from core.errors import (
    FileAccessError,
    InvalidArchiveError,
    ProcessError,
    StreamError,
    ToolNotFoundError,
    ValidationError,
)
from core.helpers.diagnostics import (
    ADMIN_BENIGN_SUFFIXES,
    DUMP_BENIGN_SUFFIXES,
    classify_diagnostics,
)
from core.helpers.file_helper import byte_to_hr, calc_size, is_file, resolve_executable
from core.helpers.stream_feeder import CHUNK_SIZE, StreamFeeder
from core.interfaces.backup_utility_interface import DatabaseBackupManager
from core.models.connection_parameters import ConnectionParameters

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"

# MySQL 8 clients against pre-8 servers fail without this
COLUMN_STATISTICS_FLAG = "--column-statistics=0"

DUMP_FLAGS = (
    "--skip-opt",
    "--add-drop-table",
    "--extended-insert",
    "--create-options",
    "--quick",
    "--set-charset",
    "--default-character-set=utf8",
    "--compress",
    "--no-tablespaces",
)


def quote_identifier(name: str) -> str:
    return "`" + name.replace("`", "``") + "`"


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


class MySQLDatabaseBackupManager(DatabaseBackupManager):
    """Stream MySQL dumps into gzip files and load them back.

    All database work is delegated to the ``mysqldump`` and ``mysql``
    clients; this class only wires their pipes to gzip and to disk and
    turns their stderr chatter into a pass/fail result.
    """

    BackupError = errors.BackupError

    def __init__(
        self,
        params: ConnectionParameters,
        which: Callable[[str], str] = resolve_executable,
        capability_probe: Optional[Callable[[], bool]] = None,
    ) -> None:
        self.params = params
        self._which = which
        self._capability_probe = capability_probe or self.has_column_statistics
        self._process: subprocess.Popen | None = None

    def _spawn(self, command: list[str], **kwargs) -> subprocess.Popen:
        try:
            process = subprocess.Popen(command, **kwargs)
        except OSError as e:
            raise ProcessError(f"Error starting {os.path.basename(command[0])}: {e}") from e
        self._process = process
        return process

    def abort(self) -> None:
        """Terminate the client process of the operation in progress, if any."""
        process = self._process
        if process is not None and process.poll() is None:
            logger.warning("Aborting %s", os.path.basename(process.args[0]))
            process.terminate()

    def has_column_statistics(self) -> bool:
        try:
            mysqldump = self._which("mysqldump")
        except ToolNotFoundError:
            return False

        command = [
            mysqldump,
            "--no-data",
            COLUMN_STATISTICS_FLAG,
            *self.params.client_args(),
            self.params.name,
        ]

        try:
            result = subprocess.run(
                command,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            logger.debug("Capability probe could not start %s: %s", mysqldump, e)
            return False

        supported = result.returncode == 0
        logger.debug("%s supported: %s", COLUMN_STATISTICS_FLAG, supported)
        return supported

    def build_dump_args(self, column_statistics: bool) -> list[str]:
        args = list(DUMP_FLAGS)
        if column_statistics:
            args.append(COLUMN_STATISTICS_FLAG)

        args += self.params.client_args()
        args.append(self.params.name)
        return args

    def build_restore_args(self) -> list[str]:
        return [
            "--default-character-set=utf8",
            *self.params.client_args(include_port=False),
            self.params.name,
        ]

    def create_database_sql(self, drop_first: bool = False) -> str:
        name = quote_identifier(self.params.name)
        sql = f"CREATE DATABASE IF NOT EXISTS {name}"
        if drop_first:
            sql = f"DROP DATABASE IF EXISTS {name}; " + sql
        return sql

    def build_admin_args(self, sql: str) -> list[str]:
        return [
            "--default-character-set=utf8",
            "--compress",
            *self.params.client_args(),
            "-e",
            sql,
        ]

    def dump_to_compressed_file(self, gzip_file: str) -> str:
        """Dump the database through gzip into ``gzip_file``.

        On error the file is left on disk as written so far; it must not be
        treated as a usable backup.
        """
        mysqldump = self._which("mysqldump")
        command = [mysqldump, *self.build_dump_args(self._capability_probe())]

        logger.info("Dumping database to '%s'", gzip_file)

        try:
            f = open(gzip_file, "wb")
        except OSError as e:
            raise FileAccessError(f"Error creating database backup '{gzip_file}': {e}") from e

        copy_error: BaseException | None = None
        try:
            with f, gzip.GzipFile(fileobj=f, mode="wb") as gzw, tempfile.TemporaryFile() as errbuf:
                process = self._spawn(command, stdout=subprocess.PIPE, stderr=errbuf)
                try:
                    shutil.copyfileobj(process.stdout, gzw, CHUNK_SIZE)
                except (OSError, zlib.error) as e:
                    copy_error = e
                    process.kill()
                finally:
                    process.stdout.close()
                    process.wait()
                    self._process = None

                errbuf.seek(0)
                diagnostics = _decode(errbuf.read())
        except OSError as e:
            # closing the gzip trailer into a sink that already failed the copy
            if copy_error is None:
                raise StreamError(f"Error writing '{gzip_file}': {e}") from e

        if copy_error is not None:
            raise StreamError(
                f"Error compressing database to '{gzip_file}': {copy_error}"
            ) from copy_error

        error = classify_diagnostics(diagnostics, DUMP_BENIGN_SUFFIXES)
        if error is not None:
            raise error

        if process.returncode != 0:
            raise ProcessError(f"mysqldump exited with status {process.returncode}")

        logger.info("Wrote %s (%s)", gzip_file, byte_to_hr(calc_size(gzip_file)))
        return gzip_file

    def restore_from_compressed_file(self, gzip_sql_file: str) -> None:
        mysql = self._which("mysql")

        if not is_file(gzip_sql_file):
            raise ValidationError(f"File '{gzip_sql_file}' does not exist")

        command = [mysql, *self.build_restore_args()]

        try:
            f = open(gzip_sql_file, "rb")
        except OSError as e:
            raise FileAccessError(f"Error opening '{gzip_sql_file}': {e}") from e

        with f:
            if f.read(len(GZIP_MAGIC)) != GZIP_MAGIC:
                raise InvalidArchiveError(f"'{gzip_sql_file}' is not a gzip file")
            f.seek(0)

            with gzip.GzipFile(fileobj=f, mode="rb") as reader:
                process = self._spawn(
                    command,
                    stdin=subprocess.PIPE,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                )
                feeder = StreamFeeder(reader, process.stdin)
                feeder.start()
                try:
                    output = process.stdout.read()
                finally:
                    process.stdout.close()
                    process.wait()
                    feeder.join()
                    self._process = None

        if process.returncode != 0:
            message = _decode(output).strip() or f"exit status {process.returncode}"
            raise ProcessError(f"Error importing '{gzip_sql_file}': {message}")

        if feeder.error is not None:
            raise StreamError(
                f"Error streaming '{gzip_sql_file}' to mysql: {feeder.error}"
            ) from feeder.error

        logger.info("Imported '%s' to `%s`", gzip_sql_file, self.params.name)

    def ensure_database(self, drop_first: bool = False) -> None:
        mysql = self._which("mysql")

        if drop_first:
            logger.info("Dropping database `%s`", self.params.name)
        logger.info("Creating database (if not exists) `%s`", self.params.name)

        command = [mysql, *self.build_admin_args(self.create_database_sql(drop_first))]
        process = self._spawn(command, stdout=subprocess.DEVNULL, stderr=subprocess.PIPE)
        try:
            _, stderr = process.communicate()
        finally:
            self._process = None

        diagnostics = _decode(stderr)
        if process.returncode != 0:
            raise ProcessError(
                f"Error creating database `{self.params.name}` "
                f"(exit status {process.returncode}): {diagnostics.strip()}"
            )

        error = classify_diagnostics(diagnostics, ADMIN_BENIGN_SUFFIXES)
        if error is not None:
            raise error

    async def async_dump_to_compressed_file(self, gzip_file: str) -> str:
        return await asyncio.to_thread(self.dump_to_compressed_file, gzip_file)

    async def async_restore_from_compressed_file(self, gzip_sql_file: str) -> None:
        await asyncio.to_thread(self.restore_from_compressed_file, gzip_sql_file)

    async def async_ensure_database(self, drop_first: bool = False) -> None:
        await asyncio.to_thread(self.ensure_database, drop_first)

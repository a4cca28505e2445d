from abc import ABC, abstractmethod


class DatabaseBackupManager(ABC):

    @abstractmethod
    def has_column_statistics(self) -> bool:
        pass

    @abstractmethod
    def dump_to_compressed_file(self, gzip_file: str) -> str:
        pass

    @abstractmethod
    def restore_from_compressed_file(self, gzip_sql_file: str) -> None:
        pass

    @abstractmethod
    def ensure_database(self, drop_first: bool = False) -> None:
        pass

    @abstractmethod
    def abort(self) -> None:
        pass

    @abstractmethod
    async def async_dump_to_compressed_file(self, gzip_file: str) -> str:
        pass

    @abstractmethod
    async def async_restore_from_compressed_file(self, gzip_sql_file: str) -> None:
        pass

    @abstractmethod
    async def async_ensure_database(self, drop_first: bool = False) -> None:
        pass

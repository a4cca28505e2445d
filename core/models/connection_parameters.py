from dataclasses import dataclass


@dataclass(frozen=True)
class ConnectionParameters:
    host: str
    username: str
    name: str
    port: str = ""
    password: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("database name is required")

    def client_args(self, include_port: bool = True) -> list[str]:
        """Connection flags shared by mysql and mysqldump.

        The password is a single ``-p<password>`` token; older clients
        misread ``-p <password>`` as a prompt followed by a database name.
        """
        args: list[str] = []
        if include_port and self.port:
            args += ["-P", self.port]

        args += ["-h", self.host, "-u", self.username]

        if self.password:
            args.append(f"-p{self.password}")
        return args

import os
import shutil

from core.errors import ToolNotFoundError


def resolve_executable(name: str) -> str:
    path = shutil.which(name)
    if path is None:
        raise ToolNotFoundError(f"'{name}' not found in PATH")
    return os.path.abspath(path)


def is_file(path: str) -> bool:
    return os.path.isfile(path)


def calc_size(path: str) -> int:
    return os.path.getsize(path)


def byte_to_hr(size: int) -> str:
    """Format a byte count with decimal units, e.g. ``1.5 kB``."""
    unit = 1000
    if size < unit:
        return f"{size} B"

    div, exp = unit, 0
    n = size // unit
    while n >= unit:
        div *= unit
        exp += 1
        n //= unit
    return f"{size / div:.1f} {'kMGTPE'[exp]}B"

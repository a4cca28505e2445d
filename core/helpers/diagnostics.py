from typing import Iterable, Optional

from core.errors import DiagnosticError

PASSWORD_WARNING = "Using a password on the command line interface can be insecure."
GTID_ADVISORY = (
    "pass --set-gtid-purged=OFF. To make a complete dump, "
    "pass --all-databases --triggers --routines --events."
)

# trailing advisories appended after otherwise silent stderr output
DUMP_BENIGN_SUFFIXES = (PASSWORD_WARNING, GTID_ADVISORY)
ADMIN_BENIGN_SUFFIXES = (PASSWORD_WARNING,)


def classify_diagnostics(
    text: str, benign_suffixes: Iterable[str]
) -> Optional[DiagnosticError]:
    """Return an error for stderr output that is not a known-benign warning.

    Empty output, or output ending with one of ``benign_suffixes`` after
    trimming, yields ``None``. Anything else is returned verbatim (trimmed)
    as a ``DiagnosticError``.
    """
    trimmed = text.strip()
    if not trimmed:
        return None

    if any(trimmed.endswith(suffix) for suffix in benign_suffixes):
        return None

    return DiagnosticError(trimmed)

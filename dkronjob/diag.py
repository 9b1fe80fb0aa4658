"""
Diagnostics returned by resource operations.

CRUD functions report failure as a Diagnostics list instead of raising, so
the host can decide what to print and whether to touch state.
"""

from dataclasses import dataclass

ERROR = "error"
WARNING = "warning"


@dataclass
class Diagnostic:
    severity: str
    summary: str
    detail: str = ""

    def __str__(self) -> str:
        if self.detail:
            return f"{self.severity}: {self.summary}: {self.detail}"
        return f"{self.severity}: {self.summary}"


class Diagnostics(list):
    """List of diagnostics; empty means success."""

    def has_error(self) -> bool:
        return any(d.severity == ERROR for d in self)


def from_err(err: BaseException) -> Diagnostics:
    return Diagnostics([Diagnostic(ERROR, str(err))])

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .config import ArrangementResult
from .errors import ArrangementError, ErrorKind


@dataclass(frozen=True, slots=True)
class ArrangementOk:
    result: ArrangementResult


@dataclass(frozen=True, slots=True)
class ArrangementErr:
    error: ArrangementError

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind

    @property
    def message(self) -> str:
        return str(self.error)


ArrangementOutcome = Union[ArrangementOk, ArrangementErr]

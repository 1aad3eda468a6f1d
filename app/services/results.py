"""Tagged results returned by mutating service operations.

Expected business failures (validation, not found, wrong state) come back as
ActionError; exceptions are reserved for infrastructure problems.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Union

ErrorCode = Literal["invalid", "not_found", "not_draft", "negative", "conflict"]


@dataclass
class ActionOk:
    """Successful outcome; `data` carries the affected object if any."""

    data: Any = None
    created: bool = False
    ok: Literal[True] = field(default=True, init=False)


@dataclass
class ActionError:
    """Failed outcome with a machine code and a user-facing message."""

    code: ErrorCode
    message: str
    field_errors: dict[str, list[str]] | None = None
    offending_titles: list[str] = field(default_factory=list)
    ok: Literal[False] = field(default=False, init=False)


ActionResult = Union[ActionOk, ActionError]


def not_found(message: str = "Not found") -> ActionError:
    return ActionError(code="not_found", message=message)


def invalid(message: str, field_errors: dict[str, list[str]] | None = None) -> ActionError:
    return ActionError(code="invalid", message=message, field_errors=field_errors)

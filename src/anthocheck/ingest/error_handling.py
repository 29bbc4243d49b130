"""Error taxonomy and structured error logging for anthocheck.

Parse-time failures (front-matter, manifest, configuration) are exceptions;
they abort processing of the offending file only. Data-time findings are
``ValidationIssue`` records produced by the validator, not exceptions.

``ErrorManager`` attaches an ``ErrorContext`` to every log record it emits so
that a run can be traced back to the file and line that caused a message.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from anthocheck.ingest.run_logger import log_policy_decision

logger = logging.getLogger(__name__)


class AnthologyError(Exception):
    """Base class for anthocheck failures."""


class SourceParseError(AnthologyError):
    """A source file could not be parsed."""

    what = "source"

    def __init__(self, path: Path | None, line: int | None = None, reason: str | None = None) -> None:
        self.path = path
        self.line = line
        self.reason = reason
        super().__init__(self._format())

    def _format(self) -> str:
        where = str(self.path) if self.path is not None else "<input>"
        msg = f"Malformed {self.what} in {where}"
        if self.line is not None:
            msg += f" at line {self.line}"
        if self.reason:
            msg += f": {self.reason}"
        return msg


class MalformedFrontMatter(SourceParseError):
    """Front-matter opened but never closed, or not ``key: value`` lines."""

    what = "front-matter"


class MalformedManifest(SourceParseError):
    """A table-of-contents manifest violates the line grammar."""

    what = "manifest"


class ConfigError(AnthologyError):
    """Invalid ``book.toml`` or option values."""

    def __init__(self, path: Path | None, reason: str) -> None:
        self.path = path
        self.reason = reason
        where = f" in {path}" if path is not None else ""
        super().__init__(f"Invalid configuration{where}: {reason}")


@dataclass
class ErrorContext:
    """Context attached to structured log records."""

    source_path: Path | None = None
    doc_id: str | None = None
    source_module: str | None = None
    line: int | None = None
    object_kind: str | None = None
    object_id: str | None = None
    flags: dict[str, Any] = field(default_factory=dict)
    correlation_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_path": str(self.source_path) if self.source_path is not None else None,
            "doc_id": self.doc_id,
            "source_module": self.source_module,
            "line": self.line,
            "object_kind": self.object_kind,
            "object_id": self.object_id,
            "flags": dict(self.flags),
            "correlation_id": self.correlation_id,
        }


class ErrorManager:
    """Emit warnings, errors and decisions as structured log records."""

    def __init__(self, context: ErrorContext | None = None, log: logging.Logger | None = None) -> None:
        self.context = context or ErrorContext()
        self._logger = log or logger

    def _extra(
        self, event_code: str, extra: dict[str, Any] | None, exception: BaseException | None
    ) -> dict[str, Any]:
        data: dict[str, Any] = {"event_code": event_code}
        data.update(self.context.to_dict())
        if extra:
            data.update(extra)
        if exception is not None:
            data["exception_class"] = type(exception).__name__
            data["exception_message"] = str(exception)
        return data

    def warn(
        self,
        event_code: str,
        message: str,
        *,
        extra: dict[str, Any] | None = None,
        exception: BaseException | None = None,
    ) -> None:
        self._logger.warning(
            "%s: %s", event_code, message, extra=self._extra(event_code, extra, exception)
        )

    def error(
        self,
        event_code: str,
        message: str,
        *,
        extra: dict[str, Any] | None = None,
        exception: BaseException | None = None,
    ) -> None:
        self._logger.error(
            "%s: %s", event_code, message, extra=self._extra(event_code, extra, exception)
        )

    def decision(
        self, event_code: str, key: str, value: Any, *, extra: dict[str, Any] | None = None
    ) -> None:
        log_policy_decision(key, str(value), extra)
        data = self._extra(event_code, extra, None)
        data["decision_key"] = key
        data["decision_value"] = value
        self._logger.info("%s: %s=%s", event_code, key, value, extra=data)


__all__ = [
    "AnthologyError",
    "ConfigError",
    "ErrorContext",
    "ErrorManager",
    "MalformedFrontMatter",
    "MalformedManifest",
    "SourceParseError",
]

"""Core data types shared by scenarios, probes and the runner.

A Check is one immutable observation produced during a scenario run.
Its JSON form keeps the camelCase keys consumed by existing report tooling.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

# MCP spec revision the harness validates against
DEFAULT_SPEC_VERSION = "2025-06-18"
SPEC_BASE_URL = f"https://modelcontextprotocol.io/specification/{DEFAULT_SPEC_VERSION}"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Render a datetime as ISO-8601 UTC with millisecond precision and a Z suffix."""
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


class CheckStatus(Enum):
    """Outcome of a single check."""

    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    WARNING = "WARNING"
    SKIPPED = "SKIPPED"
    INFO = "INFO"


@dataclass(frozen=True)
class SpecReference:
    """Pointer to the part of the protocol spec a check covers."""

    id: str
    url: str | None = None

    def to_dict(self) -> dict[str, str]:
        data = {"id": self.id}
        if self.url:
            data["url"] = self.url
        return data


@dataclass(frozen=True)
class Check:
    """One uniquely identified observation.

    Checks are never mutated after creation; use ``dataclasses.replace``
    to derive a modified copy.
    """

    id: str
    name: str
    description: str
    status: CheckStatus
    timestamp: datetime = field(default_factory=utc_now)
    spec_references: tuple[SpecReference, ...] = ()
    details: dict[str, Any] | None = None
    error_message: str | None = None
    logs: tuple[str, ...] = ()

    @classmethod
    def from_errors(
        cls,
        id: str,
        name: str,
        description: str,
        errors: list[str],
        spec_references: tuple[SpecReference, ...] = (),
        details: dict[str, Any] | None = None,
        include_logs: bool = False,
    ) -> "Check":
        """Build a SUCCESS check when ``errors`` is empty, FAILURE otherwise.

        Args:
            id: Check slug
            name: Human-readable check name
            description: What the check validates
            errors: Collected validation errors
            spec_references: Spec sections covered
            details: Optional structured details
            include_logs: Also copy the errors into ``logs``

        Returns:
            New Check
        """
        return cls(
            id=id,
            name=name,
            description=description,
            status=CheckStatus.FAILURE if errors else CheckStatus.SUCCESS,
            spec_references=spec_references,
            details=details,
            error_message="; ".join(errors) if errors else None,
            logs=tuple(errors) if include_logs else (),
        )

    @property
    def passed(self) -> bool:
        return self.status is CheckStatus.SUCCESS

    @property
    def failed(self) -> bool:
        return self.status is CheckStatus.FAILURE

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON report representation."""
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "status": self.status.value,
            "timestamp": format_timestamp(self.timestamp),
        }
        if self.spec_references:
            data["specReferences"] = [ref.to_dict() for ref in self.spec_references]
        if self.details is not None:
            data["details"] = self.details
        if self.error_message:
            data["errorMessage"] = self.error_message
        if self.logs:
            data["logs"] = list(self.logs)
        return data


@dataclass(frozen=True)
class ScenarioUrls:
    """Externally reachable URLs allocated by a scenario's start()."""

    server_url: str
    auth_url: str | None = None

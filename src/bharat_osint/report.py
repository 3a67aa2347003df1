"""bharat_osint.report
====================

Data‑objects describing what the analysis provider returned.

:class:`AnalysisReport` is the unit of result data.  It is only ever created by
:meth:`AnalysisReport.from_payload`, which coerces the loosely typed provider
payload at the boundary and raises :class:`MalformedProviderResponse` when the
payload does not fit.  Instances are frozen.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Tuple, Union

__all__ = [
    "ProviderUnreachable",
    "MalformedProviderResponse",
    "RiskLevel",
    "Severity",
    "Finding",
    "ReportMetadata",
    "AnalysisReport",
]


class ProviderUnreachable(RuntimeError):
    """The analysis provider could not produce a report."""


class MalformedProviderResponse(ProviderUnreachable):
    """The provider answered, but the answer is not a usable report."""


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class Severity(str, Enum):
    INFO = "Info"
    WARNING = "Warning"
    ALERT = "Alert"


Score = Union[int, float]


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------

def _require(payload: Mapping[str, Any], key: str) -> Any:
    if key not in payload or payload[key] is None:
        raise MalformedProviderResponse(f"Missing required field '{key}'.")
    return payload[key]


def _as_str(value: Any, key: str) -> str:
    if not isinstance(value, str):
        raise MalformedProviderResponse(
            f"Field '{key}' must be a string, got {type(value).__name__}."
        )
    return value


def _as_bool(value: Any, key: str) -> bool:
    if not isinstance(value, bool):
        raise MalformedProviderResponse(
            f"Field '{key}' must be a boolean, got {type(value).__name__}."
        )
    return value


def _as_score(value: Any, key: str) -> Score:
    # bool is an int subclass; a boolean score is a schema mismatch.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedProviderResponse(
            f"Field '{key}' must be a number, got {type(value).__name__}."
        )
    return value


def _as_mapping(value: Any, key: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise MalformedProviderResponse(
            f"Field '{key}' must be an object, got {type(value).__name__}."
        )
    return value


def _as_risk_level(value: Any) -> RiskLevel:
    text = _as_str(value, "riskLevel").strip().upper()
    try:
        return RiskLevel(text)
    except ValueError:
        raise MalformedProviderResponse(f"Unknown risk level '{value}'.") from None


def _as_severity(value: Any) -> Severity:
    text = _as_str(value, "severity").strip().capitalize()
    try:
        return Severity(text)
    except ValueError:
        raise MalformedProviderResponse(f"Unknown finding severity '{value}'.") from None


# ---------------------------------------------------------------------------
# Report objects
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Finding:
    """One discrete intelligence item."""

    source: str
    summary: str
    timestamp: str  # opaque, never parsed
    severity: Severity = Severity.INFO

    @classmethod
    def from_payload(cls, payload: Any) -> "Finding":
        item = _as_mapping(payload, "findings[]")
        return cls(
            source=_as_str(item.get("source", ""), "source"),
            summary=_as_str(item.get("summary", ""), "summary"),
            timestamp=_as_str(item.get("timestamp", ""), "timestamp"),
            severity=_as_severity(item.get("severity") or Severity.INFO.value),
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "summary": self.summary,
            "timestamp": self.timestamp,
            "severity": self.severity.value,
        }


@dataclass(frozen=True)
class ReportMetadata:
    connection_type: str = ""
    is_dnd: bool = False
    potential_owner_type: str = ""

    @classmethod
    def from_payload(cls, payload: Any) -> "ReportMetadata":
        if payload is None:
            return cls()
        meta = _as_mapping(payload, "metadata")
        return cls(
            connection_type=_as_str(meta.get("connectionType", ""), "connectionType"),
            is_dnd=_as_bool(meta.get("isDND", False), "isDND"),
            potential_owner_type=_as_str(
                meta.get("potentialOwnerType", ""), "potentialOwnerType"
            ),
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "connectionType": self.connection_type,
            "isDND": self.is_dnd,
            "potentialOwnerType": self.potential_owner_type,
        }


@dataclass(frozen=True)
class AnalysisReport:
    """Structured report for a single identifier."""

    identifier: str
    country: str
    operator: str
    circle: str
    risk_level: RiskLevel
    confidence_score: Score  # expected 0-100, passed through untouched
    is_valid: bool
    findings: Tuple[Finding, ...] = field(default_factory=tuple)
    metadata: ReportMetadata = field(default_factory=ReportMetadata)

    @classmethod
    def from_payload(cls, payload: Any) -> "AnalysisReport":
        """Coerce a decoded provider payload into an :class:`AnalysisReport`.

        ``phoneNumber``, ``operator``, ``circle``, ``riskLevel`` and
        ``findings`` are required, mirroring the response schema requested
        from the provider.  Optional fields fall back to neutral defaults.
        """
        data = _as_mapping(payload, "report")

        raw_findings = _require(data, "findings")
        if not isinstance(raw_findings, list):
            raise MalformedProviderResponse("Field 'findings' must be an array.")

        return cls(
            identifier=_as_str(_require(data, "phoneNumber"), "phoneNumber"),
            country=_as_str(data.get("country", ""), "country"),
            operator=_as_str(_require(data, "operator"), "operator"),
            circle=_as_str(_require(data, "circle"), "circle"),
            risk_level=_as_risk_level(_require(data, "riskLevel")),
            confidence_score=_as_score(data.get("confidenceScore", 0), "confidenceScore"),
            is_valid=_as_bool(data.get("isValid", False), "isValid"),
            findings=tuple(Finding.from_payload(item) for item in raw_findings),
            metadata=ReportMetadata.from_payload(data.get("metadata")),
        )

    def to_payload(self) -> Dict[str, Any]:
        """Return the wire representation (same keys and order as the provider's)."""
        findings: List[Dict[str, Any]] = [f.to_payload() for f in self.findings]
        return {
            "phoneNumber": self.identifier,
            "country": self.country,
            "operator": self.operator,
            "circle": self.circle,
            "riskLevel": self.risk_level.value,
            "confidenceScore": self.confidence_score,
            "isValid": self.is_valid,
            "findings": findings,
            "metadata": self.metadata.to_payload(),
        }

"""Indian phone number OSINT console (bharat-osint) package."""

from .config import OsintConfig
from .core import Orchestrator
from .exporter import to_structured_export, to_tabular_export
from .model_client import ReportClient
from .report import AnalysisReport, MalformedProviderResponse, ProviderUnreachable
from .validators import validate_identifier

__all__ = [
    "OsintConfig",
    "Orchestrator",
    "ReportClient",
    "AnalysisReport",
    "ProviderUnreachable",
    "MalformedProviderResponse",
    "validate_identifier",
    "to_structured_export",
    "to_tabular_export",
]

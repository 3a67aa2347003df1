"""
Report client for the bharat-osint console.

The client talks to a Gemini ``generateContent`` endpoint over ``aiohttp``.  It
builds the analysis prompt for a normalised identifier, asks for a JSON answer
constrained by :data:`REPORT_RESPONSE_SCHEMA` and turns the answer into an
:class:`~bharat_osint.report.AnalysisReport`.

Every failure, whatever its cause, surfaces as
:class:`~bharat_osint.report.ProviderUnreachable`; answers that arrive but
cannot be decoded raise the :class:`MalformedProviderResponse` subclass.
"""
from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any, Dict, Optional, Protocol

import aiohttp

from .config import OsintConfig
from .report import (
    AnalysisReport,
    MalformedProviderResponse,
    ProviderUnreachable,
    RiskLevel,
    Severity,
)
from .validators import extract_json_payload

__all__ = [
    "REPORT_RESPONSE_SCHEMA",
    "ReportFetcher",
    "ReportClient",
    "ProviderUnreachable",
    "MalformedProviderResponse",
]

LOGGER = logging.getLogger(__name__)

# Structured-output schema sent with every request; mirrors AnalysisReport.
REPORT_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "phoneNumber": {"type": "STRING"},
        "country": {"type": "STRING"},
        "operator": {"type": "STRING"},
        "circle": {"type": "STRING"},
        "riskLevel": {"type": "STRING", "enum": [level.value for level in RiskLevel]},
        "confidenceScore": {"type": "NUMBER"},
        "isValid": {"type": "BOOLEAN"},
        "findings": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "source": {"type": "STRING"},
                    "summary": {"type": "STRING"},
                    "timestamp": {"type": "STRING"},
                    "severity": {"type": "STRING", "enum": [severity.value for severity in Severity]},
                },
            },
        },
        "metadata": {
            "type": "OBJECT",
            "properties": {
                "connectionType": {"type": "STRING"},
                "isDND": {"type": "BOOLEAN"},
                "potentialOwnerType": {"type": "STRING"},
            },
        },
    },
    "required": ["phoneNumber", "operator", "circle", "riskLevel", "findings"],
}


class ReportFetcher(Protocol):
    """Anything able to turn a normalised identifier into a report."""

    async def fetch(self, identifier: str) -> AnalysisReport:  # pragma: no cover - protocol
        ...


class ReportClient:
    """Async client for the analysis provider."""

    # ---------------------------------------------------------------------
    # Construction / context‑manager helpers
    # ---------------------------------------------------------------------

    def __init__(
        self,
        config: OsintConfig,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        """
        Parameters
        ----------
        config:
            Project‑wide configuration giving the model name, endpoint and key.
        session:
            Optional externally‑managed :class:`aiohttp.ClientSession`.
            When *None* the client creates (and later closes) a private session.
        """
        self.config: OsintConfig = config
        self._session: Optional[aiohttp.ClientSession] = session
        self._owns_session: bool = session is None

    async def __aenter__(self) -> "ReportClient":
        if self._owns_session:
            if self._session is None or self._session.closed:
                self._session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------

    async def fetch(self, identifier: str) -> AnalysisReport:
        """Return the provider's report for *identifier* (one call, no retry)."""
        LOGGER.debug("Requesting analysis for %s via %s", identifier, self.config.model_name)
        prompt = self._construct_analysis_prompt(identifier)
        raw = await self._make_api_call(prompt)
        return self._parse_report(raw)

    # ---------------------------------------------------------------------
    # Low‑level helpers
    # ---------------------------------------------------------------------

    def _resolve_api_key(self) -> str:
        key = self.config.api_key or os.environ.get(self.config.api_key_env, "")
        if not key:
            raise ProviderUnreachable(
                f"No API key configured (set '{self.config.api_key_env}' or api_key)."
            )
        return key

    def _build_request_body(self, prompt: str) -> Dict[str, Any]:
        return {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.config.temperature,
                "responseMimeType": "application/json",
                "responseSchema": REPORT_RESPONSE_SCHEMA,
            },
        }

    async def _make_api_call(self, prompt: str) -> str:
        """POST *prompt* to the provider and return the model's text answer."""
        if self._session is None or self._session.closed:
            raise ProviderUnreachable("ReportClient used outside 'async with'.")

        url = f"{self.config.api_base_url.rstrip('/')}/models/{self.config.model_name}:generateContent"
        timeout = aiohttp.ClientTimeout(total=self.config.api_timeout)
        try:
            async with self._session.post(
                url,
                params={"key": self._resolve_api_key()},
                json=self._build_request_body(prompt),
                timeout=timeout,
            ) as resp:
                resp.raise_for_status()
                body = await resp.json(content_type=None)
        except ProviderUnreachable:
            raise
        except asyncio.TimeoutError as exc:
            raise ProviderUnreachable(
                f"Provider timed out after {self.config.api_timeout} seconds."
            ) from exc
        except aiohttp.ClientResponseError as exc:
            raise ProviderUnreachable(f"Provider returned HTTP {exc.status}.") from exc
        except aiohttp.ClientError as exc:
            raise ProviderUnreachable(f"Provider connection failed: {exc}") from exc
        except ValueError as exc:  # undecodable envelope
            raise MalformedProviderResponse(f"Provider envelope is not JSON: {exc}") from exc

        return self._extract_candidate_text(body)

    @staticmethod
    def _extract_candidate_text(body: Any) -> str:
        """Pull the first candidate's text out of a ``generateContent`` envelope."""
        try:
            parts = body["candidates"][0]["content"]["parts"]
            text = "".join(part.get("text", "") for part in parts)
        except (KeyError, IndexError, TypeError, AttributeError) as exc:
            raise MalformedProviderResponse("Provider envelope has no candidate text.") from exc
        if not text.strip():
            raise MalformedProviderResponse("Provider returned an empty answer.")
        return text

    # ---------------------------------------------------------------------
    # Parse helpers
    # ---------------------------------------------------------------------

    @staticmethod
    def _parse_report(model_output: str) -> AnalysisReport:
        """Decode *model_output* and coerce it into an :class:`AnalysisReport`."""
        document = extract_json_payload(model_output)
        try:
            payload = json.loads(document)
        except ValueError as exc:
            raise MalformedProviderResponse(f"Answer is not valid JSON: {exc}") from exc
        return AnalysisReport.from_payload(payload)

    # ---------------------------------------------------------------------
    # Prompt construction
    # ---------------------------------------------------------------------

    @staticmethod
    def _construct_analysis_prompt(identifier: str) -> str:
        return (
            f"Perform a simulated OSINT analysis on the Indian phone number: {identifier}.\n"
            "Provide telecom details (Operator, Circle), risk assessment, and a list of "
            "potential public data sources where such a number might be found "
            "(e.g. business directories, leaked databases, social footprints).\n"
            "Finding severity must be one of Info, Warning or Alert.\n"
            "This is for educational/ethical OSINT demonstration."
        )

"""bharat_osint.validators
========================

Pure helpers that validate operator input and untangle provider output.

* :func:`validate_identifier` checks a raw value against the Indian mobile
  numbering shape and renders the canonical ``+91 XXXXX XXXXX`` form.
* :func:`split_batch_input` turns a pasted list into candidate values.
* :func:`extract_json_payload` pulls a JSON document out of a model answer,
  using **markdown‑it‑py** to find a fenced block when the model wrapped its
  reply in one.

None of these helpers perform I/O, so they can be called freely from the async
orchestration layer.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Union

from markdown_it import MarkdownIt

__all__ = [
    "INVALID_IDENTIFIER_REASON",
    "Valid",
    "Invalid",
    "ValidationOutcome",
    "validate_identifier",
    "split_batch_input",
    "extract_json_payload",
]

INVALID_IDENTIFIER_REASON = (
    "Please enter a valid 10-digit Indian phone number (starting with 6, 7, 8, or 9)."
)

# Everything except digits and '+' is noise.
_NOISE_RE = re.compile(r"[^\d+]")
# Optional +91 / 91 / 0 prefix, then ten digits led by 6-9.
_IDENTIFIER_RE = re.compile(r"^(?:\+91|91|0)?[6-9]\d{9}$")
_BATCH_SPLIT_RE = re.compile(r"[\n,]+")


# ---------------------------------------------------------------------------
# Validation outcome
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Valid:
    """Accepted input; *normalized* is the only form passed downstream."""

    normalized: str

    @property
    def is_valid(self) -> bool:
        return True


@dataclass(frozen=True)
class Invalid:
    """Rejected input plus what was actually parsed out of it."""

    sanitized_attempt: str
    reason: str = INVALID_IDENTIFIER_REASON

    @property
    def is_valid(self) -> bool:
        return False


ValidationOutcome = Union[Valid, Invalid]


# ---------------------------------------------------------------------------
# Identifier handling
# ---------------------------------------------------------------------------

def validate_identifier(raw: str) -> ValidationOutcome:
    """Validate *raw* and return a :class:`Valid` or :class:`Invalid` outcome.

    Accepted shapes are ``+91XXXXXXXXXX``, ``91XXXXXXXXXX``, ``0XXXXXXXXXX``
    and bare ``XXXXXXXXXX`` where the ten‑digit core starts with 6, 7, 8 or 9.
    Separators (spaces, dashes, brackets, ...) are ignored.

    The function is total: it never raises, whatever it is given.
    """
    cleaned = _NOISE_RE.sub("", raw if isinstance(raw, str) else str(raw))

    if not _IDENTIFIER_RE.match(cleaned):
        return Invalid(sanitized_attempt=cleaned)

    core = cleaned[-10:]
    return Valid(normalized=f"+91 {core[:5]} {core[5:]}")


def split_batch_input(raw: str) -> List[str]:
    """Split a pasted list on newlines / commas and drop blank pieces.

    >>> split_batch_input("a\\nb,c\\n\\n d ")
    ['a', 'b', 'c', 'd']
    """
    pieces = (piece.strip() for piece in _BATCH_SPLIT_RE.split(raw or ""))
    return [piece for piece in pieces if piece]


# ---------------------------------------------------------------------------
# Provider output handling
# ---------------------------------------------------------------------------

def extract_json_payload(text: str) -> str:
    """Return the JSON document contained in a model answer.

    Models asked for ``application/json`` normally answer with a bare
    document, but some wrap it in a Markdown fence (```` ```json ... ``` ````).
    The first fenced block found by markdown‑it's CommonMark parser wins;
    otherwise the stripped text is returned unchanged.
    """
    stripped = (text or "").strip()
    if "```" not in stripped and "~~~" not in stripped:
        return stripped

    fenced: Optional[str] = None
    for tok in MarkdownIt().parse(stripped):
        if tok.type == "fence":
            fenced = tok.content
            break
    return fenced.strip() if fenced is not None else stripped

"""Detection and repair of corrupted directory identifiers.

Contract, permit and complaint numbers picked up timestamp fragments, random
suffixes and whole duplicated copies of themselves during an earlier CSV
import. The helpers here recognise those artifacts and recover the real
identifier from an ordered table of known shapes.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Optional, Pattern, Tuple

from minedir.models import IdentifierKind


CORRUPTION_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"-\d{10,}"),  # timestamp suffix
    re.compile(r"-[a-z0-9]{3,}$"),  # random base36 tail
    re.compile(r"\d{13,}"),  # embedded epoch millis
    re.compile(r"GENERATED-.*-\d{13,}-[a-z0-9]+", re.IGNORECASE),
)

# Real identifiers that happen to trip the signals above.
VALID_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"QPA-[A-Z]+-\d{4}"),  # QPA-CAV-2021
    re.compile(r"CP-Q-\d{3}"),  # CP-Q-023
    re.compile(r"IP-SAG-[A-Z]+-\d{3}"),  # IP-SAG-IVA-032
    re.compile(r"MPP-\d{4}-\d{3}"),  # MPP-2017-002
    re.compile(r"[A-Z]+-\d{4}-\d{3}"),
)

_DUPLICATE = re.compile(r"^(.+)(-\d+.*?)\1")
_LONG_NUMERIC_TAIL = re.compile(r"-\d{10,}.*$")
_SHORT_RANDOM_TAIL = re.compile(r"-(?=[a-z0-9]*[a-z])[a-z0-9]{3,}$")  # keeps numeric tails like -0064
_GENERATED = re.compile(r"GENERATED-.*-\d{13,}-[a-z0-9]+", re.IGNORECASE)

AMENDED_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"^\s+Amended\s+[A-Z]$"),
    re.compile(r"^-Amended\s+[A-Z]$"),
    re.compile(r"^\s+Amended$"),
    re.compile(r"^-Amended$"),
)
_HYPHENATED_AMENDMENT = re.compile(r"-Amended(?:\s+[A-Z])?$")

CONTRACT_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"^(\d{3}-\d{2,4}-IV)"),  # 071-97-IV, 159-2000-IV
    re.compile(r"^([A-Z]+-[A-Z]+-\d+)"),  # EP-IVA-019
    re.compile(r"^([A-Z]+-\d+-\d+)"),
    re.compile(r"^([A-Z]+P?-[A-Z]+-[A-Z0-9-]+)"),  # MPSA / APSA shapes
)

PERMIT_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"^(QP-Q-\d+(?:-Q\d+)?)"),  # QP-Q-0222-Q2
    re.compile(r"^(BP-[A-Z]+-\d+-\d+)"),  # BP-AQP-21-23
    re.compile(r"^(QPA-[A-Z]+-\d+-\d+)"),  # QPA-CAV-2021-005
    re.compile(r"^(AQP-Q-\d+)"),  # AQP-Q-741
    re.compile(r"^(CP-Q-\d+-\d+)"),  # CP-Q-023-119
    re.compile(r"^([A-Z]+-\d+-\d+)"),  # CSAG-04-24
    re.compile(r"^(IP-Q-\d+(?:-Q\d+)?)"),  # IP-Q-0119-Q4
    re.compile(r"^(IP-SAG-[A-Z]+-\d+)"),  # IP-SAG-IVA-040
    re.compile(r"^([A-Z]+SAG-QP-\d+)"),  # AISAG-QP-067
    re.compile(r"^(SP-\d+-\d+)"),  # SP-24-24
    re.compile(r"^(SDP-[A-Z0-9]+-[A-Z]-\d+)"),  # SDP-001A-S-2024
    re.compile(r"^([A-Z]+P?)$"),  # ATHP
)


def is_valid_format(value: Any) -> bool:
    if not value or not isinstance(value, str):
        return False
    return any(pattern.fullmatch(value) for pattern in VALID_PATTERNS)


def is_corrupted(value: Any) -> bool:
    """Return True when ``value`` carries artifacts of a bad import.

    Allow-listed shapes are checked first and always count as clean.
    """
    if not value or not isinstance(value, str):
        return False
    if is_valid_format(value):
        return False
    return any(pattern.search(value) for pattern in CORRUPTION_PATTERNS)


def remove_duplication(value: str) -> str:
    match = _DUPLICATE.match(value)
    if match:
        return match.group(1)
    return value


def strip_garbage_suffixes(value: str) -> str:
    value = _LONG_NUMERIC_TAIL.sub("", value)
    return _SHORT_RANDOM_TAIL.sub("", value)


def normalize_amendment(remainder: str) -> Optional[str]:
    """Return ``"Amended[ X]"`` when ``remainder`` is an amendment annotation."""
    for pattern in AMENDED_PATTERNS:
        if pattern.match(remainder):
            return " ".join(remainder.lstrip("- \t").split())
    return None


def extract_canonical(value: str, patterns: Tuple[Pattern[str], ...]) -> Optional[str]:
    for pattern in patterns:
        match = pattern.match(value)
        if not match:
            continue
        base = match.group(1)
        annotation = normalize_amendment(value[len(base):])
        if annotation:
            return f"{base} {annotation}"
        return base
    return None


class IdentifierCleaner:
    """Repairs one kind of identifier.

    The three kinds share the de-duplication, suffix stripping and
    ``GENERATED`` steps; contracts and permits additionally reduce the result
    to the first matching canonical shape. Complaints collapse ``GENERATED``
    runs before the suffixes are stripped.
    """

    def __init__(
        self,
        kind: IdentifierKind,
        canonical_patterns: Tuple[Pattern[str], ...] = (),
        generated_token: str = "GENERATED",
        generated_first: bool = False,
    ) -> None:
        self.kind = kind
        self.canonical_patterns = canonical_patterns
        self.generated_token = generated_token
        self.generated_first = generated_first

    def __repr__(self) -> str:
        return f"IdentifierCleaner(kind={self.kind.value!r})"

    def needs_cleaning(self, value: Any) -> bool:
        if not value or not isinstance(value, str):
            return False
        return self.clean(value) != value

    def normalize_generated(self, value: str) -> str:
        if "GENERATED" not in value:
            return value
        return _GENERATED.sub(self.generated_token, value)

    def normalize_annotation(self, value: str) -> str:
        """Rewrite ``125-98-IV-Amended B`` as ``125-98-IV Amended B``.

        Only applies when the first canonical shape that matches is followed
        by nothing but the amendment; anything else is left as stored.
        """
        if not self.canonical_patterns or not _HYPHENATED_AMENDMENT.search(value):
            return value
        for pattern in self.canonical_patterns:
            match = pattern.match(value)
            if not match:
                continue
            base = match.group(1)
            annotation = normalize_amendment(value[len(base):])
            if annotation:
                return f"{base} {annotation}"
            return value
        return value

    def clean(self, value: Any) -> Any:
        if not value or not isinstance(value, str):
            return value

        cleaned = value.strip()
        if not is_corrupted(cleaned):
            return self.normalize_annotation(cleaned)

        cleaned = remove_duplication(cleaned)
        if self.generated_first:
            cleaned = self.normalize_generated(cleaned)
        cleaned = strip_garbage_suffixes(cleaned)
        if not self.generated_first:
            cleaned = self.normalize_generated(cleaned)

        if not self.canonical_patterns:
            return cleaned
        canonical = extract_canonical(cleaned, self.canonical_patterns)
        if canonical is None:
            return cleaned
        return canonical

    __call__ = clean


contract_cleaner = IdentifierCleaner(IdentifierKind.CONTRACT, CONTRACT_PATTERNS)
permit_cleaner = IdentifierCleaner(IdentifierKind.PERMIT, PERMIT_PATTERNS)
complaint_cleaner = IdentifierCleaner(
    IdentifierKind.COMPLAINT,
    generated_token="GENERATED-HOTSPOT",
    generated_first=True,
)

CLEANERS: Dict[IdentifierKind, IdentifierCleaner] = {
    IdentifierKind.CONTRACT: contract_cleaner,
    IdentifierKind.PERMIT: permit_cleaner,
    IdentifierKind.COMPLAINT: complaint_cleaner,
}


def get_cleaner(kind: IdentifierKind) -> IdentifierCleaner:
    return CLEANERS[IdentifierKind(kind)]


def clean_contract_number(value: Any) -> Any:
    return contract_cleaner.clean(value)


def clean_permit_number(value: Any) -> Any:
    return permit_cleaner.clean(value)


def clean_complaint_number(value: Any) -> Any:
    return complaint_cleaner.clean(value)


__all__ = [
    "CLEANERS",
    "IdentifierCleaner",
    "clean_complaint_number",
    "clean_contract_number",
    "clean_permit_number",
    "complaint_cleaner",
    "contract_cleaner",
    "get_cleaner",
    "is_corrupted",
    "is_valid_format",
    "permit_cleaner",
]

"""
Key passages from the full text of a federal bill.

Congress.gov publishes each bill's text versions as formatted HTML. The
analysis prompt only needs a handful of passages, so the text is scanned
line by line for impact language, eligibility rules, dollar amounts and
section headers.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup

MAX_SECTIONS = 5
MAX_PROVISIONS = 5
PROVISION_CHARS = 200

IMPACT_KEYWORDS = (
    "shall be entitled",
    "financial assistance",
    "tax credit",
    "benefit",
    "subsidy",
    "funding",
    "appropriation",
    "effective date",
)

ELIGIBILITY_KEYWORDS = (
    "eligible",
    "qualification",
    "requirement",
    "criteria",
    "shall be qualified",
)

FINANCIAL_KEYWORDS = (
    "amount of",
    "not to exceed",
    "shall not exceed",
    "maximum amount",
    "total funding",
    "appropriated",
)

PROVISION_PREFIXES = ("SEC.", "Section", "SECTION", "(a)", "(b)", "(c)")


@dataclass
class BillTextExcerpt:
    version: Optional[str] = None
    date: Optional[str] = None
    impact_sections: List[str] = field(default_factory=list)
    eligibility: Optional[str] = None
    financial_details: Optional[str] = None
    key_provisions: List[str] = field(default_factory=list)

    @property
    def available(self) -> bool:
        return bool(
            self.impact_sections or self.eligibility
            or self.financial_details or self.key_provisions
        )


def html_to_text(markup: str) -> str:
    """Formatted bill text is a <pre> block; keep its line breaks."""
    return BeautifulSoup(markup, "html.parser").get_text("\n")


def _lines(text: str) -> List[str]:
    return text.split("\n")


def extract_impact_sections(text: str) -> List[str]:
    """Lines mentioning benefits or funding, with one line before and two after."""
    lines = _lines(text)
    sections: List[str] = []
    for i, line in enumerate(lines):
        lowered = line.lower()
        if any(keyword in lowered for keyword in IMPACT_KEYWORDS):
            section = "\n".join(lines[max(0, i - 1):i + 3]).strip()
            if len(section) > 50:
                sections.append(section)
        if len(sections) >= MAX_SECTIONS:
            break
    return sections


def extract_eligibility(text: str) -> Optional[str]:
    lines = _lines(text)
    for i, line in enumerate(lines):
        lowered = line.lower()
        if any(keyword in lowered for keyword in ELIGIBILITY_KEYWORDS):
            section = "\n".join(lines[i:i + 2]).strip()
            if len(section) > 30:
                return section
    return None


def extract_financial_details(text: str) -> Optional[str]:
    """First dollar-amount clause such as "not to exceed $5,000"."""
    lines = _lines(text)
    for i, line in enumerate(lines):
        lowered = line.lower()
        if "$" not in lowered and "dollar" not in lowered:
            continue
        if any(keyword in lowered for keyword in FINANCIAL_KEYWORDS):
            section = "\n".join(lines[i:i + 2]).strip()
            if len(section) > 30:
                return section
    return None


def extract_key_provisions(text: str) -> List[str]:
    lines = _lines(text)
    provisions: List[str] = []
    for i, line in enumerate(lines):
        stripped = line.strip()
        if len(stripped) <= 20 or not stripped.startswith(PROVISION_PREFIXES):
            continue

        joined = " ".join(l.strip() for l in lines[i:i + 3] if l.strip())
        provision = joined[:PROVISION_CHARS]
        if len(provision) > 50:
            provisions.append(provision + "...")
        if len(provisions) >= MAX_PROVISIONS:
            break
    return provisions


def excerpt_from_text(text: str, version: Optional[str] = None, date: Optional[str] = None) -> BillTextExcerpt:
    return BillTextExcerpt(
        version=version,
        date=date,
        impact_sections=extract_impact_sections(text),
        eligibility=extract_eligibility(text),
        financial_details=extract_financial_details(text),
        key_provisions=extract_key_provisions(text),
    )


def latest_formatted_text(text_versions: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    Newest version that has a Formatted Text rendition. Congress.gov lists
    versions newest first.
    """
    for version in text_versions or []:
        for fmt in version.get("formats") or []:
            if fmt.get("type") == "Formatted Text" and fmt.get("url"):
                return {"url": fmt["url"], "version": version.get("type"), "date": version.get("date")}
    return None

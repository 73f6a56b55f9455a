"""
File delivery channel
"""
import json
import re
from pathlib import Path
from typing import List, Sequence

from core.entities import FeedPage
from delivery.base import DeliveryChannel
from ingestion.representatives import Representative


def _money(amount: float) -> str:
    sign = "+" if amount > 0 else "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.0f}/yr"


def _representative_lines(representatives: Sequence[Representative]) -> List[str]:
    lines = ["## Your representatives", ""]
    for rep in representatives:
        party = f" ({rep.party})" if rep.party else ""
        sample = " _(sample)_" if rep.is_sample_content else ""
        lines.append(f"- **{rep.name}**{party}, {rep.office}{sample}")
        contact = rep.phones[:1] + rep.emails[:1] + rep.urls[:1]
        if contact:
            lines.append(f"  - {' · '.join(contact)}")
    lines.append("")
    return lines


class FileDelivery(DeliveryChannel):
    name = "file"

    def __init__(self, output_dir: str = "output"):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    async def deliver(
        self,
        *,
        profile_name: str,
        feed_date: str,
        page: FeedPage,
        representatives: Sequence[Representative] = (),
    ) -> None:
        safe_name = re.sub(r"[^A-Za-z0-9_-]+", "_", profile_name) or "resident"
        base = self.output_dir / f"{safe_name}_{feed_date}"

        json_path = base.with_suffix(".json")
        md_path = base.with_suffix(".md")

        data = page.to_dict()
        data["representatives"] = [
            rep.model_dump(by_alias=True, mode="json") for rep in representatives
        ]
        json_path.write_text(
            json.dumps(data, indent=2),
            encoding="utf-8",
        )

        md_lines = [f"# Civic feed for {profile_name} ({feed_date})", ""]
        if representatives:
            md_lines.extend(_representative_lines(representatives))

        for item in page.items:
            sample = " _(sample)_" if item.is_sample_content else ""
            md_lines.append(f"## {item.title}{sample}")
            md_lines.append(
                f"*{item.scope.value} · {item.category.value} · {item.status}* "
                f"· relevance {item.relevance_score or 0:.1f}"
            )
            md_lines.append("")
            if item.summary:
                md_lines.append(item.summary)
            if item.personal_impact:
                md_lines.append(f"**Your impact:** {item.personal_impact}")
            if item.financial_effect:
                md_lines.append(f"**Estimated effect:** {_money(item.financial_effect)} ({item.timeline})")
            if item.relevance_explanation:
                md_lines.append(f"_{item.relevance_explanation}_")
            if item.source_url:
                md_lines.append(f"- {item.source_url}")
            md_lines.append("\n")

        if page.has_more:
            md_lines.append(f"_{page.remaining} more items not shown._")

        md_path.write_text("\n".join(md_lines), encoding="utf-8")

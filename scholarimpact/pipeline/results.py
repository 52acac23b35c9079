"""
pipeline results - combined author impact report.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..agents.base import AgentStatus
from ..agents.citation_walker import CitedPaper, SecondaryImpact
from ..agents.metrics_aggregator import AggregatedMetrics
from ..core.config import DisplayConfig
from ..core.models import AuthorDetail


@dataclass
class ImpactReport:
    """
    everything the analysis produced for a set of selected authors.

    this is the main output of the pipeline.
    """
    # metadata
    created_at: datetime = field(default_factory=datetime.now)
    requested_ids: List[str] = field(default_factory=list)

    # the first detail that came back is the one shown as "the" author
    primary_author: Optional[AuthorDetail] = None
    authors: List[AuthorDetail] = field(default_factory=list)

    metrics: AggregatedMetrics = field(default_factory=AggregatedMetrics)
    cited_papers: List[CitedPaper] = field(default_factory=list)
    secondary_impact: SecondaryImpact = field(default_factory=SecondaryImpact)

    # execution stats
    elapsed_seconds: float = 0.0
    warnings: List[str] = field(default_factory=list)
    status: AgentStatus = AgentStatus.SUCCESS

    def add_warning(self, warning: str):
        """add a warning message."""
        self.warnings.append(warning)

    @property
    def missing_ids(self) -> List[str]:
        """requested ids with no detail in the report."""
        found = {a.author_id for a in self.authors}
        return [i for i in self.requested_ids if i not in found]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "createdAt": self.created_at.isoformat(),
            "status": self.status.value,
            "primaryAuthor": self.primary_author.to_dict() if self.primary_author else None,
            "authors": [
                {"authorId": a.author_id, "name": a.name, "paperCount": len(a.papers)}
                for a in self.authors
            ],
            "metrics": self.metrics.to_dict(),
            "secondaryImpact": self.secondary_impact.to_dict(),
            "citedPapers": [c.to_dict() for c in self.cited_papers],
            "elapsedSeconds": round(self.elapsed_seconds, 3),
            "warnings": list(self.warnings)
        }

    def summary_lines(self, display: Optional[DisplayConfig] = None) -> List[str]:
        """human-readable summary, one line per fact."""
        display = display or DisplayConfig()
        m = self.metrics
        name = self.primary_author.name if self.primary_author else None

        lines = [
            f"Impact Report: {name or 'Unknown Author'}",
            f"  Authors merged: {len(self.authors)}",
            f"  Papers: {m.total_papers}",
            f"  Citations: {m.total_citations}",
            f"  Avg citations/paper: {m.average_citations:.1f}",
        ]

        series = m.yearly_series()
        if series:
            lines.append("  By year:")
            for entry in series:
                lines.append(
                    f"    {entry.year}: {entry.paper_count} papers, {entry.citation_count} citations"
                )

        domains = m.top_domains(display.top_domains)
        if domains:
            lines.append("  Top domains: " + ", ".join(f"{d} ({n})" for d, n in domains))

        venues = m.top_venues(display.top_venues)
        if venues:
            lines.append("  Top venues: " + ", ".join(f"{v} ({n})" for v, n in venues))

        collaborators = m.top_collaborators(display.top_collaborators)
        if collaborators:
            lines.append("  Top collaborators:")
            for c in collaborators:
                lines.append(f"    {c.name}: {c.paper_count} papers, {c.citations} citations")

        impact = self.secondary_impact
        lines.append(f"  Citing papers walked: {sum(len(c.citations) for c in self.cited_papers)}")
        lines.append(f"  Secondary citations: {impact.total_citations}")
        reach = impact.top_domains(display.top_domains)
        if reach:
            lines.append("  Citation reach: " + ", ".join(f"{d} ({n})" for d, n in reach))

        if self.warnings:
            lines.append(f"  Warnings: {len(self.warnings)}")

        lines.append(f"  Elapsed: {self.elapsed_seconds:.1f}s")
        return lines

    def summary(self) -> str:
        return "\n".join(self.summary_lines())

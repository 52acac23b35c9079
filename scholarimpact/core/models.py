"""
core data models for scholarimpact.
record shapes for what the scholarly graph api sends back.

every from_api() validates at the boundary and returns None for a
record that cannot be used; callers drop those.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

UNKNOWN_INSTITUTION = "Unknown Institution"
UNKNOWN_AUTHOR = "Unknown Author"


# field coercion helpers

def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    return None


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value:
        return value
    return None


def _as_str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, str) and v]


@dataclass(frozen=True)
class AffiliationDetail:
    """one raw affiliation string split into parts."""
    institution: str
    full: str
    department: Optional[str] = None
    location: Optional[str] = None

    @classmethod
    def parse(cls, affiliation: str) -> "AffiliationDetail":
        parts = [part.strip() for part in affiliation.split(",")]
        return cls(
            institution=parts[0] or UNKNOWN_INSTITUTION,
            department=parts[1] if len(parts) > 1 else None,
            location=", ".join(parts[2:]) if len(parts) > 2 else None,
            full=affiliation
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "institution": self.institution,
            "department": self.department,
            "location": self.location,
            "full": self.full
        }


def parse_affiliations(affiliations: Any) -> List[AffiliationDetail]:
    """parse a list of raw affiliation strings; anything else gives []."""
    if not isinstance(affiliations, list):
        return []
    return [
        AffiliationDetail.parse(a)
        for a in affiliations
        if isinstance(a, str) and a
    ]


@dataclass(frozen=True)
class AuthorRecord:
    """
    author as returned by author search.
    immutable snapshot of upstream.
    """
    author_id: str
    name: str
    aliases: Tuple[str, ...] = ()
    affiliations: Tuple[str, ...] = ()
    paper_count: Optional[int] = None
    citation_count: Optional[int] = None
    h_index: Optional[int] = None
    homepage: Optional[str] = None

    @classmethod
    def from_api(cls, data: Any) -> Optional["AuthorRecord"]:
        """parse search candidate; needs authorId and name."""
        if not isinstance(data, dict):
            return None
        author_id = _as_str(data.get("authorId"))
        name = _as_str(data.get("name"))
        if not author_id or not name:
            return None

        return cls(
            author_id=author_id,
            name=name,
            aliases=tuple(_as_str_list(data.get("aliases"))),
            affiliations=tuple(_as_str_list(data.get("affiliations"))),
            paper_count=_as_int(data.get("paperCount")),
            citation_count=_as_int(data.get("citationCount")),
            h_index=_as_int(data.get("hIndex")),
            homepage=_as_str(data.get("homepage"))
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "authorId": self.author_id,
            "name": self.name,
            "aliases": list(self.aliases),
            "affiliations": list(self.affiliations),
            "paperCount": self.paper_count,
            "citationCount": self.citation_count,
            "hIndex": self.h_index,
            "homepage": self.homepage
        }


@dataclass(frozen=True)
class CoAuthor:
    """author slot on a paper."""
    author_id: Optional[str]
    name: Optional[str] = None

    @classmethod
    def from_api(cls, data: Any) -> Optional["CoAuthor"]:
        if not isinstance(data, dict):
            return None
        return cls(
            author_id=_as_str(data.get("authorId")),
            name=_as_str(data.get("name"))
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"authorId": self.author_id, "name": self.name}


def _parse_coauthors(value: Any) -> List[CoAuthor]:
    if not isinstance(value, list):
        return []
    authors = []
    for item in value:
        coauthor = CoAuthor.from_api(item)
        if coauthor:
            authors.append(coauthor)
    return authors


@dataclass
class PaperRecord:
    """
    paper from an author's detail payload.
    paper_id is the dedup key across authors.
    """
    paper_id: str
    title: Optional[str] = None
    year: Optional[int] = None
    citation_count: Optional[int] = None
    fields_of_study: List[str] = field(default_factory=list)
    venue: Optional[str] = None
    authors: List[CoAuthor] = field(default_factory=list)

    @property
    def citations(self) -> int:
        """citation count with missing treated as zero."""
        return self.citation_count or 0

    @classmethod
    def from_api(cls, data: Any) -> Optional["PaperRecord"]:
        if not isinstance(data, dict):
            return None
        paper_id = _as_str(data.get("paperId"))
        if not paper_id:
            return None

        return cls(
            paper_id=paper_id,
            title=_as_str(data.get("title")),
            year=_as_int(data.get("year")),
            citation_count=_as_int(data.get("citationCount")),
            fields_of_study=_as_str_list(data.get("fieldsOfStudy")),
            venue=_as_str(data.get("venue")),
            authors=_parse_coauthors(data.get("authors"))
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "paperId": self.paper_id,
            "title": self.title,
            "year": self.year,
            "citationCount": self.citation_count,
            "fieldsOfStudy": list(self.fields_of_study),
            "venue": self.venue,
            "authors": [a.to_dict() for a in self.authors]
        }


@dataclass
class AuthorDetail:
    """author detail payload: profile plus the full paper list."""
    author_id: str
    name: Optional[str] = None
    affiliations: List[str] = field(default_factory=list)
    homepage: Optional[str] = None
    papers: List[PaperRecord] = field(default_factory=list)

    # papers dropped at parse time (no paperId)
    skipped_papers: int = 0

    @classmethod
    def from_api(cls, data: Any) -> Optional["AuthorDetail"]:
        """needs authorId and a papers list; anything less is malformed."""
        if not isinstance(data, dict):
            return None
        author_id = _as_str(data.get("authorId"))
        raw_papers = data.get("papers")
        if not author_id or not isinstance(raw_papers, list):
            return None

        papers = []
        skipped = 0
        for item in raw_papers:
            paper = PaperRecord.from_api(item)
            if paper:
                papers.append(paper)
            else:
                skipped += 1

        return cls(
            author_id=author_id,
            name=_as_str(data.get("name")),
            affiliations=_as_str_list(data.get("affiliations")),
            homepage=_as_str(data.get("homepage")),
            papers=papers,
            skipped_papers=skipped
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "authorId": self.author_id,
            "name": self.name,
            "affiliations": list(self.affiliations),
            "homepage": self.homepage,
            "papers": [p.to_dict() for p in self.papers]
        }


@dataclass
class CitationEdge:
    """
    a citing paper, as seen from the paper it cites.
    only produced by the citation walker; never persisted on its own.
    """
    paper_id: str
    title: Optional[str] = None
    year: Optional[int] = None
    citation_count: Optional[int] = None
    fields_of_study: List[str] = field(default_factory=list)
    venue: Optional[str] = None
    authors: List[CoAuthor] = field(default_factory=list)

    @classmethod
    def from_api(cls, item: Any) -> Optional["CitationEdge"]:
        """parse a {"citingPaper": {...}} wrapper; needs citingPaper.paperId."""
        if not isinstance(item, dict):
            return None
        citing = item.get("citingPaper")
        if not isinstance(citing, dict):
            return None
        paper_id = _as_str(citing.get("paperId"))
        if not paper_id:
            return None

        return cls(
            paper_id=paper_id,
            title=_as_str(citing.get("title")),
            year=_as_int(citing.get("year")),
            citation_count=_as_int(citing.get("citationCount")),
            fields_of_study=_as_str_list(citing.get("fieldsOfStudy")),
            venue=_as_str(citing.get("venue")),
            authors=_parse_coauthors(citing.get("authors"))
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "citingPaper": {
                "paperId": self.paper_id,
                "title": self.title,
                "year": self.year,
                "citationCount": self.citation_count,
                "fieldsOfStudy": list(self.fields_of_study),
                "venue": self.venue,
                "authors": [a.to_dict() for a in self.authors]
            }
        }


@dataclass
class CacheEntry:
    """one cached upstream response, keyed by (type, query)."""
    type: str
    query: str
    data: Any
    timestamp: datetime

    def is_fresh(self, now: datetime, max_age_seconds: float) -> bool:
        return (now - self.timestamp).total_seconds() < max_age_seconds

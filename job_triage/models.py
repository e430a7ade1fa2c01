import random
import string
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

STATUS_SUITABLE = "suitable"
STATUS_MAYBE = "maybe_suitable"
STATUS_NOT_SUITABLE = "not_suitable"
STATUSES = (STATUS_SUITABLE, STATUS_MAYBE, STATUS_NOT_SUITABLE)

MIN_SCORE = 0.0
MAX_SCORE = 10.0
MAX_GAPS = 5

NOT_AVAILABLE = "N/A"


def canonical_job_url(job_id: str) -> str:
    """Build a stable LinkedIn job view URL from a job ID."""
    return f"https://www.linkedin.com/jobs/view/{job_id}" if job_id else ""


def synthesize_job_id() -> str:
    """
    Fallback identifier for a card without a parseable job link.

    These are unique but not stable: the same posting gets a new one on every
    run, so it will be stored (and classified) again next time.
    """
    alphabet = string.ascii_lowercase + string.digits
    suffix = "".join(random.choice(alphabet) for _ in range(9))
    return f"job-{int(time.time() * 1000)}-{suffix}"


@dataclass(frozen=True)
class Record:
    """One harvested job posting, as written to the record store."""
    id: str
    title: str
    organization: str
    location: str
    body: str
    source_url: str

    def as_text(self) -> str:
        return (
            f"Title: {self.title}\n"
            f"Company: {self.organization}\n"
            f"Location: {self.location}\n"
            f"\n"
            f"{self.body.strip()}"
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            "id": self.id,
            "title": self.title,
            "company": self.organization,
            "location": self.location,
            "url": self.source_url,
            "description": self.body,
        }


@dataclass
class ClassificationResult:
    status: str
    score: float
    gaps: List[str] = field(default_factory=list)
    reasoning: Optional[str] = None
    strengths: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "score": self.score,
            "gaps": list(self.gaps),
            "reasoning": self.reasoning,
            "strengths": list(self.strengths),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClassificationResult":
        return cls(
            status=data["status"],
            score=float(data["score"]),
            gaps=list(data.get("gaps") or []),
            reasoning=data.get("reasoning"),
            strengths=list(data.get("strengths") or []),
        )


@dataclass
class LedgerEntry:
    record_id: str
    url: str
    classified_at: str
    result: ClassificationResult

    @property
    def score(self) -> float:
        return self.result.score

    @property
    def status(self) -> str:
        return self.result.status

    def to_dict(self) -> Dict[str, Any]:
        return {
            "record_id": self.record_id,
            "url": self.url,
            "classified_at": self.classified_at,
            "result": self.result.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LedgerEntry":
        record_id = str(data["record_id"])
        return cls(
            record_id=record_id,
            url=data.get("url") or canonical_job_url(record_id),
            classified_at=data.get("classified_at", ""),
            result=ClassificationResult.from_dict(data["result"]),
        )

"""Data models for digest composition."""

from dataclasses import dataclass, field

from paperfeed.data_model import EmbeddingVector
from paperfeed.store.models import Paper, Score


@dataclass(frozen=True)
class CandidatePaper:
    """A scored paper eligible for a digest.

    Attributes:
        paper: The paper.
        score: Its persisted Score.
    """

    paper: Paper
    score: Score

    @property
    def paper_id(self) -> str:
        return self.paper.paper_id

    @property
    def final_score(self) -> float:
        return self.score.final_score

    @property
    def embedding(self) -> EmbeddingVector | None:
        return self.paper.embedding


@dataclass(frozen=True)
class DigestSelection:
    """Exploit and explore picks for one digest.

    Attributes:
        exploit: Top-scoring candidates, best first.
        explore: Diversity picks from the rest of the pool, in pick order.
    """

    exploit: list[CandidatePaper] = field(default_factory=list)
    explore: list[CandidatePaper] = field(default_factory=list)

    @property
    def papers(self) -> list[CandidatePaper]:
        """Exploit picks followed by explore picks."""
        return [*self.exploit, *self.explore]

    @property
    def paper_ids(self) -> list[str]:
        return [c.paper_id for c in self.papers]

    @property
    def avg_score(self) -> float:
        """Mean final score of the selection, 0.0 when empty."""
        papers = self.papers
        if not papers:
            return 0.0
        return sum(c.final_score for c in papers) / len(papers)


@dataclass
class DigestJobResult:
    """Outcome of generating digests for all enabled users.

    Attributes:
        succeeded: Users whose briefing was written.
        failed: Users whose generation raised.
        failed_user_ids: IDs of the failed users.
    """

    succeeded: int = 0
    failed: int = 0
    failed_user_ids: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.succeeded + self.failed

"""Exceptions raised by the ranker."""


class NotEnrichedError(Exception):
    """Raised when a paper is ranked before enrichment is attached.

    Ranking is only defined for enriched papers; callers must not retry
    without enriching first.
    """

    def __init__(self, paper_id: str) -> None:
        """Initialize the error.

        Args:
            paper_id: The paper lacking enrichment.
        """
        self.paper_id = paper_id
        super().__init__(f"Paper {paper_id} has not been enriched")

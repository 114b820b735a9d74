"""Feedback recording and history."""

from dataclasses import dataclass

import structlog

from paperfeed.config.schemas import FeedbackConfig
from paperfeed.feedback.updater import FeedbackVectorUpdater
from paperfeed.store.models import FeedbackAction, FeedbackEvent
from paperfeed.store.protocols import PaperFeedStore


logger = structlog.get_logger()


@dataclass(frozen=True)
class FeedbackOutcome:
    """Result of handling one feedback event.

    Attributes:
        event: The recorded event.
        interest_vector: Updated vector, or None if it was left unchanged.
    """

    event: FeedbackEvent
    interest_vector: list[float] | None = None

    @property
    def vector_updated(self) -> bool:
        """Whether the interest vector was written."""
        return self.interest_vector is not None


class FeedbackService:
    """Records feedback events and feeds them to the vector updater.

    The event is always appended first; the interest vector only moves
    when the referenced paper exists and carries an embedding.
    """

    def __init__(
        self,
        store: PaperFeedStore,
        config: FeedbackConfig | None = None,
    ) -> None:
        self._store = store
        self._updater = FeedbackVectorUpdater(store, config)
        self._log = logger.bind(component="feedback", subcomponent="service")

    def handle_feedback(
        self,
        user_id: str,
        paper_id: str,
        action: FeedbackAction,
        weight: float = 1.0,
        context: str | None = None,
    ) -> FeedbackOutcome:
        """Record a feedback event and update the user's interest vector.

        Args:
            user_id: User giving feedback.
            paper_id: Paper the feedback refers to.
            action: Feedback action.
            weight: Event weight.
            context: Optional free-form context (e.g. the surface it came from).

        Returns:
            FeedbackOutcome with the recorded event.

        Raises:
            ProfileNotFoundError: If the paper has an embedding but the user
                has no profile. The event is already recorded.
            ConcurrentUpdateError: If the vector update kept losing races.
        """
        event = self._store.append_feedback(
            FeedbackEvent(
                user_id=user_id,
                paper_id=paper_id,
                action=action,
                weight=weight,
                context=context,
            )
        )
        self._log.info(
            "feedback_recorded",
            user_id=user_id,
            paper_id=paper_id,
            action=action.value,
            event_id=event.event_id,
        )

        paper = self._store.get_paper(paper_id)
        if paper is None:
            self._log.warning(
                "feedback_paper_missing", user_id=user_id, paper_id=paper_id
            )
            return FeedbackOutcome(event=event)

        vector = self._updater.update_from_feedback(user_id, paper, action)
        return FeedbackOutcome(event=event, interest_vector=vector)

    def get_history(
        self,
        user_id: str,
        action: FeedbackAction | None = None,
        limit: int | None = None,
    ) -> list[FeedbackEvent]:
        """Get a user's feedback, newest first.

        Args:
            user_id: User whose history to read.
            action: Only return events with this action.
            limit: Maximum number of events.

        Returns:
            Feedback events ordered newest first.
        """
        return self._store.get_feedback_history(user_id, action=action, limit=limit)

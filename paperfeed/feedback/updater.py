"""Online interest-vector learning from feedback.

The interest vector moves by an exponential moving average toward
(positive actions) or away from (negative actions) the embedding of the
paper the user reacted to, and is re-normalized to unit length.
"""

from collections.abc import Sequence

import numpy as np
import structlog

from paperfeed.config.schemas import FeedbackConfig
from paperfeed.store.errors import ConcurrentUpdateError, ProfileNotFoundError
from paperfeed.store.models import FeedbackAction, Paper
from paperfeed.store.protocols import PaperFeedStore
from paperfeed.vector import VectorLengthMismatchError, normalize


logger = structlog.get_logger()


def action_sign(action: FeedbackAction) -> int:
    """Map a feedback action to +1 (reinforce) or -1 (repel)."""
    return 1 if action.is_positive else -1


def ema_update(
    current: Sequence[float],
    paper_embedding: Sequence[float],
    sign: int,
    learning_rate: float = 0.1,
) -> list[float]:
    """Blend the paper embedding into the current interest vector.

    updated = (1 - rate) * current + rate * sign * embedding, then
    normalized to unit length. An empty (never initialized) current vector
    is treated as zeros of the paper's dimensionality.

    Args:
        current: Current interest vector (may be empty).
        paper_embedding: Embedding of the paper acted on.
        sign: +1 to move toward the paper, -1 to move away.
        learning_rate: EMA step size.

    Returns:
        New unit-length vector, or all zeros when the blend cancels out.

    Raises:
        VectorLengthMismatchError: If a non-empty current vector differs
            in length from the embedding, including an all-zero one.
    """
    embedding = np.asarray(paper_embedding, dtype=np.float64)

    if len(current) == 0:
        base = np.zeros_like(embedding)
    else:
        if len(current) != len(embedding):
            raise VectorLengthMismatchError(len(current), len(embedding))
        base = np.asarray(current, dtype=np.float64)

    updated = (1.0 - learning_rate) * base + learning_rate * sign * embedding
    return normalize(updated.tolist())


class FeedbackVectorUpdater:
    """Applies feedback to a user's interest vector with compare-and-swap.

    Each attempt reads the profile, computes the EMA step and writes it
    only if the vector version is unchanged, so concurrent events for one
    user are serialized instead of overwriting each other.
    """

    def __init__(
        self,
        store: PaperFeedStore,
        config: FeedbackConfig | None = None,
    ) -> None:
        """Initialize the updater.

        Args:
            store: Persistence backend providing the conditional write.
            config: Learning rate and retry limit.
        """
        self._store = store
        self._config = config or FeedbackConfig()
        self._log = logger.bind(component="feedback", subcomponent="updater")

    def update_from_feedback(
        self,
        user_id: str,
        paper: Paper,
        action: FeedbackAction,
    ) -> list[float] | None:
        """Move the user's interest vector in response to feedback.

        Args:
            user_id: User who gave the feedback.
            paper: Paper the feedback refers to.
            action: Feedback action.

        Returns:
            The persisted vector, or None when the paper has no embedding.

        Raises:
            ProfileNotFoundError: If the user has no profile.
            ConcurrentUpdateError: If every compare-and-swap attempt lost.
        """
        embedding = paper.embedding
        if not embedding:
            self._log.info(
                "interest_vector_update_skipped",
                user_id=user_id,
                paper_id=paper.paper_id,
                reason="no_embedding",
            )
            return None

        sign = action_sign(action)
        max_retries = self._config.max_retries

        for attempt in range(1, max_retries + 1):
            profile = self._store.get_profile(user_id)
            if profile is None:
                raise ProfileNotFoundError(user_id)

            updated = ema_update(
                profile.interest_vector,
                embedding,
                sign,
                self._config.learning_rate,
            )

            if self._store.compare_and_set_interest_vector(
                user_id, profile.vector_version, updated
            ):
                self._log.info(
                    "interest_vector_updated",
                    user_id=user_id,
                    paper_id=paper.paper_id,
                    action=action.value,
                    sign=sign,
                    vector_version=profile.vector_version + 1,
                    attempt=attempt,
                )
                return updated

            self._log.debug(
                "interest_vector_update_retry",
                user_id=user_id,
                attempt=attempt,
                max_retries=max_retries,
            )

        self._log.warning(
            "interest_vector_update_failed",
            user_id=user_id,
            paper_id=paper.paper_id,
            attempts=max_retries,
        )
        raise ConcurrentUpdateError(user_id, max_retries)

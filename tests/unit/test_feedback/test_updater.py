"""Unit tests for interest-vector learning."""

import threading
from collections.abc import Sequence

import pytest

from paperfeed.config import FeedbackConfig
from paperfeed.feedback import FeedbackVectorUpdater, action_sign, ema_update
from paperfeed.store import (
    ConcurrentUpdateError,
    FeedbackAction,
    InMemoryStore,
    ProfileNotFoundError,
)
from paperfeed.vector import VectorLengthMismatchError, dot_product, magnitude
from tests.helpers.factories import make_paper, make_profile


class _ContendedStore(InMemoryStore):
    """Store whose first conditional writes lose to a phantom writer."""

    def __init__(self, failures: int) -> None:
        super().__init__()
        self.failures = failures
        self.cas_calls = 0

    def compare_and_set_interest_vector(
        self, user_id: str, expected_version: int, vector: Sequence[float]
    ) -> bool:
        self.cas_calls += 1
        if self.cas_calls <= self.failures:
            return False
        return super().compare_and_set_interest_vector(
            user_id, expected_version, vector
        )


class TestActionSign:
    """Tests for action_sign."""

    @pytest.mark.parametrize("action", [FeedbackAction.SAVE, FeedbackAction.THUMBS_UP])
    def test_positive(self, action: FeedbackAction) -> None:
        assert action_sign(action) == 1

    @pytest.mark.parametrize(
        "action",
        [FeedbackAction.DISMISS, FeedbackAction.THUMBS_DOWN, FeedbackAction.HIDE],
    )
    def test_negative(self, action: FeedbackAction) -> None:
        assert action_sign(action) == -1


class TestEmaUpdate:
    """Tests for ema_update."""

    def test_bootstraps_from_empty_vector(self) -> None:
        """Test an uninitialized vector moves toward the first paper."""
        assert ema_update([], [3.0, 4.0], 1) == pytest.approx([0.6, 0.8])

    def test_negative_bootstrap(self) -> None:
        """Test a first negative event points away from the paper."""
        assert ema_update([0.0, 0.0], [3.0, 4.0], -1) == pytest.approx([-0.6, -0.8])

    def test_save_moves_toward_paper(self) -> None:
        """Test positive feedback raises alignment with the paper."""
        current = [1.0, 0.0]
        embedding = [0.0, 1.0]
        updated = ema_update(current, embedding, 1)

        assert dot_product(updated, embedding) > dot_product(current, embedding)
        assert magnitude(updated) == pytest.approx(1.0)

    def test_hide_moves_away_from_paper(self) -> None:
        """Test negative feedback lowers alignment with the paper."""
        current = [1.0, 0.0]
        embedding = [0.70710678, 0.70710678]
        updated = ema_update(current, embedding, -1)

        assert dot_product(updated, embedding) < dot_product(current, embedding)
        assert magnitude(updated) == pytest.approx(1.0)

    def test_cancelled_update_stays_zero(self) -> None:
        """Test a blend that cancels out yields the zero vector."""
        updated = ema_update([1.0, 0.0], [1.0, 0.0], -1, learning_rate=0.5)
        assert updated == [0.0, 0.0]

    def test_learning_rate(self) -> None:
        """Test the configured step size is applied before normalizing."""
        updated = ema_update([1.0, 0.0], [0.0, 1.0], 1, learning_rate=0.5)
        assert updated == pytest.approx([0.70710678, 0.70710678])

    def test_dimension_mismatch(self) -> None:
        """Test mismatched dimensionality is rejected."""
        with pytest.raises(VectorLengthMismatchError):
            ema_update([1.0, 0.0], [1.0, 0.0, 0.0], 1)

    def test_zero_vector_dimension_mismatch(self) -> None:
        """Test an all-zero vector of another length is rejected, not resized."""
        with pytest.raises(VectorLengthMismatchError):
            ema_update([0.0, 0.0, 0.0], [1.0, 0.0, 0.0, 0.0, 0.0], 1)


class TestFeedbackVectorUpdater:
    """Tests for FeedbackVectorUpdater."""

    def test_writes_vector_and_bumps_version(self) -> None:
        """Test a successful update persists the vector."""
        store = InMemoryStore()
        store.save_profile(make_profile())
        paper = make_paper(embedding=[3.0, 4.0])

        vector = FeedbackVectorUpdater(store).update_from_feedback(
            "user-1", paper, FeedbackAction.SAVE
        )

        profile = store.get_profile("user-1")
        assert vector == pytest.approx([0.6, 0.8])
        assert profile.interest_vector == vector
        assert profile.vector_version == 1

    def test_paper_without_embedding_is_noop(self) -> None:
        """Test papers without an embedding never touch the vector."""
        store = InMemoryStore()
        store.save_profile(make_profile(interest_vector=[1.0, 0.0]))

        result = FeedbackVectorUpdater(store).update_from_feedback(
            "user-1", make_paper(enriched=False), FeedbackAction.HIDE
        )

        assert result is None
        assert store.get_profile("user-1").vector_version == 0

    def test_missing_profile(self) -> None:
        """Test updating an unknown user fails."""
        with pytest.raises(ProfileNotFoundError) as exc_info:
            FeedbackVectorUpdater(InMemoryStore()).update_from_feedback(
                "ghost", make_paper(embedding=[1.0]), FeedbackAction.SAVE
            )
        assert exc_info.value.user_id == "ghost"

    def test_retries_after_conflict(self) -> None:
        """Test a lost compare-and-swap is retried."""
        store = _ContendedStore(failures=2)
        store.save_profile(make_profile())

        vector = FeedbackVectorUpdater(store).update_from_feedback(
            "user-1", make_paper(embedding=[1.0, 0.0]), FeedbackAction.SAVE
        )

        assert vector == pytest.approx([1.0, 0.0])
        assert store.cas_calls == 3

    def test_gives_up_after_max_retries(self) -> None:
        """Test persistent conflicts raise ConcurrentUpdateError."""
        store = _ContendedStore(failures=10)
        store.save_profile(make_profile())
        updater = FeedbackVectorUpdater(store, FeedbackConfig(max_retries=3))

        with pytest.raises(ConcurrentUpdateError) as exc_info:
            updater.update_from_feedback(
                "user-1", make_paper(embedding=[1.0, 0.0]), FeedbackAction.SAVE
            )

        assert exc_info.value.attempts == 3
        assert store.get_profile("user-1").vector_version == 0

    def test_concurrent_updates_are_not_lost(self) -> None:
        """Test every concurrent event results in exactly one vector write."""
        store = InMemoryStore()
        store.save_profile(make_profile())
        updater = FeedbackVectorUpdater(store, FeedbackConfig(max_retries=50))
        paper = make_paper(embedding=[0.6, 0.8])

        def apply_events() -> None:
            for _ in range(5):
                updater.update_from_feedback("user-1", paper, FeedbackAction.SAVE)

        threads = [threading.Thread(target=apply_events) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert store.get_profile("user-1").vector_version == 20

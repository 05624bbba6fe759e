"""
Test suite for JobTracker.

Tests stage progress mapping, monotonic best-effort progress writes and
cooperative cancellation at checkpoints. Uses a mocked JobStore.

System role: Verification of job progress and cancellation tracking
"""

import uuid
from unittest.mock import AsyncMock

import pytest

from edugen.core.exceptions import JobCancelledError
from edugen.core.job_tracker import STAGE_PROGRESS, JobTracker


@pytest.fixture
def mock_job_store() -> AsyncMock:
    """Provide mock JobStore with no cancellation requested."""
    store = AsyncMock()
    store.is_cancel_requested = AsyncMock(return_value=False)
    store.update_progress = AsyncMock(return_value=True)
    return store


@pytest.fixture
def tracker(mock_job_store: AsyncMock) -> JobTracker:
    return JobTracker(mock_job_store, uuid.uuid4(), "worker-1")


class TestJobTrackerCheckpoint:
    """Test suite for JobTracker.checkpoint()."""

    @pytest.mark.asyncio
    async def test_checkpoint_should_record_stage_progress(
        self, tracker: JobTracker, mock_job_store: AsyncMock
    ) -> None:
        """Test reaching a stage writes its mapped progress."""
        # Act
        await tracker.checkpoint("generation")

        # Assert
        mock_job_store.update_progress.assert_awaited_once_with(
            tracker.job_id, "worker-1", STAGE_PROGRESS["generation"]
        )
        assert tracker.progress == 50

    @pytest.mark.asyncio
    async def test_checkpoint_should_not_write_lower_progress(
        self, tracker: JobTracker, mock_job_store: AsyncMock
    ) -> None:
        """Test progress never moves backwards."""
        # Arrange
        await tracker.checkpoint("generation")
        mock_job_store.update_progress.reset_mock()

        # Act
        await tracker.checkpoint("retrieval")

        # Assert
        mock_job_store.update_progress.assert_not_awaited()
        assert tracker.progress == 50

    @pytest.mark.asyncio
    async def test_checkpoint_should_raise_when_cancel_requested(
        self, tracker: JobTracker, mock_job_store: AsyncMock
    ) -> None:
        """Test cancellation surfaces as JobCancelledError naming the stage."""
        # Arrange
        mock_job_store.is_cancel_requested.return_value = True

        # Act
        with pytest.raises(JobCancelledError) as exc_info:
            await tracker.checkpoint("embedding")

        # Assert
        assert exc_info.value.details["stage"] == "embedding"
        assert exc_info.value.to_error_detail()["code"] == "cancelled"
        mock_job_store.update_progress.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_cancel_check_should_not_stop_job(
        self, tracker: JobTracker, mock_job_store: AsyncMock
    ) -> None:
        """Test a database hiccup during the cancel check is tolerated."""
        # Arrange
        mock_job_store.is_cancel_requested.side_effect = RuntimeError("db down")

        # Act
        await tracker.checkpoint("retrieval")

        # Assert
        assert tracker.progress == 25


class TestJobTrackerProgress:
    """Test suite for JobTracker progress writes."""

    @pytest.mark.asyncio
    async def test_failed_progress_write_should_be_ignored(
        self, tracker: JobTracker, mock_job_store: AsyncMock
    ) -> None:
        """Test progress writes are best-effort."""
        # Arrange
        mock_job_store.update_progress.side_effect = RuntimeError("db down")

        # Act
        await tracker.set_progress(40)

        # Assert
        assert tracker.progress == 0

    @pytest.mark.asyncio
    async def test_track_progress_should_interpolate_within_range(
        self, tracker: JobTracker, mock_job_store: AsyncMock
    ) -> None:
        """Test batch progress maps item counts onto a progress range."""
        # Act
        await tracker.track_progress(1, 2, start=90, end=100)

        # Assert
        mock_job_store.update_progress.assert_awaited_once_with(tracker.job_id, "worker-1", 95)

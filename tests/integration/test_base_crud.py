"""
Test suite for BaseCRUD generic database operations.

Tests basic CRUD functionality: create, read (by ID and all), conditional
update, delete, exists. Uses async fixtures with SQLAlchemy mocking to
verify correct query behavior.

System role: Verification of generic database layer foundation
"""

import uuid
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from edugen.boundary.db.CRUD.base_crud import BaseCRUD
from edugen.boundary.db.models.job_model import JobModel
from edugen.models.job import JobStatus


@pytest.fixture
def base_crud() -> BaseCRUD:
    """Provide BaseCRUD instance for testing."""
    return BaseCRUD(JobModel)


@pytest.fixture
def mock_session() -> AsyncSession:
    """Provide mock async database session."""
    return AsyncMock(spec=AsyncSession)


@pytest.fixture
def sample_id() -> uuid.UUID:
    """Provide sample UUID for testing."""
    return uuid.uuid4()


def _rowcount_result(rowcount: int) -> MagicMock:
    result = MagicMock()
    result.rowcount = rowcount
    return result


def _scalar_result(value: Any) -> MagicMock:
    result = MagicMock()
    result.scalar_one_or_none = MagicMock(return_value=value)
    return result


class TestBaseCRUDCreate:
    """Test suite for BaseCRUD.create() method."""

    @pytest.mark.asyncio
    async def test_create_should_flush_before_refresh(
        self, base_crud: BaseCRUD, mock_session: AsyncSession
    ) -> None:
        """Test flush is called before refresh to ensure ID generation."""
        # Arrange
        call_order = []

        async def flush_effect() -> None:
            call_order.append("flush")

        async def refresh_effect(obj: Any) -> None:
            call_order.append("refresh")

        mock_session.flush = AsyncMock(side_effect=flush_effect)
        mock_session.refresh = AsyncMock(side_effect=refresh_effect)

        # Act
        instance = await base_crud.create(mock_session, status=JobStatus.QUEUED)

        # Assert
        mock_session.add.assert_called_once_with(instance)
        assert call_order == ["flush", "refresh"]
        assert instance.status is JobStatus.QUEUED


class TestBaseCRUDGetByID:
    """Test suite for BaseCRUD.get_by_id() method."""

    @pytest.mark.asyncio
    async def test_get_by_id_should_return_model_when_found(
        self, base_crud: BaseCRUD, mock_session: AsyncSession, sample_id: uuid.UUID
    ) -> None:
        """Test get_by_id returns model instance when ID exists."""
        # Arrange
        mock_instance = MagicMock()
        mock_instance.id = sample_id
        mock_session.execute = AsyncMock(return_value=_scalar_result(mock_instance))

        # Act
        result = await base_crud.get_by_id(mock_session, sample_id)

        # Assert
        assert result == mock_instance
        mock_session.execute.assert_called_once()

    @pytest.mark.asyncio
    async def test_get_by_id_should_reload_existing_rows(
        self, base_crud: BaseCRUD, mock_session: AsyncSession, sample_id: uuid.UUID
    ) -> None:
        """Test the SELECT asks for populate_existing so stale identity-map rows are refreshed."""
        # Arrange
        mock_session.execute = AsyncMock(return_value=_scalar_result(None))

        # Act
        await base_crud.get_by_id(mock_session, sample_id)

        # Assert
        stmt = mock_session.execute.call_args.args[0]
        assert stmt.get_execution_options()["populate_existing"] is True


class TestBaseCRUDGetAll:
    """Test suite for BaseCRUD.get_all() method."""

    @pytest.mark.asyncio
    async def test_get_all_should_return_all_records(
        self, base_crud: BaseCRUD, mock_session: AsyncSession
    ) -> None:
        """Test get_all returns sequence of all models."""
        # Arrange
        instances = [MagicMock(), MagicMock(), MagicMock()]
        mock_scalars = MagicMock()
        mock_scalars.all = MagicMock(return_value=instances)
        mock_result = MagicMock()
        mock_result.scalars = MagicMock(return_value=mock_scalars)
        mock_session.execute = AsyncMock(return_value=mock_result)

        # Act
        result = await base_crud.get_all(mock_session, limit=10, offset=0)

        # Assert
        assert result == instances


class TestBaseCRUDUpdate:
    """Test suite for BaseCRUD.update_where() and update_by_id()."""

    @pytest.mark.asyncio
    async def test_update_where_should_return_rowcount(
        self, base_crud: BaseCRUD, mock_session: AsyncSession, sample_id: uuid.UUID
    ) -> None:
        """Test the caller learns whether its expected state still held."""
        # Arrange
        mock_session.execute = AsyncMock(return_value=_rowcount_result(0))

        # Act
        updated = await base_crud.update_where(
            mock_session,
            JobModel.id == sample_id,
            JobModel.version == 3,
            progress=50,
        )

        # Assert
        assert updated == 0

    @pytest.mark.asyncio
    async def test_update_by_id_should_return_reloaded_model_when_found(
        self, base_crud: BaseCRUD, mock_session: AsyncSession, sample_id: uuid.UUID
    ) -> None:
        """Test update_by_id issues UPDATE then re-reads the row."""
        # Arrange
        updated_instance = MagicMock()
        mock_session.execute = AsyncMock(
            side_effect=[_rowcount_result(1), _scalar_result(updated_instance)]
        )

        # Act
        result = await base_crud.update_by_id(mock_session, sample_id, progress=10)

        # Assert
        assert result == updated_instance
        assert mock_session.execute.await_count == 2

    @pytest.mark.asyncio
    async def test_update_by_id_should_return_none_when_not_found(
        self, base_crud: BaseCRUD, mock_session: AsyncSession, sample_id: uuid.UUID
    ) -> None:
        """Test update_by_id returns None without a follow-up read."""
        # Arrange
        mock_session.execute = AsyncMock(return_value=_rowcount_result(0))

        # Act
        result = await base_crud.update_by_id(mock_session, sample_id, progress=10)

        # Assert
        assert result is None
        mock_session.execute.assert_awaited_once()


class TestBaseCRUDDeleteAndExists:
    """Test suite for BaseCRUD.delete_by_id() and exists()."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("rowcount,expected", [(1, True), (0, False)])
    async def test_delete_by_id_should_report_rowcount(
        self,
        base_crud: BaseCRUD,
        mock_session: AsyncSession,
        sample_id: uuid.UUID,
        rowcount: int,
        expected: bool,
    ) -> None:
        """Test delete_by_id returns whether a row was removed."""
        # Arrange
        mock_session.execute = AsyncMock(return_value=_rowcount_result(rowcount))

        # Act
        result = await base_crud.delete_by_id(mock_session, sample_id)

        # Assert
        assert result is expected

    @pytest.mark.asyncio
    async def test_exists_should_return_true_when_id_found(
        self, base_crud: BaseCRUD, mock_session: AsyncSession, sample_id: uuid.UUID
    ) -> None:
        """Test exists returns True when ID exists in database."""
        # Arrange
        mock_session.execute = AsyncMock(return_value=_scalar_result(sample_id))

        # Act & Assert
        assert await base_crud.exists(mock_session, sample_id) is True

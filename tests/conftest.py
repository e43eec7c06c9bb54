from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import Mock, patch

import pytest

from rehttp.cancellation import CancellationToken
from rehttp.utils.structured_logging import clear_correlation_id
from tests.helpers import ScriptedServer

if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture
def mock_wait() -> Generator[Mock, None, None]:
    """Patch CancellationToken.wait to skip backoff waits.

    The mock is a class attribute, so recorded calls do not include
    ``self``: ``mock_wait.assert_called_once_with(0.2)``.
    """
    with patch.object(CancellationToken, "wait", return_value=False) as mock:
        yield mock


@pytest.fixture
def server() -> ScriptedServer:
    """Create an offline server answering 200 unless scripted."""
    return ScriptedServer()


@pytest.fixture(autouse=True)
def _clean_correlation_id() -> Generator[None, None, None]:
    clear_correlation_id()
    yield
    clear_correlation_id()

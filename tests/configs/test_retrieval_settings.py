"""
Test suite for retrieval policy settings.

System role: Verification of candidate limits and deep-mode k bounds
"""

import pytest

from askrag.configs.retrieval import RetrievalSettings


@pytest.fixture
def settings() -> RetrievalSettings:
    """Provide retrieval settings with defaults."""
    return RetrievalSettings()


class TestCandidateLimit:
    """Test suite for RetrievalSettings.candidate_limit."""

    @pytest.mark.parametrize(
        ("k", "expected"),
        [
            (1, 100),
            (40, 120),
            (500, 1000),
        ],
    )
    def test_limit_should_be_triple_k_between_floor_and_cap(
        self, settings: RetrievalSettings, k: int, expected: int
    ) -> None:
        assert settings.candidate_limit(k) == expected


class TestDeepK:
    """Test suite for RetrievalSettings.deep_k."""

    def test_small_k_should_be_raised_to_minimum(self, settings: RetrievalSettings) -> None:
        assert settings.deep_k(3, 1000) == 10

    def test_large_k_should_be_capped(self, settings: RetrievalSettings) -> None:
        assert settings.deep_k(30, 1000) == 50

    def test_should_not_exceed_store_size(self, settings: RetrievalSettings) -> None:
        assert settings.deep_k(30, 7) == 7

    def test_empty_store_should_keep_multiplied_k(self, settings: RetrievalSettings) -> None:
        assert settings.deep_k(5, 0) == 15

"""
Test suite for the paragraph chunker.

System role: Verification of chunk boundaries before embedding
"""

from askrag.core.chunker import chunk_text


class TestChunkText:
    """Test suite for chunk_text."""

    def test_empty_text_should_yield_no_chunks(self) -> None:
        assert chunk_text("", 100) == []
        assert chunk_text("\n  \n\n", 100) == []

    def test_short_paragraphs_should_be_joined(self) -> None:
        # Act
        chunks = chunk_text("alpha\n\n  beta  \ngamma", 100)

        # Assert
        assert chunks == ["alpha\nbeta\ngamma"]

    def test_chunk_should_close_when_limit_is_exceeded(self) -> None:
        # Arrange
        text = "aaaa\nbbbb\ncccc"

        # Act
        chunks = chunk_text(text, 9)

        # Assert
        assert chunks == ["aaaa\nbbbb", "cccc"]

    def test_long_paragraph_should_form_its_own_chunk(self) -> None:
        # Arrange
        long_line = "x" * 50

        # Act
        chunks = chunk_text(f"short\n{long_line}\nend", 10)

        # Assert
        assert chunks == ["short", long_line, "end"]

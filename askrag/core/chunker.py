"""
Paragraph chunker.

Dependencies: None
System role: Splits plain text into bounded chunks before embedding
"""


def chunk_text(text: str, max_len: int) -> list[str]:
    """
    Split text into chunks of at most max_len characters where possible.

    Lines are trimmed and blank lines dropped; paragraphs are joined with a
    newline while the chunk stays within max_len. A single paragraph longer
    than max_len becomes its own chunk.

    Args:
        text: Input text
        max_len: Target chunk length in characters

    Returns:
        list[str]: Chunks in document order
    """
    chunks: list[str] = []
    buffer: list[str] = []
    size = 0
    for line in text.split("\n"):
        paragraph = line.strip()
        if not paragraph:
            continue
        if buffer and size + len(paragraph) + 1 > max_len:
            chunks.append("\n".join(buffer))
            buffer, size = [], 0
        if buffer:
            size += 1
        buffer.append(paragraph)
        size += len(paragraph)
    if buffer:
        chunks.append("\n".join(buffer))
    return chunks

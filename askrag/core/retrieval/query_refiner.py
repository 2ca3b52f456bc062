"""
Question to search-query refinement.

Recognizes "about-entity" phrasings and reduces them to the entity name,
keeping the casing the user typed.

Dependencies: re (stdlib)
System role: First step of the adaptive retrieval procedure
"""

import re

ENTITY_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"was weißt du über (.+)",
        r"wer ist (.+)",
        r"erzähl mir von (.+)",
        r"tell me about (.+)",
        r"who is (.+)",
    )
]


def refine_search_query(question: str) -> str:
    """
    Extract the entity from an about-entity question.

    Trailing question marks and periods are dropped from the entity.
    Questions matching no pattern are returned trimmed.

    Examples:
        >>> refine_search_query("wer ist Mars")
        'Mars'
        >>> refine_search_query("Tell me about Ada Lovelace?")
        'Ada Lovelace'
    """
    question = question.strip()
    for pattern in ENTITY_PATTERNS:
        match = pattern.search(question)
        if match:
            entity = match.group(1).strip().rstrip("?.!").strip()
            if entity:
                return entity
    return question

"""
LLM-arbitrated retrieval decision.

Asks the completion backend whether the question can be answered directly
or needs (different) retrieval, and parses its single JSON reply.

Dependencies: langchain_core, pydantic
System role: Arbitration step of the adaptive retrieval procedure
"""

import json
import logging

from langchain_core.messages import HumanMessage
from pydantic import ValidationError as PydanticValidationError

from askrag.boundary.llm.client import LLMClient
from askrag.core.exceptions import DecisionParseError
from askrag.models.chunk import ChunkHit
from askrag.models.retrieval import RetrievalAction, RetrievalDecision

logger = logging.getLogger(__name__)

ARBITRATION_PROMPT = """You are an analysis agent. Given a user question and a short summary of retrieval candidates, decide whether the assistant can answer directly or needs more retrieval.

Return ONLY a single JSON object and nothing else (no explanation, no extra text). Examples:
    {"action":"ANSWER_DIRECT"}
    {"action":"RETRIEVE_MORE","k":10,"threshold":0.6,"query":"Ettling"}
"""


def summarize_candidates(hits: list[ChunkHit], top_n: int) -> str:
    """Compact candidate list: 'article (score=0.xxxx); ...'."""
    return "; ".join(f"{hit.article} (score={hit.score:.4f})" for hit in hits[:top_n])


def parse_decision(text: str) -> RetrievalDecision:
    """
    Parse an arbitration reply.

    The first JSON object in the text wins; trailing text is ignored. A
    reply without JSON that names ANSWER_DIRECT is read as that action.

    Raises:
        DecisionParseError: If no valid decision can be read
    """
    start = text.find("{")
    if start == -1:
        if "ANSWER_DIRECT" in text.upper():
            return RetrievalDecision(action=RetrievalAction.ANSWER_DIRECT)
        raise DecisionParseError("arbitration reply contains no JSON object", {"reply": text[:200]})
    try:
        payload, _ = json.JSONDecoder().raw_decode(text, start)
    except json.JSONDecodeError as e:
        raise DecisionParseError(f"arbitration reply is not valid JSON: {e}", {"reply": text[:200]}) from e
    if not isinstance(payload, dict):
        raise DecisionParseError("arbitration reply is not a JSON object")

    action = str(payload.get("action", "")).strip().upper()
    try:
        return RetrievalDecision(
            action=action,
            k=int(payload.get("k") or 0),
            threshold=float(payload.get("threshold") or 0.0),
            query=str(payload.get("query") or ""),
        )
    except (PydanticValidationError, TypeError, ValueError) as e:
        raise DecisionParseError(f"invalid arbitration decision: {e}", {"reply": text[:200]}) from e


async def analyze_question(client: LLMClient, question: str, summary: str) -> RetrievalDecision:
    """
    Ask the backend for a retrieval decision.

    Raises:
        BackendUnavailableError: If the backend call fails
        DecisionParseError: If the reply cannot be parsed
    """
    user = f"Question: {question}\n\nCandidates: {summary}"
    reply = await client.complete(ARBITRATION_PROMPT, [HumanMessage(content=user)])
    decision = parse_decision(reply)
    logger.info(
        f"{__name__}:analyze_question - {decision.action.value}",
        extra={"k": decision.k, "threshold": decision.threshold},
    )
    return decision

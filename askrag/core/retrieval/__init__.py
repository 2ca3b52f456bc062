"""
Adaptive retrieval: query refinement, LLM arbitration and context assembly.
"""

from askrag.core.retrieval.context_assembler import ContextAssembler
from askrag.core.retrieval.decision import analyze_question, parse_decision
from askrag.core.retrieval.query_refiner import refine_search_query

__all__ = ["ContextAssembler", "analyze_question", "parse_decision", "refine_search_query"]

"""
Tool marker protocol.

Generated answers may request a tool with a marker of the form

    [TOOL_REQUEST]{"tool":"<name>","query":"<query>"}[/TOOL_REQUEST]

All knowledge of that grammar lives in ToolMarkerParser so it can be
replaced (for example by native function calling) without touching the
pipeline.

Dependencies: pydantic
System role: Structured-output parsing for tool requests
"""

import json
import logging
import re

from pydantic import ValidationError as PydanticValidationError

from askrag.boundary.llm.segment_filter import SegmentFilter
from askrag.models.tools import ToolRequest

logger = logging.getLogger(__name__)

MARKER_OPEN = "[TOOL_REQUEST]"
MARKER_CLOSE = "[/TOOL_REQUEST]"
MARKER_EXAMPLE = f'{MARKER_OPEN}{{"tool":"<name>","query":"<query>"}}{MARKER_CLOSE}'


class ToolMarkerParser:
    """Finds, hides and strips tool markers in free-form answer text."""

    span_re = re.compile(r"\[TOOL_REQUEST\](.*?)\[/TOOL_REQUEST\]", re.DOTALL)
    decoder = json.JSONDecoder()

    def find(self, text: str) -> ToolRequest | None:
        """
        First well-formed tool request in the text.

        Later markers are ignored; malformed ones are skipped.
        """
        for match in self.span_re.finditer(text):
            body = match.group(1).strip()
            try:
                # Payload strings may contain braces
                payload, end = self.decoder.raw_decode(body)
                if body[end:].strip():
                    raise ValueError("trailing text after payload")
                request = ToolRequest.model_validate(payload)
            except (ValueError, PydanticValidationError) as e:
                logger.debug(f"{__name__}:find - Ignoring malformed marker: {e}")
                continue
            if request.tool.strip():
                return ToolRequest(tool=request.tool.strip(), query=request.query.strip())
        return None

    def strip(self, text: str) -> str:
        """Text with every marker removed."""
        return self.span_re.sub("", text).rstrip()

    def stream_filter(self) -> SegmentFilter:
        """Filter that hides markers from a live token stream."""
        return SegmentFilter(MARKER_OPEN, MARKER_CLOSE, keep_unclosed=True)

    def describe(self) -> str:
        return MARKER_EXAMPLE


default_parser = ToolMarkerParser()

"""Web boundary: HTTP fetchers and HTML text extraction."""

from askrag.boundary.web.fetchers import WebFetcher, expand_template
from askrag.boundary.web.html_text import html_to_text

__all__ = ["WebFetcher", "expand_template", "html_to_text"]

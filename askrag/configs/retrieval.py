"""
Retrieval configuration settings.

Chunking and retrieval policy parameters. The confidence thresholds are
policy knobs, not derived constants.

Dependencies: pydantic, pydantic_settings
System role: Chunk store and context assembler configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from askrag.configs.base import BaseSettings


class RetrievalSettings(BaseSettings):
    """Chunk store and adaptive retrieval configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RETRIEVAL_",
        case_sensitive=False,
        extra="ignore",
    )

    k: int = Field(default=5, ge=1, description="Default number of primary hits")
    chunk_size: int = Field(default=800, ge=50, description="Maximum chunk length in characters")
    embed_batch_size: int = Field(default=16, ge=1, description="Chunks embedded per batch")

    candidate_floor: int = Field(default=100, description="Minimum similarity candidates fetched")
    candidate_cap: int = Field(default=1000, description="Maximum similarity candidates fetched")

    high_confidence_threshold: float = Field(
        default=0.90, description="Score above which hits skip LLM arbitration"
    )
    relaxed_threshold: float = Field(
        default=0.60, description="Score floor for the relaxed fallback and default threshold"
    )
    summary_top_n: int = Field(default=5, description="Candidates summarized for arbitration")

    deep_multiplier: int = Field(default=3, description="k multiplier in deep mode")
    deep_min_k: int = Field(default=10, description="Lower bound for k in deep mode")
    deep_max_k: int = Field(default=50, description="Upper bound for k in deep mode")

    context_separator: str = Field(default="\n---\n", description="Separator between context parts")

    def candidate_limit(self, k: int) -> int:
        """Number of ranked candidates to fetch for a given k."""
        return min(self.candidate_cap, max(self.candidate_floor, 3 * k))

    def deep_k(self, k: int, total_chunks: int) -> int:
        """Expanded k for deep requests, bounded by store size and the deep cap."""
        used = max(k * self.deep_multiplier, self.deep_min_k)
        if total_chunks > 0:
            used = min(used, total_chunks)
        return max(1, min(used, self.deep_max_k))

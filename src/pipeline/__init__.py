"""
Placeholder Pipeline

Three stages, sequential in effect:
1. Fetcher - source bytes from a URL
2. Producers - five JPEG variants and one primitive SVG placeholder
3. Orchestrator - runs both and reports byte-size statistics
"""

from src.pipeline.orchestrator import PlaceholderPipeline

__all__ = ["PlaceholderPipeline"]

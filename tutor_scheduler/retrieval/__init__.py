from .factory import build_pipeline
from .normalize import extract_match_request, normalize_request
from .pipeline import MatchPipeline

__all__ = ["MatchPipeline", "build_pipeline", "extract_match_request", "normalize_request"]

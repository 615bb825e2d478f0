from .stage import DEFAULT_MATCH_DURATION, parse_kickoff, resolve_stage, resolve_ui_bucket
from .transform import derive_match_type, transform_match

__all__ = [
    "DEFAULT_MATCH_DURATION",
    "parse_kickoff",
    "resolve_stage",
    "resolve_ui_bucket",
    "derive_match_type",
    "transform_match",
]

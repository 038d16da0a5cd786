"""Story processing: mention resolution, extraction validation, pipeline"""

from .ambiguity_resolver import (
    MentionMarker,
    ResolutionOutcome,
    Mention,
    MentionResolution,
    AmbiguityResolver,
    COMMON_GIVEN_NAMES,
    parse_mentions,
)
from .extraction_validator import (
    ExtractionValidationError,
    parse_extraction_response,
    enforce_mention_invariant,
    validate_extraction,
    resolve_ambiguity,
    should_auto_accept,
    calculate_duplicate_confidence,
    flag_potential_duplicates,
)
from .story_pipeline import (
    ExtractionRequest,
    SubmissionStatus,
    StoryOutcome,
    StoryPipeline,
    estimate_extraction_cost,
)

__all__ = [
    # mentions
    'MentionMarker',
    'ResolutionOutcome',
    'Mention',
    'MentionResolution',
    'AmbiguityResolver',
    'COMMON_GIVEN_NAMES',
    'parse_mentions',

    # extraction boundary
    'ExtractionValidationError',
    'parse_extraction_response',
    'enforce_mention_invariant',
    'validate_extraction',
    'resolve_ambiguity',
    'should_auto_accept',
    'calculate_duplicate_confidence',
    'flag_potential_duplicates',

    # pipeline
    'ExtractionRequest',
    'SubmissionStatus',
    'StoryOutcome',
    'StoryPipeline',
    'estimate_extraction_cost',
]

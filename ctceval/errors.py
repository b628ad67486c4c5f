"""Errors raised when evaluating tracking and segmentation results.

Errors that make a measure impossible to compute (`InputFormatError`, `ComputationPreconditionError`)
always abort the calculation. `ConsistencyError` and its subtypes are raised only if the caller
decides that inconsistent data is fatal; they carry all violations that were found.
"""
from typing import Dict, Iterable, List, NamedTuple, Optional, Type


class EvaluationError(Exception):
    """Base class for all errors raised by ctceval.
    """
    category = "error"


class InputFormatError(EvaluationError, ValueError):
    """A track file, image or image pair cannot be used as input.
    """
    category = "input_format"


class ComputationPreconditionError(EvaluationError, RuntimeError):
    """The data is readable but a measure is not defined for it, e.g. because there are no frames.
    """
    category = "precondition"


class Violation(NamedTuple):
    """A single inconsistency found in a track file or in the label images.
    """
    category: str
    message: str
    label: int = 0
    frame: Optional[int] = None

    def __str__(self):
        return self.message


class ConsistencyError(EvaluationError, ValueError):
    """The track file and label images are structurally inconsistent.

    Args:
        message: The error message.
        violations: All violations that were found.
    """
    category = "consistency"

    def __init__(self, message: str, violations: Iterable[Violation] = ()):
        super().__init__(message)
        self.violations = list(violations)


class ParentError(ConsistencyError):
    """A track references a parent that does not exist, itself, or a parent that does not end before it starts.
    """
    category = "parent"


class DuplicateLabelError(ConsistencyError):
    """A track id is listed more than once, or two tracks claim the same label at the same frame.
    """
    category = "duplicate_label"


class LabelMismatchError(ConsistencyError):
    """The labels found in the images do not agree with the frame ranges of the track file.
    """
    category = "label_mismatch"


class EmptyImageError(ConsistencyError):
    """An image contains only background although empty images are not allowed.
    """
    category = "empty_image"


# violation categories
INVALID_RANGE = "invalid_range"
SELF_PARENT = "self_parent"
MISSING_PARENT = "missing_parent"
PARENT_ORDER = "parent_order"
DUPLICATE_LABEL = "duplicate_label"
SIBLING_CONFLICT = "sibling_conflict"
UNKNOWN_LABEL = "unknown_label"
LABEL_OUTSIDE_TRACK = "label_outside_track"
MISSING_LABEL = "missing_label"
EMPTY_IMAGE = "empty_image"

VIOLATION_ERRORS: Dict[str, Type[ConsistencyError]] = {
    INVALID_RANGE: ParentError,
    SELF_PARENT: ParentError,
    MISSING_PARENT: ParentError,
    PARENT_ORDER: ParentError,
    DUPLICATE_LABEL: DuplicateLabelError,
    SIBLING_CONFLICT: DuplicateLabelError,
    UNKNOWN_LABEL: LabelMismatchError,
    LABEL_OUTSIDE_TRACK: LabelMismatchError,
    MISSING_LABEL: LabelMismatchError,
    EMPTY_IMAGE: EmptyImageError,
}
"""@private
"""


def consistency_error(message: str, violations: List[Violation]) -> ConsistencyError:
    """Create the most specific consistency error for a list of violations.

    Args:
        message: The error message.
        violations: The violations, must not be empty.

    Returns:
        The error. Its type is the common subtype of all violations, or `ConsistencyError`
            if the violations belong to different subtypes.
    """
    assert len(violations) > 0
    error_types = {VIOLATION_ERRORS[violation.category] for violation in violations}
    error_type = error_types.pop() if len(error_types) == 1 else ConsistencyError
    return error_type(message, violations)

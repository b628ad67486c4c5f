from dataclasses import dataclass, fields
from typing import FrozenSet, Optional, Sequence, Union


@dataclass(frozen=True)
class PenaltyConfig:
    """The weights of the six graph edit operations of the AOGM measure.

    The default values are the ones used by the Cell Tracking Challenge for the TRA measure.

    Args:
        split: Penalty for splitting a result object that covers several ground-truth objects.
        false_negative: Penalty for adding a missing object.
        false_positive: Penalty for deleting a spurious object.
        redundant_edge: Penalty for deleting a result edge without ground-truth counterpart.
        missing_edge: Penalty for adding a ground-truth edge that is missing in the result.
        wrong_semantics_edge: Penalty for changing an edge from temporal to parental or vice versa.
    """
    split: float = 5.0
    false_negative: float = 10.0
    false_positive: float = 1.0
    redundant_edge: float = 1.0
    missing_edge: float = 1.5
    wrong_semantics_edge: float = 1.0

    def __post_init__(self):
        for field in fields(self):
            value = getattr(self, field.name)
            if value < 0:
                raise ValueError(f"Penalty {field.name} must be non-negative, got {value}")

    @classmethod
    def ctc(cls) -> "PenaltyConfig":
        """The penalties used by the Cell Tracking Challenge.
        """
        return cls()

    @classmethod
    def from_weights(cls, weights: Sequence[float]) -> "PenaltyConfig":
        """Create the penalties from six weights, in the order
        split, false negative, false positive, redundant edge, missing edge, wrong semantics edge.
        """
        if len(weights) != 6:
            raise ValueError(f"Expected 6 penalty weights, got {len(weights)}")
        return cls(*(float(weight) for weight in weights))

    def as_tuple(self):
        return tuple(getattr(self, field.name) for field in fields(self))


def to_penalty_config(penalty: Union[None, PenaltyConfig, Sequence[float]]) -> PenaltyConfig:
    """@private
    """
    if penalty is None:
        return PenaltyConfig.ctc()
    if isinstance(penalty, PenaltyConfig):
        return penalty
    return PenaltyConfig.from_weights(penalty)


@dataclass(frozen=True)
class EvaluationOptions:
    """Options shared by all measures.

    Args:
        do_consistency_check: Whether to check the consistency of ground-truth and result
            before computing a tracking measure.
        do_log_reports: Whether to log the discrepancies between ground-truth and result, organized by category.
        do_matching_reports: Whether to log which result object matches which ground-truth object.
        stop_on_empty_images: Whether an image without any object is an error.
            The official measures do not accept empty images.
        restrict_to_timepoints: Only evaluate these timepoints. By default all timepoints are evaluated.
        abort_on_inconsistency: Whether inconsistent data aborts the computation
            or is only reported and the measure computed anyway.
        report_all_result_labels: Whether the segmentation report also lists the result objects.
        n_threads: The number of threads used to read and match the images, by default all cores are used.
        verbose: Whether to show a progress bar.
    """
    do_consistency_check: bool = True
    do_log_reports: bool = True
    do_matching_reports: bool = False
    stop_on_empty_images: bool = False
    restrict_to_timepoints: Optional[FrozenSet[int]] = None
    abort_on_inconsistency: bool = True
    report_all_result_labels: bool = False
    n_threads: Optional[int] = None
    verbose: bool = False

    def __post_init__(self):
        # normalize the timepoints so that options are hashable and empty means everything
        timepoints = self.restrict_to_timepoints
        if timepoints is not None:
            timepoints = frozenset(int(tp) for tp in timepoints) or None
            object.__setattr__(self, "restrict_to_timepoints", timepoints)


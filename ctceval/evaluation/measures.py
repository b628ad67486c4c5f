"""The measures share one interface: `Measure.compute(inputs, cache) -> (result, cache)`.

The caller selects the measures explicitly and passes the cache returned by one computation
on to the next one, so that the track files and the frame matchings are loaded only once
for a ground-truth and result pair.
"""
import logging
import warnings
from abc import ABC, abstractmethod
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np

from .. import errors
from ..errors import ComputationPreconditionError, EmptyImageError, Violation
from ..io import sequence
from ..io.track_file import read_track_file
from ..tracking.consistency import ConsistencyReport, check_track_consistency
from ..util import format_timepoints, run_per_frame
from . import bio
from .aogm import compute_aogm, normalize_aogm
from .cache import TrackDataCache, check_shapes, get_cache
from .config import EvaluationOptions, PenaltyConfig, to_penalty_config
from .det import VERTEX_OPERATIONS, compute_det
from .seg import compute_seg

logger = logging.getLogger(__name__)


class MeasureInputs(NamedTuple):
    """The inputs of a measure computation.
    """
    gt_dir: str
    res_dir: str
    n_digits: int = 3
    options: EvaluationOptions = EvaluationOptions()


class MeasureResult(NamedTuple):
    """The result of a measure computation.
    """
    name: str
    value: float
    report: str
    details: Dict


class Measure(ABC):
    """Base class of all measures.
    """
    name: str = None

    @abstractmethod
    def compute(
        self, inputs: MeasureInputs, cache: Optional[TrackDataCache] = None
    ) -> Tuple[MeasureResult, TrackDataCache]:
        """Compute the measure.

        Args:
            inputs: The folders and options.
            cache: The cache of a previous computation. It is reused if it was created for the same inputs.

        Returns:
            The measure result.
            The cache, to be passed to the next computation.
        """
        pass

    def _get_cache(self, inputs, cache):
        return get_cache(
            cache, inputs.gt_dir, inputs.res_dir, inputs.n_digits, inputs.options.restrict_to_timepoints
        )

    def _finish(self, value, sections, details, options):
        report = "\n".join(section for section in sections if section)
        if options.do_log_reports and report:
            logger.info("%s report:\n%s", self.name, report)
        logger.info("%s: %f", self.name, value)
        return MeasureResult(self.name, value, report, details)


def _empty_image_violations(frames, name, empty):
    return [
        Violation(errors.EMPTY_IMAGE, f"[T={frame}] The {name} image is empty", 0, frame)
        for frame in frames if empty(frame)
    ]


def _raise_on_empty_images(violations):
    if violations:
        raise EmptyImageError(
            f"Found {len(violations)} empty image(s), first: {violations[0].message}", violations
        )


def _warn_unofficial(name, options, penalty=None):
    if options.restrict_to_timepoints is not None:
        warnings.warn(
            f"{name} is evaluated on a subset of timepoints ({format_timepoints(options.restrict_to_timepoints)}), "
            "this is not the official measure"
        )
    if penalty is not None and penalty != PenaltyConfig.ctc():
        warnings.warn(f"{name} is evaluated with custom penalties {penalty.as_tuple()}, this is not the official measure")


class TrackingMeasure(Measure):
    """Base class of the measures computed from the tracking ground-truth.

    Loads the tracks and the frame matchings and checks ground-truth and result
    before the measure itself is computed.
    """

    def compute(self, inputs, cache=None):
        options = inputs.options
        cache = self._get_cache(inputs, cache)
        cache.load_tracks()
        levels = cache.load_levels(options.n_threads, options.verbose)

        sections = []
        if options.do_consistency_check:
            sections.extend(self._check_consistency(cache, options))
        elif options.stop_on_empty_images:
            violations = _empty_image_violations(sorted(levels), "ground-truth", lambda t: levels[t].gt_empty)
            violations += _empty_image_violations(sorted(levels), "result", lambda t: levels[t].res_empty)
            _raise_on_empty_images(violations)

        value, measure_sections, details = self._compute(cache, options)
        sections.extend(measure_sections)
        if options.do_matching_reports:
            sections.append("----------Matching----------")
            sections.extend("\n".join(levels[frame].matching_report()) for frame in sorted(levels))
        return self._finish(value, sections, details, options), cache

    def _check_consistency(self, cache, options) -> List[str]:
        check_empty = options.stop_on_empty_images
        if check_empty not in cache.consistency_reports:
            cache.consistency_reports[check_empty] = (
                check_track_consistency(
                    cache.gt_tracks, cache.gt_frame_labels(), check_empty, name="ground-truth"
                ),
                check_track_consistency(
                    cache.res_tracks, cache.res_frame_labels(), check_empty, name="result"
                ),
            )
        inconsistent = [report for report in cache.consistency_reports[check_empty] if not report.consistent]
        if not inconsistent:
            return []

        violations = [violation for report in inconsistent for violation in report.violations]
        names = " and ".join(report.name for report in inconsistent)
        # empty images stop the computation regardless of the inconsistency policy
        has_empty = any(violation.category == errors.EMPTY_IMAGE for violation in violations)
        if options.abort_on_inconsistency or has_empty:
            raise errors.consistency_error(
                f"The {names} data is inconsistent: {len(violations)} violation(s), first: {violations[0].message}",
                violations,
            )
        warnings.warn(f"The {names} data is inconsistent, {self.name} is computed anyway")
        return [report.report() for report in inconsistent]

    @abstractmethod
    def _compute(self, cache: TrackDataCache, options: EvaluationOptions) -> Tuple[float, List[str], Dict]:
        pass


class AOGMMeasure(TrackingMeasure):
    """The AOGM measure: the weighted number of graph operations needed to turn the result into the ground-truth.

    Args:
        penalty: The penalties of the six graph operations. By default the penalties of the challenge are used.
        normalize: Whether to normalize the value by the AOGM of an empty result to [0, 1], 1 being best.
    """
    name = "AOGM"

    def __init__(self, penalty: Union[None, PenaltyConfig, Sequence[float]] = None, normalize: bool = False):
        self.penalty = to_penalty_config(penalty)
        self.normalize = normalize

    def _compute(self, cache, options):
        n_gt_objects = sum(len(level.gt_sizes) for level in cache.levels.values())
        if n_gt_objects == 0:
            raise ComputationPreconditionError(f"The ground-truth {cache.gt_dir} does not contain any object")
        aogm, empty, operations = compute_aogm(cache.levels, cache.gt_graph(), cache.res_graph(), self.penalty)
        # zero weights for false negatives and missing edges make the normalization undefined
        tra = normalize_aogm(aogm, empty) if self.normalize else None
        value = tra if self.normalize else aogm
        details = {"aogm": aogm, "aogm_empty": empty, "tra": tra, "operations": operations.counts()}
        return value, [operations.report(self.penalty)], details


class TRAMeasure(AOGMMeasure):
    """The TRA measure of the Cell Tracking Challenge: the normalized AOGM.

    Args:
        penalty: The penalties. Custom penalties produce a value that is not the official TRA.
    """
    name = "TRA"

    def __init__(self, penalty: Union[None, PenaltyConfig, Sequence[float]] = None):
        super().__init__(penalty, normalize=True)

    def _compute(self, cache, options):
        _warn_unofficial(self.name, options, self.penalty)
        return super()._compute(cache, options)


class DETMeasure(TrackingMeasure):
    """The DET measure of the Cell Tracking Challenge: the normalized AOGM of the vertex operations.
    """
    name = "DET"

    def __init__(self, penalty: Union[None, PenaltyConfig, Sequence[float]] = None):
        self.penalty = to_penalty_config(penalty)

    def _compute(self, cache, options):
        _warn_unofficial(self.name, options, self.penalty)
        value, operations = compute_det(cache.levels, self.penalty)
        details = {"operations": {op: operations.count(op) for op in VERTEX_OPERATIONS}}
        return value, [operations.report(self.penalty, VERTEX_OPERATIONS)], details


class CTMeasure(TrackingMeasure):
    """The complete tracks measure.
    """
    name = "CT"

    def _compute(self, cache, options):
        value = bio.compute_ct(cache.levels, cache.gt_track_dict(), cache.res_track_dict())
        return value, [], {}


class TFMeasure(TrackingMeasure):
    """The track fractions measure.
    """
    name = "TF"

    def _compute(self, cache, options):
        fractions = bio.track_fractions(cache.levels, cache.gt_track_dict())
        value = bio.compute_tf(cache.levels, cache.gt_track_dict())
        lines = [f"GT_track={tid} fraction={fraction:.6f}" for tid, fraction in fractions.items()]
        return value, ["\n".join(lines)], {"fractions": fractions}


class BCiMeasure(TrackingMeasure):
    """The branching correctness measure.

    Args:
        i: The number of frames by which matching divisions may differ.
    """
    name = "BC"

    def __init__(self, i: int = 2):
        if i < 0:
            raise ValueError(f"The tolerance must be non-negative, got {i}")
        self.i = i
        self.name = f"BC({i})"

    def _compute(self, cache, options):
        gt_tracks, res_tracks = cache.gt_track_dict(), cache.res_track_dict()
        n_matched, n_gt, n_res = bio.match_divisions(cache.levels, gt_tracks, res_tracks, tolerance=self.i)
        value = bio.compute_bci(cache.levels, gt_tracks, res_tracks, self.i)
        details = {"matched": n_matched, "gt_divisions": n_gt, "res_divisions": n_res}
        return value, [f"Matched {n_matched} of {n_gt} GT divisions, found {n_res} RES divisions"], details


class CCAMeasure(TrackingMeasure):
    """The cell cycle accuracy measure.
    """
    name = "CCA"

    def _compute(self, cache, options):
        gt_tracks, res_tracks = cache.gt_track_dict(), cache.res_track_dict()
        value = bio.compute_cca(gt_tracks, res_tracks)
        details = {
            "gt_cycles": bio.cell_cycle_lengths(gt_tracks), "res_cycles": bio.cell_cycle_lengths(res_tracks)
        }
        return value, [], details


class SEGMeasure(Measure):
    """The SEG measure of the Cell Tracking Challenge, computed from the segmentation ground-truth.

    The track files are not needed and no consistency check is done.
    """
    name = "SEG"

    def compute(self, inputs, cache=None):
        options = inputs.options
        cache = self._get_cache(inputs, cache)
        _warn_unofficial(self.name, options)
        frames = cache.load_segmentation_levels(options.n_threads, options.verbose)

        if options.stop_on_empty_images:
            violations = [
                Violation(
                    errors.EMPTY_IMAGE, f"[T={seg_frame.annotation.frame}] The segmentation ground-truth image "
                    f"{seg_frame.annotation.path} is empty", 0, seg_frame.annotation.frame
                )
                for seg_frame in frames if seg_frame.matching.gt_empty
            ]
            result_frames = sorted({seg_frame.annotation.frame for seg_frame in frames if seg_frame.matching.res_empty})
            violations += _empty_image_violations(result_frames, "result", lambda t: True)
            _raise_on_empty_images(violations)

        value, lines = compute_seg(
            [seg_frame.matching for seg_frame in frames],
            [seg_frame.annotation.z for seg_frame in frames],
            report_result_labels=options.report_all_result_labels,
        )
        sections = ["\n".join(lines)]
        if options.do_matching_reports:
            sections.append("----------Matching----------")
            sections.extend("\n".join(seg_frame.matching.matching_report()) for seg_frame in frames)
        n_objects = sum(len(seg_frame.matching.gt_sizes) for seg_frame in frames)
        return self._finish(value, sections, {"n_objects": n_objects}, options), cache


MEASURES = {
    "AOGM": AOGMMeasure,
    "TRA": TRAMeasure,
    "DET": DETMeasure,
    "SEG": SEGMeasure,
    "CT": CTMeasure,
    "TF": TFMeasure,
    "BCi": BCiMeasure,
    "CCA": CCAMeasure,
}
"""The available measures by name.
"""


def get_measure(name: str, **kwargs) -> Measure:
    """Create a measure by name.

    Args:
        name: The name of the measure, one of `MEASURES`.
        kwargs: The keyword arguments of the measure.

    Returns:
        The measure.
    """
    if name not in MEASURES:
        raise ValueError(f"Invalid measure {name}, expected one of {list(MEASURES)}")
    return MEASURES[name](**kwargs)


def calculate(
    gt_dir: str,
    res_dir: str,
    n_digits: int = 3,
    penalty: Union[None, PenaltyConfig, Sequence[float]] = None,
    options: Optional[EvaluationOptions] = None,
    normalize: bool = False,
    cache: Optional[TrackDataCache] = None,
) -> Tuple[float, str]:
    """Compute the AOGM measure, or its normalization TRA, for a ground-truth and result folder.

    Args:
        gt_dir: The ground-truth folder, containing the `TRA` folder.
        res_dir: The result folder, containing `res_track.txt` and the mask images.
        n_digits: The number of digits used to encode the frame index in the filenames.
        penalty: The penalties of the six graph operations, in the order split, false negative,
            false positive, redundant edge, missing edge, wrong semantics edge.
            By default the penalties of the Cell Tracking Challenge are used.
        options: The evaluation options.
        normalize: Whether to normalize the AOGM to [0, 1].
        cache: A cache for the same inputs from a previous computation, it is reused if it matches the inputs.
            The cache is not returned; use `AOGMMeasure.compute` to pass it on to further computations.

    Returns:
        The AOGM (or normalized AOGM) value.
        The categorized report of the graph operations.
    """
    options = EvaluationOptions() if options is None else options
    inputs = MeasureInputs(str(gt_dir), str(res_dir), n_digits, options)
    result, _ = AOGMMeasure(penalty, normalize).compute(inputs, cache)
    return result.value, result.report


def check_consistency(
    data_dir: str,
    n_digits: int = 3,
    check_empty_images: bool = True,
    n_threads: Optional[int] = None,
    verbose: bool = False,
) -> Tuple[bool, List[Violation]]:
    """Check the consistency of the track file and the label images in a single folder.

    The folder can either be a tracking result folder (containing `res_track.txt`)
    or a ground-truth folder (containing `TRA/man_track.txt`).

    Args:
        data_dir: The folder.
        n_digits: The number of digits used to encode the frame index in the filenames.
        check_empty_images: Whether an image without any object is a violation.
        n_threads: The number of threads used to read the images, by default all cores are used.
        verbose: Whether to show a progress bar.

    Returns:
        Whether the data is consistent.
        The violations.
    """
    layout = sequence.detect_layout(data_dir, n_digits)
    tracks = read_track_file(layout.track_file)
    frames = layout.frames()
    if not frames:
        raise ComputationPreconditionError(
            f"No image was found for {layout.image_path(0)} with {n_digits} digits"
        )

    def _labels(frame):
        image = sequence.read_label_image(layout.image_path(frame))
        labels = set(np.unique(image).tolist())
        labels.discard(0)
        return labels, image.shape

    results = run_per_frame(_labels, frames, n_threads, verbose, "Read labels")
    check_shapes([shape for _, shape in results], "label")
    frame_labels = {frame: labels for frame, (labels, _) in zip(frames, results)}

    name = "ground-truth" if layout.is_ground_truth else "result"
    report: ConsistencyReport = check_track_consistency(tracks, frame_labels, check_empty_images, name=name)
    logger.info(report.report())
    return report.consistent, report.violations

import logging
import os
from typing import Dict, FrozenSet, List, NamedTuple, Optional, Set, Tuple

import networkx as nx

from ..errors import ComputationPreconditionError, InputFormatError
from ..io import sequence
from ..io.track_file import Track, read_track_file, tracks_to_dict
from ..tracking.consistency import ConsistencyReport
from ..tracking.lineage import build_lineage_graph
from ..util import run_per_frame
from .label_matching import FrameMatching, match_frame

logger = logging.getLogger(__name__)


class SegmentationFrame(NamedTuple):
    """The matching of a segmentation ground-truth image with the corresponding (slice of the) result image.
    """
    annotation: sequence.SegmentationAnnotation
    matching: FrameMatching


def check_shapes(shapes, name):
    """@private
    """
    unique_shapes = sorted(set(shapes))
    if len(unique_shapes) > 1:
        raise InputFormatError(f"The {name} images have different shapes: {unique_shapes}")


class TrackDataCache:
    """Data of one ground-truth and result pair that is shared between measure computations.

    Holds the track files, the per-frame matchings and the lineage graphs, but no images.
    A cache is bound to its inputs; measures that receive a cache bound to other inputs
    discard it. The cache is not thread-safe: pass it from one computation to the next.

    Args:
        gt_dir: The ground-truth folder.
        res_dir: The result folder.
        n_digits: The number of digits used to encode the frame index in the filenames.
        timepoints: The timepoints to evaluate. By default all timepoints are evaluated.
    """
    def __init__(
        self,
        gt_dir: str,
        res_dir: str,
        n_digits: int = 3,
        timepoints: Optional[FrozenSet[int]] = None,
    ):
        self.gt_dir = str(gt_dir)
        self.res_dir = str(res_dir)
        self.n_digits = n_digits
        self.timepoints = None if timepoints is None else frozenset(timepoints)

        self.gt_layout = sequence.tracking_ground_truth(self.gt_dir, n_digits)
        self.res_layout = sequence.tracking_result(self.res_dir, n_digits)

        self.gt_tracks: Optional[List[Track]] = None
        self.res_tracks: Optional[List[Track]] = None
        self.levels: Optional[Dict[int, FrameMatching]] = None
        self.segmentation_levels: Optional[List[SegmentationFrame]] = None
        self._graphs: Dict[str, nx.DiGraph] = {}
        # consistency reports of ground-truth and result, with and without the check for empty images
        self.consistency_reports: Dict[bool, Tuple[ConsistencyReport, ConsistencyReport]] = {}

    def is_bound_to(self, gt_dir, res_dir, n_digits, timepoints=None) -> bool:
        """Check whether this cache holds the data for the given inputs.
        """
        timepoints = None if timepoints is None else frozenset(timepoints)
        return (
            os.path.abspath(self.gt_dir) == os.path.abspath(str(gt_dir)) and
            os.path.abspath(self.res_dir) == os.path.abspath(str(res_dir)) and
            self.n_digits == n_digits and self.timepoints == timepoints
        )

    #
    # tracking data: track files and matching of the TRA images
    #

    def load_tracks(self) -> None:
        """Read the ground-truth and result track files, if not done yet.
        """
        if self.gt_tracks is None:
            self.gt_tracks = read_track_file(self.gt_layout.track_file)
            logger.debug("Read %i ground-truth tracks from %s", len(self.gt_tracks), self.gt_layout.track_file)
        if self.res_tracks is None:
            self.res_tracks = read_track_file(self.res_layout.track_file)
            logger.debug("Read %i result tracks from %s", len(self.res_tracks), self.res_layout.track_file)

    def frames(self) -> List[int]:
        """The frames to evaluate: all frames of the tracking ground-truth, restricted to the selected timepoints.
        """
        frames = self.gt_layout.frames()
        if not frames:
            raise ComputationPreconditionError(
                f"No ground-truth image was found for {self.gt_layout.image_path(0)} with {self.n_digits} digits"
            )
        if self.timepoints is not None:
            frames = [frame for frame in frames if frame in self.timepoints]
            if not frames:
                raise ComputationPreconditionError("None of the selected timepoints has a ground-truth image")
        return frames

    def load_levels(self, n_threads: Optional[int] = None, verbose: bool = False) -> Dict[int, FrameMatching]:
        """Read and match the ground-truth and result images of all frames, if not done yet.

        Args:
            n_threads: The number of threads, by default all cores are used.
            verbose: Whether to show a progress bar.

        Returns:
            The frame matchings, ordered by frame.
        """
        if self.levels is not None:
            return self.levels
        frames = self.frames()

        def _match(frame):
            gt_path, res_path = self.gt_layout.image_path(frame), self.res_layout.image_path(frame)
            gt_image = sequence.read_label_image(gt_path)
            res_image = sequence.read_label_image(res_path)
            return match_frame(gt_image, res_image, frame, gt_path, res_path), gt_image.shape

        results = run_per_frame(_match, frames, n_threads, verbose, "Match labels")
        check_shapes([shape for _, shape in results], "ground-truth and result")
        self.levels = {matching.frame: matching for matching, _ in results}
        logger.debug("Matched the labels of %i frames", len(self.levels))
        return self.levels

    def gt_frame_labels(self) -> Dict[int, Set[int]]:
        assert self.levels is not None, "The frames need to be loaded first"
        return {frame: set(level.gt_sizes) for frame, level in self.levels.items()}

    def res_frame_labels(self) -> Dict[int, Set[int]]:
        assert self.levels is not None, "The frames need to be loaded first"
        return {frame: set(level.res_sizes) for frame, level in self.levels.items()}

    def gt_track_dict(self) -> Dict[int, Track]:
        assert self.gt_tracks is not None, "The tracks need to be loaded first"
        return tracks_to_dict(self.gt_tracks)

    def res_track_dict(self) -> Dict[int, Track]:
        assert self.res_tracks is not None, "The tracks need to be loaded first"
        return tracks_to_dict(self.res_tracks)

    def gt_graph(self) -> nx.DiGraph:
        """The lineage graph of the ground-truth, built on first access.
        """
        if "gt" not in self._graphs:
            self._graphs["gt"] = build_lineage_graph(self.gt_track_dict(), self.gt_frame_labels())
        return self._graphs["gt"]

    def res_graph(self) -> nx.DiGraph:
        """The lineage graph of the result, built on first access.
        """
        if "res" not in self._graphs:
            self._graphs["res"] = build_lineage_graph(self.res_track_dict(), self.res_frame_labels())
        return self._graphs["res"]

    #
    # segmentation data: matching of the SEG images
    #

    def load_segmentation_levels(
        self, n_threads: Optional[int] = None, verbose: bool = False
    ) -> List[SegmentationFrame]:
        """Read and match the segmentation ground-truth images with the result images, if not done yet.

        Args:
            n_threads: The number of threads, by default all cores are used.
            verbose: Whether to show a progress bar.

        Returns:
            The matchings, ordered by frame and slice.
        """
        if self.segmentation_levels is not None:
            return self.segmentation_levels

        annotations = sequence.find_segmentation_annotations(self.gt_dir, self.n_digits)
        if self.timepoints is not None:
            annotations = [annotation for annotation in annotations if annotation.frame in self.timepoints]
        if not annotations:
            raise ComputationPreconditionError(f"No segmentation ground-truth image was found in {self.gt_dir}")

        def _match(annotation):
            res_path = self.res_layout.image_path(annotation.frame)
            gt_image = sequence.read_label_image(annotation.path)
            res_image = sequence.read_label_image(res_path)
            if annotation.z is not None:
                if res_image.ndim != 3:
                    raise InputFormatError(
                        f"{annotation.path} annotates slice {annotation.z}, but {res_path} is not a 3D image"
                    )
                if annotation.z >= res_image.shape[0]:
                    raise InputFormatError(
                        f"{annotation.path} annotates slice {annotation.z}, but {res_path} has only "
                        f"{res_image.shape[0]} slices"
                    )
                res_image = res_image[annotation.z]
            matching = match_frame(gt_image, res_image, annotation.frame, annotation.path, res_path)
            return SegmentationFrame(annotation, matching)

        self.segmentation_levels = run_per_frame(_match, annotations, n_threads, verbose, "Match segmentation")
        return self.segmentation_levels


def get_cache(
    cache: Optional[TrackDataCache],
    gt_dir: str,
    res_dir: str,
    n_digits: int,
    timepoints: Optional[FrozenSet[int]] = None,
) -> TrackDataCache:
    """Reuse the cache if it is bound to these inputs, otherwise create a new one.
    """
    if cache is not None and cache.is_bound_to(gt_dir, res_dir, n_digits, timepoints):
        return cache
    if cache is not None:
        logger.debug("Discarding the cache for %s, %s", cache.gt_dir, cache.res_dir)
    return TrackDataCache(gt_dir, res_dir, n_digits, timepoints)

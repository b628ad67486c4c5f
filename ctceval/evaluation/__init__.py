"""Measures for evaluating cell segmentation and tracking results against a ground-truth.
"""

from .aogm import EditOperations, aogm_empty, compute_aogm, compute_tra, count_edit_operations, normalize_aogm
from .bio import compute_bci, compute_cca, compute_ct, compute_tf
from .cache import TrackDataCache
from .config import EvaluationOptions, PenaltyConfig
from .det import compute_det
from .label_matching import FrameMatching, match_frame
from .measures import (
    AOGMMeasure, BCiMeasure, CCAMeasure, CTMeasure, DETMeasure, Measure, MeasureInputs, MeasureResult,
    SEGMeasure, TFMeasure, TRAMeasure, MEASURES, calculate, check_consistency, get_measure,
)
from .seg import compute_seg

"""Reading track files and label images in the Cell Tracking Challenge folder layout.
"""

from .sequence import (
    SegmentationAnnotation, SequenceLayout,
    detect_layout, find_frames, find_segmentation_annotations, image_path,
    read_label_image, tracking_ground_truth, tracking_result, write_label_image, write_tracking_data,
)
from .track_file import Track, parse_track_line, read_track_file, tracks_to_dict, write_track_file

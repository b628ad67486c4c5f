"""Paths and readers for the Cell Tracking Challenge folder layout.

Ground-truth folders contain `TRA/man_track.txt`, `TRA/man_trackT.tif`, `SEG/man_segT.tif`
and `SEG/man_seg_T_Z.tif` (annotation of slice Z in a 3D frame).
Result folders contain `res_track.txt` and `maskT.tif`.
"""
import os
import re
from glob import escape, glob
from typing import Iterable, List, Mapping, NamedTuple, Optional, Union

import numpy as np
import imageio.v3 as imageio

from ..errors import ComputationPreconditionError, InputFormatError
from .track_file import Track, write_track_file

GT_TRACK_FILE = os.path.join("TRA", "man_track.txt")
"""@private
"""
GT_TRACK_PREFIX = os.path.join("TRA", "man_track")
"""@private
"""
GT_SEG_PREFIX = os.path.join("SEG", "man_seg")
"""@private
"""
RES_TRACK_FILE = "res_track.txt"
"""@private
"""
RES_PREFIX = "mask"
"""@private
"""
IMAGE_EXTENSION = ".tif"
"""@private
"""


class SequenceLayout(NamedTuple):
    """The location of the track file and label images of one dataset.
    """
    root: str
    track_file: str
    image_prefix: str
    n_digits: int
    is_ground_truth: bool

    def image_path(self, frame: int) -> str:
        return image_path(self.root, self.image_prefix, frame, self.n_digits)

    def frames(self) -> List[int]:
        return find_frames(self.root, self.image_prefix, self.n_digits)


def _check_n_digits(n_digits):
    if n_digits < 1:
        raise ValueError(f"The number of digits must be positive, got {n_digits}")


def image_path(root: Union[str, os.PathLike], prefix: str, frame: int, n_digits: int) -> str:
    """Get the path to the label image of a frame.

    Args:
        root: The dataset folder.
        prefix: The filename prefix relative to the dataset folder, e.g. 'mask' or 'TRA/man_track'.
        frame: The frame index.
        n_digits: The number of digits used to encode the frame index.

    Returns:
        The image path.
    """
    return os.path.join(root, f"{prefix}{frame:0{n_digits}d}{IMAGE_EXTENSION}")


def find_frames(root: Union[str, os.PathLike], prefix: str, n_digits: int) -> List[int]:
    """Find the frame indices of all label images with the given prefix.

    Args:
        root: The dataset folder.
        prefix: The filename prefix relative to the dataset folder.
        n_digits: The number of digits used to encode the frame index.

    Returns:
        The sorted frame indices.
    """
    _check_n_digits(n_digits)
    pattern = os.path.join(root, escape(prefix) + "[0-9]" * n_digits + IMAGE_EXTENSION)
    name_regex = re.compile(re.escape(os.path.basename(prefix)) + rf"(\d{{{n_digits}}}){re.escape(IMAGE_EXTENSION)}$")
    frames = []
    for path in glob(pattern):
        match = name_regex.match(os.path.basename(path))
        if match is not None:
            frames.append(int(match.group(1)))
    return sorted(frames)


def tracking_ground_truth(gt_dir: Union[str, os.PathLike], n_digits: int = 3) -> SequenceLayout:
    """Get the layout of the tracking ground-truth.

    Args:
        gt_dir: The ground-truth folder, containing the 'TRA' subfolder.
        n_digits: The number of digits used to encode the frame index.

    Returns:
        The layout.
    """
    _check_n_digits(n_digits)
    gt_dir = str(gt_dir)
    return SequenceLayout(gt_dir, os.path.join(gt_dir, GT_TRACK_FILE), GT_TRACK_PREFIX, n_digits, True)


def tracking_result(res_dir: Union[str, os.PathLike], n_digits: int = 3) -> SequenceLayout:
    """Get the layout of the result.

    Args:
        res_dir: The result folder.
        n_digits: The number of digits used to encode the frame index.

    Returns:
        The layout.
    """
    _check_n_digits(n_digits)
    res_dir = str(res_dir)
    return SequenceLayout(res_dir, os.path.join(res_dir, RES_TRACK_FILE), RES_PREFIX, n_digits, False)


def detect_layout(data_dir: Union[str, os.PathLike], n_digits: int = 3) -> SequenceLayout:
    """Determine whether a folder contains a result or the tracking ground-truth.

    Args:
        data_dir: The folder.
        n_digits: The number of digits used to encode the frame index.

    Returns:
        The layout.
    """
    if os.path.isfile(os.path.join(data_dir, RES_TRACK_FILE)):
        return tracking_result(data_dir, n_digits)
    if os.path.isfile(os.path.join(data_dir, GT_TRACK_FILE)):
        return tracking_ground_truth(data_dir, n_digits)
    raise ComputationPreconditionError(
        f"Neither {RES_TRACK_FILE} nor {GT_TRACK_FILE} was found in {data_dir}"
    )


class SegmentationAnnotation(NamedTuple):
    """A segmentation ground-truth image, either for a full frame or for one slice of a 3D frame.
    """
    frame: int
    z: Optional[int]
    path: str


def find_segmentation_annotations(gt_dir: Union[str, os.PathLike], n_digits: int = 3) -> List[SegmentationAnnotation]:
    """Find the segmentation ground-truth images.

    Args:
        gt_dir: The ground-truth folder, containing the 'SEG' subfolder.
        n_digits: The number of digits used to encode the frame index.

    Returns:
        The annotations, sorted by frame and slice.
    """
    _check_n_digits(n_digits)
    seg_dir = os.path.join(gt_dir, os.path.dirname(GT_SEG_PREFIX))
    if not os.path.isdir(seg_dir):
        raise ComputationPreconditionError(f"Segmentation ground-truth folder {seg_dir} does not exist")

    base = re.escape(os.path.basename(GT_SEG_PREFIX))
    ext = re.escape(IMAGE_EXTENSION)
    full_regex = re.compile(rf"{base}(\d{{{n_digits}}}){ext}$")
    slice_regex = re.compile(rf"{base}_(\d{{{n_digits}}})_(\d+){ext}$")

    annotations = []
    for name in os.listdir(seg_dir):
        full_match, slice_match = full_regex.match(name), slice_regex.match(name)
        if full_match is not None:
            annotations.append(SegmentationAnnotation(int(full_match.group(1)), None, os.path.join(seg_dir, name)))
        elif slice_match is not None:
            annotations.append(SegmentationAnnotation(
                int(slice_match.group(1)), int(slice_match.group(2)), os.path.join(seg_dir, name)
            ))
    return sorted(annotations, key=lambda annotation: (annotation.frame, -1 if annotation.z is None else annotation.z))


def read_label_image(path: Union[str, os.PathLike]) -> np.ndarray:
    """Read a label image.

    Args:
        path: The image path.

    Returns:
        The label image. Singleton dimensions are removed.
    """
    if not os.path.isfile(path):
        raise InputFormatError(f"Image {path} does not exist")
    try:
        image = imageio.imread(path)
    except Exception as e:
        raise InputFormatError(f"Could not read image {path}: {e}")

    image = np.asarray(image)
    if not np.issubdtype(image.dtype, np.integer):
        raise InputFormatError(f"Image {path} has non-integer type {image.dtype}, expected a label image")
    if image.ndim > 2:
        image = np.squeeze(image)
    if image.ndim not in (2, 3):
        raise InputFormatError(f"Image {path} has {image.ndim} dimensions, expected 2 or 3")
    if np.issubdtype(image.dtype, np.signedinteger):
        if image.size > 0 and image.min() < 0:
            raise InputFormatError(f"Image {path} contains negative labels")
    return image


def write_label_image(path: Union[str, os.PathLike], image: np.ndarray) -> None:
    """Write a label image, creating the parent folder if necessary.

    Args:
        path: The output path.
        image: The label image.
    """
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    imageio.imwrite(path, np.asarray(image))


def write_tracking_data(
    data_dir: Union[str, os.PathLike],
    tracks: Iterable[Track],
    images: Mapping[int, np.ndarray],
    is_ground_truth: bool = False,
    n_digits: int = 3,
) -> SequenceLayout:
    """Write a track file and its label images in the ground-truth or result layout.

    Args:
        data_dir: The output folder.
        tracks: The tracks.
        images: The label image of each frame.
        is_ground_truth: Whether to use the ground-truth (TRA) layout instead of the result layout.
        n_digits: The number of digits used to encode the frame index in the filenames.

    Returns:
        The layout of the written data.
    """
    layout = tracking_ground_truth(data_dir, n_digits) if is_ground_truth else tracking_result(data_dir, n_digits)
    os.makedirs(os.path.dirname(os.path.abspath(layout.track_file)), exist_ok=True)
    write_track_file(layout.track_file, tracks)
    for frame, image in images.items():
        write_label_image(layout.image_path(frame), image)
    return layout

"""ctceval implements the accuracy measures for cell segmentation and tracking results
that are used by the [Cell Tracking Challenge](http://celltrackingchallenge.net).

# Overview

`ctceval` compares a computed result (RES) with a curated ground truth (GT) over a time-lapse
sequence of label images. The main functionality is:
- `ctceval.evaluation`: The measures (AOGM, TRA, DET, SEG, CT, TF, BC(i), CCA) and the per-frame label matching.
- `ctceval.tracking`: Lineage graphs built from the track files and their consistency check.
- `ctceval.io`: Reading track files and label images in the Cell Tracking Challenge folder layout.

# Data format

The ground-truth folder contains the tracking annotation in `TRA/man_track.txt` and `TRA/man_trackT.tif`
and the segmentation annotation in `SEG/man_segT.tif`. The result folder contains `res_track.txt` and `maskT.tif`.
`T` is the frame index, zero-padded to a fixed number of digits (3 by default).
Each line of a track file lists `track_id parent_id start_frame end_frame`, and the objects of a track
carry the track id as their pixel value.

# Usage

```python
from ctceval.evaluation import EvaluationOptions, PenaltyConfig, calculate

aogm, report = calculate("01_GT", "01_RES", n_digits=3, penalty=PenaltyConfig.ctc())
tra, _ = calculate("01_GT", "01_RES", normalize=True, options=EvaluationOptions(do_log_reports=False))
```

`ctceval` also provides command line functionality:
- `ctc_measure`: Compute one or more measures for a result folder.
- `ctc_consistency`: Check the consistency of a result or ground-truth folder.

# Citation

If you use the tracking measures, please cite:
Matula P, Maška M, Sorokin DV, Matula P, Ortiz-de-Solórzano C, Kozubek M.
Cell tracking accuracy measurement based on comparison of acyclic oriented graphs. PloS one. 2015.
"""

from .__version__ import __version__

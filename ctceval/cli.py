import argparse
import logging
import sys

from .evaluation.config import EvaluationOptions, PenaltyConfig
from .evaluation.measures import MEASURES, MeasureInputs, check_consistency, get_measure
from .errors import EvaluationError
from .util import parse_timepoints


def _create_measure(name, penalty, normalize, bci_i):
    if name == "AOGM":
        return get_measure(name, penalty=penalty, normalize=normalize)
    if name in ("TRA", "DET"):
        return get_measure(name, penalty=penalty)
    if name == "BCi":
        return get_measure(name, i=bci_i)
    return get_measure(name)


def evaluate(
    gt_dir, res_dir, measures=("TRA",), n_digits=3, penalty=None, normalize=False,
    bci_i=2, options=None,
):
    """Compute the selected measures for one ground-truth and result pair.

    The measures share one cache, so that the data is only loaded once.

    Args:
        gt_dir [str] - the ground-truth folder
        res_dir [str] - the result folder
        measures [Sequence[str]] - the names of the measures (default: ("TRA",))
        n_digits [int] - the number of digits in the image filenames (default: 3)
        penalty [PenaltyConfig] - the penalties for AOGM, TRA and DET (default: None)
        normalize [bool] - whether to normalize AOGM (default: False)
        bci_i [int] - the tolerance of BC(i) in frames (default: 2)
        options [EvaluationOptions] - the evaluation options (default: None)

    Returns:
        dict[str, MeasureResult] - the results by measure name
        TrackDataCache - the cache shared by the measures
    """
    options = EvaluationOptions() if options is None else options
    inputs = MeasureInputs(str(gt_dir), str(res_dir), n_digits, options)
    results, cache = {}, None
    for name in measures:
        measure = _create_measure(name, penalty, normalize, bci_i)
        result, cache = measure.compute(inputs, cache)
        results[result.name] = result
    return results, cache


def main():
    """@private
    """
    parser = argparse.ArgumentParser(description="Evaluate a cell tracking result against the ground-truth.")
    parser.add_argument("gt", help="The ground-truth folder, containing the TRA and SEG folders.")
    parser.add_argument("res", help="The result folder, containing res_track.txt and the mask images.")
    parser.add_argument("-m", "--measures", default=["TRA"], nargs="+", choices=list(MEASURES))
    parser.add_argument("-d", "--digits", default=3, type=int)
    parser.add_argument("-p", "--penalty", default=None, nargs=6, type=float,
                        help="The AOGM penalties: split, fn, fp, redundant edge, missing edge, wrong semantics.")
    parser.add_argument("--normalize", action="store_true", help="Normalize AOGM to [0, 1].")
    parser.add_argument("--no_consistency_check", action="store_true")
    parser.add_argument("--continue_on_inconsistency", action="store_true")
    parser.add_argument("--matching_reports", action="store_true")
    parser.add_argument("--stop_on_empty", action="store_true")
    parser.add_argument("--report_all_result_labels", action="store_true")
    parser.add_argument("-t", "--timepoints", default=None, help="Timepoints to evaluate, e.g. 1-9,23,25.")
    parser.add_argument("--bci_i", default=2, type=int)
    parser.add_argument("-n", "--n_threads", default=None, type=int)
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(message)s")
    options = EvaluationOptions(
        do_consistency_check=not args.no_consistency_check,
        do_matching_reports=args.matching_reports,
        stop_on_empty_images=args.stop_on_empty,
        restrict_to_timepoints=parse_timepoints(args.timepoints) or None,
        abort_on_inconsistency=not args.continue_on_inconsistency,
        report_all_result_labels=args.report_all_result_labels,
        n_threads=args.n_threads,
        verbose=args.verbose,
    )
    penalty = None if args.penalty is None else PenaltyConfig.from_weights(args.penalty)
    try:
        results, _ = evaluate(
            args.gt, args.res, args.measures, args.digits, penalty, args.normalize, args.bci_i, options
        )
    except EvaluationError as e:
        logging.getLogger(__name__).error("%s: %s", e.category, e)
        sys.exit(1)
    for name, result in results.items():
        print(f"{name}: {result.value:.6f}")


def consistency_main():
    """@private
    """
    parser = argparse.ArgumentParser(description="Check the consistency of a tracking ground-truth or result folder.")
    parser.add_argument("path", help="The ground-truth or result folder.")
    parser.add_argument("-d", "--digits", default=3, type=int)
    parser.add_argument("--allow_empty", action="store_true", help="Do not report empty images.")
    parser.add_argument("-n", "--n_threads", default=None, type=int)
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(message)s")
    try:
        consistent, _ = check_consistency(
            args.path, args.digits, not args.allow_empty, n_threads=args.n_threads, verbose=args.verbose
        )
    except EvaluationError as e:
        logging.getLogger(__name__).error("%s: %s", e.category, e)
        sys.exit(1)
    sys.exit(0 if consistent else 1)

# IMPORTANT do threadctl import first (before numpy imports)
from threadpoolctl import threadpool_limits

import multiprocessing
from concurrent import futures
from typing import Callable, Iterable, List, Optional, Sequence, Set

from tqdm import tqdm


def parse_timepoints(timepoints: Optional[str]) -> Set[int]:
    """Parse a string of comma separated numbers and intervals into a set of timepoints.

    For example, "1-3,23,25" is parsed into {1, 2, 3, 23, 25}.

    Args:
        timepoints: The timepoint string. An interval is given as number-hyphen-number, both ends included.

    Returns:
        The timepoints. Empty if the input is None or empty.
    """
    result = set()
    if timepoints is None:
        return result

    for token in timepoints.split(","):
        token = token.strip()
        if not token:
            continue
        if "-" in token:
            begin, end = token.split("-", 1)
            try:
                begin, end = int(begin), int(end)
            except ValueError:
                raise ValueError(f"Invalid timepoint interval: {token}")
            if begin > end:
                raise ValueError(f"Invalid timepoint interval {token}: begin is larger than end")
            result.update(range(begin, end + 1))
        else:
            try:
                result.add(int(token))
            except ValueError:
                raise ValueError(f"Invalid timepoint: {token}")

    if any(tp < 0 for tp in result):
        raise ValueError(f"Timepoints must be non-negative, got {timepoints}")
    return result


def format_timepoints(timepoints: Iterable[int]) -> str:
    """Format timepoints as a string of comma separated numbers and intervals.

    This is the inverse of `parse_timepoints`.

    Args:
        timepoints: The timepoints.

    Returns:
        The timepoint string.
    """
    tps = sorted(set(timepoints))
    if not tps:
        return ""

    tokens = []
    begin = prev = tps[0]
    for tp in tps[1:] + [None]:
        if tp is not None and tp == prev + 1:
            prev = tp
            continue
        tokens.append(str(begin) if begin == prev else f"{begin}-{prev}")
        if tp is not None:
            begin = prev = tp
    return ",".join(tokens)


def get_n_threads(n_threads: Optional[int]) -> int:
    """@private
    """
    return multiprocessing.cpu_count() if n_threads is None else n_threads


def run_per_frame(
    function: Callable,
    items: Sequence,
    n_threads: Optional[int] = None,
    verbose: bool = False,
    desc: Optional[str] = None,
) -> List:
    """Apply a function to each item in parallel and return the results in input order.

    The first exception raised by the function aborts the computation.

    Args:
        function: The function, applied to one item (e.g. frame index) at a time.
        items: The items.
        n_threads: The number of threads, by default all cores are used.
        verbose: Whether to show a progress bar.
        desc: The description for the progress bar.

    Returns:
        The results.
    """
    n_threads = get_n_threads(n_threads)

    @threadpool_limits.wrap(limits=1)  # restrict the numpy threadpool to 1 to avoid oversubscription
    def _function(item):
        return function(item)

    with futures.ThreadPoolExecutor(n_threads) as tp:
        results = list(tqdm(tp.map(_function, items), total=len(items), disable=not verbose, desc=desc))
    return results

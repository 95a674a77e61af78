"""
Timing rechits for the CTPPS diamond detectors.

A digitized diamond hit carries a leading and a trailing edge, both in
TDC counts. After the global time shift is removed the leading edge is
split into the position inside its 1024-count time slice and the index
of that slice (the out-of-time index). Both use truncating integer
arithmetic, so a negative shifted time gives a negative remainder and
a slice index rounded towards zero.
"""

from typing import Dict, List, NamedTuple, Sequence

import awkward as ak
import numpy as np


TIME_SLICE_COUNTS = 1024


class DiamondDigi(NamedTuple):
    leading_edge: int
    trailing_edge: int


class DiamondRecHit(NamedTuple):
    x: float
    x_width: float
    y: float
    y_width: float
    t: float
    tot: float
    oot_index: int


def _as_counts(values):
    # jagged awkward arrays go through numpy ufuncs unchanged
    if isinstance(values, ak.Array):
        return values
    return np.asarray(values, dtype=np.int64)


def split_time(shifted):
    """
    Return (t0, time_slice) for shifted leading-edge counts.

    Equivalent to the C expressions ``t % 1024`` and ``t / 1024`` on ints.
    """
    shifted = _as_counts(shifted)
    t0 = np.fmod(shifted, TIME_SLICE_COUNTS)
    time_slice = (shifted - t0) // TIME_SLICE_COUNTS
    return t0, time_slice


def build_rechit_arrays(leading_edges, trailing_edges, time_slice_to_ns: float,
                        time_shift: int) -> Dict[str, np.ndarray]:
    """
    Vectorized rechit construction.

    Parameters:
    -----------
    leading_edges, trailing_edges : array-like of int
        Digitized edges in TDC counts; flat numpy arrays or (jagged) awkward arrays
    time_slice_to_ns : float
        Conversion from TDC counts to nanoseconds
    time_shift : int
        Global offset subtracted from the leading edge, in counts

    Returns:
    --------
    dict of field name -> array, with the fields of DiamondRecHit
    """
    leading = _as_counts(leading_edges)
    trailing = _as_counts(trailing_edges)

    t0, time_slice = split_time(leading - time_shift)
    t_lead = t0 * time_slice_to_ns
    t_trail = trailing * time_slice_to_ns

    zeros = t_lead * 0.0
    return {
        'x': zeros,
        'x_width': zeros,
        'y': zeros,
        'y_width': zeros,
        't': t_lead,
        'tot': t_lead - t_trail,
        'oot_index': time_slice,
    }


def build_rechits(digis: Sequence[DiamondDigi], time_slice_to_ns: float, time_shift: int) -> List[DiamondRecHit]:
    """Build one rechit per digi, in input order."""
    if len(digis) == 0:
        return []

    leading = [digi.leading_edge for digi in digis]
    trailing = [digi.trailing_edge for digi in digis]
    arrays = build_rechit_arrays(leading, trailing, time_slice_to_ns, time_shift)

    rechits = []
    for i in range(len(digis)):
        rechits.append(DiamondRecHit(
            x=float(arrays['x'][i]),
            x_width=float(arrays['x_width'][i]),
            y=float(arrays['y'][i]),
            y_width=float(arrays['y_width'][i]),
            t=float(arrays['t'][i]),
            tot=float(arrays['tot'][i]),
            oot_index=int(arrays['oot_index'][i]),
        ))
    return rechits


def build_rechits_by_detector(detsets: Dict[int, Sequence[DiamondDigi]], time_slice_to_ns: float,
                              time_shift: int) -> Dict[int, List[DiamondRecHit]]:
    """Apply build_rechits to every detector set, keeping the detector ids."""
    return {
        det_id: build_rechits(digis, time_slice_to_ns, time_shift)
        for det_id, digis in detsets.items()
    }


class DiamondRecHitBuilder:
    """Holds the conversion parameters of one reconstruction configuration."""

    def __init__(self, time_slice_to_ns: float, time_shift: int):
        self.time_slice_to_ns = float(time_slice_to_ns)
        self.time_shift = int(time_shift)

    def build(self, digis: Sequence[DiamondDigi]) -> List[DiamondRecHit]:
        return build_rechits(digis, self.time_slice_to_ns, self.time_shift)

    def build_all(self, detsets: Dict[int, Sequence[DiamondDigi]]) -> Dict[int, List[DiamondRecHit]]:
        return build_rechits_by_detector(detsets, self.time_slice_to_ns, self.time_shift)

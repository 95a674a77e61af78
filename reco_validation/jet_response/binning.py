"""
Categorical classification of matched jets.

All ranges are half-open [lo, hi); the last pT range is open-ended. A value
outside every declared range classifies as None and the caller leaves it out
of the accumulators keyed on that axis.
"""

import math
from typing import Optional

import numpy as np


REGIONS = ('B', 'E', 'F')
REGION_NAMES = {'B': 'Barrel', 'E': 'EndCap', 'F': 'Forward'}

PT_RANGES = (
    ('20_30', 20.0, 30.0),
    ('30_50', 30.0, 50.0),
    ('50_80', 50.0, 80.0),
    ('80_120', 80.0, 120.0),
    ('120_180', 120.0, 180.0),
    ('180_300', 180.0, 300.0),
    ('300_Inf', 300.0, math.inf),
)
PT_RANGE_LABELS = tuple(label for label, _, _ in PT_RANGES)

# hibin upper edges for each centrality class
CENTRALITY_RANGES = (
    ('0_10', 20),
    ('10_30', 60),
    ('30_50', 100),
    ('50_80', 160),
)
CENTRALITY_LABELS = tuple(label for label, _ in CENTRALITY_RANGES)

# Binning of the booked response histograms
RESPONSE_BINS = (90, 0.0, 2.0)
LOG10_PT_BINS = (26, 0.50, 3.75)
RESPONSE_ETA_EDGES = np.array([
    -6.0, -5.8, -5.6, -5.4, -5.2, -5.0, -4.8, -4.6, -4.4, -4.2,
    -4.0, -3.8, -3.6, -3.4, -3.2, -3.0, -2.9, -2.8, -2.7, -2.6,
    -2.5, -2.4, -2.3, -2.2, -2.1, -2.0, -1.9, -1.8, -1.7, -1.6,
    -1.5, -1.4, -1.3, -1.2, -1.1, -1.0, -0.9, -0.8, -0.7, -0.6,
    -0.5, -0.4, -0.3, -0.2, -0.1,
    0.0, 0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9,
    1.0, 1.1, 1.2, 1.3, 1.4, 1.5, 1.6, 1.7, 1.8, 1.9,
    2.0, 2.1, 2.2, 2.3, 2.4, 2.5, 2.6, 2.7, 2.8, 2.9,
    3.0, 3.2, 3.4, 3.6, 3.8, 4.0, 4.2, 4.4, 4.6, 4.8,
    5.0, 5.2, 5.4, 5.6, 5.8, 6.0,
])

# Pseudorapidity slices used for the per-event candidate sums
ETA_SLICE_EDGES = np.array([
    -5.191, -2.650, -2.043, -1.740, -1.479, -1.131, -0.783, -0.522,
    0.522, 0.783, 1.131, 1.479, 1.740, 2.043, 2.650, 5.191,
])


def classify_region(eta: float, barrel_eta: float, endcap_eta: float, forward_eta: float) -> Optional[str]:
    abs_eta = abs(eta)
    if abs_eta < barrel_eta:
        return 'B'
    if abs_eta < endcap_eta:
        return 'E'
    if abs_eta < forward_eta:
        return 'F'
    return None


def classify_pt_range(pt: float) -> Optional[str]:
    for label, lo, hi in PT_RANGES:
        if lo <= pt < hi:
            return label
    return None


def classify_centrality(hibin: int) -> Optional[str]:
    # hibin is never negative for a valid centrality; anything below 20 is central
    for label, upper in CENTRALITY_RANGES:
        if hibin < upper:
            return label
    return None


def _slice_label(value: float) -> str:
    text = f"{abs(value):.3f}".replace('.', 'p')
    return f"n{text}" if value < 0 else text


def eta_slice_labels():
    """Names like 'n5p191_n2p650' for each pseudorapidity slice."""
    return [
        f"{_slice_label(lo)}_{_slice_label(hi)}"
        for lo, hi in zip(ETA_SLICE_EDGES[:-1], ETA_SLICE_EDGES[1:])
    ]


def eta_slice_index(eta: float) -> Optional[int]:
    """Index of the [lo, hi) slice containing eta, None outside [-5.191, 5.191)."""
    if eta < ETA_SLICE_EDGES[0] or eta >= ETA_SLICE_EDGES[-1]:
        return None
    return int(np.searchsorted(ETA_SLICE_EDGES, eta, side='right')) - 1

"""Nearest-neighbour matching of generator jets to reconstructed jets in (eta, phi)."""

import math
from typing import List, Sequence

import numpy as np

from reco_validation.jet_response.jets import Jet, MatchResult


# Generator jets beyond this |eta| are outside the detector
GEN_ETA_MAX = 6.0
# Only reconstructed jets above this pT are match candidates
MATCH_RECO_PT_MIN = 10.0


def delta_phi(phi1, phi2):
    """
    Azimuthal difference wrapped into (-pi, pi].

    Works element-wise on numpy arrays as well as on plain floats.
    """
    dphi = np.mod(np.subtract(phi1, phi2) + np.pi, 2.0 * np.pi) - np.pi
    dphi = np.where(dphi <= -np.pi, dphi + 2.0 * np.pi, dphi)
    if np.ndim(dphi) == 0:
        return float(dphi)
    return dphi


def delta_r(eta1, phi1, eta2, phi2):
    """Angular separation sqrt(deta^2 + dphi^2) using the shortest azimuthal arc."""
    deta = np.subtract(eta1, eta2)
    dphi = delta_phi(phi1, phi2)
    dr = np.sqrt(deta * deta + np.square(dphi))
    if np.ndim(dr) == 0:
        return float(dr)
    return dr


def find_best_match(gen_jet: Jet, reco_jets: Sequence[Jet], reco_pt_min: float = MATCH_RECO_PT_MIN):
    """
    Return (index, reco_pt, delta_r) of the closest reconstructed jet above
    reco_pt_min, or None when no reconstructed jet passes the pT cut.

    The scan keeps the first minimum it meets, so equal separations resolve
    to the earlier jet in the input order.
    """
    best_index = -1
    best_dr = math.inf
    best_pt = 0.0
    for index, reco_jet in enumerate(reco_jets):
        if reco_jet.pt > reco_pt_min:
            dr = delta_r(gen_jet.eta, gen_jet.phi, reco_jet.eta, reco_jet.phi)
            if dr < best_dr:
                best_dr = dr
                best_pt = reco_jet.pt
                best_index = index
    if best_index < 0:
        return None
    return best_index, best_pt, best_dr


def match(gen_jets: Sequence[Jet], reco_jets: Sequence[Jet], match_gen_pt_threshold: float,
          reco_pt_min: float = MATCH_RECO_PT_MIN) -> List[MatchResult]:
    """
    Match every accepted generator jet to its closest reconstructed jet.

    Parameters:
    -----------
    gen_jets : sequence of Jet
        Generator jets of the event
    reco_jets : sequence of Jet
        Reconstructed jets of the event
    match_gen_pt_threshold : float
        Generator jets below this pT are not matched
    reco_pt_min : float
        Reconstructed jets must have pT strictly above this value

    Returns:
    --------
    list of MatchResult, in generator-jet order. Generator jets with
    |eta| > 6, below threshold, or without any reconstructed jet above
    reco_pt_min produce no entry.
    """
    results = []
    if len(reco_jets) == 0:
        return results

    for gen_jet in gen_jets:
        if abs(gen_jet.eta) > GEN_ETA_MAX:
            continue
        if gen_jet.pt < match_gen_pt_threshold:
            continue

        best = find_best_match(gen_jet, reco_jets, reco_pt_min)
        if best is None:
            continue

        index, reco_pt, dr = best
        results.append(MatchResult(gen_jet=gen_jet, reco_index=index, best_reco_pt=reco_pt, delta_r=dr))

    return results

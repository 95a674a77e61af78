"""
Keyed response histograms filled once per matched generator jet.

The three families replace the per-cell histograms of the DQM tester:

* ``response``            recoPt/genPt, keyed by (region, pt_range, centrality)
* ``response_vs_genpt``   profile vs log10(genPt), keyed by (region, centrality)
* ``response_vs_geneta``  profile vs genEta, keyed by (pt_range, centrality)
"""

import math
from typing import Optional

import hist

from reco_validation.jet_response.binning import (
    CENTRALITY_LABELS,
    LOG10_PT_BINS,
    PT_RANGE_LABELS,
    REGIONS,
    RESPONSE_BINS,
    RESPONSE_ETA_EDGES,
    classify_centrality,
    classify_pt_range,
    classify_region,
)
from reco_validation.jet_response.jets import MatchResult
from reco_validation.utils.histogram_utils import is_profile


RESPONSE_NAME = 'PtRecoOverGen_{region}_{pt_range}_Cent_{centrality}'
RESPONSE_VS_GENPT_NAME = 'PtRecoOverGen_GenPt_{region}_Cent_{centrality}'
RESPONSE_VS_GENETA_NAME = 'PtRecoOverGen_GenEta_{pt_range}_Cent_{centrality}'


def _region_axis():
    return hist.axis.StrCategory(list(REGIONS), name='region', label='pseudorapidity region')


def _pt_range_axis():
    return hist.axis.StrCategory(list(PT_RANGE_LABELS), name='pt_range', label='generator pT range')


def _centrality_axis():
    return hist.axis.StrCategory(list(CENTRALITY_LABELS), name='centrality', label='centrality class')


class ResponseHistogramGrid:
    """Owner of the keyed response histograms for one analysis job."""

    def __init__(self, store=None):
        """
        Parameters:
        -----------
        store : HistogramStore, optional
            If given, the histograms are booked into it under its current folder
        """
        nbins, lo, hi = RESPONSE_BINS
        self.response = hist.Hist(
            _region_axis(), _pt_range_axis(), _centrality_axis(),
            hist.axis.Regular(nbins, lo, hi, name='response', label='recopt/genpt'),
            storage=hist.storage.Double(),
            name='PtRecoOverGen', label='recopt/genpt',
        )

        nbins, lo, hi = LOG10_PT_BINS
        self.response_vs_genpt = hist.Hist(
            _region_axis(), _centrality_axis(),
            hist.axis.Regular(nbins, lo, hi, name='log10_genpt', label='log10(genpt)'),
            storage=hist.storage.Mean(),
            name='PtRecoOverGen_GenPt', label='genpt;recopt/genpt',
        )

        self.response_vs_geneta = hist.Hist(
            _pt_range_axis(), _centrality_axis(),
            hist.axis.Variable(RESPONSE_ETA_EDGES, name='geneta', label='geneta'),
            storage=hist.storage.Mean(),
            name='PtRecoOverGen_GenEta', label='geneta;recopt/genpt',
        )

        if store is not None:
            store.book('PtRecoOverGen', self.response, name_pattern=RESPONSE_NAME)
            store.book('PtRecoOverGen_GenPt', self.response_vs_genpt, name_pattern=RESPONSE_VS_GENPT_NAME)
            store.book('PtRecoOverGen_GenEta', self.response_vs_geneta, name_pattern=RESPONSE_VS_GENETA_NAME)

    @classmethod
    def from_store(cls, store, folder: str) -> 'ResponseHistogramGrid':
        """Wrap the response histograms already booked in store under folder."""
        grid = cls.__new__(cls)
        grid.response = store.get(f'{folder}/PtRecoOverGen')
        grid.response_vs_genpt = store.get(f'{folder}/PtRecoOverGen_GenPt')
        grid.response_vs_geneta = store.get(f'{folder}/PtRecoOverGen_GenEta')
        return grid

    def fill(self, gen_pt: float, gen_eta: float, response: float,
             region: Optional[str], pt_range: Optional[str], centrality: Optional[str]) -> None:
        """Fill every family whose keys all classified."""
        if centrality is None:
            return
        if region is not None:
            self.response_vs_genpt.fill(
                region=region, centrality=centrality,
                log10_genpt=math.log10(gen_pt), sample=response,
            )
        if pt_range is not None:
            self.response_vs_geneta.fill(
                pt_range=pt_range, centrality=centrality,
                geneta=gen_eta, sample=response,
            )
            if region is not None:
                self.response.fill(
                    region=region, pt_range=pt_range, centrality=centrality,
                    response=response,
                )

    def cell(self, family: str, **keys) -> hist.Hist:
        """
        One cell of a family as a plain histogram, e.g.
        ``grid.cell('response', region='B', pt_range='20_30', centrality='0_10')``.
        """
        h = getattr(self, family)
        selection = {}
        for axis_name, value in keys.items():
            selection[axis_name] = h.axes[axis_name].index(value)
        return h[selection]

    def entries(self, family: str, **keys) -> float:
        """Number of fills of a cell (flow bins included)."""
        h = self.cell(family, **keys)
        if is_profile(h):
            return float(h.view(flow=True).count.sum())
        return float(h.sum(flow=True))

    def total_entries(self, family: str) -> float:
        h = getattr(self, family)
        if is_profile(h):
            return float(h.view(flow=True).count.sum())
        return float(h.sum(flow=True))

    def __eq__(self, other):
        if not isinstance(other, ResponseHistogramGrid):
            return NotImplemented
        return (self.response == other.response
                and self.response_vs_genpt == other.response_vs_genpt
                and self.response_vs_geneta == other.response_vs_geneta)


def accumulate(match_result: MatchResult, hibin: int, grid: ResponseHistogramGrid, config) -> bool:
    """
    Accumulate one matched generator jet into the response grid.

    Parameters:
    -----------
    match_result : MatchResult
        Output of matching.match for one generator jet
    hibin : int
        Centrality bin of the event
    grid : ResponseHistogramGrid
        Histograms to fill
    config : ValidationConfig
        Provides r_threshold and the barrel/endcap/forward |eta| boundaries

    Returns:
    --------
    bool : False when the match fails the delta R cut and nothing was filled
    """
    if match_result.delta_r >= config.r_threshold:
        return False

    gen_jet = match_result.gen_jet
    gen_pt = gen_jet.pt
    if not gen_pt > 0:
        raise ValueError(f"Generator jet pT must be positive, got {gen_pt}")
    response = match_result.best_reco_pt / gen_pt

    region = classify_region(gen_jet.eta, config.barrel_eta, config.endcap_eta, config.forward_eta)
    centrality = classify_centrality(hibin)
    pt_range = classify_pt_range(gen_pt)

    grid.fill(gen_pt, gen_jet.eta, response, region, pt_range, centrality)
    return True

"""
Particle-flow and calorimeter-tower candidate histograms.

For every event the candidates passing the pT cut fill single-candidate
spectra, and their pT (plus the Voronoi background quantities) is summed
per pseudorapidity slice. The slice sums, their squares and their totals
are filled once per event by ``CandidateHistograms.fill``.
"""

from typing import Dict, List, Optional, Sequence

import hist
import numpy as np

from reco_validation.jet_response.binning import ETA_SLICE_EDGES, eta_slice_index, eta_slice_labels
from reco_validation.jet_response.jets import Candidate


PARTICLE_IDS = (
    'Unknown', 'ChargedHadron', 'electron', 'muon',
    'photon', 'NeutralHadron', 'HadE_inHF', 'EME_inHF',
)

# pT-vs-eta histogram name for each particle id
PARTICLE_ID_2D_NAMES = (
    'PF_cand_X_unknown', 'PF_cand_chargedHad', 'PF_cand_electron', 'PF_cand_muon',
    'PF_cand_photon', 'PF_cand_neutralHad', 'PF_cand_HadEner_inHF', 'PF_cand_EMEner_inHF',
)

CANDIDATE_REGIONS = ('Barrel', 'Endcap', 'Forward')
CANDIDATE_SPECTRUM_NAME = 'mPFCandpT_{region}_{particle}'

# Summed quantities, in booking order
SUM_QUANTITIES = ('VsPtInitial', 'VsPt', 'Pt')

# The two outermost slices on each side see a much larger summed pT
WIDE_SLICE_RANGE = 5000.0
NARROW_SLICE_RANGE = 1000.0


def particle_ids_to_fill(particle_id: Optional[int], cumulative: bool = False) -> List[int]:
    """
    Particle-id categories touched by one candidate.

    Parameters:
    -----------
    particle_id : int or None
        PF particle id, 0 to 7. Anything else touches nothing
    cumulative : bool
        If True, the matched id and every later id are filled, as the
        fall-through switch of the DQM tester did
    """
    if particle_id is None or not 0 <= particle_id < len(PARTICLE_IDS):
        return []
    if cumulative:
        return list(range(particle_id, len(PARTICLE_IDS)))
    return [particle_id]


def candidate_region(eta: float, barrel_eta: float, endcap_eta: float, forward_eta: float) -> Optional[str]:
    abs_eta = abs(eta)
    if abs_eta < barrel_eta:
        return 'Barrel'
    if abs_eta < endcap_eta:
        return 'Endcap'
    if abs_eta < forward_eta:
        return 'Forward'
    return None


def slice_sum_range(index: int) -> float:
    n_slices = len(ETA_SLICE_EDGES) - 1
    if index < 2 or index >= n_slices - 2:
        return WIDE_SLICE_RANGE
    return NARROW_SLICE_RANGE


class CandidateHistograms:
    """Candidate spectra and per-event sums for one candidate collection."""

    def __init__(self, store, prefix: str, config):
        """
        Parameters:
        -----------
        store : HistogramStore
            Booking context, already pointed at the output folder
        prefix : str
            'PF' or 'Calo'; prepended to every histogram name
        config : ValidationConfig
            Supplies the region boundaries and the particle-id fill mode
        """
        self.prefix = prefix
        self.config = config
        self.with_particle_ids = prefix == 'PF'
        self.slice_labels = eta_slice_labels()

        self.multiplicity = store.book_1d(f'N{prefix}part', f'No of {prefix} candidates', 1000, 0, 10000)
        self.pt = store.book_1d(f'{prefix}Pt', f'{prefix} candidate p_{{T}}', 1000, -5000, 5000)
        self.eta = store.book_1d(f'{prefix}Eta', f'{prefix} candidate #eta', 120, -6, 6)
        self.phi = store.book_1d(f'{prefix}Phi', f'{prefix} candidate #phi', 70, -3.5, 3.5)
        self.vs_pt = store.book_1d(f'{prefix}VsPt', f'Vs {prefix} candidate p_{{T}}', 1000, -5000, 5000)
        self.vs_pt_initial = store.book_1d(f'{prefix}VsPtInitial',
                                           f'Vs background subtracted {prefix} candidate p_{{T}}',
                                           1000, -5000, 5000)
        self.area = store.book_1d(f'{prefix}Area', f'VS {prefix} candidate area', 100, 0, 4)

        self.sum_pt = store.book_1d('SumpT', f'Sum p_{{T}} of all the {prefix} candidates per event', 1000, 0, 10000)
        self.delta_pt = store.book_1d('DeltapT', 'amount subtracted from candidate', 400, -200, 200)
        self.delta_pt_eta = store.book_2d('DeltapT_eta', '', 60, -6, 6, 400, -200, 200)

        self.sums = {}
        self.sums_squared = {}
        self.sums_vs_hf = {}
        for quantity in SUM_QUANTITIES:
            name = f'Sum{prefix}{quantity}'
            self.sums[quantity] = store.book_1d(name, f'Sum {prefix} {quantity}', 1000, -10000, 10000)
            self.sums_squared[quantity] = store.book_1d(f'SumSquared{prefix}{quantity}',
                                                        f'Sum {prefix} {quantity} squared',
                                                        10000, 0, 10000)
            self.sums_vs_hf[quantity] = store.book_2d(f'{name}_HF',
                                                      f'HF energy (y axis) vs Sum {prefix} {quantity} (x axis)',
                                                      1000, -1000, 1000, 1000, 0, 10000)

        # quantity -> one histogram per pseudorapidity slice
        self.slice_sums: Dict[str, List[hist.Hist]] = {}
        for quantity in SUM_QUANTITIES:
            self.slice_sums[quantity] = []
            for index, label in enumerate(self.slice_labels):
                limit = slice_sum_range(index)
                lo, hi = ETA_SLICE_EDGES[index], ETA_SLICE_EDGES[index + 1]
                self.slice_sums[quantity].append(store.book_1d(
                    f'mSum{prefix}{quantity}_{label}',
                    f'Sum {prefix}{quantity} in the eta range {lo:.3f} to {hi:.3f}',
                    1000, -limit, limit,
                ))

        self.pt_vs_eta = []
        self.region_spectra = None
        if self.with_particle_ids:
            for name in PARTICLE_ID_2D_NAMES:
                h = hist.Hist(
                    hist.axis.Variable(ETA_SLICE_EDGES, name='x', label='#eta'),
                    hist.axis.Regular(300, 0, 300, name='y', label='p_{T}'),
                    storage=hist.storage.Double(),
                    name=name, label=';#eta;p_{T}',
                )
                self.pt_vs_eta.append(store.book(name, h))

            self.region_spectra = hist.Hist(
                hist.axis.StrCategory(list(CANDIDATE_REGIONS), name='region'),
                hist.axis.StrCategory(list(PARTICLE_IDS), name='particle'),
                hist.axis.Regular(300, 0, 300, name='x', label='PF candidate p_{T}'),
                storage=hist.storage.Double(),
                name='mPFCandpT', label=';PF candidate p_{T}; counts',
            )
            store.book('mPFCandpT', self.region_spectra, name_pattern=CANDIDATE_SPECTRUM_NAME)

    def _fill_particle_id(self, candidate: Candidate) -> None:
        region = candidate_region(candidate.eta, self.config.barrel_eta,
                                  self.config.endcap_eta, self.config.forward_eta)
        for pid in particle_ids_to_fill(candidate.particle_id, self.config.cumulative_particle_id_fill):
            self.pt_vs_eta[pid].fill(x=candidate.eta, y=candidate.pt)
            if region is not None:
                self.region_spectra.fill(region=region, particle=PARTICLE_IDS[pid], x=candidate.pt)

    def fill(self, candidates: Sequence[Candidate], hf_energy: float) -> int:
        """
        Fill the spectra of one event's candidates and the per-event sums.

        Parameters:
        -----------
        candidates : sequence of Candidate
        hf_energy : float
            HF energy of the event, y axis of the sum-vs-HF histograms

        Returns:
        --------
        int : number of candidates passing the pT cut
        """
        pt_min = self.config.candidate_pt_min
        use_voronoi = self.config.uses_voronoi
        n_slices = len(self.slice_labels)

        slice_sum = {quantity: np.zeros(n_slices) for quantity in SUM_QUANTITIES}
        slice_sum_squared = {quantity: np.zeros(n_slices) for quantity in SUM_QUANTITIES}
        n_accepted = 0
        total_pt = 0.0

        for candidate in candidates:
            if pt_min is not None and candidate.pt < pt_min:
                continue

            if use_voronoi:
                vs_pt, vs_pt_initial, vs_area = candidate.vs_pt, candidate.vs_pt_initial, candidate.vs_area
            else:
                vs_pt, vs_pt_initial, vs_area = 0.0, 0.0, 0.0

            n_accepted += 1
            if self.with_particle_ids:
                self._fill_particle_id(candidate)

            delta_pt = candidate.pt - vs_pt_initial
            self.delta_pt.fill(delta_pt)
            self.delta_pt_eta.fill(x=candidate.eta, y=delta_pt)

            index = eta_slice_index(candidate.eta)
            if index is not None:
                values = {'VsPtInitial': vs_pt_initial, 'VsPt': vs_pt, 'Pt': candidate.pt}
                for quantity, value in values.items():
                    slice_sum[quantity][index] += value
                    slice_sum_squared[quantity][index] += value * value

            total_pt += candidate.pt
            self.pt.fill(candidate.pt)
            self.eta.fill(candidate.eta)
            self.phi.fill(candidate.phi)
            self.vs_pt.fill(vs_pt)
            self.vs_pt_initial.fill(vs_pt_initial)
            self.area.fill(vs_area)

        for quantity in SUM_QUANTITIES:
            for index, h in enumerate(self.slice_sums[quantity]):
                h.fill(slice_sum[quantity][index])
            event_sum = slice_sum[quantity].sum()
            self.sums[quantity].fill(event_sum)
            self.sums_squared[quantity].fill(slice_sum_squared[quantity].sum())
            self.sums_vs_hf[quantity].fill(x=event_sum, y=hf_energy)

        self.multiplicity.fill(n_accepted)
        self.sum_pt.fill(total_pt)
        return n_accepted

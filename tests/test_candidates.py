import unittest

from reco_validation.jet_response.candidates import (
    PARTICLE_IDS,
    CandidateHistograms,
    particle_ids_to_fill,
    slice_sum_range,
)
from reco_validation.jet_response.jets import Candidate
from reco_validation.utils.histogram_utils import HistogramStore
from reco_validation.validation_config import resolve_config


def _count_at(h, value):
    return h.values()[h.axes[0].index(value)]


class TestParticleIdFillModes(unittest.TestCase):
    def test_fixed_mode_touches_only_matching_id(self) -> None:
        self.assertEqual(particle_ids_to_fill(1), [1])
        self.assertEqual(particle_ids_to_fill(7), [7])

    def test_cumulative_mode_touches_later_ids(self) -> None:
        self.assertEqual(particle_ids_to_fill(1, cumulative=True), [1, 2, 3, 4, 5, 6, 7])
        self.assertEqual(particle_ids_to_fill(7, cumulative=True), [7])

    def test_unknown_ids_touch_nothing(self) -> None:
        self.assertEqual(particle_ids_to_fill(None), [])
        self.assertEqual(particle_ids_to_fill(8), [])
        self.assertEqual(particle_ids_to_fill(-1, cumulative=True), [])


class TestCandidateHistograms(unittest.TestCase):
    def _book(self, options):
        store = HistogramStore()
        config = resolve_config(options)
        prefix = 'PF' if config.jet_type == 'pf' else 'Calo'
        return store, CandidateHistograms(store, prefix, config)

    def _candidates(self):
        return [
            Candidate(pt=5.0, eta=0.1, phi=0.0, particle_id=1, vs_pt=4.0, vs_pt_initial=1.0, vs_area=0.2),
            Candidate(pt=0.3, eta=0.1, phi=0.0, particle_id=1),
            Candidate(pt=3.0, eta=2.5, phi=1.0, particle_id=4),
            Candidate(pt=2.0, eta=6.0, phi=-1.0, particle_id=1),
        ]

    def test_pf_spectra_and_sums(self) -> None:
        store, histograms = self._book('akPu4PF')
        n_accepted = histograms.fill(self._candidates(), hf_energy=100.0)

        self.assertEqual(n_accepted, 3)
        self.assertEqual(_count_at(store['NPFpart'], 3), 1.0)
        self.assertEqual(store['PFPt'].sum(flow=True), 3.0)
        self.assertEqual(_count_at(store['SumpT'], 10.0), 1.0)
        # the candidate at eta 6 lies outside every slice
        self.assertEqual(_count_at(store['SumPFPt'], 8.0), 1.0)
        self.assertEqual(_count_at(store['SumSquaredPFPt'], 34.0), 1.0)
        self.assertEqual(_count_at(store['mSumPFPt_n0p522_0p522'], 5.0), 1.0)
        self.assertEqual(_count_at(store['mSumPFPt_2p043_2p650'], 3.0), 1.0)
        self.assertEqual(store['SumPFPt_HF'].sum(), 1.0)

    def test_pu_algorithm_ignores_voronoi_values(self) -> None:
        store, histograms = self._book('akPu4PF')
        histograms.fill(self._candidates(), hf_energy=100.0)
        self.assertEqual(_count_at(store['PFVsPt'], 0.0), 3.0)
        self.assertEqual(_count_at(store['DeltapT'], 5.0), 1.0)

    def test_vs_algorithm_uses_voronoi_values(self) -> None:
        store, histograms = self._book('akVs4PF')
        histograms.fill(self._candidates()[:1], hf_energy=100.0)
        self.assertEqual(_count_at(store['PFVsPt'], 4.0), 1.0)
        self.assertEqual(_count_at(store['DeltapT'], 4.0), 1.0)
        self.assertEqual(_count_at(store['SumPFVsPtInitial'], 1.0), 1.0)

    def test_region_spectra_fixed_mode(self) -> None:
        store, histograms = self._book('akPu4PF')
        histograms.fill(self._candidates(), hf_energy=100.0)
        spectra = histograms.region_spectra

        def entries(region, particle):
            axes = spectra.axes
            return spectra[{'region': axes['region'].index(region),
                            'particle': axes['particle'].index(particle)}].sum(flow=True)

        self.assertEqual(entries('Barrel', 'ChargedHadron'), 1.0)
        self.assertEqual(entries('Endcap', 'photon'), 1.0)
        self.assertEqual(entries('Barrel', 'electron'), 0.0)
        self.assertEqual(spectra.sum(flow=True), 2.0)
        self.assertEqual(store['PF_cand_chargedHad'].sum(flow=True), 2.0)

    def test_region_spectra_cumulative_mode(self) -> None:
        store, histograms = self._book({'preset': 'akPu4PF', 'cumulative_particle_id_fill': True})
        histograms.fill(self._candidates()[:1], hf_energy=100.0)
        spectra = histograms.region_spectra
        barrel = spectra[{'region': spectra.axes['region'].index('Barrel')}]
        for pid, particle in enumerate(PARTICLE_IDS):
            expected = 1.0 if pid >= 1 else 0.0
            self.assertEqual(barrel[{'particle': barrel.axes['particle'].index(particle)}].sum(flow=True),
                             expected)

    def test_calo_towers_have_no_particle_id_histograms(self) -> None:
        store, histograms = self._book('akPu4Calo')
        n_accepted = histograms.fill([Candidate(pt=0.05, eta=0.0, phi=0.0), Candidate(pt=0.2, eta=0.0, phi=0.0)],
                                     hf_energy=10.0)
        self.assertEqual(n_accepted, 1)
        self.assertIn('CaloPt', store)
        self.assertNotIn('mPFCandpT', store)
        self.assertIsNone(histograms.region_spectra)

    def test_outer_slices_have_wide_range(self) -> None:
        self.assertEqual([slice_sum_range(i) for i in (0, 1, 2, 12, 13, 14)],
                         [5000.0, 5000.0, 1000.0, 1000.0, 5000.0, 5000.0])


if __name__ == "__main__":
    unittest.main()

import unittest

from reco_validation.jet_response.binning import (
    ETA_SLICE_EDGES,
    RESPONSE_ETA_EDGES,
    classify_centrality,
    classify_pt_range,
    classify_region,
    eta_slice_index,
    eta_slice_labels,
)


class TestClassification(unittest.TestCase):
    def test_region_boundaries_are_half_open(self) -> None:
        self.assertEqual(classify_region(0.1, 2.0, 3.0, 5.1), 'B')
        self.assertEqual(classify_region(-1.99, 2.0, 3.0, 5.1), 'B')
        self.assertEqual(classify_region(2.0, 2.0, 3.0, 5.1), 'E')
        self.assertEqual(classify_region(-3.0, 2.0, 3.0, 5.1), 'F')
        self.assertIsNone(classify_region(5.1, 2.0, 3.0, 5.1))

    def test_pt_ranges(self) -> None:
        self.assertIsNone(classify_pt_range(19.99))
        self.assertEqual(classify_pt_range(20.0), '20_30')
        self.assertEqual(classify_pt_range(30.0), '30_50')
        self.assertEqual(classify_pt_range(179.9), '120_180')
        self.assertEqual(classify_pt_range(300.0), '300_Inf')
        self.assertEqual(classify_pt_range(5000.0), '300_Inf')

    def test_centrality_classes(self) -> None:
        self.assertEqual(classify_centrality(0), '0_10')
        self.assertEqual(classify_centrality(19), '0_10')
        self.assertEqual(classify_centrality(20), '10_30')
        self.assertEqual(classify_centrality(99), '30_50')
        self.assertEqual(classify_centrality(159), '50_80')
        self.assertIsNone(classify_centrality(160))
        self.assertIsNone(classify_centrality(200))


class TestEtaBinnings(unittest.TestCase):
    def test_response_eta_edges(self) -> None:
        self.assertEqual(len(RESPONSE_ETA_EDGES), 91)
        self.assertEqual(RESPONSE_ETA_EDGES[0], -6.0)
        self.assertEqual(RESPONSE_ETA_EDGES[-1], 6.0)

    def test_slice_labels(self) -> None:
        labels = eta_slice_labels()
        self.assertEqual(len(labels), len(ETA_SLICE_EDGES) - 1)
        self.assertEqual(labels[0], 'n5p191_n2p650')
        self.assertEqual(labels[7], 'n0p522_0p522')
        self.assertEqual(labels[-1], '2p650_5p191')

    def test_slice_index(self) -> None:
        self.assertEqual(eta_slice_index(-5.191), 0)
        self.assertEqual(eta_slice_index(0.0), 7)
        self.assertEqual(eta_slice_index(0.522), 8)
        self.assertEqual(eta_slice_index(5.0), 14)
        self.assertIsNone(eta_slice_index(5.191))
        self.assertIsNone(eta_slice_index(-6.0))


if __name__ == "__main__":
    unittest.main()

import os
import tempfile
import unittest

import boost_histogram as bh
import hist
import numpy as np
import uproot

from reco_validation.utils.histogram_utils import HistogramStore, expand_categories, merge_stores, to_writable


def _profile(name):
    return hist.Hist(hist.axis.Regular(10, 0, 10, name='x'), storage=hist.storage.Mean(), name=name)


class TestHistogramStore(unittest.TestCase):
    def test_booking_under_folder(self) -> None:
        store = HistogramStore()
        store.set_current_folder('/JetMET/JetValidation/test/')
        h = store.book_1d('HF', 'HF energy', 10, 0, 100)
        self.assertIs(store['HF'], h)
        self.assertIs(store['JetMET/JetValidation/test/HF'], h)
        self.assertIn('HF', store)
        self.assertEqual(len(store), 1)

    def test_duplicate_booking_raises(self) -> None:
        store = HistogramStore()
        store.book_1d('HF', 'HF energy', 10, 0, 100)
        with self.assertRaises(ValueError):
            store.book_1d('HF', 'HF energy', 10, 0, 100)

    def test_unknown_histogram_raises_key_error(self) -> None:
        with self.assertRaises(KeyError):
            HistogramStore().get('missing')

    def test_merge_adds_contents(self) -> None:
        stores = []
        for value in (1.0, 2.0, 2.5):
            store = HistogramStore()
            store.book_1d('x', 'x', 10, 0, 10).fill(value)
            store.book('p', _profile('p')).fill(value, sample=value * 2)
            stores.append(store)
        merged = merge_stores(stores)
        self.assertEqual(merged['x'].sum(), 3.0)
        self.assertAlmostEqual(merged['p'].view().value[2], 4.5)
        self.assertEqual(merged['p'].view().count[2], 2.0)

    def test_merge_rejects_different_bookings(self) -> None:
        first = HistogramStore()
        first.book_1d('x', 'x', 10, 0, 10)
        second = HistogramStore()
        second.book_1d('y', 'y', 10, 0, 10)
        with self.assertRaises(ValueError):
            first.merge(second)

    def test_merge_stores_of_nothing(self) -> None:
        self.assertIsNone(merge_stores([]))

    def test_save_and_load_roundtrip(self) -> None:
        store = HistogramStore()
        store.set_current_folder('folder')
        store.book_1d('x', 'x', 10, 0, 10).fill([1, 2, 2])
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, 'sub', 'state.pkl')
            store.save(path)
            loaded = HistogramStore.load(path)
        self.assertEqual(loaded.current_folder, 'folder')
        self.assertEqual(loaded['x'], store['x'])

    def test_write_root(self) -> None:
        store = HistogramStore()
        store.set_current_folder('JetMET/JetValidation/test')
        store.book_1d('Pt', 'Pt', 100, 0, 1000).fill([50.0, 120.0])
        store.book('Prof', _profile('Prof')).fill([1.5], sample=[0.9])
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, 'out.root')
            self.assertEqual(store.write_root(path), 2)
            with uproot.open(path) as fin:
                pt = fin['JetMET/JetValidation/test/Pt']
                self.assertEqual(pt.values().sum(), 2.0)
                prof = fin['JetMET/JetValidation/test/Prof']
                self.assertAlmostEqual(prof.values()[1], 0.9)


class TestConversions(unittest.TestCase):
    def test_expand_categories_names(self) -> None:
        h = hist.Hist(
            hist.axis.StrCategory(['B', 'E'], name='region'),
            hist.axis.Regular(4, 0, 2, name='x'),
        )
        h.fill(region='E', x=1.0)
        cells = dict(expand_categories(h, 'R_{region}'))
        self.assertEqual(sorted(cells), ['R_B', 'R_E'])
        self.assertEqual(cells['R_E'].sum(), 1.0)
        self.assertEqual(cells['R_B'].sum(), 0.0)

    def test_profile_becomes_weight_histogram(self) -> None:
        h = hist.Hist(hist.axis.Regular(2, 0, 2, name='x'), storage=hist.storage.Mean())
        h.fill([0.5, 0.5], sample=[1.0, 3.0])
        out = to_writable(h)
        self.assertTrue(issubclass(out.storage_type, bh.storage.Weight))
        self.assertAlmostEqual(out.values()[0], 2.0)
        self.assertEqual(out.values()[1], 0.0)
        self.assertTrue(np.all(np.isfinite(out.variances())))

    def test_plain_histogram_is_unchanged(self) -> None:
        h = hist.Hist(hist.axis.Regular(2, 0, 2, name='x'))
        self.assertIs(to_writable(h), h)


if __name__ == "__main__":
    unittest.main()

import os
import tempfile
import unittest

import awkward as ak
import numpy as np
import uproot

from reco_validation.jet_response.accumulator import JetResponseAccumulator
from reco_validation.utils.event_reader import EventReader, read_events
from reco_validation.utils.parallel_config import split_into_shards
from reco_validation.utils.parallel_io import close_trees, open_files_parallel
from reco_validation.utils.parallel_processing import process_files, process_files_parallel


def _arrays():
    return ak.Array({
        'hiBin': [10, 150],
        'hiHF': [2500.0, 300.0],
        'nVtx': [1, 1],
        'jtpt': [[26.0, 12.0], [45.0]],
        'jteta': [[0.12, -1.0], [2.4]],
        'jtphi': [[0.05, 1.0], [-1.0]],
        'genpt': [[25.0], [50.0]],
        'geneta': [[0.1], [2.45]],
        'genphi': [[0.0], [-1.02]],
        'candpt': [[3.0, 0.2], []],
        'candeta': [[0.2, 0.1], []],
        'candphi': [[0.1, 0.0], []],
        'candid': [[1, 4], []],
    })


class TestEventReader(unittest.TestCase):
    def test_events_from_arrays(self) -> None:
        arrays = _arrays()
        reader = EventReader()
        events = list(reader.events_from_arrays(arrays, reader.available_branches(arrays.fields)))

        self.assertEqual(len(events), 2)
        first = events[0]
        self.assertEqual(first.hibin, 10)
        self.assertEqual(first.hf_energy, 2500.0)
        self.assertEqual([jet.pt for jet in first.reco_jets], [26.0, 12.0])
        self.assertAlmostEqual(first.reco_jets[0].p, 26.0 * np.cosh(0.12))
        self.assertEqual(first.gen_jets[0].eta, 0.1)
        self.assertEqual([c.particle_id for c in first.candidates], [1, 4])
        self.assertIsNone(first.pt_hat)
        self.assertEqual(events[1].candidates, [])

    def test_missing_collection_is_none(self) -> None:
        arrays = _arrays()
        reader = EventReader()
        fields = [field for field in arrays.fields if field != 'genphi']
        events = list(reader.events_from_arrays(arrays[fields], reader.available_branches(fields)))
        self.assertIsNone(events[0].gen_jets)
        self.assertIsNotNone(events[0].reco_jets)

    def test_real_data_drops_generator_jets(self) -> None:
        arrays = _arrays()
        reader = EventReader(is_real_data=True)
        events = list(reader.events_from_arrays(arrays, reader.available_branches(arrays.fields)))
        self.assertTrue(all(event.is_real_data for event in events))
        self.assertTrue(all(event.gen_jets is None for event in events))

    def test_branch_overrides(self) -> None:
        reader = EventReader(branches={'reco_jets': {'pt': 'rawpt'}})
        self.assertEqual(reader.branches['reco_jets']['pt'], 'rawpt')
        self.assertEqual(reader.branches['reco_jets']['eta'], 'jteta')
        with self.assertRaises(ValueError):
            EventReader(branches={'tracks': {'pt': 'trkPt'}})


class TestFileProcessing(unittest.TestCase):
    def _write(self, tmpdir, name):
        path = os.path.join(tmpdir, name)
        arrays = _arrays()
        with uproot.recreate(path) as fout:
            fout['jets'] = {field: arrays[field] for field in arrays.fields}
        return path

    def test_read_events_from_root_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = self._write(tmpdir, 'ntuple.root')
            trees, failed = open_files_parallel([path, os.path.join(tmpdir, 'missing.root')], 'jets')
            self.assertEqual(len(trees), 1)
            self.assertEqual(len(failed), 1)
            try:
                events = list(read_events(trees))
            finally:
                close_trees(trees)
        self.assertEqual(len(events), 2)
        self.assertEqual(events[1].hibin, 150)

    def test_process_files(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            paths = [self._write(tmpdir, 'a.root'), self._write(tmpdir, 'b.root')]
            store, summary = process_files(paths, 'jets', 'akPu4PF')
        self.assertEqual(summary['processed'], 4)
        self.assertEqual(summary['failed files'], 0)
        accumulator = JetResponseAccumulator('akPu4PF')
        folder = accumulator.folder
        self.assertEqual(store.get(f'{folder}/HF').sum(flow=True), 4.0)

    def test_process_files_without_readable_inputs(self) -> None:
        with self.assertRaises(RuntimeError):
            process_files(['/nonexistent/file.root'], 'jets')

    def test_parallel_shards_match_single_pass(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            paths = [self._write(tmpdir, f'shard_{i}.root') for i in range(3)]
            serial_store, serial_summary = process_files(paths, 'jets', 'akPu4PF')
            parallel_store, parallel_summary = process_files_parallel(paths, 'jets', 'akPu4PF', max_workers=3)

        self.assertEqual(parallel_summary, serial_summary)
        self.assertEqual(parallel_summary['processed'], 6)
        serial = serial_store.flatten()
        parallel = parallel_store.flatten()
        self.assertEqual(sorted(parallel), sorted(serial))
        for name, h in serial.items():
            np.testing.assert_allclose(parallel[name].values(flow=True), h.values(flow=True), err_msg=name)

    def test_parallel_failure_accounting(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            good = [self._write(tmpdir, f'good_{i}.root') for i in range(3)]
            missing = os.path.join(tmpdir, 'missing.root')
            # the second shard keeps one readable file
            store, summary = process_files_parallel(good + [missing], 'jets', 'akPu4PF', max_workers=2)
            self.assertEqual(summary['processed'], 6)
            self.assertEqual(summary['failed files'], 1)

            # a shard with nothing readable is dropped, the others are merged
            store, summary = process_files_parallel(good[:2] + [missing], 'jets', 'akPu4PF', max_workers=3)
            self.assertEqual(summary['processed'], 4)
            self.assertEqual(summary['failed files'], 0)

        folder = JetResponseAccumulator('akPu4PF').folder
        self.assertEqual(store.get(f'{folder}/HF').sum(flow=True), 4.0)

    def test_parallel_without_readable_inputs(self) -> None:
        with self.assertRaises(RuntimeError):
            process_files_parallel(['/nonexistent/a.root', '/nonexistent/b.root'], 'jets', max_workers=2)


class TestSharding(unittest.TestCase):
    def test_split_into_shards(self) -> None:
        self.assertEqual(split_into_shards(list(range(7)), 3), [[0, 1, 2], [3, 4], [5, 6]])
        self.assertEqual(split_into_shards([1, 2], 5), [[1], [2]])
        self.assertEqual(split_into_shards([], 4), [])


if __name__ == "__main__":
    unittest.main()

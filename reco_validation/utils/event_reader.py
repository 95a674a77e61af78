"""
Reading flat jet ntuples into JetEvent records.

Every collection is stored as jagged branches (one entry per jet or
candidate); event quantities are scalar branches. A collection whose
required branches are missing from the tree is handed to the
accumulator as None, which it treats as missing input.
"""

from typing import Dict, Iterator, List, Optional

import awkward as ak
import numpy as np

from reco_validation.jet_response.jets import Candidate, Jet, JetEvent
from reco_validation.utils.parallel_config import DEFAULT_STEP_SIZE


# Fields that must all be present for a collection to be read
REQUIRED_JET_FIELDS = ('pt', 'eta', 'phi')
REQUIRED_CANDIDATE_FIELDS = ('pt', 'eta', 'phi')


class EventReader:
    """Converts uproot trees of jet ntuples into JetEvent records"""

    # logical field -> branch name
    DEFAULT_BRANCHES = {
        'event': {
            'hibin': 'hiBin',
            'hf_energy': 'hiHF',
            'n_good_vertices': 'nVtx',
            'pt_hat': 'pthat',
        },
        'reco_jets': {
            'pt': 'jtpt',
            'eta': 'jteta',
            'phi': 'jtphi',
            'energy': 'jte',
            'mass': 'jtm',
            'area': 'jtarea',
            'constituents': 'jtnconst',
            'pileup': 'jtpu',
        },
        'gen_jets': {
            'pt': 'genpt',
            'eta': 'geneta',
            'phi': 'genphi',
            'energy': 'gene',
            'mass': 'genm',
        },
        'candidates': {
            'pt': 'candpt',
            'eta': 'candeta',
            'phi': 'candphi',
            'particle_id': 'candid',
            'vs_pt': 'candvspt',
            'vs_pt_initial': 'candvsptinitial',
            'vs_area': 'candvsarea',
        },
    }

    def __init__(self, branches: Optional[Dict[str, Dict[str, str]]] = None,
                 is_real_data: bool = False, step_size=DEFAULT_STEP_SIZE):
        """
        Parameters:
        -----------
        branches : dict, optional
            Per-group overrides of DEFAULT_BRANCHES, e.g. {'reco_jets': {'pt': 'rawpt'}}
        is_real_data : bool
            Mark every event as collision data; generator collections are then ignored
        step_size : int or str
            Chunk size passed to uproot's iterate
        """
        self.branches = {group: dict(fields) for group, fields in self.DEFAULT_BRANCHES.items()}
        for group, fields in (branches or {}).items():
            if group not in self.branches:
                raise ValueError(f"Unknown branch group '{group}'. Available: {', '.join(self.branches)}")
            self.branches[group].update(fields)
        self.is_real_data = is_real_data
        self.step_size = step_size

    def available_branches(self, tree_keys) -> Dict[str, Dict[str, str]]:
        """Restrict the branch map to what the tree provides, dropping incomplete collections."""
        keys = set(tree_keys)
        available = {}
        for group, fields in self.branches.items():
            present = {field: branch for field, branch in fields.items() if branch in keys}
            if group in ('reco_jets', 'gen_jets', 'candidates'):
                required = REQUIRED_JET_FIELDS if group != 'candidates' else REQUIRED_CANDIDATE_FIELDS
                if not all(field in present for field in required):
                    continue
            available[group] = present
        return available

    def iterate(self, tree) -> Iterator[JetEvent]:
        """Yield one JetEvent per tree entry."""
        available = self.available_branches(tree.keys())
        expressions = sorted({branch for fields in available.values() for branch in fields.values()})
        if not expressions:
            print(f"Warning: none of the configured branches found in {tree.object_path}")
            return

        for arrays in tree.iterate(expressions, step_size=self.step_size, library='ak'):
            yield from self.events_from_arrays(arrays, available)

    def events_from_arrays(self, arrays, available: Dict[str, Dict[str, str]]) -> Iterator[JetEvent]:
        """
        Build events from one chunk of arrays.

        Parameters:
        -----------
        arrays : ak.Array
            Record array with one field per branch
        available : dict
            Output of available_branches
        """
        n_events = len(arrays)

        event_fields = {field: ak.to_list(arrays[branch])
                        for field, branch in available.get('event', {}).items()}
        reco_jets = self._jets(arrays, available.get('reco_jets'), n_events)
        gen_jets = None if self.is_real_data else self._jets(arrays, available.get('gen_jets'), n_events)
        candidates = self._candidates(arrays, available.get('candidates'), n_events)

        for i in range(n_events):
            hibin = event_fields['hibin'][i] if 'hibin' in event_fields else None
            yield JetEvent(
                reco_jets=reco_jets[i] if reco_jets is not None else None,
                gen_jets=gen_jets[i] if gen_jets is not None else None,
                hibin=int(hibin) if hibin is not None else None,
                hf_energy=float(event_fields['hf_energy'][i]) if 'hf_energy' in event_fields else 0.0,
                n_good_vertices=int(event_fields['n_good_vertices'][i]) if 'n_good_vertices' in event_fields else 0,
                pt_hat=float(event_fields['pt_hat'][i]) if 'pt_hat' in event_fields else None,
                candidates=candidates[i] if candidates is not None else None,
                is_real_data=self.is_real_data,
            )

    @staticmethod
    def _columns(arrays, fields: Dict[str, str]) -> Dict[str, List]:
        return {field: ak.to_list(arrays[branch]) for field, branch in fields.items()}

    def _jets(self, arrays, fields: Optional[Dict[str, str]], n_events: int) -> Optional[List[List[Jet]]]:
        if fields is None:
            return None
        columns = self._columns(arrays, fields)
        if 'p' not in columns:
            pt = arrays[fields['pt']]
            eta = arrays[fields['eta']]
            columns['p'] = ak.to_list(pt * np.cosh(eta))

        events = []
        for i in range(n_events):
            jets = []
            for j in range(len(columns['pt'][i])):
                jets.append(Jet(**{field: values[i][j] for field, values in columns.items()}))
            events.append(jets)
        return events

    def _candidates(self, arrays, fields: Optional[Dict[str, str]], n_events: int) -> Optional[List[List[Candidate]]]:
        if fields is None:
            return None
        columns = self._columns(arrays, fields)

        events = []
        for i in range(n_events):
            candidates = []
            for j in range(len(columns['pt'][i])):
                values = {field: column[i][j] for field, column in columns.items()}
                if values.get('particle_id') is not None:
                    values['particle_id'] = int(values['particle_id'])
                candidates.append(Candidate(**values))
            events.append(candidates)
        return events


def read_events(trees, reader: Optional[EventReader] = None) -> Iterator[JetEvent]:
    """Chain the events of several opened trees."""
    reader = reader or EventReader()
    for tree in trees:
        yield from reader.iterate(tree)

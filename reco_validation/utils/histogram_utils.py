"""Booking, merging and persistence of the validation histograms."""

import itertools
import os
import pickle
from typing import Dict, Iterator, List, Optional, Tuple

import boost_histogram as bh
import hist
import numpy as np
import uproot


class HistogramStore:
    """
    Folder-aware container of booked ``hist.Hist`` objects.

    Histograms are addressed by ``'<folder>/<name>'``. Keyed histograms
    (string-category axes) carry a name pattern so that every category
    combination can be written out as an individual histogram.
    """

    def __init__(self):
        self._folder = ''
        self._histograms: Dict[str, hist.Hist] = {}
        self._name_patterns: Dict[str, str] = {}

    # ------------------------------------------------------------------
    # Booking
    # ------------------------------------------------------------------
    def set_current_folder(self, folder: str) -> None:
        self._folder = folder.strip('/')

    @property
    def current_folder(self) -> str:
        return self._folder

    def _path(self, name: str) -> str:
        return f"{self._folder}/{name}" if self._folder else name

    def book(self, name: str, histogram: hist.Hist, name_pattern: Optional[str] = None) -> hist.Hist:
        """Register an already constructed histogram under the current folder."""
        path = self._path(name)
        if path in self._histograms:
            raise ValueError(f"Histogram '{path}' is already booked")
        self._histograms[path] = histogram
        if name_pattern is not None:
            self._name_patterns[path] = name_pattern
        return histogram

    def book_1d(self, name: str, title: str, nbins: int, lo: float, hi: float) -> hist.Hist:
        h = hist.Hist(hist.axis.Regular(nbins, lo, hi, name='x'), storage=hist.storage.Double(),
                      name=name, label=title)
        return self.book(name, h)

    def book_2d(self, name: str, title: str, nx: int, xlo: float, xhi: float,
                ny: int, ylo: float, yhi: float) -> hist.Hist:
        h = hist.Hist(
            hist.axis.Regular(nx, xlo, xhi, name='x'),
            hist.axis.Regular(ny, ylo, yhi, name='y'),
            storage=hist.storage.Double(),
            name=name, label=title,
        )
        return self.book(name, h)

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------
    def get(self, name: str) -> hist.Hist:
        """Look a histogram up by full path, or by name within the current folder."""
        if name in self._histograms:
            return self._histograms[name]
        path = self._path(name)
        if path in self._histograms:
            return self._histograms[path]
        raise KeyError(f"No histogram booked as '{name}'")

    def __getitem__(self, name: str) -> hist.Hist:
        return self.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._histograms or self._path(name) in self._histograms

    def __len__(self) -> int:
        return len(self._histograms)

    def keys(self) -> List[str]:
        return list(self._histograms.keys())

    def items(self) -> Iterator[Tuple[str, hist.Hist]]:
        return iter(self._histograms.items())

    def name_pattern(self, path: str) -> Optional[str]:
        return self._name_patterns.get(path)

    # ------------------------------------------------------------------
    # Combination
    # ------------------------------------------------------------------
    def merge(self, other: 'HistogramStore') -> 'HistogramStore':
        """Add the contents of another store booked with the same layout."""
        missing = set(other._histograms) ^ set(self._histograms)
        if missing:
            raise ValueError(f"Cannot merge stores with different bookings: {sorted(missing)[:5]}")
        for path, h in other._histograms.items():
            self._histograms[path] += h
        return self

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def save(self, path: str) -> None:
        """Pickle the full state, including keyed grids and profile storages."""
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        payload = {
            'folder': self._folder,
            'histograms': self._histograms,
            'name_patterns': self._name_patterns,
        }
        with open(path, 'wb') as handle:
            pickle.dump(payload, handle)

    @classmethod
    def load(cls, path: str) -> 'HistogramStore':
        with open(path, 'rb') as handle:
            payload = pickle.load(handle)
        store = cls()
        store._folder = payload['folder']
        store._histograms = payload['histograms']
        store._name_patterns = payload['name_patterns']
        return store

    def flatten(self) -> Dict[str, hist.Hist]:
        """
        Expand keyed histograms into one histogram per category combination
        and convert profiles to mean-valued histograms.
        """
        flat = {}
        for path, h in self._histograms.items():
            pattern = self._name_patterns.get(path)
            if pattern is None:
                flat[path] = to_writable(h)
                continue
            folder = path.rsplit('/', 1)[0] if '/' in path else ''
            for name, cell in expand_categories(h, pattern):
                flat[f"{folder}/{name}" if folder else name] = to_writable(cell)
        return flat

    def write_root(self, path: str) -> int:
        """Write every histogram into a ROOT file with uproot. Returns the number written."""
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        flat = self.flatten()
        with uproot.recreate(path) as fout:
            for key, h in flat.items():
                fout[key] = h
        print(f"Wrote {len(flat)} histograms to {path}")
        return len(flat)


def category_axes(h: hist.Hist) -> List:
    return [axis for axis in h.axes if isinstance(axis, hist.axis.StrCategory)]


def expand_categories(h: hist.Hist, pattern: str):
    """
    Yield (name, histogram) for every combination of the string-category axes
    of h. The name is pattern formatted with the axis names as keys.
    """
    cat_axes = category_axes(h)
    labels = [list(axis) for axis in cat_axes]
    for combo in itertools.product(*labels):
        selection = {axis.name: axis.index(value) for axis, value in zip(cat_axes, combo)}
        name = pattern.format(**{axis.name: value for axis, value in zip(cat_axes, combo)})
        yield name, h[selection]


def is_profile(h) -> bool:
    # sliced histograms report the boost-histogram storage class
    return issubclass(h.storage_type, bh.storage.Mean)


def to_writable(h: hist.Hist) -> hist.Hist:
    """Profiles (Mean storage) become Weight histograms of mean +/- error of the mean."""
    if not is_profile(h):
        return h
    out = hist.Hist(*h.axes, storage=hist.storage.Weight(), name=h.name, label=h.label)
    view = out.view()
    view.value = np.nan_to_num(h.values())
    view.variance = np.nan_to_num(h.variances())
    return out


def merge_stores(stores: List[HistogramStore]) -> Optional[HistogramStore]:
    """Sum a list of stores into the first one. Returns None for an empty list."""
    stores = [store for store in stores if store is not None]
    if not stores:
        return None
    merged = stores[0]
    for store in stores[1:]:
        merged.merge(store)
    return merged

"""
Per-event record types handed to the jet response accumulator.

Everything here is transient: built by the event reader for one event and
dropped once the event has been processed.
"""

from typing import List, NamedTuple, Optional


class Jet(NamedTuple):
    """Generator or reconstructed jet. Only pt/eta/phi take part in matching."""
    pt: float
    eta: float
    phi: float
    energy: float = 0.0
    mass: float = 0.0
    area: float = 0.0
    constituents: int = 0
    pileup: float = 0.0
    p: float = 0.0


class Candidate(NamedTuple):
    """Particle-flow candidate or calorimeter tower entering the jet clustering."""
    pt: float
    eta: float
    phi: float
    particle_id: Optional[int] = None
    vs_pt: float = 0.0
    vs_pt_initial: float = 0.0
    vs_area: float = 0.0


class MatchResult(NamedTuple):
    """Closest reconstructed jet found for one generator jet."""
    gen_jet: Jet
    reco_index: int
    best_reco_pt: float
    delta_r: float

    @property
    def response(self):
        if self.gen_jet.pt <= 0:
            raise ValueError(f"Generator jet pT must be positive, got {self.gen_jet.pt}")
        return self.best_reco_pt / self.gen_jet.pt


class JetEvent(NamedTuple):
    """
    Inputs of one event. A collection set to None is treated as missing.

    Parameters:
    -----------
    reco_jets : list of Jet or None
        Reconstructed jets, already restricted to the detector acceptance
    gen_jets : list of Jet or None
        Generator-level jets (None for real data or when unavailable)
    hibin : int or None
        Centrality bin, lower means more central
    hf_energy : float
        Summed HF tower Et
    n_good_vertices : int
        Number of vertices passing the quality selection
    pt_hat : float or None
        Generator pT-hat, if the generator provided binning values
    candidates : list of Candidate or None
        PF candidates or calorimeter towers
    is_real_data : bool
        Generator information is ignored for real data
    """
    reco_jets: Optional[List[Jet]]
    gen_jets: Optional[List[Jet]] = None
    hibin: Optional[int] = None
    hf_energy: float = 0.0
    n_good_vertices: int = 0
    pt_hat: Optional[float] = None
    candidates: Optional[List[Candidate]] = None
    is_real_data: bool = False

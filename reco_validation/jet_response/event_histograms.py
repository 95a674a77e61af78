"""Event-level and jet-kinematics histograms."""

from typing import Optional, Sequence

from reco_validation.jet_response.jets import Jet


# name -> (title, nbins, lo, hi, attribute)
RECO_JET_HISTOGRAMS = {
    'Eta': ('Eta', 120, -6.0, 6.0, 'eta'),
    'Phi': ('Phi', 70, -3.5, 3.5, 'phi'),
    'Pt': ('Pt', 100, 0.0, 1000.0, 'pt'),
    'P': ('P', 100, 0.0, 1000.0, 'p'),
    'Energy': ('Energy', 100, 0.0, 1000.0, 'energy'),
    'Mass': ('Mass', 100, 0.0, 200.0, 'mass'),
    'Constituents': ('Constituents', 100, 0.0, 100.0, 'constituents'),
    'JetArea': ('JetArea', 100, 0.0, 4.0, 'area'),
    'jetPileUp': ('jetPileUp', 100, 0.0, 150.0, 'pileup'),
}

GEN_JET_HISTOGRAMS = {
    'GenEta': ('Gen jet eta', 120, -6.0, 6.0, 'eta'),
    'GenPhi': ('Gen jet phi', 70, -3.5, 3.5, 'phi'),
    'GenPt': ('Gen jet p_{T}', 100, 0.0, 1000.0, 'pt'),
}

# Jets above this pT are counted in NJets_pt_greater_40
HIGH_PT_JET_THRESHOLD = 40.0


class EventHistograms:
    """Event variables plus reconstructed and generator jet spectra."""

    def __init__(self, store):
        self.nvtx = store.book_1d('Nvtx', 'number of vertices', 60, 0, 60)
        self.hf = store.book_1d('HF', 'HF energy distribution', 1000, 0, 10000)
        self.pt_hat = store.book_1d('PtHat', 'p_{T}hat', 100, 0, 1000)

        self.reco = {}
        for name, (title, nbins, lo, hi, attribute) in RECO_JET_HISTOGRAMS.items():
            self.reco[name] = (store.book_1d(name, title, nbins, lo, hi), attribute)
        self.njets = store.book_1d('NJets', 'NJets', 50, 0, 100)
        self.njets_40 = store.book_1d('NJets_pt_greater_40', 'NJets pT > 40 GeV', 50, 0, 100)

        self.gen = {}
        for name, (title, nbins, lo, hi, attribute) in GEN_JET_HISTOGRAMS.items():
            self.gen[name] = (store.book_1d(name, title, nbins, lo, hi), attribute)

    def fill_event(self, hf_energy: float, n_good_vertices: int) -> None:
        self.hf.fill(hf_energy)
        self.nvtx.fill(n_good_vertices)

    def fill_pt_hat(self, pt_hat: Optional[float]) -> None:
        if pt_hat is not None:
            self.pt_hat.fill(pt_hat)

    def fill_reco_jets(self, reco_jets: Sequence[Jet], pt_threshold: float) -> int:
        """Fill the reco spectra for jets above pt_threshold. Returns the number of such jets."""
        n_selected = 0
        n_high_pt = 0
        for jet in reco_jets:
            if jet.pt <= pt_threshold:
                continue
            n_selected += 1
            if jet.pt > HIGH_PT_JET_THRESHOLD:
                n_high_pt += 1
            for h, attribute in self.reco.values():
                h.fill(getattr(jet, attribute))

        self.njets.fill(len(reco_jets))
        self.njets_40.fill(n_high_pt)
        return n_selected

    def fill_gen_jets(self, gen_jets: Sequence[Jet], pt_threshold: float) -> int:
        n_selected = 0
        for jet in gen_jets:
            if jet.pt <= pt_threshold:
                continue
            n_selected += 1
            for h, attribute in self.gen.values():
                h.fill(getattr(jet, attribute))
        return n_selected

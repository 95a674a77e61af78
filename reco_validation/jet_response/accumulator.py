"""
Jet response accumulator for heavy-ion jet validation.

The accumulator is used in three phases:

1. ``configure(options)`` selects the jet collection and its cuts,
2. ``prepare_storage()`` books every histogram into a HistogramStore,
3. ``process_event(event)`` is called once per event.
"""

from collections import Counter
from typing import Dict, List, NamedTuple, Optional

from reco_validation.jet_response.candidates import CandidateHistograms
from reco_validation.jet_response.event_histograms import EventHistograms
from reco_validation.jet_response.jets import JetEvent, MatchResult
from reco_validation.jet_response.matching import MATCH_RECO_PT_MIN, match as match_jets
from reco_validation.jet_response.response_grid import ResponseHistogramGrid, accumulate as accumulate_match
from reco_validation.utils.histogram_utils import HistogramStore
from reco_validation.validation_config import ValidationConfig, resolve_config


FOLDER_TEMPLATE = 'JetMET/JetValidation/{label}'

STATUS_PROCESSED = 'processed'
STATUS_SKIPPED = 'skipped'


class EventResult(NamedTuple):
    """Outcome of process_event for one event."""
    status: str
    n_matches: int = 0
    n_accumulated: int = 0
    reason: Optional[str] = None

    @property
    def skipped(self):
        return self.status == STATUS_SKIPPED


class JetResponseAccumulator:
    """Matches generator to reconstructed jets and fills the validation histograms."""

    def __init__(self, options=None):
        self.config: ValidationConfig = resolve_config(options)
        self.store: Optional[HistogramStore] = None
        self.grid: Optional[ResponseHistogramGrid] = None
        self.event_histograms: Optional[EventHistograms] = None
        self.candidate_histograms: Optional[CandidateHistograms] = None
        self.status_counts = Counter()
        self.skip_reasons = Counter()

    def configure(self, options) -> ValidationConfig:
        """
        Select the configuration before any histogram is booked.

        Parameters:
        -----------
        options : ValidationConfig, str or dict
            See validation_config.resolve_config
        """
        if self.store is not None:
            raise RuntimeError("Cannot reconfigure after prepare_storage()")
        self.config = resolve_config(options)
        return self.config

    @property
    def folder(self) -> str:
        return FOLDER_TEMPLATE.format(label=self.config.label)

    def prepare_storage(self, booking_context: Optional[HistogramStore] = None) -> HistogramStore:
        """Book every histogram under JetMET/JetValidation/<label> and return the store."""
        if self.store is not None:
            raise RuntimeError("Storage already prepared")
        store = booking_context if booking_context is not None else HistogramStore()
        store.set_current_folder(self.folder)

        self.event_histograms = EventHistograms(store)
        if self.config.has_candidates:
            self.candidate_histograms = CandidateHistograms(store, self.config.candidate_prefix, self.config)
        self.grid = ResponseHistogramGrid(store)
        self.store = store
        return store

    def _require_storage(self):
        if self.store is None:
            raise RuntimeError("prepare_storage() must be called before filling histograms")

    def match(self, gen_jets, reco_jets) -> List[MatchResult]:
        return match_jets(gen_jets, reco_jets, self.config.match_gen_pt_threshold,
                          reco_pt_min=MATCH_RECO_PT_MIN)

    def accumulate(self, match_result: MatchResult, hibin: int) -> bool:
        self._require_storage()
        return accumulate_match(match_result, hibin, self.grid, self.config)

    def _skip(self, reason: str, n_matches: int = 0) -> EventResult:
        self.status_counts[STATUS_SKIPPED] += 1
        self.skip_reasons[reason] += 1
        return EventResult(STATUS_SKIPPED, n_matches=n_matches, reason=reason)

    def process_event(self, event: JetEvent) -> EventResult:
        """
        Run the full per-event sequence.

        Event-level and candidate histograms are filled before the jet
        collections are checked, so an event with missing reconstructed
        jets still contributes to them.
        """
        self._require_storage()
        config = self.config

        self.event_histograms.fill_event(event.hf_energy, event.n_good_vertices)

        if event.hibin is None:
            return self._skip('missing centrality')

        if self.candidate_histograms is not None and event.candidates is not None:
            self.candidate_histograms.fill(event.candidates, event.hf_energy)

        if event.reco_jets is None:
            return self._skip('missing reconstructed jets')

        self.event_histograms.fill_reco_jets(event.reco_jets, config.reco_jet_pt_threshold)

        n_matches = 0
        n_accumulated = 0
        if not event.is_real_data:
            self.event_histograms.fill_pt_hat(event.pt_hat)
            if event.gen_jets is None:
                return self._skip('missing generator jets')

            self.event_histograms.fill_gen_jets(event.gen_jets, config.match_gen_pt_threshold)

            results = self.match(event.gen_jets, event.reco_jets)
            n_matches = len(results)
            for result in results:
                if self.accumulate(result, event.hibin):
                    n_accumulated += 1

        self.status_counts[STATUS_PROCESSED] += 1
        return EventResult(STATUS_PROCESSED, n_matches=n_matches, n_accumulated=n_accumulated)

    def summary(self) -> Dict[str, int]:
        counts = {
            'processed': self.status_counts[STATUS_PROCESSED],
            'skipped': self.status_counts[STATUS_SKIPPED],
        }
        for reason, count in self.skip_reasons.items():
            counts[f"skipped ({reason})"] = count
        return counts

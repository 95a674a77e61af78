class ValidationConfig:
    """Configuration class for the different jet collections under validation"""

    # Default cut values, pT in GeV
    DEFAULT_THRESHOLDS = {
        'reco_jet_pt_threshold': 10.0,
        'match_gen_pt_threshold': 20.0,
        'r_threshold': 0.3,
    }

    # |eta| upper edges of the barrel, endcap and forward regions
    DEFAULT_REGION_ETA = {
        'barrel_eta': 2.0,
        'endcap_eta': 3.0,
        'forward_eta': 5.1,
    }

    # Candidate pT (Et for towers) thresholds per jet type
    CANDIDATE_PT_MIN = {
        'pf': 0.5,
        'calo': 0.1,
        'jpt': None,
    }

    # Histogram name prefix of each candidate collection
    CANDIDATE_PREFIX = {
        'pf': 'PF',
        'calo': 'Calo',
        'jpt': None,
    }

    JET_TYPES = ('calo', 'jpt', 'pf')
    UE_ALGOS = ('Pu', 'Vs')

    def __init__(self, name, jet_type, ue_algo, label=None, thresholds=None,
                 region_eta=None, cumulative_particle_id_fill=False):
        """
        Parameters:
        -----------
        name : str
            Configuration name (e.g., 'akPu3PF', 'akVs4Calo')
        jet_type : str
            Type of reconstructed jet ('calo', 'jpt' or 'pf')
        ue_algo : str
            Underlying-event subtraction ('Pu' or 'Vs')
        label : str, optional
            Collection label used for the histogram folder (defaults to name)
        thresholds : dict, optional
            Override default cut values
        region_eta : dict, optional
            Override default region boundaries
        cumulative_particle_id_fill : bool
            Fill every particle-id category from the candidate's own id
            onwards instead of the matching one only
        """
        self.name = name
        self.jet_type = jet_type.lower()
        self.ue_algo = ue_algo
        self.label = label or name
        self.cumulative_particle_id_fill = bool(cumulative_particle_id_fill)

        if self.jet_type not in self.JET_TYPES:
            raise ValueError(f"Unsupported jet type '{jet_type}'. Supported: {', '.join(self.JET_TYPES)}")
        if self.ue_algo not in self.UE_ALGOS:
            raise ValueError(f"Unsupported UE algorithm '{ue_algo}'. Supported: {', '.join(self.UE_ALGOS)}")

        self.thresholds = dict(self.DEFAULT_THRESHOLDS)
        self.region_eta = dict(self.DEFAULT_REGION_ETA)
        if thresholds:
            self.thresholds.update(thresholds)
        if region_eta:
            self.region_eta.update(region_eta)

        self.validate()

    @property
    def reco_jet_pt_threshold(self):
        return self.thresholds['reco_jet_pt_threshold']

    @property
    def match_gen_pt_threshold(self):
        return self.thresholds['match_gen_pt_threshold']

    @property
    def r_threshold(self):
        return self.thresholds['r_threshold']

    @property
    def barrel_eta(self):
        return self.region_eta['barrel_eta']

    @property
    def endcap_eta(self):
        return self.region_eta['endcap_eta']

    @property
    def forward_eta(self):
        return self.region_eta['forward_eta']

    @property
    def candidate_pt_min(self):
        return self.CANDIDATE_PT_MIN[self.jet_type]

    @property
    def candidate_prefix(self):
        return self.CANDIDATE_PREFIX[self.jet_type]

    @property
    def has_candidates(self):
        return self.candidate_pt_min is not None

    @property
    def uses_voronoi(self):
        return self.ue_algo == 'Vs'

    def validate(self):
        if not (0 < self.barrel_eta < self.endcap_eta < self.forward_eta):
            raise ValueError(
                f"Region boundaries must satisfy 0 < barrel < endcap < forward, got "
                f"{self.barrel_eta}, {self.endcap_eta}, {self.forward_eta}"
            )
        if self.r_threshold <= 0:
            raise ValueError(f"r_threshold must be positive, got {self.r_threshold}")
        if self.match_gen_pt_threshold < 0 or self.reco_jet_pt_threshold < 0:
            raise ValueError("pT thresholds must not be negative")

    def with_overrides(self, overrides):
        """Return a copy with the given threshold / region overrides applied."""
        thresholds = {}
        region_eta = {}
        cumulative = self.cumulative_particle_id_fill
        for key, value in (overrides or {}).items():
            if key in self.DEFAULT_THRESHOLDS:
                thresholds[key] = float(value)
            elif key in self.DEFAULT_REGION_ETA:
                region_eta[key] = float(value)
            elif key == 'cumulative_particle_id_fill':
                cumulative = bool(value)
            else:
                raise ValueError(f"Unknown configuration key '{key}'")

        merged_thresholds = dict(self.thresholds)
        merged_thresholds.update(thresholds)
        merged_region = dict(self.region_eta)
        merged_region.update(region_eta)
        return ValidationConfig(
            self.name, self.jet_type, self.ue_algo, label=self.label,
            thresholds=merged_thresholds, region_eta=merged_region,
            cumulative_particle_id_fill=cumulative,
        )

    def __repr__(self):
        return (f"ValidationConfig(name={self.name!r}, jet_type={self.jet_type!r}, "
                f"ue_algo={self.ue_algo!r}, thresholds={self.thresholds}, region_eta={self.region_eta})")


def get_validation_configs():

    VALIDATION_CONFIGS = {
    'akPu3Calo': ValidationConfig(
        name='akPu3Calo',
        jet_type='calo',
        ue_algo='Pu',
        label='akPu3CaloJets'
    ),
    'akPu4Calo': ValidationConfig(
        name='akPu4Calo',
        jet_type='calo',
        ue_algo='Pu',
        label='akPu4CaloJets'
    ),
    'akPu5Calo': ValidationConfig(
        name='akPu5Calo',
        jet_type='calo',
        ue_algo='Pu',
        label='akPu5CaloJets'
    ),
    'akPu3PF': ValidationConfig(
        name='akPu3PF',
        jet_type='pf',
        ue_algo='Pu',
        label='akPu3PFJets'
    ),
    'akPu4PF': ValidationConfig(
        name='akPu4PF',
        jet_type='pf',
        ue_algo='Pu',
        label='akPu4PFJets'
    ),
    'akPu5PF': ValidationConfig(
        name='akPu5PF',
        jet_type='pf',
        ue_algo='Pu',
        label='akPu5PFJets'
    ),
    'akVs3Calo': ValidationConfig(
        name='akVs3Calo',
        jet_type='calo',
        ue_algo='Vs',
        label='akVs3CaloJets'
    ),
    'akVs4Calo': ValidationConfig(
        name='akVs4Calo',
        jet_type='calo',
        ue_algo='Vs',
        label='akVs4CaloJets'
    ),
    'akVs3PF': ValidationConfig(
        name='akVs3PF',
        jet_type='pf',
        ue_algo='Vs',
        label='akVs3PFJets'
    ),
    'akVs4PF': ValidationConfig(
        name='akVs4PF',
        jet_type='pf',
        ue_algo='Vs',
        label='akVs4PFJets'
    ),
    }

    return VALIDATION_CONFIGS


def resolve_config(options=None):
    """
    Turn the accepted configuration inputs into a ValidationConfig.

    Parameters:
    -----------
    options : ValidationConfig, str or dict, optional
        An existing configuration, a preset name from get_validation_configs(),
        or a dict with an optional 'preset' entry plus override keys
    """
    if options is None:
        return get_validation_configs()['akPu4PF']
    if isinstance(options, ValidationConfig):
        options.validate()
        return options

    presets = get_validation_configs()
    if isinstance(options, str):
        try:
            return presets[options]
        except KeyError as exc:
            raise ValueError(f"Unknown preset '{options}'. Available: {', '.join(sorted(presets))}") from exc

    if isinstance(options, dict):
        overrides = dict(options)
        preset_name = overrides.pop('preset', 'akPu4PF')
        base = resolve_config(preset_name)
        return base.with_overrides(overrides)

    raise ValueError(f"Cannot build a configuration from {type(options).__name__}")

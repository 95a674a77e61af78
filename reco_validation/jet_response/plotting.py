import numpy as np
import matplotlib.pyplot as plt
import mplhep as hep

from reco_validation.jet_response.binning import (
    CENTRALITY_LABELS,
    PT_RANGE_LABELS,
    REGION_NAMES,
    REGIONS,
)


def _pt_range_text(label):
    lo, hi = label.split('_')
    if hi == 'Inf':
        return rf'$p_T^{{gen}} > {lo}$ GeV'
    return rf'${lo} < p_T^{{gen}} < {hi}$ GeV'


def _centrality_text(label):
    lo, hi = label.split('_')
    return f'{lo}-{hi}%'


def _save(fig, output_prefix, suffix):
    if output_prefix:
        fig.savefig(f'{output_prefix}_{suffix}.png')
        fig.savefig(f'{output_prefix}_{suffix}.pdf')
        print(f"Saved {output_prefix}_{suffix}.png/.pdf")


def plot_response_distributions(grid, centrality='0_10', output_prefix=None, density=True):
    """
    One panel per pseudorapidity region with the recopt/genpt distribution
    of every generator pT range overlaid.
    """
    plt.style.use(hep.style.CMS)
    fig, axes = plt.subplots(1, len(REGIONS), figsize=(8 * len(REGIONS), 7), sharey=True)
    fig.suptitle(f'Jet response, centrality {_centrality_text(centrality)}', fontsize=22)

    for ax, region in zip(np.atleast_1d(axes), REGIONS):
        drawn = 0
        for pt_range in PT_RANGE_LABELS:
            h = grid.cell('response', region=region, pt_range=pt_range, centrality=centrality)
            if h.sum() <= 0:
                continue
            hep.histplot(h, ax=ax, density=density, label=_pt_range_text(pt_range))
            drawn += 1

        ax.set_title(REGION_NAMES[region], fontsize=18)
        ax.set_xlabel(r'$p_T^{reco}/p_T^{gen}$', fontsize=18)
        ax.axvline(1.0, color='grey', linestyle='--', linewidth=1)
        if drawn:
            ax.legend(fontsize=12)

    np.atleast_1d(axes)[0].set_ylabel('Normalized entries' if density else 'Entries', fontsize=18)
    fig.tight_layout()
    _save(fig, output_prefix, f'response_cent_{centrality}')
    plt.close(fig)
    return fig


def _profile_points(h):
    """Bin centers, means and errors of the mean for the filled bins of a profile."""
    view = h.view()
    centers = h.axes[0].centers
    counts = view.count
    filled = counts > 0
    means = view.value[filled]
    errors = np.sqrt(np.nan_to_num(h.variances()[filled]))
    return centers[filled], means, errors


def plot_response_profiles(grid, output_prefix=None):
    """Mean response vs log10(genpt) per region and vs geneta per pT range."""
    plt.style.use(hep.style.CMS)
    fig, axes = plt.subplots(2, len(REGIONS), figsize=(8 * len(REGIONS), 13))

    for ax, region in zip(axes[0], REGIONS):
        drawn = 0
        for centrality in CENTRALITY_LABELS:
            h = grid.cell('response_vs_genpt', region=region, centrality=centrality)
            x, y, yerr = _profile_points(h)
            if len(x) == 0:
                continue
            ax.errorbar(10 ** x, y, yerr=yerr, fmt='o', markersize=4,
                        label=_centrality_text(centrality))
            drawn += 1
        ax.set_xscale('log')
        ax.set_title(REGION_NAMES[region], fontsize=18)
        ax.set_xlabel(r'$p_T^{gen}$ [GeV]', fontsize=18)
        ax.set_ylabel(r'$\langle p_T^{reco}/p_T^{gen} \rangle$', fontsize=18)
        ax.axhline(1.0, color='grey', linestyle='--', linewidth=1)
        if drawn:
            ax.legend(fontsize=12)

    # Low, intermediate and high generator pT
    selected_ranges = (PT_RANGE_LABELS[0], PT_RANGE_LABELS[3], PT_RANGE_LABELS[-1])
    for ax, pt_range in zip(axes[1], selected_ranges):
        drawn = 0
        for centrality in CENTRALITY_LABELS:
            h = grid.cell('response_vs_geneta', pt_range=pt_range, centrality=centrality)
            x, y, yerr = _profile_points(h)
            if len(x) == 0:
                continue
            ax.errorbar(x, y, yerr=yerr, fmt='o', markersize=4, label=_centrality_text(centrality))
            drawn += 1
        ax.set_title(_pt_range_text(pt_range), fontsize=18)
        ax.set_xlabel(r'$\eta^{gen}$', fontsize=18)
        ax.set_ylabel(r'$\langle p_T^{reco}/p_T^{gen} \rangle$', fontsize=18)
        ax.axhline(1.0, color='grey', linestyle='--', linewidth=1)
        if drawn:
            ax.legend(fontsize=12)

    fig.tight_layout()
    _save(fig, output_prefix, 'response_profiles')
    plt.close(fig)
    return fig


def plot_jet_spectra(store, folder, output_prefix=None):
    """Reconstructed and generator jet kinematics from a filled HistogramStore."""
    plt.style.use(hep.style.CMS)
    names = ('Pt', 'Eta', 'Phi', 'GenPt', 'GenEta', 'GenPhi')
    fig, axes = plt.subplots(2, 3, figsize=(22, 13))

    for ax, name in zip(axes.flat, names):
        h = store.get(f'{folder}/{name}')
        hep.histplot(h, ax=ax, histtype='fill', alpha=0.6)
        ax.set_xlabel(h.label or name, fontsize=18)
        ax.set_ylabel('Jets', fontsize=18)
        if name.endswith('Pt'):
            ax.set_yscale('log')

    fig.tight_layout()
    _save(fig, output_prefix, 'jet_spectra')
    plt.close(fig)
    return fig

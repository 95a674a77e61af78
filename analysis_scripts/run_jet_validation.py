#!/usr/bin/env python3
"""
Heavy-ion jet validation over flat jet ntuples.

Example:
    python analysis_scripts/run_jet_validation.py ntuples/*.root \
        --preset akVs4PF --set r_threshold=0.2 --output jet_validation.root --plots plots/akVs4PF
"""

import argparse
import sys

from reco_validation.jet_response.accumulator import FOLDER_TEMPLATE
from reco_validation.jet_response.plotting import (
    plot_jet_spectra,
    plot_response_distributions,
    plot_response_profiles,
)
from reco_validation.jet_response.response_grid import ResponseHistogramGrid
from reco_validation.utils.event_reader import EventReader
from reco_validation.utils.parallel_processing import process_files, process_files_parallel
from reco_validation.validation_config import get_validation_configs, resolve_config


def parse_overrides(items):
    """Turn ['r_threshold=0.2', ...] into a dict."""
    overrides = {}
    for item in items or []:
        if '=' not in item:
            raise ValueError(f"Override '{item}' is not of the form key=value")
        key, value = item.split('=', 1)
        if key == 'cumulative_particle_id_fill':
            overrides[key] = value.lower() in ('1', 'true', 'yes')
        else:
            try:
                overrides[key] = float(value)
            except ValueError as exc:
                raise ValueError(f"Override '{key}' needs a numeric value, got '{value}'") from exc
    return overrides


def build_parser():
    parser = argparse.ArgumentParser(description='Jet response validation for heavy-ion jet collections')
    parser.add_argument('inputs', nargs='+', help='Input ROOT ntuples')
    parser.add_argument('--tree', default='jets', help='Tree name inside the input files')
    parser.add_argument('--preset', default='akPu4PF', choices=sorted(get_validation_configs()),
                        help='Jet collection preset')
    parser.add_argument('--set', dest='overrides', action='append', metavar='KEY=VALUE',
                        help='Override a threshold or region boundary (repeatable)')
    parser.add_argument('--data', action='store_true', help='Inputs are collision data (no generator jets)')
    parser.add_argument('--output', default='jet_validation.root', help='Output ROOT file')
    parser.add_argument('--save-state', default=None, help='Also pickle the full histogram store here')
    parser.add_argument('--workers', type=int, default=None,
                        help='Worker processes (1 disables multiprocessing)')
    parser.add_argument('--plots', default=None, metavar='PREFIX', help='Write summary plots with this prefix')
    parser.add_argument('-q', '--quiet', action='store_true', help='Only print the final summary')
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        options = parse_overrides(args.overrides)
        options['preset'] = args.preset
        config = resolve_config(options)
    except ValueError as exc:
        parser.error(str(exc))

    reader = EventReader(is_real_data=args.data)

    if not args.quiet:
        print(f"Configuration: {config}")
        print(f"Input files: {len(args.inputs)}")

    if args.workers == 1:
        store, summary = process_files(args.inputs, args.tree, config, reader)
    else:
        store, summary = process_files_parallel(args.inputs, args.tree, config, reader,
                                                max_workers=args.workers)

    print("\nEvent summary:")
    for key, count in summary.items():
        print(f"  {key}: {count}")
    if summary.get('skipped', 0):
        print(f"Warning: {summary['skipped']} events skipped because of missing inputs")

    store.write_root(args.output)
    if args.save_state:
        store.save(args.save_state)
        print(f"Saved histogram store to {args.save_state}")

    if args.plots:
        folder = FOLDER_TEMPLATE.format(label=config.label)
        grid = ResponseHistogramGrid.from_store(store, folder)
        for centrality in ('0_10', '50_80'):
            plot_response_distributions(grid, centrality=centrality, output_prefix=args.plots)
        plot_response_profiles(grid, output_prefix=args.plots)
        plot_jet_spectra(store, folder, output_prefix=args.plots)

    return 0


if __name__ == '__main__':
    sys.exit(main())

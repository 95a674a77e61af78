"""
Sharded event processing.

The input files are split into shards. Every shard is processed by its
own worker process with a private accumulator and HistogramStore; the
stores are summed once all shards are done.
"""

import multiprocessing as mp
import time
import traceback
from collections import Counter
from typing import Dict, List, Optional, Tuple

from reco_validation.jet_response.accumulator import JetResponseAccumulator
from reco_validation.utils.event_reader import EventReader, read_events
from reco_validation.utils.histogram_utils import HistogramStore, merge_stores
from reco_validation.utils.parallel_config import get_optimal_worker_count, split_into_shards
from reco_validation.utils.parallel_io import close_trees, open_files_parallel


def process_files(file_paths: List[str], tree_name: str, options=None,
                  reader: Optional[EventReader] = None,
                  max_io_workers: Optional[int] = None) -> Tuple[HistogramStore, Dict[str, int]]:
    """
    Process a list of files with a single accumulator.

    Returns:
    --------
    tuple: (store, summary)
        store: HistogramStore with every booked histogram
        summary: event counts from JetResponseAccumulator.summary()
    """
    trees, failed_paths = open_files_parallel(file_paths, tree_name, max_workers=max_io_workers)
    if not trees:
        raise RuntimeError(f"No files successfully opened out of {len(file_paths)}")

    accumulator = JetResponseAccumulator(options)
    store = accumulator.prepare_storage()
    try:
        for event in read_events(trees, reader):
            accumulator.process_event(event)
    finally:
        close_trees(trees)

    summary = accumulator.summary()
    summary['failed files'] = len(failed_paths)
    return store, summary


def process_shard_worker(args: Tuple) -> Tuple[int, Optional[HistogramStore], Optional[Dict[str, int]], Optional[str]]:
    """
    Worker function for one shard of files.

    Parameters:
    -----------
    args : tuple
        (shard_idx, file_paths, tree_name, options, reader)

    Returns:
    --------
    tuple: (shard_idx, store, summary, error_message)
        store and summary are None if processing failed
    """
    shard_idx, file_paths, tree_name, options, reader = args
    print(f"Worker processing shard {shard_idx+1} with {len(file_paths)} files...")
    try:
        store, summary = process_files(file_paths, tree_name, options, reader,
                                       max_io_workers=min(8, len(file_paths)))
    except Exception as e:
        error_msg = f"Error processing shard {shard_idx+1}: {e}\n{traceback.format_exc()}"
        print(error_msg)
        return shard_idx, None, None, error_msg

    print(f"Completed shard {shard_idx+1}")
    return shard_idx, store, summary, None


def merge_summaries(summaries: List[Dict[str, int]]) -> Dict[str, int]:
    total = Counter()
    for summary in summaries:
        total.update(summary)
    return dict(total)


def process_files_parallel(file_paths: List[str], tree_name: str, options=None,
                           reader: Optional[EventReader] = None,
                           max_workers: Optional[int] = None) -> Tuple[HistogramStore, Dict[str, int]]:
    """
    Process files in parallel shards and merge the results.

    Parameters:
    -----------
    file_paths : list of str
        Input ROOT files
    tree_name : str
        Tree holding the jet ntuple
    options : ValidationConfig, str or dict, optional
        Passed to every shard's JetResponseAccumulator
    reader : EventReader, optional
        Branch mapping, shared by all shards
    max_workers : int, optional
        Maximum number of worker processes

    Returns:
    --------
    tuple: (merged_store, merged_summary)
    """
    if max_workers is None:
        max_workers = get_optimal_worker_count(len(file_paths), io_bound=False)

    shards = split_into_shards(file_paths, max_workers)
    if len(shards) <= 1:
        return process_files(file_paths, tree_name, options, reader)

    print(f"Processing {len(file_paths)} files in {len(shards)} shards using {len(shards)} worker processes...")
    shard_args = [(i, shard, tree_name, options, reader) for i, shard in enumerate(shards)]

    start_time = time.time()
    if 'fork' in mp.get_all_start_methods():
        ctx = mp.get_context('fork')
    else:
        ctx = mp.get_context('spawn')

    with ctx.Pool(processes=len(shards)) as pool:
        results = pool.map(process_shard_worker, shard_args)

    stores = []
    summaries = []
    failed_shards = []
    for shard_idx, store, summary, error in sorted(results, key=lambda result: result[0]):
        if store is None:
            failed_shards.append((shard_idx, error))
            continue
        stores.append(store)
        summaries.append(summary)

    total_time = time.time() - start_time
    print(f"Parallel processing completed in {total_time:.2f}s")
    print(f"Successfully processed: {len(stores)}/{len(shards)} shards")

    if failed_shards:
        print(f"Warning: failed shards: {[idx+1 for idx, _ in failed_shards]}")
    if not stores:
        raise RuntimeError("All shards failed")

    return merge_stores(stores), merge_summaries(summaries)

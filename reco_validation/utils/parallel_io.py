"""
Parallel I/O utilities for efficient ROOT file handling.

Jet ntuples are spread over many files; opening them is I/O bound, so
it is done with a thread pool before the events are read.
"""

import os
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, List, Optional, Tuple

import uproot

from reco_validation.utils.parallel_config import get_optimal_worker_count


def open_single_file_with_error_handling(args: Tuple[str, str]) -> Tuple[Optional[object], str, Optional[str]]:
    """
    Open a single ROOT file and return its tree.

    Parameters:
    -----------
    args : tuple
        (file_path, tree_name) tuple

    Returns:
    --------
    tuple: (tree_object, file_path, error_message)
        tree_object is None if the file failed to open
        error_message is None if successful
    """
    file_path, tree_name = args

    if not os.path.exists(file_path):
        return None, file_path, f"File does not exist: {file_path}"

    try:
        tree = uproot.open(f"{file_path}:{tree_name}")
    except (OSError, ValueError, KeyError) as e:
        return None, file_path, f"Failed to open {file_path}: {e}"
    return tree, file_path, None


def open_files_parallel(file_paths: List[str], tree_name: str,
                        max_workers: Optional[int] = None,
                        progress_callback: Optional[Callable] = None) -> Tuple[List[object], List[str]]:
    """
    Open multiple ROOT files in parallel.

    Parameters:
    -----------
    file_paths : list of str
        Input ROOT files
    tree_name : str
        Name of the tree inside every file
    max_workers : int, optional
        Maximum number of worker threads (default: min(32, len(file_paths), cpu_count+4))
    progress_callback : callable, optional
        Function to call with progress updates (current_count, total_count)

    Returns:
    --------
    tuple: (successful_trees, failed_paths)
        successful_trees: opened trees in the same order as file_paths
        failed_paths: files that could not be opened
    """
    if not file_paths:
        return [], []

    if max_workers is None:
        max_workers = get_optimal_worker_count(len(file_paths), io_bound=True)

    print(f"Opening {len(file_paths)} files using {max_workers} parallel workers...")

    results = [None] * len(file_paths)
    failed_paths = []
    completed_count = 0
    start_time = time.time()

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_index = {
            executor.submit(open_single_file_with_error_handling, (path, tree_name)): i
            for i, path in enumerate(file_paths)
        }

        for future in as_completed(future_to_index):
            index = future_to_index[future]
            tree, path, error = future.result()
            completed_count += 1

            if tree is not None:
                results[index] = tree
            else:
                failed_paths.append(path)
                print(f"Warning: {error}")

            if progress_callback:
                progress_callback(completed_count, len(file_paths))

            if completed_count % 50 == 0 or completed_count == len(file_paths):
                elapsed = time.time() - start_time
                rate = completed_count / elapsed if elapsed > 0 else 0
                print(f"Progress: {completed_count}/{len(file_paths)} files opened "
                      f"({rate:.1f} files/sec, {elapsed:.1f}s elapsed)")

    successful_trees = [tree for tree in results if tree is not None]
    success_rate = len(successful_trees) / len(file_paths) * 100
    print(f"Successfully opened: {len(successful_trees)}/{len(file_paths)} files ({success_rate:.1f}%)")

    return successful_trees, failed_paths


def close_trees(trees: List[object]) -> None:
    for tree in trees:
        tree.file.close()

#!/usr/bin/env python3
"""
Directory browser example showing lazy loading, search and "expand all".

This example demonstrates:
- Feeding a TreeGrid from a slow data source (the filesystem)
- Searching a tree that is still being loaded
- Running "expand all" with a time budget
"""

import asyncio
import os
import sys
from pathlib import Path

# Add parent directory to path for development
sys.path.insert(0, str(Path(__file__).parent.parent))

from treegridlib import DataModel, GridConfig, Row, TreeGrid, configure_logging
from treegridlib.fetching import CachingFetcher, TreatAsLeafPolicy


def to_row(entry: os.DirEntry) -> Row:
    return Row(entry.path, entry.name, expandable=entry.is_dir(follow_symlinks=False))


async def list_directory(row: Row):
    """Fetch children by scanning the directory on a worker thread."""
    def scan():
        with os.scandir(row.key) as entries:
            return sorted((to_row(e) for e in entries), key=lambda r: r.value.lower())

    return await asyncio.get_running_loop().run_in_executor(None, scan)


def print_tree(grid: TreeGrid) -> None:
    for visible in grid.visible_rows():
        indent = "  " * (visible.depth - 1)
        if visible.is_placeholder:
            print(f"{indent}Loading...")
            continue
        node = visible.node
        marker = ("-" if node.is_expanded else "+") if node.is_expandable else " "
        print(f"{indent}{marker} {node.row.value}")


async def main():
    root_path = Path(sys.argv[1]) if len(sys.argv) > 1 else Path.cwd()
    query = sys.argv[2] if len(sys.argv) > 2 else "test"

    data_model = DataModel(
        rows=[Row(str(root_path), root_path.name or str(root_path), expandable=True)],
        fetch_children=CachingFetcher(list_directory),
        matches_search=lambda row, text: text.lower() in row.value.lower(),
    )
    config = GridConfig(expand_all_budget=2.0, error_policy=TreatAsLeafPolicy())

    async with TreeGrid(data_model, config) as grid:
        await grid.wait_idle(timeout=10)
        print(f"Browsing: {root_path}")
        print("-" * 50)
        print_tree(grid)

        print(f"\nSearching for {query!r}...")
        grid.set_search_text(query)
        await grid.wait_idle(timeout=30)
        print(f"  {len(grid.search.matches)} matches, selected {grid.result_count}")
        for key in grid.search.matches[:5]:
            print(f"  {key}")

        print("\nExpanding everything (2 second budget)...")
        grid.clear_search()
        grid.expand_all()
        while grid.operations:
            await asyncio.sleep(0.05)
        loaded = sum(1 for node in grid.model if node.is_expandable and node.child_ids)
        print(f"  {len(grid.model) - 1:,} nodes known, {loaded:,} directories loaded")


if __name__ == "__main__":
    print("treegridlib - Directory Browser Example")
    print("=" * 50)
    configure_logging(verbose="-v" in sys.argv)
    sys.argv = [a for a in sys.argv if a != "-v"]
    asyncio.run(main())

"""Clear the launchcache cache directory from the command line.

Usage:
    python -m scripts.clear_cache
"""

import asyncio
import logging
import sys

from launchcache.services.cache_store import default_store

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


async def main() -> int:
    store = default_store()
    print(f"Clearing cache at {store.cache_dir}...")
    try:
        await store.clear()
    except OSError as e:
        print(f"ERROR: could not clear cache: {e}")
        return 1
    print("Cache cleared.")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))

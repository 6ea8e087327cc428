"""One-shot launch resolution against the live endpoints.

Runs the pipeline on the state persisted in LAUNCH_DATA_DIR and prints the
outcome. LAUNCH_SEED_ATTRIBUTION, a JSON object, is stored as attribution
before the run when set.

Usage:
  python -m launch_router.scripts.resolve_launch

Env:
  LAUNCH_VALIDATE_URL
  LAUNCH_DEV_KEY, LAUNCH_DEVICE_ID (attribution lookup)
  LAUNCH_DATA_DIR (optional)
  LAUNCH_SEED_ATTRIBUTION (optional)
"""

from __future__ import annotations

import asyncio
import json
import os

from ..logging_setup import configure_logging
from ..pipeline import Outcome
from ..services.gateway import LiveGateway
from ..services.launcher import LaunchOrchestrator
from ..services.store import FileStore


async def resolve(attribution: dict[str, str] | None = None, data_dir: str | None = None) -> Outcome:
    store = FileStore(data_dir)
    if attribution:
        store.save_attribution(attribution)
    async with LiveGateway(token_provider=store.push_token) as gateway:
        orchestrator = LaunchOrchestrator(store, gateway)
        orchestrator.start()
        try:
            return await orchestrator.run_once()
        finally:
            await orchestrator.close()


def main() -> None:
    if not os.environ.get("LAUNCH_VALIDATE_URL"):
        raise SystemExit("Missing LAUNCH_VALIDATE_URL in environment")

    attribution = None
    seed = os.environ.get("LAUNCH_SEED_ATTRIBUTION")
    if seed:
        raw = json.loads(seed)
        if not isinstance(raw, dict):
            raise SystemExit("LAUNCH_SEED_ATTRIBUTION must be a JSON object")
        attribution = {str(k): str(v) for k, v in raw.items()}

    configure_logging()
    outcome = asyncio.run(resolve(attribution))
    print("outcome:", outcome.kind.value)
    if outcome.url:
        print("url:", outcome.url)


if __name__ == "__main__":
    main()

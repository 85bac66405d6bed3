"""Load a legacy ``database.json`` into the state document.

Usage: python scripts/import_legacy_db.py path/to/database.json
"""
import asyncio
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))
load_dotenv()

from valuamor.db.session import AsyncSessionLocal
from valuamor.services.store import StateStore


logger = logging.getLogger(__name__)


async def import_file(path: Path) -> None:
    payload = json.loads(path.read_text(encoding="utf-8"))
    store = StateStore(AsyncSessionLocal)
    state = await store.import_document(payload)
    logger.info(
        "Imported legacy database",
        extra={
            "path": str(path),
            "redeem_codes": len(state.redeem_codes),
            "user_keys": len(state.user_keys),
            "premium_buyers": len(state.premium_buyers),
        },
    )


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    if len(sys.argv) != 2:
        raise SystemExit("usage: import_legacy_db.py <database.json>")
    asyncio.run(import_file(Path(sys.argv[1])))


if __name__ == "__main__":
    main()

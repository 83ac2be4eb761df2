"""Hint dispensing. Hints are not throttled; every request marks the hint as used."""
import logging
from typing import Optional

from stokvis.database import HuntStore
from stokvis.errors import MissingIdentifiers, NotFound
from stokvis.models.hunt import HintResult

logger = logging.getLogger(__name__)


class HintDispenser:
    def __init__(self, store: HuntStore):
        self.store = store

    async def dispense(self, run_id: Optional[str], stop_id: Optional[str]) -> HintResult:
        if not run_id or not stop_id:
            raise MissingIdentifiers()

        stop = await self.store.get_stop_credential(stop_id)
        if stop is None:
            raise NotFound("Stop not found")

        team_id = await self.store.get_run_team(run_id)
        if team_id is None:
            raise NotFound("Run not found")

        await self.store.upsert_progress_hint_used(team_id, stop_id)
        logger.info("Team %s took hint for stop %s (penalty %d)", team_id, stop_id, stop.hint_penalty)
        return HintResult(hint=stop.hint_text, penalty=stop.hint_penalty)

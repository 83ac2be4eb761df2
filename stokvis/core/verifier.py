"""Answer normalization, credential verification and the answer submission flow."""
import asyncio
import logging
import re
from typing import Callable, Optional, Union

from stokvis.core.throttle import AttemptThrottle
from stokvis.database import HuntStore, utcnow
from stokvis.errors import MissingIdentifiers, NotFound, Throttled
from stokvis.models.credential import (
    SCRYPT_N,
    SCRYPT_P,
    SCRYPT_R,
    Credential,
    ScryptHash,
    parse_credential,
)
from stokvis.models.hunt import AnswerResult

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def normalize(raw: Optional[str]) -> str:
    """Trim, lowercase and collapse internal whitespace. None becomes ""."""
    if raw is None:
        return ""
    return _WHITESPACE.sub(" ", str(raw).strip().lower())


async def verify(
    stored: Union[str, Credential, None],
    raw: Optional[str],
    n: int = SCRYPT_N,
    r: int = SCRYPT_R,
    p: int = SCRYPT_P,
) -> bool:
    """
    Check a submitted answer against a stored credential.
    ``stored`` may be the tagged string from the database or an already parsed credential.
    A stop without a configured answer never matches.
    """
    credential = parse_credential(stored) if isinstance(stored, str) or stored is None else stored
    if credential is None:
        return False

    normalized = normalize(raw)
    if isinstance(credential, ScryptHash):
        # scrypt is deliberately slow; keep it off the event loop
        return await asyncio.to_thread(credential.matches, normalized, n, r, p)
    return credential.matches(normalized)


class AnswerVerifier:
    """Runs an answer submission: throttle, look up, verify, record the solve."""

    def __init__(
        self,
        store: HuntStore,
        throttle: AttemptThrottle,
        clock: Callable[[], str] = utcnow,
        scrypt_params: tuple[int, int, int] = (SCRYPT_N, SCRYPT_R, SCRYPT_P),
    ):
        self.store = store
        self.throttle = throttle
        self._clock = clock
        self._scrypt_params = scrypt_params

    async def submit(self, run_id: Optional[str], stop_id: Optional[str], answer: Optional[str]) -> AnswerResult:
        if not run_id or not stop_id:
            raise MissingIdentifiers()

        decision = await self.throttle.allow(run_id, stop_id)
        if not decision.permitted:
            raise Throttled(retry_after=self.throttle.window_s)

        stop = await self.store.get_stop_credential(stop_id)
        if stop is None:
            raise NotFound("Stop not found")

        team_id = await self.store.get_run_team(run_id)
        if team_id is None:
            raise NotFound("Run not found")

        n, r, p = self._scrypt_params
        if not await verify(stop.credential, answer, n=n, r=r, p=p):
            return AnswerResult(correct=False)

        await self.store.upsert_progress_solved(team_id, stop_id, self._clock())
        logger.info("Team %s solved stop %s (run %s)", team_id, stop_id, run_id)
        return AnswerResult(correct=True)

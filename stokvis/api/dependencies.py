"""FastAPI dependencies building the hunt components from app state."""
from fastapi import Depends, Request

from stokvis.config import settings
from stokvis.core.hints import HintDispenser
from stokvis.core.throttle import AttemptThrottle
from stokvis.core.verifier import AnswerVerifier
from stokvis.database import HuntStore


def get_store(request: Request) -> HuntStore:
    return HuntStore(request.app.state.db)


def get_throttle(request: Request) -> AttemptThrottle:
    return AttemptThrottle(
        getattr(request.app.state, "counter_store", None),
        max_attempts=settings.throttle_max_attempts,
        window_s=settings.throttle_window_s,
        fail_open=settings.throttle_fail_open,
        timeout_s=settings.counter_store_timeout_s,
    )


def get_answer_verifier(
    store: HuntStore = Depends(get_store),
    throttle: AttemptThrottle = Depends(get_throttle),
) -> AnswerVerifier:
    return AnswerVerifier(
        store,
        throttle,
        scrypt_params=(settings.scrypt_n, settings.scrypt_r, settings.scrypt_p),
    )


def get_hint_dispenser(store: HuntStore = Depends(get_store)) -> HintDispenser:
    return HintDispenser(store)

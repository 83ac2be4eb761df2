"""REST endpoints for teams, routes, runs, answers and hints."""
from dataclasses import asdict
from typing import Optional

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException

from stokvis.api.dependencies import get_answer_verifier, get_hint_dispenser, get_store
from stokvis.api.schemas import AnswerSubmission, HintRequest, RunFinish, RunStart, TeamCreate
from stokvis.core.hints import HintDispenser
from stokvis.core.verifier import AnswerVerifier
from stokvis.database import HuntStore
from stokvis.errors import HuntError, Throttled

router = APIRouter(prefix="/api")


def _http_error(exc: HuntError) -> HTTPException:
    headers = {"Retry-After": str(exc.retry_after)} if isinstance(exc, Throttled) else None
    return HTTPException(status_code=exc.status_code, detail=exc.message, headers=headers)


@router.get("/health")
async def health():
    return {"ok": True}


@router.post("/teams")
async def create_team(body: Optional[TeamCreate] = None, store: HuntStore = Depends(get_store)):
    body = body or TeamCreate()
    return await store.create_team(body.name)


@router.post("/runs/start")
async def start_run(body: Optional[RunStart] = None, store: HuntStore = Depends(get_store)):
    body = body or RunStart()
    if not body.team_id or not body.route_id:
        raise HTTPException(status_code=400, detail="teamId/routeId required")
    route = await store.find_route(body.route_id)
    if route is None:
        raise HTTPException(status_code=404, detail="Route not found")
    try:
        return await store.start_run(body.team_id, route["id"])
    except aiosqlite.IntegrityError:
        raise HTTPException(status_code=404, detail="Team not found")


@router.post("/runs/finish")
async def finish_run(body: Optional[RunFinish] = None, store: HuntStore = Depends(get_store)):
    body = body or RunFinish()
    if not body.run_id:
        raise HTTPException(status_code=400, detail="runId required")
    return await store.finish_run(body.run_id) or {}


@router.get("/runs/{run_id}/progress")
async def run_progress(run_id: str, store: HuntStore = Depends(get_store)):
    progress = await store.list_run_progress(run_id)
    if progress is None:
        raise HTTPException(status_code=404, detail="Run not found")
    return {"run_id": run_id, "progress": [asdict(p) for p in progress]}


@router.get("/routes/{route_ref}")
async def get_route(route_ref: str, store: HuntStore = Depends(get_store)):
    """Route by id, title or city with its stops in order."""
    route = await store.get_route_view(route_ref)
    if route is None:
        raise HTTPException(status_code=404, detail="Route not found")
    return asdict(route)


@router.post("/stops/answer")
async def submit_answer(
    body: Optional[AnswerSubmission] = None,
    verifier: AnswerVerifier = Depends(get_answer_verifier),
):
    body = body or AnswerSubmission()
    try:
        result = await verifier.submit(body.run_id, body.stop_id, body.answer)
    except HuntError as exc:
        raise _http_error(exc)
    return asdict(result)


@router.post("/stops/hint")
async def request_hint(
    body: Optional[HintRequest] = None,
    dispenser: HintDispenser = Depends(get_hint_dispenser),
):
    body = body or HintRequest()
    try:
        result = await dispenser.dispense(body.run_id, body.stop_id)
    except HuntError as exc:
        raise _http_error(exc)
    return asdict(result)

"""
Demo team client: plays the seeded Deventer route against a running server.
Guesses wrong once per stop, takes a hint at the Bergkerk, then answers
correctly and finishes the run. Start the server with SEED_DEMO_ROUTE=true.
"""
import asyncio
import os
import sys

import httpx

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
from dotenv import load_dotenv
load_dotenv()

from stokvis.database import DEMO_STOPS

API_URL = os.getenv("API_URL", "http://localhost:8000/api")
TEAM_NAME = os.getenv("TEAM_NAME", "Demo team")
HINT_STOP = "Bergkerk"

# title → answer text, taken from the plain demo credentials
ANSWERS = {title: cred.split(":", 1)[1] for _, title, *_rest, cred, _hint, _pen in DEMO_STOPS}


async def run():
    async with httpx.AsyncClient(base_url=API_URL, timeout=10.0) as client:
        route = (await client.get("/routes/demo-route")).raise_for_status().json()
        team = (await client.post("/teams", json={"name": TEAM_NAME})).raise_for_status().json()
        print(f"[team] {team['name']} joined with code {team['join_code']}")

        started = (await client.post(
            "/runs/start", json={"teamId": team["id"], "routeId": route["id"]}
        )).raise_for_status().json()
        run_id = started["id"]
        print(f"[team] Run {run_id} started on {route['title']} ({len(route['stops'])} stops)")

        for stop in route["stops"]:
            print(f"\n[team] Stop {stop['order_index']}: {stop['title']}")
            print(f"[team]   {stop['puzzle_markdown']}")

            resp = await client.post("/stops/answer", json={
                "runId": run_id, "stopId": stop["id"], "answer": "geen idee",
            })
            print(f"[team]   'geen idee' → {resp.json()}")

            if stop["title"] == HINT_STOP:
                hint = (await client.post(
                    "/stops/hint", json={"runId": run_id, "stopId": stop["id"]}
                )).raise_for_status().json()
                print(f"[team]   Hint (-{hint['penalty']}): {hint['hint'] or 'Geen hint beschikbaar.'}")

            answer = ANSWERS.get(stop["title"], "")
            resp = await client.post("/stops/answer", json={
                "runId": run_id, "stopId": stop["id"], "answer": answer.upper(),
            })
            if resp.status_code == 429:
                print(f"[team]   Throttled, retry after {resp.headers.get('Retry-After')}s")
                continue
            print(f"[team]   {answer.upper()!r} → {resp.json()}")

        finished = (await client.post("/runs/finish", json={"runId": run_id})).raise_for_status().json()
        print(f"\n[team] Finished at {finished.get('finished_at')} "
              f"with penalty {finished.get('total_penalty')}")


if __name__ == "__main__":
    asyncio.run(run())

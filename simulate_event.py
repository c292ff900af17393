#!/usr/bin/env python3
"""
Simulate an HR event against a running backend service.

Usage:
    python simulate_event.py --base-url http://localhost:8000

The script walks through a whole event: build a roster with a duplicate,
deduplicate it, draw winners until the pool runs dry, then split everyone
into teams and download the CSV. It communicates purely over HTTP,
mimicking a front-end client.
"""

import argparse
import csv
import io
import sys
from typing import Dict, Iterable, List

try:
    import requests
except ModuleNotFoundError as exc:  # pragma: no cover - runtime dependency notice
    raise SystemExit(
        "The simulate_event script requires the 'requests' package. "
        "Install it via `pip install requests` and rerun."
    ) from exc


TIMEOUT = 30  # seconds per request; draws may wait on the language model


class EventClient:
    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip("/")

    def _request(
        self,
        method: str,
        path: str,
        expected_status: Iterable[int],
        json_payload: Dict | None = None,
    ) -> requests.Response:
        response = requests.request(
            method=method,
            url=f"{self.base_url}{path}",
            json=json_payload,
            timeout=TIMEOUT,
        )
        if response.status_code not in expected_status:
            raise RuntimeError(
                f"{method} {path} returned {response.status_code}: {response.text}"
            )
        return response

    def _json(self, method: str, path: str, expected_status: Iterable[int], json_payload: Dict | None = None) -> Dict:
        response = self._request(method, path, expected_status, json_payload)
        try:
            return response.json()
        except ValueError as exc:
            raise RuntimeError(f"Response from {path} was not valid JSON.") from exc

    # Roster -------------------------------------------------------------

    def create_session(self) -> str:
        data = self._json("POST", "/roster/session/", {200}, {})
        print(f"[info] session created (code={data['session_code']})")
        return data["session_code"]

    def add_names(self, code: str, text: str) -> Dict:
        data = self._json("POST", f"/roster/session/{code}/participants/", {200}, {"text": text})
        print(f"[info] added {data['added']} names, roster size={data['count']}")
        return data

    def dedupe(self, code: str) -> Dict:
        data = self._json("POST", f"/roster/session/{code}/dedupe/", {200}, {})
        print(f"[info] removed {data['removed']} duplicates, roster size={data['count']}")
        return data

    # Draw ---------------------------------------------------------------

    def draw(self, code: str, prize: str) -> Dict:
        response = self._request(
            "POST", f"/luckydraw/session/{code}/draw/", {200, 409}, {"prize": prize}
        )
        return response.json()

    def clear_winners(self, code: str) -> None:
        self._json("POST", f"/luckydraw/session/{code}/winners/clear/", {200}, {})
        print("[info] winner history cleared")

    # Grouping -----------------------------------------------------------

    def group(self, code: str, group_size: int, theme: str) -> Dict:
        data = self._json(
            "POST",
            f"/grouping/session/{code}/",
            {200},
            {"group_size": group_size, "theme": theme},
        )
        return data["grouping"]

    def export(self, code: str) -> List[List[str]]:
        response = self._request("GET", f"/grouping/session/{code}/export/", {200})
        text = response.content.decode("utf-8-sig")
        rows = list(csv.reader(io.StringIO(text)))
        print(f"[info] exported {len(rows) - 1} rows")
        return rows[1:]


def scenario_full_event(client: EventClient):
    print("\n=== Scenario: roster, draw, grouping ===")
    code = client.create_session()
    client.add_names(code, "Alice, Bob\nCharlie\nDana, Alice\n\nEve")
    roster = client.dedupe(code)
    if roster["count"] != 5 or roster["has_duplicates"]:
        raise RuntimeError("Deduplication left an unexpected roster.")

    drawn = set()
    for round_no in range(1, 7):
        data = client.draw(code, f"Prize #{round_no}")
        if not data.get("success"):
            print(f"[info] draw #{round_no} refused: {data.get('error')}")
            break
        winner = data["winner"]
        if winner["id"] in drawn:
            raise RuntimeError(f"{winner['name']} won twice with repeats disabled.")
        drawn.add(winner["id"])
        print(f"[info] draw #{round_no}: {winner['name']} wins {winner['prize']}")
    if len(drawn) != 5:
        raise RuntimeError("Expected every participant to win exactly once.")
    client.clear_winners(code)

    grouping = client.group(code, 2, "Space")
    sizes = [len(group["members"]) for group in grouping["groups"]]
    print(f"[info] groups={[group['name'] for group in grouping['groups']]} sizes={sizes}")
    if sizes != [2, 2, 1]:
        raise RuntimeError(f"Unexpected group sizes {sizes}.")

    rows = client.export(code)
    if len(rows) != 5:
        raise RuntimeError("CSV export does not list every member.")


def scenario_empty_roster(client: EventClient):
    print("\n=== Scenario: empty roster ===")
    code = client.create_session()
    data = client.draw(code, "Nothing")
    if data.get("success"):
        raise RuntimeError("Draw on an empty roster should be refused.")
    print(f"[info] draw refused as expected: {data.get('error')}")


def main():
    parser = argparse.ArgumentParser(
        description="Simulate an HR event via HTTP requests."
    )
    parser.add_argument(
        "--base-url",
        default="http://localhost:8000",
        help="Root URL of the running Django service (default: http://localhost:8000)",
    )
    args = parser.parse_args()

    client = EventClient(args.base_url)
    try:
        scenario_full_event(client)
        scenario_empty_roster(client)
    except Exception as exc:
        print(f"[error] {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    print("\n[info] All scenarios completed successfully.")


if __name__ == "__main__":
    main()

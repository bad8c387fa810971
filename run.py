#!/usr/bin/env python3

"""
Smoke test runner for a live Crosslink API.

Start the server from the repository root with the demo configuration first:

    CROSSLINK_CONFIG_FILE=configs/demo.json python main.py

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import asyncio
import os
import sys
from dataclasses import dataclass, field
from typing import Any, Dict

import httpx

BASE_URL = os.getenv("CROSSLINK_URL", "http://localhost:8080/api/v1")
HEADERS = {"Content-Type": "application/json"}

DEPLOYMENT = "mock:deployment:shop"


@dataclass(frozen=True)
class Case:
    label: str
    method: str
    path: str
    body: Dict[str, Any] = field(default_factory=dict)
    params: Dict[str, Any] = field(default_factory=dict)
    expect: int = 200
    section: str = ""


def start(extra: Dict[str, Any] | None = None) -> Dict[str, Any]:
    d: Dict[str, Any] = {"queries": [DEPLOYMENT]}
    if extra:
        d.update(extra)
    return d


CASES: list[Case] = [
    # ── Discovery ─────────────────────────────────────────
    Case("health", "GET", "/health", section="Discovery"),
    Case("list domains", "GET", "/domains", section="Discovery"),
    Case("mock classes", "GET", "/domains/mock/classes", section="Discovery"),
    Case("log classes", "GET", "/domains/log/classes", section="Discovery"),
    Case("unknown domain", "GET", "/domains/metric/classes", section="Discovery", expect=404),

    # ── Objects ───────────────────────────────────────────
    Case("deployment objects", "GET", "/objects", section="Objects", params={"query": DEPLOYMENT}),
    Case("pods with limit", "GET", "/objects", section="Objects",
         params={"query": "mock:pod:shop/cart", "limit": 1}),
    Case("malformed query", "GET", "/objects", section="Objects", params={"query": "deployment"}, expect=400),

    # ── Goals ─────────────────────────────────────────────
    Case("deployment to events", "POST", "/graphs/goals", section="Goals",
         body={"start": start(), "goals": ["mock:event"]}),
    Case("deployment to events with rules", "POST", "/graphs/goals", section="Goals",
         body={"start": start(), "goals": ["mock:event"]}, params={"rules": "true"}),
    Case("start from objects", "POST", "/graphs/goals", section="Goals",
         body={"start": {"class": "mock:pod", "objects": [{"name": "cart-1", "namespace": "shop"}]},
               "goals": ["mock:event"]}),
    Case("goal list", "POST", "/lists/goals", section="Goals",
         body={"start": start(), "goals": ["mock:pod", "mock:event"]}),
    Case("narrow window", "POST", "/graphs/goals", section="Goals",
         body={"start": start({"constraint": {"limit": 1}}), "goals": ["mock:event"]}),

    # ── Neighbours ────────────────────────────────────────
    Case("one hop", "POST", "/graphs/neighbours", section="Neighbours",
         body={"start": start(), "depth": 1}),
    Case("default depth", "POST", "/graphs/neighbours", section="Neighbours",
         body={"start": start()}),

    # ── Console ───────────────────────────────────────────
    Case("log query to console", "GET", "/console/url", section="Console",
         params={"query": 'log:application:{kubernetes_namespace_name="shop"}'}),
    Case("console to log query", "GET", "/console/query", section="Console",
         params={"domain": "log", "url": "/monitoring/logs?q=%7Bapp%3D%22x%22%7D&tenant=audit"}),
    Case("mock has no console", "GET", "/console/url", section="Console",
         params={"query": DEPLOYMENT}, expect=400),

    # ── Validation ────────────────────────────────────────
    Case("negative timeout", "POST", "/graphs/goals", section="Validation",
         body={"start": start(), "goals": ["mock:event"], "timeout": -1}, expect=422),
    Case("no goals", "POST", "/graphs/goals", section="Validation",
         body={"start": start(), "goals": []}, expect=422),
    Case("negative depth", "POST", "/graphs/neighbours", section="Validation",
         body={"start": start(), "depth": -1}, expect=422),
    Case("start without class or query", "POST", "/graphs/goals", section="Validation",
         body={"start": {"objects": [1]}, "goals": ["mock:event"]}, expect=400),
    Case("unknown goal domain", "POST", "/graphs/goals", section="Validation",
         body={"start": start(), "goals": ["metric:up"]}, expect=404),
    Case("start after end", "POST", "/graphs/goals", section="Validation",
         body={"start": start({"constraint": {"start": "2024-05-02T00:00:00Z", "end": "2024-05-01T00:00:00Z"}}),
               "goals": ["mock:event"]}, expect=400),
]


async def run_case(client: httpx.AsyncClient, case: Case) -> tuple[bool, str, Any]:
    attempt = 0
    last_exc: Exception | None = None
    while attempt < 2:
        try:
            if case.method == "GET":
                r = await client.get(case.path, params=case.params)
            else:
                r = await client.request(case.method, case.path, json=case.body or None,
                                         params=case.params)
            body: Any = None
            try:
                body = r.json()
            except ValueError:
                body = r.text
            if r.status_code == case.expect:
                return True, "", body
            return False, f"{r.status_code} {r.reason_phrase}: {body}", body
        except httpx.TransportError as exc:
            last_exc = exc
            attempt += 1
            if attempt < 2:
                await asyncio.sleep(0.1)
                continue
            return False, f"transport error: {exc}", None
    return False, str(last_exc), None


async def main():
    import json
    import argparse

    parser = argparse.ArgumentParser(description="Run Crosslink API smoke cases")
    parser.add_argument("--section", help="only run cases from this section name")
    parser.add_argument("--label", help="only run the case with this exact label")
    parser.add_argument("--quiet", action="store_true", help="do not print response bodies")
    args = parser.parse_args()
    selected = [
        c for c in CASES
        if (not args.section or c.section == args.section) and (not args.label or c.label == args.label)
    ]
    if not selected:
        print("no matching cases (check --section or --label)")
        sys.exit(1)

    passed = failed = 0
    current_section = ""

    async with httpx.AsyncClient(base_url=BASE_URL, headers=HEADERS, timeout=30) as client:
        for case in selected:
            if case.section != current_section:
                current_section = case.section
                print(f"\n── {current_section} {'─' * max(0, 44 - len(current_section))}")

            ok, detail, body = await run_case(client, case)
            pretty = json.dumps(body, indent=2) if body is not None else "<no response>"

            if ok:
                passed += 1
                print(f"  ✓ PASS  {case.method} {case.path} : {case.label}")
            else:
                failed += 1
                print(f"  ✗ FAIL  {case.method} {case.path} : {case.label} (expected {case.expect})")
                if detail:
                    print(f"         {detail}")
            if not args.quiet:
                print(f"         response:\n{pretty}")

    total = passed + failed
    print(f"\n{'━' * 43}")
    print(f"  Results: {passed} passed / {failed} failed / {total} total")
    print(f"  {'All cases passed ✓' if failed == 0 else f'{failed} case(s) failed ✗'}")
    print(f"{'━' * 43}\n")
    sys.exit(0 if failed == 0 else 1)


if __name__ == "__main__":
    asyncio.run(main())

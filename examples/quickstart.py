#!/usr/bin/env python3
"""
GrindLink Quickstart — watch a live board while records are created.

Opens a live user-profile list (snapshot + WebSocket pushes), then
creates a user and an assignment through the forms and shows the list
picking the new user up without re-fetching.

Run with: python examples/quickstart.py
Backend must be running: grindlink serve  (http://localhost:4000)
"""

import asyncio
import sys
import uuid

import httpx

from grindlink.client import (
    USERS,
    AssignmentForm,
    LiveList,
    RecordClient,
    UserProfileForm,
    WebSocketChannel,
    ws_url,
)

BASE = "http://localhost:4000"


async def main():
    run_id = uuid.uuid4().hex[:6]

    # ── Health check ──────────────────────────────────────────────
    print("Checking backend health...")
    try:
        health = httpx.get(f"{BASE}/api/health", timeout=5).json()
    except httpx.ConnectError:
        print(f"Backend not reachable at {BASE}")
        sys.exit(1)
    print(f"  Store:     {health['store']}")
    print(f"  Broadcast: {health['broadcast']} ({health['broadcast_backend']})")

    async with RecordClient.connect(BASE) as client:
        board = LiveList(client, USERS)
        board.subscribe(lambda v: print(f"   board: {len(v.records)} profile(s), newest: "
                                        f"{v.records[0]['username'] if v.records else '—'}"))

        async with board.mount(WebSocketChannel(ws_url(BASE))):
            # ── Create a user profile ─────────────────────────────
            print("\n1. Creating user profile...")
            form = UserProfileForm(client)
            form.edit("username", f"demo-{run_id}")
            form.edit("bio", "Quickstart user")
            form.edit("skills", "python, fastapi, ")
            user = await form.submit()
            print(f"   {form.success or form.error}")
            if user:
                print(f"   skills: {user['skills']}")

            # Give the push a moment to land
            await asyncio.sleep(0.5)

            # ── Create an assignment ──────────────────────────────
            print("\n2. Creating assignment...")
            assignment = AssignmentForm(client)
            assignment.edit("gig_id", "101")
            assignment.edit("assignee_id", "7")
            assignment.edit("due_date", "2025-12-31")
            await assignment.submit()
            print(f"   {assignment.success or assignment.error}")

            # ── Missing field ─────────────────────────────────────
            print("\n3. Submitting an empty user form...")
            empty = UserProfileForm(client)
            await empty.submit()
            print(f"   {empty.error}")

    print("\nDone.")


if __name__ == "__main__":
    asyncio.run(main())

#!/usr/bin/env python3
"""
pmhome Quickstart — admin login and a user's full lifecycle in one script.

Logs in as the seeded admin → creates an employee → logs in as them →
resets their password → deactivates → deletes.
Run with: python examples/quickstart.py

Requires: pip install httpx
Backend must be running (pmhome serve) and seeded (pmhome seed-admin).
"""

import os
import sys
import uuid

import httpx

BASE = os.environ.get("PMHOME_API_URL", "http://localhost:8000")
ADMIN_EMAIL = os.environ.get("PMHOME_SEED_ADMIN_EMAIL", "admin@demo.com")
ADMIN_PASSWORD = os.environ.get("PMHOME_SEED_ADMIN_PASSWORD", "admin123")


def main():
    run_id = uuid.uuid4().hex[:6]
    client = httpx.Client(base_url=BASE, timeout=10)

    # ── Health check ──────────────────────────────────────────────
    print("Checking backend health...")
    try:
        resp = client.get("/health")
    except httpx.ConnectError:
        print(f"Backend not reachable at {BASE}")
        print("Start it with:  pmhome serve")
        sys.exit(1)
    health = resp.json()
    print(f"  Version:  {health['version']}")
    print(f"  Database: {health['database']}")

    # ── Admin login ───────────────────────────────────────────────
    print("\n1. Logging in as admin...")
    resp = client.post("/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    if resp.status_code != 200:
        print(f"   Login failed: {resp.status_code} {resp.text}")
        print("   Seed the admin with:  pmhome seed-admin")
        sys.exit(1)
    admin = resp.json()
    admin_headers = {"Authorization": f"Bearer {admin['token']}"}
    print(f"   {admin['user']['name']} ({admin['user']['role']})")

    # ── Create employee ───────────────────────────────────────────
    print("\n2. Creating employee...")
    email = f"demo-{run_id}@example.com"
    resp = client.post("/users", headers=admin_headers, json={
        "name": f"Demo Employee {run_id}",
        "email": email,
        "department": "TESTER",
        "employeeId": f"E-{run_id}",
    })
    assert resp.status_code == 201, f"Failed: {resp.text}"
    created = resp.json()
    user_id = created["user"]["id"]
    password = created["generatedPassword"]
    print(f"   User: {email} ({user_id[:8]}...)")
    print(f"   Generated password: {password}")

    # ── Employee login ────────────────────────────────────────────
    print("\n3. Logging in as the employee...")
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, f"Failed: {resp.text}"
    employee_headers = {"Authorization": f"Bearer {resp.json()['token']}"}
    me = client.get("/auth/me", headers=employee_headers).json()
    print(f"   /auth/me → {me['name']} ({me['role']}, {me['department']})")

    resp = client.get("/users", headers=employee_headers)
    print(f"   GET /users as employee → {resp.status_code} (admin only)")

    # ── Reset password ────────────────────────────────────────────
    print("\n4. Resetting the employee's password...")
    resp = client.patch(f"/users/{user_id}/reset-password", headers=admin_headers)
    assert resp.status_code == 200, f"Failed: {resp.text}"
    new_password = resp.json()["generatedPassword"]
    old = client.post("/auth/login", json={"email": email, "password": password})
    new = client.post("/auth/login", json={"email": email, "password": new_password})
    print(f"   Old password → {old.status_code}, new password → {new.status_code}")

    # ── Deactivate ────────────────────────────────────────────────
    print("\n5. Deactivating...")
    resp = client.put(f"/users/{user_id}", headers=admin_headers, json={"isActive": False})
    assert resp.status_code == 200, f"Failed: {resp.text}"
    resp = client.post("/auth/login", json={"email": email, "password": new_password})
    print(f"   Login while inactive → {resp.status_code} {resp.json()['detail']}")

    # ── Delete ────────────────────────────────────────────────────
    print("\n6. Deleting...")
    resp = client.delete(f"/users/{user_id}", headers=admin_headers)
    assert resp.status_code == 204, f"Failed: {resp.text}"
    remaining = client.get("/users", headers=admin_headers, params={"search": run_id}).json()
    print(f"   Users matching '{run_id}' after delete: {len(remaining)}")

    print("\nDone.")


if __name__ == "__main__":
    main()

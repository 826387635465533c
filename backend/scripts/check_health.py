import httpx
import os
import sys

base_url = os.getenv("API_BASE_URL", f"http://localhost:{os.getenv('PORT', '3001')}")

try:
    print(f"Checking server URL: {base_url}/health")
    r = httpx.get(f"{base_url}/health", timeout=2)
    print(f"Status Code: {r.status_code}")
    if r.status_code == 200 and r.json().get("ok"):
        print("Server is UP and the database is reachable.")
    else:
        print(f"Server returned unexpected response: {r.text}")
        sys.exit(1)
except httpx.HTTPError as e:
    print(f"Server unreachable: {e}")
    sys.exit(1)

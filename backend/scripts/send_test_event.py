"""
Post one sample event to a running instance.

    API_URL=http://localhost:8000 python scripts/send_test_event.py
"""

import json
import os

import httpx

API_URL = os.getenv("API_URL", "http://localhost:8000")

event = {
    "message": "Error message 5",
    "stack": "Error: Stack trace\n    at Function.error (/app/logger.js:45:10)",
    "level": "error",
    "metadata": {"service": "my-service", "version": "1.0.0", "environment": "production"},
    "serverUrl": "https://example.com",
    "userId": "12",
    "userSecretKey": "test-secret-key",
}

print("API URL:", API_URL)
print("Event:", json.dumps(event, indent=2))

response = httpx.post(f"{API_URL}/events", json=event, timeout=10.0)

print("Status:", response.status_code)
print("Response:", json.dumps(response.json(), indent=2))

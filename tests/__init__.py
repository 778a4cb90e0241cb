"""
Test suite for the CareLink backend.

Contains unit tests for the scheduling, dispatch and geo services and
API tests driven through FastAPI's TestClient.
"""

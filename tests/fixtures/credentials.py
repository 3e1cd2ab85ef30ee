"""Credentials shared by fixtures and tests."""

TRANSPORT_API_KEY = "test-stream-key"
TRANSPORT_API_SECRET = "test-stream-secret"
GATEWAY_KEY_SECRET = "test-razorpay-secret"
SESSION_SECRET = "test-session-secret"

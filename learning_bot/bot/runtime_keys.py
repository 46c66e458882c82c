from __future__ import annotations

BACKEND_CLIENT_KEY = "backend_client"
SESSION_STORE_KEY = "session_store"

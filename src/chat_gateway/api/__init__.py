"""HTTP surface: FastAPI app, dependency wiring and the realtime chat channel."""

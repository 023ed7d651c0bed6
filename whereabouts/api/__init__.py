"""HTTP surface (FastAPI routers)."""

"""HTTP control API for the broadcast (FastAPI)."""

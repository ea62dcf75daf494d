"""HTTP API: FastAPI app factory and routers over the mail service."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from downtime.api.router import api_router
from downtime.core.config import settings
from downtime.core.logging import configure_logging

configure_logging()

app = FastAPI(title="Downtime API", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(api_router, prefix="/api")


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from warroom.config import settings
from warroom.routers import economy, games, phases

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="War Room",
    description="Companion backend for turn-based global war strategy games",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(games.router)
app.include_router(phases.router)
app.include_router(economy.router)


@app.get("/health")
async def health_check():
    return {"status": "ok"}

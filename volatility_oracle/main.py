from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from volatility_oracle.api.routers.volatility import router as volatility_router

app = FastAPI(title="Volatility Oracle API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(volatility_router)

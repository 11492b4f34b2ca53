"""
FastAPI 应用入口点。
"""

from loguru import logger
from fastapi.middleware.cors import CORSMiddleware

from fastapi import FastAPI
from src.labca.ca.router import router as ca_router

from src.labca.config import config

app = FastAPI(title="Lab Certificate Authority Service")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(ca_router, prefix="/v1")

logger.info(f"config: {config.model_dump_json(indent=4)}")

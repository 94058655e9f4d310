"""API router -- aggregates all endpoint routers."""

from __future__ import annotations

from fastapi import APIRouter

from src.gateway.api.routes import ai, contacts, deals, health

router = APIRouter()

router.include_router(health.router)
router.include_router(contacts.router)
router.include_router(deals.router)
router.include_router(ai.router)

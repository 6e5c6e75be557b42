from __future__ import annotations

from typing import List

from fastapi import APIRouter, HTTPException, status

from src.handoff.domain.models.systems_review import SYSTEMS_REVIEW, SystemDefinition, get_system

router = APIRouter(prefix="/systems", tags=["systems"])


@router.get("/", response_model=List[SystemDefinition])
async def list_systems() -> List[SystemDefinition]:
    return list(SYSTEMS_REVIEW)


@router.get("/{system_id}", response_model=SystemDefinition)
async def get_system_definition(system_id: str) -> SystemDefinition:
    system = get_system(system_id)
    if system is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="System not found")
    return system

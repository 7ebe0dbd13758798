from fastapi import APIRouter, Depends, HTTPException
from loguru import logger

from music_today.core.exceptions import PersistenceError
from music_today.domain.tracking.store import JsonLedgerStore
from ..deps import get_store
from ..schemas import TrackOut

router = APIRouter()


@router.get("/today", response_model=list[TrackOut])
def get_today(store: JsonLedgerStore = Depends(get_store)) -> list[TrackOut]:
    """Today's tracks in first-observed order."""
    try:
        tracks = store.get()
    except PersistenceError as e:
        logger.error(f"Cannot serve today's tracks: {e}")
        raise HTTPException(503, "Track list unavailable")

    return [TrackOut(**track.to_dict()) for track in tracks]

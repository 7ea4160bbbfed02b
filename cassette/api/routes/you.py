"""The logged-in user's stored data: export and delete."""
from fastapi import APIRouter, Depends, Response

from cassette.api.state import AppState, get_state, get_user_id

router = APIRouter()


@router.get("")
def export_data(
    user_id: str = Depends(get_user_id),
    state: AppState = Depends(get_state),
):
    """Download everything stored for the user, exactly as stored."""
    raw = state.player_states.fetch_raw_document(user_id)
    return Response(
        content=raw,
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="cassette-data.json"'},
    )


@router.delete("")
def delete_data(
    user_id: str = Depends(get_user_id),
    state: AppState = Depends(get_state),
):
    """Delete everything stored for the user."""
    state.player_states.delete(user_id)
    return {"ok": True}

from fastapi import APIRouter, Depends, Query, Request

from ..errors import InputError
from ..principal import parse_principal
from ..queries import QueryCache, get_rooms
from ..rpc import BackendClient
from ..security import get_cache, get_client
from ..services.pictures import FailedImageTracker, get_displayable_pictures
from ..templating import templates

router = APIRouter(prefix="/ui", tags=["ui"])


@router.get("/image-modal")
def image_modal(request: Request, image_url: str, alt_text: str = ""):
    return templates.TemplateResponse(
        "partials/image_modal.html",
        {
            "request": request,
            "image_url": image_url,
            "alt_text": alt_text,
        },
    )


@router.get("/room-photos")
def room_photos(request: Request, hotel_id: str, room_id: int, failed: list[str] = Query(default=[]),
                client: BackendClient = Depends(get_client), cache: QueryCache = Depends(get_cache)):
    """Photo strip for one room, leaving out pictures the browser reported as broken."""
    room = None
    try:
        hotel_id = parse_principal(hotel_id)
    except InputError:
        hotel_id = None
    if hotel_id:
        rooms = get_rooms(client, cache, hotel_id).data or []
        room = next((r for r in rooms if r.id == room_id), None)
    pictures = room.pictures if room else []
    tracker = FailedImageTracker(pictures)
    for url in failed:
        tracker.mark_failed(url)
    return templates.TemplateResponse(
        "partials/room_photos.html",
        {
            "request": request,
            "room": room,
            "pictures": get_displayable_pictures(pictures, tracker),
            "hotel_id": hotel_id,
            "failed": failed,
        },
    )

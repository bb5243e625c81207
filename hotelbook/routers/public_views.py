from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from ..errors import InputError
from ..principal import parse_principal
from ..queries import QueryCache, get_hotels, get_rooms
from ..rpc import BackendClient
from ..security import get_cache, get_client, load_caller
from ..services.bookings import effective_nightly_price
from ..services.pictures import get_first_valid_picture, get_valid_pictures
from ..templating import templates

router = APIRouter(tags=["public"])


@router.get("/", response_class=HTMLResponse)
def main_menu(request: Request, client: BackendClient = Depends(get_client), cache: QueryCache = Depends(get_cache)):
    caller = load_caller(client, cache)
    return templates.TemplateResponse("index.html", {"request": request, "viewer": caller})


def _matches(hotel, q: str) -> bool:
    q = q.lower()
    return q in hotel.name.lower() or q in hotel.location.lower()


@router.get("/browse", response_class=HTMLResponse)
def browse(request: Request, q: str = "", client: BackendClient = Depends(get_client),
           cache: QueryCache = Depends(get_cache)):
    caller = load_caller(client, cache)
    res = get_hotels(client, cache)
    hotels = [h for h in (res.data or []) if h.active]
    if q.strip():
        hotels = [h for h in hotels if _matches(h, q.strip())]
    cover = {h.id: get_first_valid_picture([p for r in h.rooms for p in r.pictures]) for h in hotels}
    return templates.TemplateResponse(
        "browse.html",
        {
            "request": request,
            "viewer": caller,
            "hotels": hotels,
            "cover": cover,
            "q": q,
            "error": res.error.message if res.error else None,
        },
    )


@router.get("/browse/{hotel_id}", response_class=HTMLResponse)
def hotel_detail(request: Request, hotel_id: str, room_id: int | None = None,
                 client: BackendClient = Depends(get_client), cache: QueryCache = Depends(get_cache)):
    caller = load_caller(client, cache)
    try:
        hotel_id = parse_principal(hotel_id)
    except InputError:
        return templates.TemplateResponse("not_found.html", {"request": request, "viewer": caller, "what": "Hotel"}, status_code=404)

    res = get_hotels(client, cache)
    hotel = next((h for h in (res.data or []) if h.id == hotel_id), None)
    if res.error and hotel is None:
        return templates.TemplateResponse("error.html", {"request": request, "viewer": caller, "message": res.error.message}, status_code=502)
    if hotel is None or not (hotel.active or (caller and caller.is_admin)):
        return templates.TemplateResponse("not_found.html", {"request": request, "viewer": caller, "what": "Hotel"}, status_code=404)

    rooms_res = get_rooms(client, cache, hotel_id)
    rooms = rooms_res.data if rooms_res.data is not None else hotel.rooms
    selected = next((r for r in rooms if r.id == room_id), None)
    return templates.TemplateResponse(
        "hotel_detail.html",
        {
            "request": request,
            "viewer": caller,
            "hotel": hotel,
            "rooms": rooms,
            "selected": selected,
            "nightly": {r.id: effective_nightly_price(r) for r in rooms},
            "pictures": {r.id: get_valid_pictures(r.pictures) for r in rooms},
        },
    )

"""Weather dashboard JSON API: FastAPI routes over the dashboard controller."""

from contextlib import asynccontextmanager
from dataclasses import asdict

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from weatherboard.controller import DashboardController


class AddCity(BaseModel):
    name: str


def create_app(controller: DashboardController, manage_lifecycle: bool = True) -> FastAPI:
    """Build the API. With `manage_lifecycle` the controller is started/stopped with the app."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if manage_lifecycle:
            await controller.start()
        try:
            yield
        finally:
            if manage_lifecycle:
                await controller.stop()

    app = FastAPI(title="Weather Dashboard", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.controller = controller
    app.include_router(_routes())
    return app


def _ctl(request: Request) -> DashboardController:
    return request.app.state.controller


def _routes() -> APIRouter:
    router = APIRouter(prefix="/api")

    # ── Cities and current conditions ───────────────────────────

    @router.get("/cities")
    async def list_cities(request: Request):
        """Tracked cities with their display-ready snapshot, favorites first."""
        ctl = _ctl(request)
        return {
            "cities": ctl.cities(),
            "last_refresh_ms": ctl.last_refresh_ms,
            "views": [
                {
                    "city": v.city,
                    "favorite": v.favorite,
                    "unit": v.unit.value,
                    "display_temperature": v.display_temperature,
                    "snapshot": asdict(v.snapshot),
                }
                for v in ctl.dashboard()
            ],
        }

    @router.post("/cities")
    async def add_city(body: AddCity, request: Request):
        if not body.name.strip():
            raise HTTPException(422, "City name must not be blank")
        cities = await _ctl(request).add_city(body.name)
        return {"cities": cities}

    @router.post("/refresh")
    async def refresh(request: Request):
        ctl = _ctl(request)
        await ctl.refresh_now()
        return {"status": "refreshed", "last_refresh_ms": ctl.last_refresh_ms}

    @router.get("/cities/{city}")
    async def get_city(city: str, request: Request):
        entry = _ctl(request).get_entry(city)
        if entry is None:
            raise HTTPException(404, f"City not tracked: {city}")
        return {
            "city": city,
            "fetched_at_ms": entry.fetched_at_ms,
            "snapshot": asdict(entry.snapshot) if entry.snapshot else None,
            "error": entry.error,
        }

    # ── Detailed view ───────────────────────────────────────────

    @router.get("/cities/{city}/forecast")
    async def get_forecast(city: str, request: Request):
        days = await _ctl(request).get_daily_forecast(city)
        return [
            {
                "date": d.date.isoformat(),
                "temperature": d.temperature,
                "condition": d.condition,
                "precipitation_percent": d.precipitation_percent,
            }
            for d in days
        ]

    @router.get("/cities/{city}/hourly")
    async def get_hourly(city: str, request: Request):
        return [asdict(p) for p in await _ctl(request).get_hourly_series(city)]

    # ── Preferences ─────────────────────────────────────────────

    @router.get("/preferences")
    async def get_preferences(request: Request):
        prefs = _ctl(request).load_preferences()
        return {"unit": prefs.unit.value, "favorites": sorted(prefs.favorites)}

    @router.post("/favorites/{city}")
    async def toggle_favorite(city: str, request: Request):
        favorites = _ctl(request).toggle_favorite(city)
        return {"city": city, "favorite": city in favorites, "favorites": sorted(favorites)}

    @router.post("/unit")
    async def toggle_unit(request: Request):
        return {"unit": _ctl(request).toggle_unit().value}

    return router

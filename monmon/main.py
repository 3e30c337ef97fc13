from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from monmon.api.routes import router
from monmon.config.settings import Settings, get_settings
from monmon.integrations.yahoo_chart import YahooChartClient
from monmon.services.energy_data import EnergyDataService
from monmon.services.snapshot_cache import SnapshotCache


def build_energy_data_service(settings: Settings) -> EnergyDataService:
    return EnergyDataService(
        snapshot_cache=SnapshotCache(),
        quote_client=YahooChartClient(
            base_url=settings.YAHOO_CHART_BASE_URL,
            timeout=settings.QUOTE_TIMEOUT_SEC,
        ),
        cache_ttl_sec=settings.CACHE_TTL_SEC,
        fetch_attempts=settings.QUOTE_FETCH_ATTEMPTS,
        fetch_deadline_sec=settings.QUOTE_DEADLINE_SEC,
        refresh_cooldown_sec=settings.REFRESH_COOLDOWN_SEC,
    )


def _configure(app: FastAPI, settings: Settings) -> None:
    app.state.settings = settings
    app.state.energy_data_service = build_energy_data_service(settings)
    # mounted after the router so /api routes take precedence
    if settings.MONMON_STATIC_DIR and Path(settings.MONMON_STATIC_DIR).is_dir():
        app.mount("/", StaticFiles(directory=settings.MONMON_STATIC_DIR, html=True), name="dashboard")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if getattr(app.state, "energy_data_service", None) is None:
        _configure(app, app.state.get_settings())
    service = app.state.energy_data_service
    print(
        f"[APP][startup] symbols={','.join(service.symbols)} cache_ttl_sec={service.cache_ttl_sec}",
        flush=True,
    )
    try:
        yield
    finally:
        print("[APP][shutdown]", flush=True)


def create_app(settings: Settings | None = None) -> FastAPI:
    app = FastAPI(title="MonMon Energy Dashboard", version="0.1.0", lifespan=lifespan)
    app.include_router(router, prefix="/api")
    # NOTE: without explicit settings the env is read at startup, not at import.
    app.state.get_settings = get_settings
    if settings is not None:
        _configure(app, settings)
    return app


app = create_app()


def run() -> None:
    import uvicorn

    settings = get_settings()
    print(f"[APP][listen] host={settings.HOST} port={settings.PORT}", flush=True)
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()

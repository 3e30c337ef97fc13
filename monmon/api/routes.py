from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from monmon.errors import AggregationFailure

router = APIRouter()


@router.get('/energy-data')
def get_energy_data(request: Request):
    service = request.app.state.energy_data_service
    try:
        snapshot = service.get_snapshot()
    except AggregationFailure as exc:
        print(f"[API][energy_data_error] error={exc}", flush=True)
        return JSONResponse(status_code=500, content={'error': 'Failed to fetch energy data'})
    return snapshot.to_payload()


@router.get('/metrics/energy-data')
def energy_data_metrics(request: Request):
    return request.app.state.energy_data_service.metrics()


@router.get('/health')
def health(request: Request):
    service = request.app.state.energy_data_service
    return {
        'status': 'ok',
        'cache_state': service.snapshot_cache.state(service.cache_ttl_sec),
    }

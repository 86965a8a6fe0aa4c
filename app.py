"""
GeoViz Explorer API - FastAPI Entry Point

This is the main entry point for the GeoViz application.
All business logic is in the geoviz/ package - this file only handles:
- FastAPI app setup
- CORS middleware
- Route definitions (thin wrappers calling package functions)
"""

import traceback

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from geoviz import (
    # Logging
    logger,
    log_upload,
    log_error,
    # Errors
    GeoVizError,
    SessionNotFound,
    UnsupportedChartType,
    # Pipeline
    load_upload,
    run_pipeline,
    build_chart_payload,
    get_geocoder,
    set_geocoder,
    # Sessions and responses
    session_manager,
    unique_values,
    filter_records,
    build_marker_collection,
    build_upload_response,
    build_selection_response,
)
from geoviz.constants import CHART_TYPES
from geoviz.file_loading import check_extension
from geoviz.settings import (
    get_settings_with_status,
    load_settings,
    save_settings,
    validate_settings,
)
from geoviz.utils import clean_nans

# Create FastAPI app
app = FastAPI(
    title="GeoViz Explorer API",
    description="Upload a dataset, place it on the map by state and compare states",
    version="1.0.0"
)

# Enable CORS so browser frontend can communicate with backend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


def error_response(error: GeoVizError) -> JSONResponse:
    return JSONResponse(content=error.to_dict(), status_code=error.status_code)


def get_loaded_session(session_id: str):
    """Session with a successfully processed upload, or SessionNotFound."""
    cache = session_manager.get(session_id)
    if not cache or not cache.result or not cache.result.ok:
        raise SessionNotFound("No processed dataset for this session. Upload a file first.")
    return cache


def current_chart(cache, chart_type=None):
    """Chart payload for the session's selected states (None if nothing is selected)."""
    records = cache.selected_records()
    if not records:
        return None
    result = cache.result
    return build_chart_payload(
        records,
        result.classification.numeric,
        result.min_max,
        chart_type or cache.chart_type,
    )


# === Startup Event ===

@app.on_event("startup")
async def startup_event():
    """Log configuration on startup."""
    logger.info("Starting GeoViz Explorer API...")
    settings = get_settings_with_status()
    logger.info(
        f"max_rows={settings['max_rows']}, geocode_concurrency={settings['geocode_concurrency']}, "
        f"geocoding_configured={settings['geocoding_configured']}"
    )


# === Health Check ===

@app.get("/", response_class=PlainTextResponse)
async def root():
    return "Backend server is running"


@app.get("/health")
async def health_check():
    """Health check endpoint for container deployments."""
    return {"status": "healthy", "service": "geoviz-api"}


# === Upload Endpoints ===

@app.post("/upload")
async def upload_endpoint(req: Request, filename: str = "", session_id: str = "default"):
    """
    Process an uploaded dataset (raw file bytes in the request body).

    Query params: filename (extension picks the parser), session_id.
    A newer upload in the same session supersedes this one; its result is
    then discarded with 409.
    """
    rows = []
    cache = None
    generation = None
    progress = None
    try:
        # Reject unsupported extensions before reading the body
        check_extension(filename)
        rows = load_upload(filename, await req.body())

        cache = session_manager.get_or_create(session_id)
        generation = cache.begin_upload(filename)
        progress = cache.progress
        settings = load_settings()

        result = await run_pipeline(
            rows,
            get_geocoder(),
            progress=progress,
            max_rows=int(settings["max_rows"]),
            geocode_concurrency=int(settings["geocode_concurrency"]),
        )

        if not cache.accept_result(generation, result):
            return JSONResponse(
                content={"error": "Upload superseded by a newer upload", "generation": generation},
                status_code=409,
            )

        log_upload(
            session_id, filename, result.rows_in,
            rows_out=len(result.rows), states=len(result.records),
            status=result.status, message=result.message,
        )
        return JSONResponse(content=build_upload_response(result, generation, cache.selected))

    except GeoVizError as e:
        logger.warning(f"Upload of '{filename}' rejected: {e.message}")
        # Only finish this upload's own tracker; a rejected file never started one
        if progress is not None and cache.is_current(generation):
            progress.update(100)
        log_upload(session_id, filename, len(rows), status=type(e).__name__, message=e.message)
        return error_response(e)
    except Exception as e:
        log_error(type(e).__name__, str(e), session_id=session_id, tb=traceback.format_exc())
        return JSONResponse(content={"error": str(e)}, status_code=500)


@app.get("/progress/{session_id}")
async def progress_endpoint(session_id: str):
    """Progress (0-100) of the session's latest upload."""
    cache = session_manager.get(session_id)
    if not cache:
        return error_response(SessionNotFound(f"Unknown session: {session_id}"))
    return JSONResponse(content=cache.get_status())


# === Selection and Chart Endpoints ===

@app.post("/select")
async def select_endpoint(req: Request):
    """
    Marker click handler.
    Accepts: { sessionId, state, chartType? }. Clicking a selected state
    deselects it; up to two states are compared.
    """
    session_id = "default"
    try:
        data = await req.json()
        session_id = data.get("sessionId", "default")
        state = data.get("state", "")

        cache = get_loaded_session(session_id)
        if cache.result.find_record(state) is None:
            return JSONResponse(content={"error": f"Unknown state: {state}"}, status_code=404)

        chart_type = data.get("chartType")
        if chart_type and str(chart_type).lower() not in CHART_TYPES:
            raise UnsupportedChartType(f"Unsupported chart type '{chart_type}'")
        chart = None
        selected = cache.toggle_selection(state)
        if selected:
            chart = current_chart(cache, chart_type)
            if chart_type:
                cache.chart_type = chart["chartType"]

        return JSONResponse(content=build_selection_response(selected, chart))

    except GeoVizError as e:
        return error_response(e)
    except Exception as e:
        log_error(type(e).__name__, str(e), session_id=session_id, tb=traceback.format_exc())
        return JSONResponse(content={"error": str(e)}, status_code=500)


@app.get("/chart/{session_id}")
async def chart_endpoint(session_id: str, chart_type: str = ""):
    """Chart payload for the currently selected state(s)."""
    try:
        cache = get_loaded_session(session_id)
        if chart_type and str(chart_type).lower() not in CHART_TYPES:
            raise UnsupportedChartType(f"Unsupported chart type '{chart_type}'")
        chart = current_chart(cache, chart_type or None)
        if chart and chart_type:
            cache.chart_type = chart["chartType"]
        return JSONResponse(content=build_selection_response(cache.selected, chart))
    except GeoVizError as e:
        return error_response(e)
    except Exception as e:
        log_error(type(e).__name__, str(e), session_id=session_id, tb=traceback.format_exc())
        return JSONResponse(content={"error": str(e)}, status_code=500)


# === Filter Endpoints ===

@app.get("/columns/{session_id}/{column}/values")
async def column_values_endpoint(session_id: str, column: str):
    """Distinct values of one aggregated column, for the value dropdown."""
    try:
        cache = get_loaded_session(session_id)
        records = cache.result.records
        if not any(column in record for record in records):
            return JSONResponse(content={"error": f"Unknown column: {column}"}, status_code=404)
        return JSONResponse(content=clean_nans({"column": column, "values": unique_values(records, column)}))
    except GeoVizError as e:
        return error_response(e)
    except Exception as e:
        log_error(type(e).__name__, str(e), session_id=session_id, tb=traceback.format_exc())
        return JSONResponse(content={"error": str(e)}, status_code=500)


@app.post("/filter")
async def filter_endpoint(req: Request):
    """
    Filter map markers by a property value.
    Accepts: { sessionId, column, value } - empty value shows all markers.
    """
    session_id = "default"
    try:
        data = await req.json()
        session_id = data.get("sessionId", "default")
        column = data.get("column", "")
        value = data.get("value", "")

        cache = get_loaded_session(session_id)
        records = filter_records(cache.result.records, column, value)
        cache.filter = {"column": column, "value": value}

        return JSONResponse(content=clean_nans({
            "filter": cache.filter,
            "matched": len(records),
            "geojson": build_marker_collection(records, cache.selected),
        }))
    except GeoVizError as e:
        return error_response(e)
    except Exception as e:
        log_error(type(e).__name__, str(e), session_id=session_id, tb=traceback.format_exc())
        return JSONResponse(content={"error": str(e)}, status_code=500)


# === Settings Endpoints ===

@app.get("/settings")
async def get_settings():
    """Get current application settings."""
    try:
        return JSONResponse(content=get_settings_with_status())
    except Exception as e:
        logger.error(f"Error getting settings: {e}")
        return JSONResponse(content={"error": str(e)}, status_code=500)


@app.post("/settings")
async def update_settings(req: Request):
    """
    Update application settings.
    Accepts any of: { max_rows, geocode_concurrency, geocode_timeout, geocoding_url }
    """
    try:
        data = await req.json()
        try:
            updates = validate_settings(data)
        except ValueError as e:
            return JSONResponse(content={"error": str(e)}, status_code=400)

        if not save_settings(updates):
            return JSONResponse(content={"error": "Failed to save settings"}, status_code=500)

        # Rebuild the geocoder with the new timeout/url on next use
        set_geocoder(None)
        return JSONResponse(content={"success": True, "settings": get_settings_with_status()})
    except Exception as e:
        logger.error(f"Error updating settings: {e}")
        return JSONResponse(content={"error": str(e)}, status_code=500)


# === Main Entry Point ===

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=5000)

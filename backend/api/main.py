"""
Cyclone Tracks - FastAPI Backend for historical cyclone track visualization

Features:
- One-time load of cyclonic event observations with lenient record parsing
- Year filtering, grouping by storm and per-timestamp animation frames
- Server-side playback controls (year slider, animation slider)
- Interactive folium map of the current frame
"""

from fastapi import FastAPI, HTTPException, Query, Path
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, HTMLResponse
from pydantic import BaseModel, Field
from typing import Optional
import os
import logging

from .cyclones import cyclone_manager, initialize_cyclone_data, MIN_YEAR, MAX_YEAR
from .controls import PlaybackControls, SliderState
from .map_render import render_map_page, frame_markers

logger = logging.getLogger(__name__)

VERSION = "0.1.0"

app = FastAPI(
    title="Cyclone Tracks API",
    description="Historical North Indian Ocean cyclone tracks, filtered by year and animated through time",
    version=VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Get allowed origins from environment, with safe defaults for development
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "").split(",") if os.getenv("ALLOWED_ORIGINS") else [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://localhost:8080",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# Slider state for the map page
controls = PlaybackControls(cyclone_manager.view, min_year=MIN_YEAR, max_year=MAX_YEAR)


# ============================================================================
# Pydantic Models
# ============================================================================

class YearSelection(BaseModel):
    """Year slider position"""
    year: int = Field(..., description="Year to show; clamped to the slider bounds")


class IndexSelection(BaseModel):
    """Animation slider position"""
    index: int = Field(..., ge=0, description="Index into the year's distinct timestamps")


class ControlState(BaseModel):
    """Playback control state"""
    year: int
    min_year: int
    max_year: int
    timestamp: Optional[str] = None
    index: int = Field(..., description="Position of the selected timestamp, -1 if not in this year")
    slider_max: int
    timestamp_count: int
    state: SliderState
    is_animating: bool
    point_count: int


class ErrorResponse(BaseModel):
    """Standard error response"""
    error: str
    detail: str
    status_code: int


def validate_year(year: int) -> None:
    """Validate year is within the slider range"""
    if year < MIN_YEAR or year > MAX_YEAR:
        raise HTTPException(
            status_code=400,
            detail=f"Year {year} is out of range. Supported years are {MIN_YEAR}-{MAX_YEAR}."
        )


# ============================================================================
# Exception Handlers
# ============================================================================

@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    """Custom HTTP exception handler with consistent format"""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": "HTTPException",
            "detail": exc.detail,
            "status_code": exc.status_code
        }
    )


@app.exception_handler(ValueError)
async def value_error_handler(request, exc: ValueError):
    """Handle value errors"""
    logger.warning(f"Value error: {str(exc)}")
    return JSONResponse(
        status_code=400,
        content={
            "error": "ValueError",
            "detail": "Invalid input provided",
            "status_code": 400
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    """Handle unexpected errors"""
    logger.error(f"Unhandled error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "InternalServerError",
            "detail": "An unexpected error occurred. Please try again later.",
            "status_code": 500
        }
    )


@app.on_event("startup")
async def load_cyclone_data():
    """Load cyclone data on startup"""
    if not await initialize_cyclone_data():
        logger.error("Cyclone data unavailable, serving empty views")


# ============================================================================
# API Endpoints
# ============================================================================

@app.get("/", tags=["General"])
async def root():
    """API root endpoint"""
    return {
        "message": "Cyclone Tracks API",
        "version": VERSION,
        "documentation": "/docs",
        "endpoints": {
            "health": "/api/health",
            "grades": "/api/cyclones/grades",
            "years": "/api/cyclones/years",
            "storms": "/api/cyclones/year/{year}",
            "timestamps": "/api/cyclones/year/{year}/timestamps",
            "frame": "/api/cyclones/year/{year}/frame",
            "controls": "/api/controls",
            "map": "/map",
        }
    }


@app.get("/api/health", tags=["General"])
async def health():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "version": VERSION,
        "data_loaded": cyclone_manager.loaded,
        "point_count": len(cyclone_manager.points),
        "years_count": len(cyclone_manager.get_available_years()),
    }


@app.get("/api/cyclones/grades", tags=["Cyclones"])
async def get_grades():
    """Grade codes, names and marker colors"""
    return {"grades": cyclone_manager.get_grades()}


@app.get("/api/cyclones/years", tags=["Cyclones"])
async def get_available_cyclone_years():
    """
    Get the year slider bounds and the years that have observations.
    """
    return {
        "min_year": MIN_YEAR,
        "max_year": MAX_YEAR,
        "years": cyclone_manager.get_available_years(),
    }


@app.get("/api/cyclones/year/{year}", tags=["Cyclones"])
async def get_cyclones_by_year(
    year: int = Path(..., description="Year to get cyclones for (e.g., 2019)")
):
    """
    Get all observations for a specific year, grouped by cyclone id.
    """
    validate_year(year)
    storms = cyclone_manager.get_storms_by_year(year)
    return {"year": year, "storms": storms, "count": len(storms)}


@app.get("/api/cyclones/year/{year}/timestamps", tags=["Cyclones"])
async def get_cyclone_timestamps(
    year: int = Path(..., description="Year to list observation timestamps for")
):
    """
    Get the distinct observation timestamps for a year, in source order.

    The animation slider ranges from 0 to `slider_max`.
    """
    validate_year(year)
    timestamps = cyclone_manager.get_timestamps(year)
    return {
        "year": year,
        "timestamps": timestamps,
        "count": len(timestamps),
        "slider_max": len(timestamps) - 1,
    }


@app.get("/api/cyclones/year/{year}/frame", tags=["Cyclones"], responses={404: {"model": ErrorResponse}})
async def get_cyclone_frame(
    year: int = Path(..., description="Year of the frame"),
    index: Optional[int] = Query(None, ge=0, description="Index into the year's timestamps"),
    timestamp: Optional[str] = Query(None, description="Timestamp as 'dd-mm-yyyy HHMM'"),
):
    """
    Get every observation of a year at one timestamp.

    Pass either `index` (animation slider position) or `timestamp`.
    """
    validate_year(year)
    timestamps = cyclone_manager.get_timestamps(year)

    if index is not None:
        if index >= len(timestamps):
            raise HTTPException(
                status_code=404,
                detail=f"Frame {index} not found, {year} has {len(timestamps)} timestamps"
            )
        timestamp = timestamps[index]
    elif timestamp is None:
        raise HTTPException(status_code=400, detail="Provide either index or timestamp")
    elif timestamp not in timestamps:
        raise HTTPException(status_code=404, detail=f"Timestamp {timestamp} not found in {year}")

    points = cyclone_manager.get_frame(year, timestamp)
    return {
        "year": year,
        "timestamp": timestamp,
        "index": timestamps.index(timestamp),
        "points": points,
        "count": len(points),
    }


@app.get("/api/cyclones/year/{year}/storms", tags=["Cyclones"])
async def get_storm_summaries(
    year: int = Path(..., description="Year to summarize")
):
    """
    Get a track summary (peak wind, minimum pressure, peak grade) for each cyclone of a year.
    """
    validate_year(year)
    storms = cyclone_manager.get_storm_summaries(year)
    return {"year": year, "storms": storms, "count": len(storms)}


@app.get("/api/cyclones/year/{year}/storms/{cyclone_id}", tags=["Cyclones"], responses={404: {"model": ErrorResponse}})
async def get_storm_details(
    year: int = Path(..., description="Year of the cyclone"),
    cyclone_id: int = Path(..., description="Serial number of the system during the year"),
):
    """
    Get one cyclone's summary and all of its observations.
    """
    validate_year(year)
    storm = cyclone_manager.get_storm(year, cyclone_id)
    if not storm:
        raise HTTPException(status_code=404, detail=f"Cyclone {cyclone_id} not found in {year}")
    return storm


# ============================================================================
# Playback Controls
# ============================================================================

@app.get("/api/controls", response_model=ControlState, tags=["Controls"])
async def get_controls():
    """Current year, timestamp selection and slider state"""
    return controls.to_dict()


@app.post("/api/controls/year", response_model=ControlState, tags=["Controls"])
async def set_control_year(selection: YearSelection):
    """
    Move the year slider.

    The timestamp selection is kept, so `index` is -1 when the new year has
    no observation at the selected timestamp.
    """
    controls.set_year(selection.year)
    return controls.to_dict()


@app.post("/api/controls/timestamp", response_model=ControlState, tags=["Controls"])
async def set_control_timestamp(selection: IndexSelection):
    """Move the animation slider"""
    controls.select_index(selection.index)
    return controls.to_dict()


@app.post("/api/controls/press", response_model=ControlState, tags=["Controls"])
async def press_animation_slider():
    """Pointer down on the animation slider; pauses animation"""
    controls.press()
    return controls.to_dict()


@app.post("/api/controls/release", response_model=ControlState, tags=["Controls"])
async def release_animation_slider():
    """Pointer up on the animation slider; resumes animation"""
    controls.release()
    return controls.to_dict()


@app.get("/api/controls/frame", tags=["Controls"])
async def get_control_frame():
    """Markers of the current frame"""
    points = controls.current_points
    return {
        "year": controls.year,
        "timestamp": controls.timestamp,
        "markers": frame_markers(points),
        "count": len(points),
    }


@app.get("/map", response_class=HTMLResponse, tags=["Map"])
async def get_map(
    year: Optional[int] = Query(None, description="Move the year slider before rendering"),
    index: Optional[int] = Query(None, ge=0, description="Move the animation slider before rendering"),
):
    """
    Interactive map of the current frame with the slider panel.
    """
    if year is not None:
        controls.set_year(year)
    if index is not None:
        controls.select_index(index)
    return HTMLResponse(render_map_page(controls, action="/map"))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))

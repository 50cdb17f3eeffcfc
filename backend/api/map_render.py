"""
Cyclone Map Rendering

Builds the folium map for the current animation frame: one circle marker
per storm at the selected timestamp, colored by grade, plus the fixed
control panel with the year and animation sliders.
"""

import html
from typing import Dict, List, Optional, Sequence

import folium
from branca.element import MacroElement
from jinja2 import Template

from backend.processing.normalize import CycloneDataPoint
from .controls import PlaybackControls

MAP_CENTER = [14, 70]
MAP_ZOOM = 4
MARKER_RADIUS = 2
MARKER_HOVER_RADIUS = 4

TILE_URL = "https://{s}.basemaps.cartocdn.com/dark_nolabels/{z}/{x}/{y}{r}.png"
TILE_ATTRIBUTION = (
    '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> contributors '
    '&copy; <a href="https://carto.com/">CARTO</a>'
)


class HoverRadius(MacroElement):
    """Grow a circle marker while the pointer is over it"""

    _template = Template("""
        {% macro script(this, kwargs) %}
            {{ this._parent.get_name() }}.on("mouseover", function (e) {
                e.target.setRadius({{ this.hover_radius }});
            });
            {{ this._parent.get_name() }}.on("mouseout", function (e) {
                e.target.setRadius({{ this.radius }});
            });
        {% endmacro %}
    """)

    def __init__(self, radius: int = MARKER_RADIUS, hover_radius: int = MARKER_HOVER_RADIUS):
        super().__init__()
        self._name = "HoverRadius"
        self.radius = radius
        self.hover_radius = hover_radius


def tooltip_html(point: CycloneDataPoint) -> str:
    """Detailed observation data shown in the marker tooltip"""
    rows = [
        ("Name", point.name),
        ("Grade", point.grade),
        ("Wind Speed", f"{point.wind_speed} km/h"),
        ("Pressure", f"{point.pressure} hPa"),
        ("Latitude", point.latitude),
        ("Longitude", point.longitude),
        ("Basin", point.basin),
        ("Shape", point.shape),
        ("Date", point.date),
        ("Time", point.time),
    ]
    body = "".join(
        f"<strong>{label}:</strong> {html.escape(str(value))}<br />" for label, value in rows
    )
    return f"<div>{body}</div>"


def build_cyclone_map(grouped_points: Dict[Optional[int], Sequence[CycloneDataPoint]]) -> folium.Map:
    """
    Create the frame map.

    Args:
        grouped_points: Points of the current frame keyed by cyclone id

    Returns:
        folium.Map with pan and zoom interaction disabled
    """
    m = folium.Map(
        location=MAP_CENTER,
        zoom_start=MAP_ZOOM,
        tiles=None,
        zoom_control=False,
        dragging=False,
        scroll_wheel_zoom=False,
        double_click_zoom=False,
        box_zoom=False,
        keyboard=False,
    )
    folium.TileLayer(tiles=TILE_URL, attr=TILE_ATTRIBUTION, name="CARTO Dark").add_to(m)

    for cyclone_id, points in grouped_points.items():
        storm_group = folium.FeatureGroup(name=f"Cyclone {cyclone_id}")
        for point in points:
            marker = folium.CircleMarker(
                location=[point.latitude, point.longitude],
                radius=MARKER_RADIUS,
                color=point.color,
                fill=True,
                fill_color=point.color,
                tooltip=folium.Tooltip(tooltip_html(point)),
            )
            marker.add_child(HoverRadius())
            marker.add_to(storm_group)
        storm_group.add_to(m)

    return m


def _post_hook(url: str) -> str:
    return html.escape(f"fetch('{url}', {{method: 'POST', keepalive: true}})")


def controls_html(
    controls: PlaybackControls,
    action: str = "/map",
    controls_api: str = "/api/controls",
) -> str:
    """
    Fixed-position panel with the year and animation sliders.

    Each slider submits its own form, so moving the year leaves the
    timestamp selection untouched. Pressing and releasing the animation
    slider posts to the controls API press/release endpoints. The animation
    slider is disabled when the year has no timestamps.
    """
    action = html.escape(action)
    timestamp = html.escape(controls.timestamp or "")
    row_style = "display: flex; align-items: center; margin: 0;"
    press = _post_hook(f"{controls_api}/press")
    release = _post_hook(f"{controls_api}/release")
    if controls.slider_max < 0:
        index_bounds = 'min="0" max="0" value="0" disabled'
    else:
        index_bounds = f'min="0" max="{controls.slider_max}" value="{controls.current_index}"'
    return f"""
    <div style="position: fixed; bottom: 16px; left: 10%; width: 80%; z-index: 999999;
                background: rgba(82, 82, 91, 0.7); border-radius: 12px; padding: 20px;
                color: white; font-family: sans-serif;">
        <form method="get" action="{action}" style="{row_style}">
            <label for="year" style="width: 30%;">Year Slider</label>
            <input id="year" name="year" type="range" style="width: 100%;"
                   min="{controls.min_year}" max="{controls.max_year}" value="{controls.year}"
                   onchange="this.form.submit()" />
            <div style="margin-left: 16px; font-size: 14px;">{controls.year}</div>
        </form>
        <form method="get" action="{action}" style="{row_style}">
            <label for="index" style="width: 30%;">Animation Control Slider</label>
            <input id="index" name="index" type="range" style="width: 100%;"
                   {index_bounds}
                   onmousedown="{press}" ontouchstart="{press}"
                   onmouseup="{release}" ontouchend="{release}"
                   onchange="this.form.submit()" />
            <div style="margin-left: 16px; font-size: 14px;">{timestamp}</div>
        </form>
    </div>
    """


def render_map_page(controls: PlaybackControls, action: str = "/map") -> str:
    """Full HTML document for the controls' current frame"""
    m = build_cyclone_map(controls.view.current_by_storm())
    m.get_root().html.add_child(folium.Element(controls_html(controls, action)))
    return m.get_root().render()


def frame_markers(points: List[CycloneDataPoint]) -> List[Dict]:
    """Marker descriptions for JSON clients drawing their own map"""
    return [
        {
            "cyclone_id": p.cyclone_id,
            "location": [p.latitude, p.longitude],
            "color": p.color,
            "radius": MARKER_RADIUS,
            "tooltip": tooltip_html(p),
        }
        for p in points
    ]

"""
Map building utilities for the CEBA Mapper.

Renders the map state (markers and camera) into Folium maps
for display in the Streamlit app.
"""

import logging
import traceback
from html import escape
from typing import Iterable, Optional, Tuple
import folium
from folium.plugins import LocateControl
from branca.element import MacroElement
from jinja2 import Template

from config import Config
from utils.map_view import MapView, MarkerKind, TaggedMarker

logger = logging.getLogger(__name__)

def create_base_map(
    center: Optional[Tuple[float, float]] = None,
    zoom: Optional[int] = None
) -> folium.Map:
    """
    Create a base Folium map.

    Args:
        center: (latitude, longitude) tuple for map center
        zoom: Initial zoom level

    Returns:
        Folium Map object
    """
    if center is None:
        center = Config.DEFAULT_MAP_CENTER

    if zoom is None:
        zoom = Config.DEFAULT_MAP_ZOOM

    m = folium.Map(
        location=center,
        zoom_start=zoom,
        tiles=Config.MAP_TILES,
        max_zoom=Config.MAX_ZOOM,
        control_scale=True
    )

    return m

def facility_popup_html(label: str) -> str:
    """
    Popup content for a facility marker: name in bold, district below.

    Args:
        label: Marker label in the form "name, district"
    """
    name, _, district = label.partition(', ')
    html = f"<b>{escape(name)}</b>"
    if district:
        html += f"<br>{escape(district)}"
    return html

def add_markers_to_map(
    map_obj: folium.Map,
    markers: Iterable[TaggedMarker]
) -> folium.Map:
    """
    Add tagged markers to a Folium map.

    Facility results get a blue icon with name and district in the popup.
    The user's location gets a red icon with its popup open.

    Args:
        map_obj: Folium Map object
        markers: Markers to draw

    Returns:
        Updated Folium Map object
    """
    try:
        for marker in markers:
            location = [marker.coords.latitude, marker.coords.longitude]

            if marker.kind is MarkerKind.USER_LOCATION:
                folium.Marker(
                    location=location,
                    popup=folium.Popup(escape(marker.label), show=True),
                    tooltip=marker.label,
                    icon=folium.Icon(color=Config.USER_MARKER_COLOR, icon='user', prefix='fa')
                ).add_to(map_obj)
            else:
                folium.Marker(
                    location=location,
                    popup=folium.Popup(facility_popup_html(marker.label), max_width=300),
                    tooltip=marker.label,
                    icon=folium.Icon(color=Config.FACILITY_MARKER_COLOR, icon='graduation-cap', prefix='fa')
                ).add_to(map_obj)

        return map_obj

    except Exception as e:
        logger.error(f"Error adding markers to map: {e}")
        logger.error(traceback.format_exc())
        return map_obj

def create_legend() -> str:
    """
    Create HTML legend for the marker kinds.

    Returns:
        HTML string for legend
    """
    entries = [
        (Config.FACILITY_MARKER_COLOR, "CEBA"),
        (Config.USER_MARKER_COLOR, Config.USER_MARKER_LABEL),
    ]

    legend_html = '''
    <div id="map-legend" style="
        position: absolute;
        bottom: 30px;
        left: 10px;
        background-color: white;
        border: 2px solid #333;
        border-radius: 8px;
        padding: 10px;
        font-family: 'Arial', sans-serif;
        font-size: 13px;
        z-index: 1000;
    ">
    '''

    for color, text in entries:
        legend_html += f'''
        <div style="margin: 4px 0; display: flex; align-items: center;">
            <span style="
                display: inline-block;
                width: 12px;
                height: 12px;
                background-color: {color};
                border-radius: 50%;
                margin-right: 8px;
            "></span>
            <span style="color: #333;">{escape(text)}</span>
        </div>
        '''

    legend_html += '</div>'

    return legend_html

def add_legend_to_map(map_obj: folium.Map) -> folium.Map:
    """
    Add the marker legend to the map.

    Args:
        map_obj: Folium Map object

    Returns:
        Updated Folium Map object
    """
    try:
        template = """
        {% macro html(this, kwargs) %}
        """ + create_legend() + """
        {% endmacro %}
        """

        macro = MacroElement()
        macro._template = Template(template)

        map_obj.get_root().add_child(macro)
        return map_obj

    except Exception as e:
        logger.error(f"Error adding legend to map: {e}")
        logger.error(traceback.format_exc())
        return map_obj

def create_full_map(map_view: MapView, add_legend: bool = True) -> folium.Map:
    """
    Render the whole map state.

    Args:
        map_view: Markers and camera to render
        add_legend: Whether to add a legend

    Returns:
        Complete Folium Map object
    """
    try:
        m = create_base_map(center=map_view.center.as_tuple(), zoom=map_view.zoom)
        m = add_markers_to_map(m, map_view.tagged_markers())

        # Browser-side "locate me" button
        LocateControl(auto_start=False).add_to(m)

        if add_legend:
            m = add_legend_to_map(m)

        return m

    except Exception as e:
        logger.error(f"Error creating full map: {e}")
        # Return empty map on error
        return create_base_map()

"""
CEBA Mapper - Streamlit Application

A web application to find Centros de Educación Básica Alternativa (CEBAs)
in Peru by district and plot them on an interactive map.
"""

import streamlit as st
import logging
import pandas as pd
from html import escape

# Import modules
from config import Config
from app_state import AppState
from device_locator import BrowserPositionProvider, ConfiguredPositionProvider, locate_user
from facility_store import LoadState
from feed_loader import load_feed
from geocoder import NominatimGeocoder
from search_pipeline import SearchPipeline, SearchStatus, status_color, status_message
from utils.logger_config import setup_logging
from utils.map_builder import create_full_map
from utils.validation import sanitize_input
from streamlit_folium import st_folium

# Configure logging
setup_logging()
logger = logging.getLogger(__name__)

# Page configuration
st.set_page_config(
    page_title=Config.APP_TITLE,
    page_icon=Config.APP_ICON,
    layout="wide",
    initial_sidebar_state="expanded"
)

# Custom CSS
st.markdown("""
    <style>
    .main-header {
        font-size: 2.5rem;
        font-weight: bold;
        color: #2E86AB;
        text-align: center;
        margin-bottom: 0.5rem;
    }
    .sub-header {
        font-size: 1.1rem;
        color: #666;
        text-align: center;
        margin-bottom: 1.5rem;
    }
    .search-status {
        font-weight: bold;
        margin: 0.5rem 0;
    }
    </style>
""", unsafe_allow_html=True)

def initialize_session_state():
    """Initialize session state: load the feed and locate the user once."""
    if 'app_state' not in st.session_state:
        app_state = AppState()
        st.session_state.app_state = app_state

        with st.spinner("Cargando datos de CEBAs..."):
            st.session_state.feed_report = load_feed(app_state.store)

        if Config.get_user_position() is not None:
            locate_user(app_state, ConfiguredPositionProvider())

        st.session_state.browser_locator = BrowserPositionProvider()

    if 'pipeline' not in st.session_state:
        st.session_state.pipeline = SearchPipeline(
            st.session_state.app_state,
            NominatimGeocoder()
        )
    if 'last_report' not in st.session_state:
        st.session_state.last_report = None

def update_user_location():
    """Place the user marker once the browser reports its position."""
    locator = st.session_state.browser_locator
    if locator.answered:
        return

    # Keeps the configured position when the browser refuses
    if locator.poll() and locator.coords is not None:
        locate_user(st.session_state.app_state, locator)

def render_header():
    """Render the application header."""
    st.markdown(f'<div class="main-header">{Config.APP_ICON} {Config.APP_TITLE}</div>',
                unsafe_allow_html=True)
    st.markdown(f'<div class="sub-header">{Config.APP_DESCRIPTION}</div>',
                unsafe_allow_html=True)

def render_status(text: str, color: str, container=st):
    """Show a status message in the given color."""
    container.markdown(
        f'<div class="search-status" style="color: {color};">{escape(text)}</div>',
        unsafe_allow_html=True
    )

def render_sidebar():
    """Render the sidebar with the district search."""
    app_state = st.session_state.app_state
    st.sidebar.header("🔍 Buscar por distrito")

    district_input = st.sidebar.text_input(
        "Distrito",
        placeholder="e.g., San Juan de Lurigancho"
    )

    search_clicked = st.sidebar.button("Buscar", type="primary", use_container_width=True)
    status_box = st.sidebar.empty()

    if search_clicked:
        render_status(status_message(SearchStatus.SEARCHING), status_color(SearchStatus.SEARCHING), status_box)
        progress = st.sidebar.progress(0.0)

        def on_progress(index, total, result):
            progress.progress(index / total, text=f"{index}/{total}: {result.record.name}")

        report = st.session_state.pipeline.run(district_input, on_progress=on_progress)
        progress.empty()
        st.session_state.last_report = report

    report = st.session_state.last_report
    if report is not None:
        render_status(report.message, report.color, status_box)

    # Data source info
    st.sidebar.divider()
    st.sidebar.subheader("📊 Datos")

    store = app_state.store
    if store.state is LoadState.LOADED:
        st.sidebar.markdown(f"**CEBAs cargados:** {len(store)}")
        feed_report = st.session_state.get('feed_report')
        if feed_report is not None and feed_report.skipped:
            st.sidebar.caption(f"{len(feed_report.skipped)} filas omitidas")
    elif store.state is LoadState.FAILED:
        st.sidebar.error("No se pudieron cargar los datos de CEBAs.")
        if st.sidebar.button("Reintentar carga", use_container_width=True):
            st.session_state.feed_report = load_feed(store)
            st.rerun()
    else:
        st.sidebar.info("Cargando datos...")

    if app_state.user_location is None:
        st.sidebar.caption("Ubicación del usuario no disponible.")

def render_results():
    """Render the table of facilities from the last search."""
    report = st.session_state.last_report
    if report is None or not report.results:
        return

    st.subheader(f"🏫 Resultados para \"{sanitize_input(report.query)}\"")

    rows = []
    for result in report.results:
        row = {
            'CEBA': result.record.name,
            'Distrito': result.record.district,
            'Ubicado': "✅" if result.located else "❌",
            'Latitud': result.coords.latitude if result.located else None,
            'Longitud': result.coords.longitude if result.located else None,
        }
        if st.session_state.app_state.user_location is not None:
            row['Distancia (km)'] = result.distance_km
        rows.append(row)

    df = pd.DataFrame(rows)
    st.dataframe(df, use_container_width=True, hide_index=True)

def render_map():
    """Render the interactive map."""
    with st.spinner("Creando mapa..."):
        m = create_full_map(st.session_state.app_state.map_view)

        st_folium(
            m,
            width=1200,
            height=600,
            returned_objects=[],
            key="main_map"
        )

def main():
    """Main application function."""
    initialize_session_state()
    update_user_location()

    render_header()
    render_sidebar()
    render_map()
    render_results()

if __name__ == "__main__":
    main()

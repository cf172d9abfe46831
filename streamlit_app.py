from __future__ import annotations

import os
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parent
SRC = ROOT / "src"
if SRC.exists() and str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import streamlit as st

import kpi_tracker
from kpi_tracker.data.db import connect, init_db, resolve_db_path
from kpi_tracker.app.pages import daily, dashboard, settings

st.set_page_config(page_title="KPI Master", layout="wide")

# --- DB init (once per app start) ---
con = connect(resolve_db_path())
init_db(con)

# --- Sidebar navigation ---
st.sidebar.title("KPI Master")

build_number = os.getenv("APP_BUILD") or kpi_tracker.__version__
st.sidebar.caption(f"Build: {build_number}")

PAGES = {
    "Journée": lambda: daily.render(con),
    "Tableau de Bord": lambda: dashboard.render(con),
    "Paramètres": lambda: settings.render(con),
}

page_param = st.query_params.get("page")
page_labels = list(PAGES.keys())
default_index = page_labels.index(page_param) if page_param in PAGES else 0

selected = st.sidebar.radio("Pages", page_labels, index=default_index, key="sidebar_page")

# --- Render selected page ---
PAGES[selected]()

# agriscan_streamlit_app.py
"""
AgriScan - Streamlit app
Flow:
- Sign in (demo flag, remembered on disk)
- Scan: upload or capture a crop photo
- Details: crop (AI-suggested), soil, plant age, optional position
- Dashboard: Groq Vision diagnosis, severity, pathogen profile, care plan
- History: past diagnoses with crop/date filters and CSV export
"""

# -------------- imports & page config (must be first Streamlit command) --------------
import logging

import streamlit as st
st.set_page_config(page_title="AgriScan — Crop Doctor", layout="centered")

from agriscan import config
from agriscan.ai_client import GroqVisionClient
from agriscan.controller import ScreenFlowController
from agriscan.models import Screen
from agriscan.storage import AppStore, JsonFileStorage
from agriscan.views import render_dashboard, render_details, render_history, render_login, render_upload

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("agriscan.app")


# ---------------- Groq client init ----------------
@st.cache_resource
def load_client():
    client = GroqVisionClient()
    if not client.ready:
        logger.warning("GROQ_API_KEY not set; diagnosis is unavailable")
    return client


client = load_client()

if "controller" not in st.session_state:
    st.session_state.controller = ScreenFlowController(AppStore(JsonFileStorage()))
ctl = st.session_state.controller

# ---------------- Sidebar navigation ----------------
st.sidebar.title("AgriScan")
st.sidebar.caption("Photograph a crop, get a diagnosis and a treatment plan.")

if ctl.state.authenticated:
    if st.sidebar.button("📷 Scan", use_container_width=True):
        ctl.navigate(Screen.UPLOAD)
        st.rerun()
    if st.sidebar.button("🕘 History", use_container_width=True):
        ctl.navigate(Screen.HISTORY)
        st.rerun()
    if st.sidebar.button("Logout", use_container_width=True):
        ctl.logout()
        st.rerun()

# show basic status
st.sidebar.markdown("### Status")
st.sidebar.write({
    "Groq configured": client.ready,
    "Vision model": client.model,
    "Saved diagnoses": len(ctl.state.history),
})

# ---------------- Screens ----------------
if ctl.screen == Screen.LOGIN:
    render_login(ctl)
elif ctl.screen == Screen.UPLOAD:
    render_upload(ctl)
elif ctl.screen == Screen.DETAILS:
    render_details(ctl, client)
elif ctl.screen == Screen.DASHBOARD:
    render_dashboard(ctl)
elif ctl.screen == Screen.HISTORY:
    render_history(ctl)

# Footer
st.markdown("---")
st.caption("AgriScan — AI suggestions are not a substitute for local extension services. "
           "Provide GROQ_API_KEY in .env to enable diagnosis.")

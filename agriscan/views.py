"""Streamlit rendering for each screen.

Every view reads from and acts on the ScreenFlowController kept in
``st.session_state``; after a transition the script is re-run so the new
screen is drawn.
"""
import hashlib

import streamlit as st

from .controller import ScreenFlowController
from .errors import UnsupportedImageError, ValidationError
from .geolocation import get_location
from .history import (DatePreset, PRESET_LABELS, ALL_CROPS, active_filter_count, crop_options,
                      filter_history, history_frame, item_day)
from .interpreter import build_report
from .models import SOIL_TYPES, CropDetails
from .uploads import image_to_data_uri, open_data_uri, thumbnail


# ---------------- Login ----------------
def render_login(ctl: ScreenFlowController):
    st.header("🌱 AgriScan")
    st.caption("Sign in to diagnose your crops.")
    with st.form("login_form"):
        email = st.text_input("Email Address")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign In")
    if submitted:
        try:
            ctl.login(email.strip(), password)
        except ValidationError as e:
            st.error(str(e))
        else:
            st.rerun()


# ---------------- Upload ----------------
def render_upload(ctl: ScreenFlowController):
    st.header("📷 Scan a crop")
    st.markdown("Take a clear photo of the affected leaf, stem or fruit.")
    source = st.radio("Source", ["Upload photo", "Use camera"], horizontal=True)
    if source == "Use camera":
        uploaded = st.camera_input("Take a photo")
    else:
        uploaded = st.file_uploader("Upload image")
    if not uploaded:
        return
    try:
        data_uri = image_to_data_uri(uploaded.getvalue(), uploaded.type)
    except UnsupportedImageError as e:
        st.error(str(e))
        return
    st.image(uploaded, use_container_width=True)
    if st.button("Analyze Image", type="primary"):
        ctl.select_image(data_uri)
        st.rerun()


# ---------------- Details ----------------
def _image_key(data_uri: str) -> str:
    return hashlib.md5(data_uri.encode()).hexdigest()


def needs_crop_prediction(session, image_key: str) -> bool:
    """True for a new image, or when Streamlit dropped the crop field after leaving the screen."""
    return session.get("predicted_for") != image_key or "crop_type" not in session


def _predict_crop(ctl, client):
    with st.spinner("AI scanning pixels..."):
        predicted = client.predict_crop(ctl.state.image)
    if predicted:
        st.session_state["crop_type"] = predicted


def render_details(ctl: ScreenFlowController, client):
    if st.button("← Re-upload Image"):
        ctl.back()
        st.rerun()

    st.header("🌾 Crop details")
    image_key = _image_key(ctl.state.image)
    if needs_crop_prediction(st.session_state, image_key):
        if st.session_state.get("predicted_for") != image_key:
            st.session_state.pop("location", None)
        st.session_state["predicted_for"] = image_key
        st.session_state["crop_type"] = ""
        _predict_crop(ctl, client)

    c1, c2 = st.columns([4, 1])
    with c2:
        if st.button("🔄 Redetect", help="Redetect Crop"):
            _predict_crop(ctl, client)
    with c1:
        crop_type = st.text_input("Crop Type", key="crop_type", placeholder="e.g. Tomato, Arabica Coffee")

    soil = st.selectbox(
        "Soil Type", SOIL_TYPES, index=None, placeholder="Choose soil type",
        format_func=lambda s: f"{s.label} — {s.description}",
    )
    plant_age = st.text_input("Plant Age", placeholder="e.g. Vegetative stage, 45 days old")

    if st.button("📍 Environmental GPS"):
        location, err = get_location()
        if err:
            st.error(err)
        else:
            st.session_state["location"] = location
    location = st.session_state.get("location")
    if location:
        st.success(f"Coordinates locked: {location.latitude:.4f}, {location.longitude:.4f}")
    else:
        st.caption("Optional: share your position to factor in local soil & weather.")

    if st.button("Diagnose", type="primary", disabled=ctl.state.busy):
        try:
            details = CropDetails(
                cropType=crop_type.strip(),
                soilType=soil.value if soil else "",
                plantAge=plant_age.strip(),
                location=location,
            )
            with st.spinner("Analyzing plant health..."):
                moved = ctl.submit_details(details, client)
        except ValidationError as e:
            st.error(str(e))
        else:
            if moved:
                st.rerun()
    if ctl.state.alert:
        st.error(ctl.state.alert)
        ctl.dismiss_alert()


# ---------------- Dashboard ----------------
def _solution(sol, organic: bool):
    st.markdown(f"**{'🌿 Eco-Safe Solution' if organic else '🧪 Chemical Intervention'}**")
    st.markdown(f"### {sol.name or '—'}")
    if sol.price:
        st.caption(f"Est. Market Value: {sol.price}")
    if sol.description:
        st.info(sol.description)


def _steps(steps, section: str):
    for idx, step in enumerate(steps):
        st.checkbox(step, key=f"step-{section}-{idx}")


def render_dashboard(ctl: ScreenFlowController):
    result = ctl.state.result
    if result is None:
        return
    report = build_report(result)

    c1, c2 = st.columns([3, 1])
    c1.header("AI Diagnostic")
    c2.metric("Model Confidence", result.confidence)
    if ctl.state.image:
        img = open_data_uri(ctl.state.image)
        if img is not None:
            st.image(img, use_container_width=True)

    st.subheader(("🛡️ " if report.healthy else "🐞 ") + result.disease)
    if report.healthy:
        st.success("No anomalies detected. The plant looks healthy.")
    else:
        st.markdown(f"Severity level: **{result.severity.upper()}**")
        st.progress(report.severity.fraction)

        p = report.pathogen
        st.markdown(f"#### {p.icon} Pathogen profile: {p.label}")
        st.caption(p.description)

        st.markdown("#### Affected parts")
        for col, part in zip(st.columns(len(report.parts)), report.parts):
            with col:
                if part.active:
                    st.markdown(f"**{part.label}**  \n{part.pattern}")
                else:
                    st.markdown(f":gray[{part.label}]")

        st.markdown("#### Visual manifestations")
        for symptom, category in report.symptoms:
            st.markdown(f"{category.icon} **{symptom}** — _{category.label}_")

    st.markdown("---")
    st.subheader("Care plan")
    c1, c2 = st.columns(2)
    c1.metric("💧 Water (L/cycle)", result.recommended_water_liters)
    c2.markdown(f"**🌱 Fertilizer**  \n{result.recommended_fertilizer}")
    if result.recommended_pesticide:
        st.markdown(f"**Recommended pesticide:** {result.recommended_pesticide} "
                    f"({result.recommended_pesticide_market_value})")

    plan = report.remediation
    if report.healthy:
        st.markdown("#### System optimization")
        _steps(plan.general if not plan.formatted else plan.organic + plan.inorganic, "general")
    else:
        with st.expander("Eco-Remediation Plan", expanded=True):
            _solution(report.organic, organic=True)
            _steps(plan.organic if plan.formatted else plan.general, "organic")
        with st.expander("Chemical Treatment Plan"):
            _solution(report.inorganic, organic=False)
            _steps(plan.inorganic, "inorganic")
            if plan.formatted and not plan.inorganic:
                st.caption("Chemical protocol not required")
        st.warning(f"**Compliance directive:** {result.overuse_warning}")

    if st.button("New Scan", type="primary", use_container_width=True):
        ctl.new_scan()
        st.rerun()


# ---------------- History ----------------
def _reset_filters():
    st.session_state["filter_crop"] = ALL_CROPS
    st.session_state["filter_preset"] = DatePreset.ALL
    st.session_state["filter_start"] = None
    st.session_state["filter_end"] = None


def render_history(ctl: ScreenFlowController):
    st.header("🕘 History")
    history = ctl.state.history
    if "filter_preset" not in st.session_state:
        _reset_filters()

    crops = crop_options(history)
    if st.session_state["filter_crop"] not in crops:
        st.session_state["filter_crop"] = ALL_CROPS
    crop = st.selectbox("Crop type", crops, key="filter_crop")
    preset = st.radio("Date", list(DatePreset), key="filter_preset", horizontal=True,
                      format_func=PRESET_LABELS.get)
    start = end = None
    if preset == DatePreset.CUSTOM:
        c1, c2 = st.columns(2)
        start = c1.date_input("From", key="filter_start")
        end = c2.date_input("To", key="filter_end")

    active = active_filter_count(crop, preset, start, end)
    if active:
        st.button("↺ Reset filters", on_click=_reset_filters)

    items = filter_history(history, crop, preset, start, end)
    if not items:
        if active:
            st.info("Adjust your filters or date range to find specific records.")
        else:
            st.info("Start scanning your crops to populate your diagnostic history.")
        return

    st.caption(f"Matched {len(items)} records" if active else f"Recent {len(items)} diagnostics")
    for item in items:
        c1, c2, c3 = st.columns([1, 3, 1])
        with c1:
            thumb = thumbnail(item.image_url)
            if thumb is not None:
                st.image(thumb)
        with c2:
            st.markdown(f"**{item.disease}**  \n{item.crop_details.crop_type} · "
                        f"{item.severity} · {item_day(item):%b %d}")
        with c3:
            if st.button("Open", key=f"open-{item.id}"):
                ctl.select_history_item(item)
                st.rerun()

    with st.expander("Table view"):
        df = history_frame(items)
        st.dataframe(df, use_container_width=True)
        csv = df.to_csv(index=False).encode("utf-8")
        st.download_button("⬇ Download CSV", data=csv, file_name="agriscan_history.csv", mime="text/csv")

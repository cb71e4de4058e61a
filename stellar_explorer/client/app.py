"""Stellar Explorer: Streamlit page for identifying celestial objects.

Run with ``streamlit run stellar_explorer/client/app.py`` while the relay
(``stellar-relay``) is listening on ``RELAY_URL``.
"""

import html

import streamlit as st
from dotenv import load_dotenv

load_dotenv()

from stellar_explorer.client.api import RelayClient, decode_data_url  # noqa: E402
from stellar_explorer.client.session import ExplorerSession, result_sections  # noqa: E402
from stellar_explorer.observability import configure_logging  # noqa: E402

configure_logging()

st.set_page_config(
    page_title="Stellar Explorer",
    page_icon="✦",
    layout="centered",
)

# --- Session state initialization ---
if "explorer" not in st.session_state:
    st.session_state.explorer = ExplorerSession(relay=RelayClient.from_settings())
if "uploader_seq" not in st.session_state:
    st.session_state.uploader_seq = 0

explorer: ExplorerSession = st.session_state.explorer

st.markdown(
    """
    <style>
    html, body, [data-testid="stAppViewContainer"], [data-testid="stMain"] {
        background-color: #070b1f !important;
    }
    [data-testid="stHeader"], [data-testid="stToolbar"] {
        display: none !important;
    }
    .hero-title {
        text-align: center;
        font-size: 3.2rem;
        font-weight: 700;
        background: linear-gradient(90deg, #a78bfa, #60a5fa);
        -webkit-background-clip: text;
        -webkit-text-fill-color: transparent;
        margin-bottom: 0.2rem;
    }
    .hero-tagline {
        text-align: center;
        color: #9aa3c7;
        margin-bottom: 2rem;
    }
    .loading-overlay {
        position: fixed;
        inset: 0;
        z-index: 999;
        display: flex;
        align-items: center;
        justify-content: center;
        background: rgba(7, 11, 31, 0.8);
        color: #e8e8f8;
        font-size: 1.3rem;
    }
    .info-section {
        border-left: 2px solid rgba(167, 139, 250, 0.5);
        padding-left: 1rem;
        margin-bottom: 1.2rem;
    }
    .info-section h3 {
        color: #60a5fa;
        font-size: 1.1rem;
        margin: 0 0 0.4rem 0;
    }
    .info-section p {
        color: #e2e6f5;
        line-height: 1.6;
        margin: 0;
    }
    </style>
    """,
    unsafe_allow_html=True,
)

st.markdown("<div class='hero-title'>Stellar Explorer</div>", unsafe_allow_html=True)
st.markdown(
    "<div class='hero-tagline'>Your AI-powered guide to the cosmos. "
    "Discover exoplanets, comets, and celestial wonders.</div>",
    unsafe_allow_html=True,
)

loading_placeholder = st.empty()

# --- Search and upload controls ---
with st.container(border=True):
    with st.form("search_form", border=False):
        col1, col2 = st.columns([4, 1])
        with col1:
            query = st.text_input(
                "Celestial object",
                placeholder="Enter celestial object name (e.g., Kepler-452b, Halley's Comet)...",
                label_visibility="collapsed",
            )
        with col2:
            searched = st.form_submit_button("Search", width="stretch")

    st.caption("Or upload an image")
    uploaded = st.file_uploader(
        "Upload Image",
        type=["png", "jpg", "jpeg", "gif", "webp"],
        accept_multiple_files=False,
        key=f"uploader_{st.session_state.uploader_seq}",
    )

# --- Submission handlers ---
# The overlay covers the page for the whole call, so controls drawn above
# cannot be clicked again until the submission returns.
if searched:
    loading_placeholder.markdown(
        "<div class='loading-overlay'>Exploring the cosmos...</div>", unsafe_allow_html=True
    )
    explorer.submit_text_query(query)
    loading_placeholder.empty()
elif uploaded is not None:
    loading_placeholder.markdown(
        "<div class='loading-overlay'>Exploring the cosmos...</div>", unsafe_allow_html=True
    )
    explorer.submit_image(uploaded.getvalue(), uploaded.type)
    loading_placeholder.empty()
    # A fresh uploader key drops the file so the next rerun does not resubmit it.
    st.session_state.uploader_seq += 1
    st.rerun()

# --- Toast notices ---
for notice in explorer.drain_notices():
    icon = "⚠️" if notice.variant == "destructive" else "✨"
    text = f"**{notice.title}**"
    if notice.description:
        text += f"  \n{notice.description}"
    st.toast(text, icon=icon)

# --- Result card ---
if explorer.result is not None:
    info = explorer.result

    if explorer.uploaded_image:
        st.image(decode_data_url(explorer.uploaded_image), width="stretch")

    with st.container(border=True):
        st.markdown(f"## ✦ {html.escape(info.name)}")
        for title, content in result_sections(info):
            st.markdown(
                f"<div class='info-section'><h3>{html.escape(title)}</h3>"
                f"<p>{html.escape(content)}</p></div>",
                unsafe_allow_html=True,
            )

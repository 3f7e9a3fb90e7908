import asyncio
import logging

import streamlit as st

from strategy_lab.chat import run_turn
from strategy_lab.config import Settings
from strategy_lab.errors import AnalysisFailed, ValidationError
from strategy_lab.main import build_lab, setup_logging
from strategy_lab.memory_manager import ChatLog, ImageHistoryManager, KeywordExplorerState
from strategy_lab.models import KeywordQuery, Timeframe
from strategy_lab.utils import decode_data_uri, download_filename, image_bytes_to_data_uri

logger = logging.getLogger(__name__)

st.set_page_config(page_title="Strategy Lab", layout="wide")


@st.cache_resource
def get_lab():
    settings = Settings.from_env()
    setup_logging(settings.log_level)
    return build_lab(settings)


try:
    lab = get_lab()
except EnvironmentError as e:
    st.error(str(e))
    st.stop()

# Initialize session state
for key, factory in (
    ("explorer", KeywordExplorerState),
    ("studio", ImageHistoryManager),
    ("chat_log", ChatLog),
):
    if key not in st.session_state:
        st.session_state[key] = factory()


def reset_explorer():
    st.session_state.explorer.reset()
    st.session_state.keyword_input = ""
    st.session_state.location_input = ""


def render_keyword_explorer():
    state: KeywordExplorerState = st.session_state.explorer

    with st.form("keyword_form"):
        keyword = st.text_input("Keyword", placeholder="e.g. cloud security", key="keyword_input")
        location = st.text_input("Location", placeholder="e.g. New York, USA", key="location_input")
        timeframe = st.selectbox(
            "Traffic Interval",
            [t.value for t in Timeframe],
            index=2,
            format_func=str.capitalize,
        )
        submitted = st.form_submit_button("Analyze Market", type="primary")
    st.button("Reset Dashboard", on_click=reset_explorer)

    if submitted:
        try:
            query = KeywordQuery.create(keyword, location, timeframe)
        except ValidationError as e:
            st.warning(str(e))
        else:
            token = state.begin(query)
            try:
                with st.spinner("Synthesizing..."):
                    asyncio.run(
                        lab.keywords.run(
                            query,
                            on_result=lambda result: state.apply_result(token, result),
                            on_tips=lambda tips: state.apply_tips(token, tips),
                            on_error=lambda error: state.apply_error(token, str(error)),
                        )
                    )
            except Exception as e:
                logger.error(f"Error analyzing keyword: {e}")
                state.apply_error(token, AnalysisFailed.default_message)

    if state.error:
        st.error(state.error)
    if state.tips:
        st.info(state.tips)

    result = state.result
    if result is None:
        st.caption(
            "Enter your target keyword and location to generate real-time volume "
            "estimates grounded in live search results."
        )
        return

    volume_col, competition_col, location_col = st.columns(3)
    volume_col.metric(f"{state.query.timeframe.value.capitalize()} volume", f"{result.volume:,.0f}")
    competition_col.metric("Competition", result.competition)
    location_col.metric("Location", result.location)

    st.area_chart(
        {"date": [p.date for p in result.trend], "value": [p.value for p in result.trend]},
        x="date",
        y="value",
    )
    st.markdown(result.analysis)

    st.subheader("Sources")
    if result.sources:
        for source in result.sources:
            st.markdown(f"- [{source.title}]({source.uri})")
    else:
        st.caption("No grounding sources were returned for this query.")


def render_image_studio():
    studio: ImageHistoryManager = st.session_state.studio

    uploaded = st.file_uploader("Upload an image", type=["png", "jpg", "jpeg", "webp"])
    if uploaded is not None and st.session_state.get("uploaded_file_id") != uploaded.file_id:
        st.session_state.uploaded_file_id = uploaded.file_id
        try:
            studio.load_upload(image_bytes_to_data_uri(uploaded.getvalue()))
        except ValidationError as e:
            st.error(str(e))

    canvas, history = st.columns([2, 1])

    with canvas:
        if studio.current_image:
            st.image(studio.current_image, caption="Current")
        else:
            st.caption("Upload an image to start editing.")

        with st.form("edit_form", clear_on_submit=True):
            instruction = st.text_input(
                "Edit instruction",
                placeholder="Describe your edit (e.g., 'Add a retro filter' or 'Make it look like sunset')",
            )
            apply_edit = st.form_submit_button("Apply AI Edit", disabled=not studio.current_image)

        if apply_edit:
            try:
                with st.spinner("Applying edit..."):
                    entry = asyncio.run(lab.images.edit(studio.current_image, instruction))
            except Exception as e:
                st.error(f"Error editing image: {e}")
                logger.error(f"Error editing image: {e}")
            else:
                studio.record_edit(entry)
                st.rerun()

    with history:
        st.subheader("Edit History")
        if not studio.entries:
            st.caption("No edits made yet")
        for entry in studio.entries:
            st.image(entry.url, caption=entry.prompt)
            st.caption(entry.timestamp.strftime("%H:%M:%S"))
            restore_col, download_col = st.columns(2)
            restore_col.button("Restore", key=f"restore-{entry.id}", on_click=studio.select, args=(entry.id,))
            mime_type, data = decode_data_uri(entry.url)
            download_col.download_button(
                "Download",
                data=data,
                file_name=download_filename(entry),
                mime=mime_type,
                key=f"download-{entry.id}",
            )


def render_chat():
    chat_log: ChatLog = st.session_state.chat_log

    st.header("Strategy Lab")
    for message in chat_log.messages:
        with st.chat_message("assistant" if message.role == "bot" else "user"):
            st.markdown(message.text)

    if prompt := st.chat_input("Ask for strategy...", key="chat_input"):
        with st.chat_message("user"):
            st.markdown(prompt)
        try:
            with st.spinner("Thinking..."):
                asyncio.run(run_turn(lab.chat, chat_log, prompt))
        except Exception as e:
            st.error(f"Error communicating with the strategist: {e}")
            logger.error(f"Error communicating with the strategist: {e}")
        else:
            st.rerun()


st.title("Strategy Lab")

explorer_tab, studio_tab = st.tabs(["Search Explorer", "Image Studio"])
with explorer_tab:
    render_keyword_explorer()
with studio_tab:
    render_image_studio()

with st.sidebar:
    render_chat()

"""
streamlit_app.py
----------------
Browser front-end for the log triage assistant.
Wraps KnowledgeBase and analyze_log() from app.py.

Run with:
    streamlit run streamlit_app.py
"""

import sys
from dataclasses import replace
from pathlib import Path

import streamlit as st

# Make project root importable
sys.path.insert(0, str(Path(__file__).parent))

from app import SETTINGS, AnalysisStep, analyze_log, new_steps
from lograg.ingestion      import ingest_directory
from lograg.knowledge_base import KnowledgeBase
from validator.json_validator import ValidationError

_STATUS_ICONS = {"pending": "⚪", "loading": "🔄", "complete": "✅", "error": "❌"}

# ── Page config ────────────────────────────────────────────────────────────────

st.set_page_config(
    page_title="DevOps RAG Agent",
    page_icon="🛠️",
    layout="wide",
)

# ── Knowledge base (one per browser session) ───────────────────────────────────

if "knowledge_base" not in st.session_state:
    knowledge_base = KnowledgeBase()
    try:
        ingest_directory(
            SETTINGS.data_dir,
            knowledge_base,
            chunk_size    = SETTINGS.chunk_size,
            chunk_overlap = SETTINGS.chunk_overlap,
        )
    except FileNotFoundError as exc:
        st.info(f"Starting with an empty knowledge base — {exc}")
    st.session_state.knowledge_base = knowledge_base

knowledge_base: KnowledgeBase = st.session_state.knowledge_base

# ── Sidebar: knowledge-base manager ────────────────────────────────────────────

with st.sidebar:
    st.header("📚 Knowledge Base")

    with st.form("add_document", clear_on_submit=True):
        title   = st.text_input("Doc title", placeholder="K8s Deployment Guide")
        content = st.text_area("Content", placeholder="Paste documentation content here…", height=160)
        if st.form_submit_button("Add document"):
            try:
                knowledge_base.add_document(
                    title,
                    content,
                    chunk_size    = SETTINGS.chunk_size,
                    chunk_overlap = SETTINGS.chunk_overlap,
                )
            except ValueError as exc:
                st.warning(str(exc))

    docs = knowledge_base.documents()
    if not docs:
        st.caption("No documents yet. Add runbooks or docs to ground the diagnosis.")
    for doc in docs:
        col_doc, col_del = st.columns([5, 1])
        col_doc.markdown(f"**{doc.title}**  \n`{doc.id}` · {len(doc.chunks)} chunks")
        if col_del.button("🗑️", key=f"delete-{doc.id}"):
            knowledge_base.delete_document(doc.id)
            st.rerun()

    st.markdown("---")
    gen_model = st.text_input("Generation model", value=SETTINGS.gen_model)
    top_k     = st.slider("Top-k chunks", min_value=1, max_value=10, value=max(SETTINGS.top_k, 1))

# ── Main UI ────────────────────────────────────────────────────────────────────

st.title("🛠️ DevOps RAG Agent")
st.caption(
    "Docs are chunked in memory and searched by keyword overlap; "
    "the most relevant chunks are sent to the language model as context."
)

raw_log = st.text_area(
    "Paste an error log",
    height=200,
    placeholder="[2023-10-10 10:00:00] Error: Connection refused at 192.168.1.1 port 8080",
)

step_slots = {step.id: st.empty() for step in new_steps()}


def _show_step(step: AnalysisStep) -> None:
    detail = f" — {step.detail}" if step.detail else ""
    step_slots[step.id].markdown(f"{_STATUS_ICONS[step.status]} **{step.label}**{detail}")


for step in new_steps():
    _show_step(step)

if st.button("Analyze", type="primary"):
    if not raw_log.strip():
        st.warning("Please paste a log before clicking Analyze.")
        st.stop()

    try:
        response = analyze_log(
            raw_log,
            knowledge_base.chunks_snapshot(),
            settings = replace(SETTINGS, gen_model=gen_model, top_k=top_k),
            on_step  = _show_step,
        )
    except ConnectionError as exc:
        st.error(f"**Language model unreachable:** {exc}")
        st.stop()
    except PermissionError as exc:
        st.error(f"**Credentials rejected:** {exc}")
        st.stop()
    except RuntimeError as exc:
        st.error(f"**Language model error:** {exc}")
        st.stop()
    except ValidationError as exc:
        st.error(f"**Validation error:** {exc}")
        st.stop()

    # ── Diagnosis ───────────────────────────────────────────────────────
    st.subheader("Search query")
    st.code(response["search_query"], language="text")

    st.subheader("Diagnosis")
    st.markdown(response["solution"])

    # ── Retrieved chunks ────────────────────────────────────────────────
    st.subheader("Retrieved Sources")
    if not response["sources"]:
        st.caption("The knowledge base is empty — the diagnosis is not grounded.")
    for i, src in enumerate(response["sources"], start=1):
        label = f"📄 {i}. `{src['source_id']}` · score {src['score']:.3f}"
        with st.expander(label, expanded=(i == 1)):
            st.caption(src["text"])

    st.caption(f"Model: `{response['model']}` · {response['timestamp']}")

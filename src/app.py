"""
Plywood Catalog Search - Streamlit UI

Loads the catalog configured in .env (PLYFINDER_CATALOG_XLSX, falling back
to PLYFINDER_CATALOG_CSV) or an uploaded workbook, and searches it.

Run with:
    streamlit run src/app.py
"""

import io

import pandas as pd
import streamlit as st

from plyfinder.catalog import CatalogStore
from plyfinder.config import settings, setup_logging
from plyfinder.fallback import FallbackChain
from plyfinder.retriever import Retriever, STRATEGY_EMPTY_CATALOG, STRATEGY_SCORED
from plyfinder.scoring import WEIGHT_PRESETS, ScoringEngine, weights_for

setup_logging()

# ---------------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="Plywood Catalog Search",
    page_icon="🪵",
    layout="wide",
)

st.title("🪵 Plywood Catalog Search")
st.markdown("**Weighted field matching with phonetic keywords and fallback tiers**")

# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------
st.sidebar.header("⚙️ Settings")

preset_names = list(WEIGHT_PRESETS)
weights_name = st.sidebar.selectbox(
    "Scoring weights",
    preset_names,
    index=preset_names.index(settings.weights) if settings.weights in preset_names else 0,
    help="'product' uses brand/thickness/type fields; 'generic' only full text and keywords",
)
sample_size = st.sidebar.number_input("Sample size (last fallback)", min_value=1, max_value=50,
                                      value=settings.sample_size)
max_results = st.sidebar.number_input("Max results (0 = all)", min_value=0, max_value=500,
                                      value=settings.max_results)

st.sidebar.divider()

with st.sidebar.expander("Admin: Catalog"):
    uploaded = st.file_uploader("Upload catalog", type=["xlsx", "csv"], key="catalog_upload")
    if st.button("Reload catalog"):
        st.cache_resource.clear()
        st.rerun()


# =========================================================================
# Catalog (cached across reruns)
# =========================================================================

@st.cache_resource(show_spinner="Loading catalog...")
def load_store(upload_name: str, upload_bytes: bytes) -> CatalogStore:
    store = CatalogStore(settings.catalog_xlsx, settings.catalog_csv)
    if upload_bytes:
        buffer = io.BytesIO(upload_bytes)
        buffer.name = upload_name
        store.load(primary_source=buffer)
    else:
        store.load()
    return store


store = load_store(
    uploaded.name if uploaded is not None else '',
    uploaded.getvalue() if uploaded is not None else b'',
)

if store.is_empty:
    st.error(
        "No catalog data found. Check PLYFINDER_CATALOG_XLSX / PLYFINDER_CATALOG_CSV "
        "or upload a workbook in the sidebar."
    )
    st.stop()

partitions = store.snapshot()
st.success(
    f"Catalog: **{store.total_records:,}** products in {len(partitions)} "
    f"sheet(s): {', '.join(p.name for p in partitions)}"
)

retriever = Retriever(
    store,
    engine=ScoringEngine(weights_for(weights_name)),
    fallback=FallbackChain(sample_size=int(sample_size), fallback_limit=settings.fallback_limit),
    max_results=int(max_results),
)

# =========================================================================
# Search
# =========================================================================

query = st.text_input(
    "Search",
    placeholder="e.g. green ply, 12mm, MR   or   प्लाइवुड 19 एमएम BWP",
)

if query:
    outcome = retriever.search_detailed(query)

    if outcome.strategy == STRATEGY_SCORED:
        st.caption(f"🟢 {len(outcome.records)} scored matches")
    elif outcome.strategy == STRATEGY_EMPTY_CATALOG:
        st.caption("🔴 Catalog is empty")
    else:
        st.caption(f"🟡 No scored matches, showing results from fallback '{outcome.strategy}'")

    if outcome.records:
        df = pd.DataFrame([r.to_dict() for r in outcome.records])
        if outcome.candidates:
            df.insert(0, 'score', [c.score for c in outcome.candidates])
            df['matched_on'] = [', '.join(c.matched_fields) for c in outcome.candidates]
        st.dataframe(df, use_container_width=True, hide_index=True)

        st.download_button(
            "Download results (CSV)",
            data=df.to_csv(index=False).encode('utf-8'),
            file_name="search_results.csv",
            mime="text/csv",
        )
    else:
        st.info("No products found.")

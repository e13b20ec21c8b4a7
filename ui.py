import logging

import pandas as pd
import streamlit as st
from st_aggrid import AgGrid, GridOptionsBuilder, GridUpdateMode, JsCode

log = logging.getLogger(__name__)


def setup_style():
    st.markdown("""
    <style>
        @import url('https://fonts.googleapis.com/css2?family=Manrope:wght@400;600;700;800&display=swap');

        :root {
            --panel-bg: rgba(167, 210, 255, 0.10);
            --panel-border: rgba(234, 247, 255, 0.30);
            --text-main: #f3f8ff;
            --text-soft: rgba(234, 244, 255, 0.72);
            --accent: #73c3ff;
            --ease-fluid: cubic-bezier(0.22, 1, 0.36, 1);
        }

        html, body, .stApp {
            font-family: 'Manrope', sans-serif;
            color: var(--text-main);
            background:
                radial-gradient(55rem 28rem at 10% -5%, rgba(111, 198, 255, 0.22), transparent 65%),
                linear-gradient(180deg, #08101d 0%, #0b1420 100%);
            background-attachment: fixed;
        }

        .main .block-container {
            padding-top: 1.6rem;
            padding-bottom: 2rem;
            animation: pageSlideIn 340ms var(--ease-fluid);
        }

        @keyframes pageSlideIn {
            from { opacity: 0; transform: translate3d(12px, 0, 0); }
            to { opacity: 1; transform: none; }
        }

        [data-testid="stMetric"] {
            background: var(--panel-bg);
            border: 1px solid var(--panel-border);
            border-radius: 16px;
            padding: 0.9rem 1.1rem;
        }

        [data-testid="stSidebar"] {
            background: rgba(10, 20, 34, 0.92);
            border-right: 1px solid var(--panel-border);
        }

        .ea-loading {
            display: flex;
            flex-direction: column;
            align-items: center;
            justify-content: center;
            min-height: 50vh;
            gap: 0.8rem;
        }

        .ea-spinner {
            width: 46px;
            height: 46px;
            border-radius: 50%;
            border: 4px solid rgba(115, 195, 255, 0.25);
            border-top-color: var(--accent);
            animation: eaSpin 900ms linear infinite;
        }

        @keyframes eaSpin { to { transform: rotate(360deg); } }

        .ea-loading-sub { color: var(--text-soft); }

        .ea-badge {
            display: inline-block;
            padding: 0.15rem 0.6rem;
            border-radius: 999px;
            font-size: 0.8rem;
            font-weight: 600;
            background: rgba(115, 195, 255, 0.18);
            border: 1px solid rgba(115, 195, 255, 0.4);
        }

        [data-testid="stAlert"] { border-radius: 16px !important; }
    </style>
    """, unsafe_allow_html=True)


def show_loading(message="Checking your session"):
    st.markdown(
        f"""
        <div class="ea-loading">
          <div class="ea-spinner"></div>
          <div class="ea-loading-sub">{message}</div>
        </div>
        """,
        unsafe_allow_html=True
    )


def role_badge(role) -> str:
    label = getattr(role, "value", role) or "unknown"
    return f'<span class="ea-badge">{label}</span>'


class StreamlitNotifier:
    """Queues toasts in session state so they survive the rerun that follows an action."""

    def __init__(self, queue=None):
        self._queue = queue

    @property
    def queue(self) -> list:
        if self._queue is not None:
            return self._queue
        if "pending_notifications" not in st.session_state:
            st.session_state.pending_notifications = []
        return st.session_state.pending_notifications

    def success(self, title: str, description: str = None):
        self.queue.append(("success", title, description))

    def error(self, title: str, description: str = None):
        self.queue.append(("error", title, description))


def flush_notifications():
    pending = st.session_state.get("pending_notifications") or []
    st.session_state.pending_notifications = []
    for kind, title, description in pending:
        text = f"**{title}**" + (f"\n\n{description}" if description else "")
        st.toast(text, icon="✅" if kind == "success" else "⚠️")


def update_chart_layout(fig):
    fig.update_layout(
        template="plotly_dark",
        font=dict(family="Manrope, sans-serif", size=13, color="#EAF2FF"),
        margin=dict(l=20, r=20, t=50, b=20),
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(185,220,255,0.06)",
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1)
    )
    return fig


CURRENCY_FORMATTER = JsCode("""function(params) {
    if (params.value == null || params.value === 'nan' || params.value === 'NaN') return '';
    const val = Number(params.value);
    if (isNaN(val)) return params.value;
    return '$' + val.toLocaleString('en-US', {minimumFractionDigits: 2, maximumFractionDigits: 2});
}""")


def render_aggrid(df, height=400, pagination=False, currency_columns=(), hidden_columns=(), selectable=False, key=None):
    """Show a dataframe in AgGrid. Returns the selected row as a dict when ``selectable``."""
    if df.empty:
        st.info("Nothing to show yet")
        return None

    gb = GridOptionsBuilder.from_dataframe(df)
    gb.configure_default_column(filterable=True, sortable=True, resizable=True, wrapText=True, autoHeight=True)

    for col in df.columns:
        is_num = pd.api.types.is_numeric_dtype(df[col])
        col_kwargs = {"minWidth": 90 if is_num else 140, "flex": 1 if is_num else 2}
        if col in hidden_columns:
            gb.configure_column(col, hide=True)
        elif col in currency_columns:
            gb.configure_column(col, valueFormatter=CURRENCY_FORMATTER, **col_kwargs)
        else:
            gb.configure_column(col, headerName=col.replace("_", " ").title(), **col_kwargs)

    if pagination:
        gb.configure_pagination(paginationAutoPageSize=False, paginationPageSize=25)
    if selectable:
        gb.configure_selection(selection_mode="single", use_checkbox=False)

    gb.configure_grid_options(wrapHeaderText=True, autoHeaderHeight=True)

    response = AgGrid(
        df,
        gridOptions=gb.build(),
        height=height,
        theme="balham",
        custom_css={
            ".ag-theme-balham": {
                "--ag-background-color": "rgba(11, 20, 35, 0.9)",
                "--ag-foreground-color": "#eaf3ff",
                "--ag-header-background-color": "rgba(24, 42, 70, 0.92)",
                "--ag-header-foreground-color": "#f3f8ff",
                "--ag-odd-row-background-color": "rgba(15, 27, 45, 0.88)",
                "--ag-row-hover-color": "rgba(46, 77, 120, 0.45)",
            },
            ".ag-root-wrapper": {
                "border-radius": "14px",
                "overflow": "hidden",
                "border": "1px solid rgba(180, 220, 255, 0.25)",
            },
        },
        update_mode=GridUpdateMode.SELECTION_CHANGED if selectable else GridUpdateMode.NO_UPDATE,
        allow_unsafe_jscode=True,
        key=key,
    )
    if not selectable:
        return None
    selected = response.get("selected_rows") if response is not None else None
    if selected is None:
        return None
    if isinstance(selected, pd.DataFrame):
        return None if selected.empty else selected.iloc[0].to_dict()
    return selected[0] if selected else None

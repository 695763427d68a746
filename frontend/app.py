from __future__ import annotations

import os

import streamlit as st

from dataset_client import DatasetClient, DatasetClientError, cached_export, export_key
from session_store import SessionStore, login, logout, register
from table_view import generate_columns, next_sort, sort_rows, style_display_frame

st.set_page_config(page_title="Opti-Plus", layout="wide")

backend_url = os.getenv("BACKEND_URL", "http://backend:8000")
client = DatasetClient(backend_url)
session = SessionStore(st.session_state)


def auth_screen() -> None:
    st.title("Opti-Plus")
    st.caption("Demo login: any email and password are accepted.")

    login_tab, register_tab = st.tabs(["Login", "Register"])
    with login_tab:
        with st.form("login"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            if st.form_submit_button("Login", type="primary"):
                if not email or not password:
                    st.error("Email and password are required.")
                else:
                    login(session, email, password)
                    st.rerun()
    with register_tab:
        with st.form("register"):
            name = st.text_input("Name")
            email = st.text_input("Email", key="register_email")
            password = st.text_input("Password", type="password", key="register_password")
            if st.form_submit_button("Create account", type="primary"):
                if not name or not email or not password:
                    st.error("All fields are required.")
                else:
                    register(session, name, email, password)
                    st.rerun()


def load_datasets() -> list[dict]:
    try:
        return client.list_datasets()
    except DatasetClientError as e:
        st.toast(f"Failed to load datasets: {e.message}")
        return []


def select_dataset(dataset_id: str) -> None:
    try:
        rows, dataset = client.get_dataset(dataset_id)
    except DatasetClientError as e:
        st.toast(f"Failed to load dataset: {e.message}")
        return
    st.session_state["rows"] = rows
    st.session_state["dataset"] = dataset
    st.session_state["sort"] = None


def upload_panel() -> None:
    st.subheader("Upload CSV")
    uploaded = st.file_uploader("Choose a CSV file", type=["csv"])
    if st.button("Upload", type="primary", use_container_width=True, disabled=uploaded is None):
        with st.spinner("Uploading + parsing..."):
            try:
                result = client.upload_dataset(uploaded.name, uploaded.getvalue())
            except DatasetClientError as e:
                st.toast(f"Upload failed: {e.message}")
                return
        st.session_state["rows"] = result["data"]
        st.session_state["dataset"] = result["dataset"]
        st.session_state["sort"] = None
        st.toast(f"Uploaded {uploaded.name} with {len(result['data'])} records")


def datasets_panel(datasets: list[dict]) -> None:
    st.subheader("Datasets")
    if not datasets:
        st.info("No datasets yet. Upload a CSV to create the first one.")
        return

    st.write(f"Total datasets: **{len(datasets)}**")
    for d in datasets:
        cols = st.columns([4, 1, 1])
        label = f"**{d.get('filename', d['id'])}**"
        if d.get("error"):
            cols[0].markdown(f"{label}  \n:red[{d['error']}]")
        else:
            cols[0].markdown(f"{label}  \n{d.get('rowCount', 0):,} rows · {len(d.get('headers', []))} columns")
        if cols[1].button("Open", key=f"open-{d['id']}", disabled=bool(d.get("error"))):
            select_dataset(d["id"])
        if cols[2].button("Delete", key=f"delete-{d['id']}"):
            st.session_state["confirm_delete"] = d["id"]

    pending = st.session_state.get("confirm_delete")
    if pending:
        st.warning("Delete this dataset? This cannot be undone.")
        yes, no = st.columns(2)
        if yes.button("Confirm delete", type="primary"):
            try:
                client.delete_dataset(pending)
                st.toast("Dataset deleted successfully")
                exports = st.session_state.get("exports") or {}
                st.session_state["exports"] = {k: v for k, v in exports.items() if k[0] != pending}
                current = st.session_state.get("dataset") or {}
                if current.get("id") == pending:
                    st.session_state["rows"] = []
                    st.session_state["dataset"] = None
            except DatasetClientError as e:
                st.toast(f"Failed to delete dataset: {e.message}")
            st.session_state["confirm_delete"] = None
            st.rerun()
        if no.button("Cancel"):
            st.session_state["confirm_delete"] = None
            st.rerun()


def table_panel() -> None:
    dataset = st.session_state.get("dataset")
    rows = st.session_state.get("rows") or []
    if not dataset:
        return

    st.subheader(dataset.get("filename", "Dataset"))
    headers = list(dict.fromkeys(dataset.get("headers", [])))
    selected = st.multiselect("Columns", options=headers, default=headers)
    columns = generate_columns([h for h in headers if h in selected])

    sort_cols = st.columns([3, 1])
    sort_by = sort_cols[0].selectbox("Sort by", options=[c.key for c in columns] or [""])
    if sort_cols[1].button("Sort ↑↓", disabled=not columns):
        st.session_state["sort"] = next_sort(st.session_state.get("sort"), sort_by)

    state = st.session_state.get("sort")
    if state is not None and state.column in selected:
        rows = sort_rows(rows, state.column, state.descending)

    st.dataframe(style_display_frame(rows, columns), use_container_width=True, hide_index=True)

    if columns:
        keys = [c.key for c in columns]
        exports = st.session_state.setdefault("exports", {})
        if export_key(dataset["id"], keys) not in exports and st.button("Prepare export"):
            with st.spinner("Exporting..."):
                try:
                    cached_export(exports, client, dataset["id"], keys)
                except DatasetClientError as e:
                    st.toast(f"Export failed: {e.message}")
        content = exports.get(export_key(dataset["id"], keys))
        if content is not None:
            st.download_button(
                "Export",
                data=content,
                file_name=dataset.get("filename") or "dataset.csv",
                mime="text/csv",
            )


if not session.is_authenticated():
    auth_screen()
    st.stop()

user = session.get()
with st.sidebar:
    st.write(f"Signed in as **{user.name}**  \n{user.email}")
    if st.button("Logout"):
        logout(session)
        st.rerun()

    with st.expander("Backend connectivity"):
        st.write(f"Backend URL: `{backend_url}`")
        try:
            st.success(f"Backend health: {client.health()}")
        except DatasetClientError as e:
            st.warning("Backend not reachable yet (this can be normal while containers start).")
            st.code(e.message)

st.title("Opti-Plus Datasets")

col1, col2 = st.columns([1, 1], gap="large")
with col1:
    upload_panel()
with col2:
    datasets_panel(load_datasets())

st.divider()
table_panel()

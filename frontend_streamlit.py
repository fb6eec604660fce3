import json
from urllib.parse import unquote

import pandas as pd
import requests
import streamlit as st

from config import API_BASE_URL

# ========================
# CONFIG
# ========================
BASE_URL = f"{API_BASE_URL}/showcomposer/api"

st.set_page_config(
    page_title="Show Composer - Projects",
    layout="wide"
)

# ========================
# STATE VARIABLES
# ========================
if "staged_project" not in st.session_state:
    st.session_state.staged_project = None

if "import_result" not in st.session_state:
    st.session_state.import_result = None

# Title
st.title("Show Composer Projects")

st.markdown("""
Upload images → export a project with its images as a **.zip** →
import a **.zip** into this installation, review it, then **confirm** or **cancel**.
""")


def _error_text(resp) -> str:
    try:
        return resp.json().get("error") or resp.text
    except ValueError:
        return resp.text


# 1. IMAGE UPLOAD
st.header("1. Upload Image")

image_file = st.file_uploader("Upload an image", type=["png", "jpg", "jpeg", "gif"])

if image_file is not None:
    if st.button("Upload Image"):
        with st.spinner("Uploading..."):
            files = {"image": (image_file.name, image_file, image_file.type)}
            resp = requests.post(f"{BASE_URL}/upload", files=files)

            if resp.status_code != 200:
                st.error(f"Upload failed: {_error_text(resp)}")
            else:
                st.success(f"Stored as {resp.json()['filePath']}")

with st.expander("Images in the pool"):
    resp = requests.get(f"{BASE_URL}/images")
    if resp.status_code == 200:
        st.write(resp.json()["images"])

# 2. SAVED PROJECTS
st.header("2. Saved Projects")

resp = requests.get(f"{BASE_URL}/projects")
if resp.status_code != 200:
    st.error(f"Could not list projects: {_error_text(resp)}")
elif resp.json():
    st.dataframe(pd.DataFrame(resp.json()), use_container_width=True)
else:
    st.info("No saved projects yet.")

# 3. EXPORT
st.header("3. Export Project")

project_json = st.file_uploader("Project document (.json)", type=["json"], key="export_json")

if project_json is not None:
    if st.button("Build Archive"):
        try:
            document = json.load(project_json)
        except ValueError:
            st.error("That file is not valid JSON.")
        else:
            with st.spinner("Packaging project..."):
                resp = requests.post(f"{BASE_URL}/package", json=document)

            if resp.status_code != 200:
                st.error(f"Export failed: {_error_text(resp)}")
            else:
                disposition = resp.headers.get("content-disposition", "")
                if "filename*=utf-8''" in disposition:
                    zip_name = unquote(disposition.split("filename*=utf-8''")[-1].split(";")[0])
                else:
                    zip_name = disposition.split("filename=")[-1].split(";")[0].strip('"')
                zip_name = zip_name or "project.zip"
                st.download_button("Download archive", resp.content, file_name=zip_name,
                                   mime="application/zip")

# 4. IMPORT
st.header("4. Import Project")

archive = st.file_uploader("Project archive (.zip)", type=["zip"], key="import_zip")

if archive is not None:
    if st.button("Upload & Stage Archive"):
        with st.spinner("Extracting archive..."):
            files = {"file": (archive.name, archive, "application/zip")}
            resp = requests.post(f"{BASE_URL}/projects/load", files=files)

            if resp.status_code != 200:
                st.error(f"Import failed: {_error_text(resp)}")
            else:
                st.session_state.staged_project = resp.json()
                st.session_state.import_result = None

staged = st.session_state.staged_project
if staged:
    settings = staged.get("settingsStore", {})
    st.subheader(f"Staged: {settings.get('projectName', '(unnamed)')}")
    st.json(staged, expanded=False)

    col_confirm, col_cancel = st.columns(2)
    req = {"tempId": staged["_tempImportId"]}

    with col_confirm:
        if st.button("Confirm Import", key="btn_confirm"):
            resp = requests.post(f"{BASE_URL}/projects/confirm-import", json={**req, "confirm": True})
            if resp.status_code != 200:
                st.error(f"Error: {_error_text(resp)}")
            else:
                project = resp.json()["projectData"]
                save = requests.post(f"{BASE_URL}/projects/save", json=project)
                if save.status_code != 201:
                    st.error(f"Imported but not saved: {_error_text(save)}")
                st.session_state.import_result = project
            st.session_state.staged_project = None

    with col_cancel:
        if st.button("Cancel Import", key="btn_cancel"):
            resp = requests.post(f"{BASE_URL}/projects/confirm-import", json={**req, "confirm": False})
            if resp.status_code != 200:
                st.error(f"Error: {_error_text(resp)}")
            else:
                st.info("Import cancelled")
            st.session_state.staged_project = None

if st.session_state.import_result:
    st.success("Project imported and saved.")
    st.json(st.session_state.import_result, expanded=False)

from __future__ import annotations

from datetime import date
import sqlite3

import pandas as pd
import streamlit as st

from kpi_tracker.data.backup import (
    InvalidFormatError,
    backup_filename,
    clear_all,
    export_json,
    import_json,
)
from kpi_tracker.data.repositories import CategoryRepository
from kpi_tracker.domain.constants import CATEGORY_PALETTE


def _reset_session_days() -> None:
    for key in [k for k in st.session_state.keys() if str(k).startswith("daily_day_")]:
        del st.session_state[key]


def render(con: sqlite3.Connection) -> None:
    st.header("Paramètres")
    st.caption("Catégories, sauvegarde et réinitialisation des données.")

    repo = CategoryRepository(con)

    # =========================
    # CATEGORIES
    # =========================
    st.subheader("Gérer les catégories")
    categories = repo.list_categories()
    if not categories:
        st.info("Aucune catégorie définie.")
    else:
        df = pd.DataFrame([c.to_dict() for c in categories])
        df = df[["name", "color"]].rename(columns={"name": "Nom", "color": "Couleur"})
        st.dataframe(df, use_container_width=True, hide_index=True)

    with st.form("add_category"):
        name = st.text_input("Nom de la catégorie")
        palette_hex = [entry["hex"] for entry in CATEGORY_PALETTE]
        palette_names = {entry["hex"]: entry["name"] for entry in CATEGORY_PALETTE}
        color = st.selectbox(
            "Couleur",
            palette_hex,
            format_func=lambda value: f"{palette_names[value]} ({value})",
        )
        submitted = st.form_submit_button("Ajouter")
        if submitted:
            try:
                repo.create_category(name, color)
                st.success("Catégorie ajoutée.")
                st.rerun()
            except ValueError as exc:
                st.error(str(exc))

    if categories:
        names = {c.id: c.name for c in categories}
        to_delete = st.selectbox(
            "Supprimer une catégorie",
            list(names),
            format_func=lambda cid: names[cid],
        )
        confirm_delete = st.checkbox(
            "Je confirme la suppression (les tâches liées gardent une catégorie supprimée)."
        )
        if st.button("Supprimer", disabled=not confirm_delete):
            repo.delete_category(to_delete)
            st.success("Catégorie supprimée.")
            st.rerun()

    st.divider()

    # =========================
    # BACKUP / RESTORE
    # =========================
    st.subheader("Sauvegarde")
    st.download_button(
        "Exporter les données (JSON)",
        data=export_json(con),
        file_name=backup_filename(date.today()),
        mime="application/json",
    )

    uploaded = st.file_uploader("Importer une sauvegarde", type=["json"])
    if uploaded is not None and st.button("Remplacer toutes les données par ce fichier"):
        try:
            import_json(con, uploaded.getvalue())
        except InvalidFormatError as exc:
            st.error(str(exc))
        else:
            _reset_session_days()
            st.success("Données importées.")
            st.rerun()

    st.divider()

    # =========================
    # RESET
    # =========================
    st.subheader("Réinitialisation")
    confirm_reset = st.checkbox("Je comprends que toutes les données seront effacées.")
    if st.button("Tout effacer", type="primary", disabled=not confirm_reset):
        clear_all(con)
        _reset_session_days()
        st.success("Toutes les données ont été effacées.")
        st.rerun()

from __future__ import annotations

from datetime import date
import sqlite3
from typing import Any

import streamlit as st

from kpi_tracker.data.repositories import CategoryRepository, DayRepository
from kpi_tracker.domain.constants import (
    STATUS_COLORS,
    STATUS_LABELS,
    WEIGHT_LABELS,
    TaskStatus,
    WeightLevel,
)
from kpi_tracker.domain.models import Category, DayData, SubTask, Task
from kpi_tracker.services.day_editing import (
    add_subtask,
    add_task,
    copy_from_previous_day,
    new_subtask,
    new_task,
    previous_day,
    remove_subtask,
    remove_task,
)
from kpi_tracker.services.scoring import compute_kpi, leaf_weight_shares

WEIGHT_OPTIONS = list(WeightLevel)
STATUS_OPTIONS = list(TaskStatus)
NO_CATEGORY_LABEL = "(aucune)"
MISSING_CATEGORY_LABEL = "(catégorie supprimée)"


def _state_key(date_key: str) -> str:
    return f"daily_day_{date_key}"


def _load_day(repo: DayRepository, date_key: str) -> DayData:
    key = _state_key(date_key)
    if key not in st.session_state:
        st.session_state[key] = repo.get_day(date_key)
        st.session_state["daily_dirty"] = False
    return st.session_state[key]


def _forget_day(date_key: str) -> None:
    for key in (
        _state_key(date_key),
        f"daily_target_{date_key}",
        f"daily_expense_{date_key}",
        f"daily_reset_confirm_{date_key}",
    ):
        st.session_state.pop(key, None)


def _mark_dirty() -> None:
    st.session_state["daily_dirty"] = True


def category_options(
    category_id: str | None,
    categories: list[Category],
) -> tuple[list[str | None], dict[str, str]]:
    """
    Selectbox options for a task's category.

    A reference to a deleted category stays selectable so that rendering
    the task never rewrites it.
    """
    names = {category.id: category.name for category in categories}
    options: list[str | None] = [None, *names]
    if category_id and category_id not in names:
        options.append(category_id)
    return options, names


def _status_badge(status: TaskStatus, share: float | None) -> str:
    badge = (
        f"<span style='color:{STATUS_COLORS[status]};font-weight:600'>"
        f"● {STATUS_LABELS[status]}</span>"
    )
    if share is None:
        return badge
    return f"{badge} · Part de la journée : {share:.1f}%"


def _render_leaf_fields(item: Task | SubTask, prefix: str, share_slots: dict[str, Any]) -> None:
    c1, c2, c3, c4 = st.columns([1.3, 1.8, 1, 1])
    item.weight_level = c1.selectbox(
        "Poids",
        WEIGHT_OPTIONS,
        index=WEIGHT_OPTIONS.index(item.weight_level),
        format_func=lambda level: WEIGHT_LABELS[level],
        key=f"{prefix}_weight",
        on_change=_mark_dirty,
    )
    item.status = c2.radio(
        "Statut",
        STATUS_OPTIONS,
        index=STATUS_OPTIONS.index(item.status),
        format_func=lambda status: STATUS_LABELS[status],
        horizontal=True,
        key=f"{prefix}_status",
        on_change=_mark_dirty,
    )
    item.time_estimated = float(
        c3.number_input(
            "Estimé (min)",
            min_value=0.0,
            step=5.0,
            value=float(item.time_estimated),
            key=f"{prefix}_est",
            on_change=_mark_dirty,
        )
    )
    item.time_actual = float(
        c4.number_input(
            "Réel (min)",
            min_value=0.0,
            step=5.0,
            value=float(item.time_actual),
            key=f"{prefix}_act",
            on_change=_mark_dirty,
        )
    )
    # Filled once every widget of the day has been read.
    share_slots[item.id] = (st.empty(), item)


def _render_task(
    day: DayData,
    task: Task,
    categories: list[Category],
    share_slots: dict[str, Any],
) -> None:
    options, names = category_options(task.category_id, categories)

    def _category_label(category_id: str | None) -> str:
        if category_id is None:
            return NO_CATEGORY_LABEL
        return names.get(category_id, MISSING_CATEGORY_LABEL)

    with st.container(border=True):
        h1, h2, h3 = st.columns([3, 2, 0.6])
        task.name = h1.text_input(
            "Tâche",
            value=task.name,
            key=f"task_{task.id}_name",
            on_change=_mark_dirty,
        )
        selected_category = h2.selectbox(
            "Catégorie",
            options,
            index=options.index(task.category_id),
            format_func=_category_label,
            key=f"task_{task.id}_category",
            on_change=_mark_dirty,
        )
        if selected_category != task.category_id:
            task.category_id = selected_category
        if h3.button("🗑", key=f"task_{task.id}_delete", help="Supprimer la tâche"):
            remove_task(day, task.id)
            _mark_dirty()
            st.rerun()

        if not task.is_container:
            _render_leaf_fields(task, f"task_{task.id}", share_slots)
        else:
            st.caption("Les sous-tâches remplacent le poids et le statut de la tâche.")
            for sub in list(task.sub_tasks):
                s1, s2 = st.columns([4, 0.6])
                sub.name = s1.text_input(
                    "Sous-tâche",
                    value=sub.name,
                    key=f"sub_{sub.id}_name",
                    on_change=_mark_dirty,
                )
                if s2.button("✖", key=f"sub_{sub.id}_delete", help="Supprimer la sous-tâche"):
                    remove_subtask(task, sub.id)
                    _mark_dirty()
                    st.rerun()
                _render_leaf_fields(sub, f"sub_{sub.id}", share_slots)

        if st.button("+ Sous-tâche", key=f"task_{task.id}_add_sub"):
            add_subtask(task, new_subtask())
            _mark_dirty()
            st.rerun()


def render(con: sqlite3.Connection) -> None:
    st.header("Journée")

    day_repo = DayRepository(con)
    category_repo = CategoryRepository(con)

    selected_date = st.date_input("Date", value=date.today(), key="daily_date")
    date_key = selected_date.isoformat()
    day = _load_day(day_repo, date_key)
    categories = category_repo.list_categories()

    k1, k2, k3 = st.columns(3)
    day.target_kpi = int(
        k1.number_input(
            "Objectif KPI (%)",
            min_value=0,
            max_value=100,
            step=5,
            value=int(day.target_kpi),
            key=f"daily_target_{date_key}",
            on_change=_mark_dirty,
        )
    )
    day.expense = float(
        k2.number_input(
            "Dépenses (€)",
            min_value=0.0,
            step=1.0,
            value=float(day.expense),
            key=f"daily_expense_{date_key}",
            on_change=_mark_dirty,
        )
    )
    kpi_slot = k3.empty()
    banner_slot = st.empty()

    share_slots: dict[str, Any] = {}
    if not day.tasks:
        st.info("Aucune tâche pour cette journée.")
    for task in list(day.tasks):
        _render_task(day, task, categories, share_slots)

    # Scored after the widgets above wrote their values back into ``day``.
    live_kpi = compute_kpi(day.tasks)
    shares = leaf_weight_shares(day.tasks)
    kpi_slot.metric(
        "KPI du jour",
        f"{live_kpi:.2f}%",
        delta=f"{live_kpi - day.target_kpi:+.2f} pp vs objectif",
    )
    if live_kpi >= day.target_kpi:
        banner_slot.success("Objectif atteint.")
    for item_id, (slot, item) in share_slots.items():
        slot.markdown(_status_badge(item.status, shares.get(item_id)), unsafe_allow_html=True)

    a1, a2, a3 = st.columns(3)
    if a1.button("+ Ajouter une tâche"):
        add_task(day, new_task())
        _mark_dirty()
        st.rerun()
    if a2.button("Copier depuis hier"):
        yesterday_key = previous_day(date_key)
        copied = copy_from_previous_day(day, day_repo.get_day(yesterday_key))
        if copied:
            _mark_dirty()
            st.rerun()
        else:
            st.warning(f"Pas de tâches trouvées pour la journée d'hier ({yesterday_key}).")
    if a3.button("Enregistrer", type="primary"):
        day_repo.save_day(day)
        st.session_state["daily_dirty"] = False
        st.success(f"Journée enregistrée (KPI {day.actual_kpi:.2f}%).")

    if st.session_state.get("daily_dirty"):
        st.caption("Modifications non enregistrées.")

    with st.expander("Réinitialiser la journée"):
        confirm_reset = st.checkbox(
            "Je confirme l'effacement de cette journée.",
            key=f"daily_reset_confirm_{date_key}",
        )
        if st.button("Réinitialiser", disabled=not confirm_reset, key=f"daily_reset_{date_key}"):
            day_repo.delete_day(date_key)
            _forget_day(date_key)
            st.rerun()

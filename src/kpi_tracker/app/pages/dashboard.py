from __future__ import annotations

import sqlite3

import altair as alt
import pandas as pd
import streamlit as st

from kpi_tracker.data.repositories import CategoryRepository, DayRepository
from kpi_tracker.domain.constants import RANGE_LABELS, RANGE_OPTIONS
from kpi_tracker.services.aggregation import build_dashboard, trend_frame


def _kpi_chart(df: pd.DataFrame) -> alt.Chart:
    date_order = df["display_date"].tolist()
    long_df = df.melt(
        id_vars=["display_date"],
        value_vars=["actual_kpi", "target_kpi"],
        var_name="metric",
        value_name="value",
    )
    long_df["metric"] = long_df["metric"].map({"actual_kpi": "KPI Réel", "target_kpi": "Objectif"})
    return (
        alt.Chart(long_df)
        .mark_line(point=True)
        .encode(
            x=alt.X("display_date:N", sort=date_order, title=None),
            y=alt.Y("value:Q", scale=alt.Scale(domain=[0, 100]), title="%"),
            color=alt.Color(
                "metric:N",
                scale=alt.Scale(domain=["KPI Réel", "Objectif"], range=["#10b981", "#94a3b8"]),
                legend=alt.Legend(title=None),
            ),
            strokeDash=alt.StrokeDash(
                "metric:N",
                scale=alt.Scale(domain=["KPI Réel", "Objectif"], range=[[1, 0], [5, 5]]),
                legend=None,
            ),
            tooltip=[
                alt.Tooltip("display_date:N", title="Date"),
                alt.Tooltip("metric:N", title="Série"),
                alt.Tooltip("value:Q", title="Valeur", format=".2f"),
            ],
        )
        .properties(height=320)
    )


def _expense_chart(df: pd.DataFrame) -> alt.Chart:
    return (
        alt.Chart(df)
        .mark_bar(color="#f59e0b", cornerRadiusTopLeft=4, cornerRadiusTopRight=4)
        .encode(
            x=alt.X("display_date:N", sort=df["display_date"].tolist(), title=None),
            y=alt.Y("expense:Q", title="Dépenses (€)"),
            tooltip=[
                alt.Tooltip("display_date:N", title="Date"),
                alt.Tooltip("expense:Q", title="Dépenses (€)", format=".2f"),
            ],
        )
        .properties(height=320)
    )


def _time_chart(df: pd.DataFrame) -> alt.Chart:
    long_df = df.melt(
        id_vars=["display_date"],
        value_vars=["time_estimated_hours", "time_actual_hours"],
        var_name="metric",
        value_name="hours",
    )
    long_df["metric"] = long_df["metric"].map(
        {"time_estimated_hours": "Estimé", "time_actual_hours": "Réel"}
    )
    return (
        alt.Chart(long_df)
        .mark_bar()
        .encode(
            x=alt.X("display_date:N", sort=df["display_date"].tolist(), title=None),
            xOffset="metric:N",
            y=alt.Y("hours:Q", title="Heures"),
            color=alt.Color(
                "metric:N",
                scale=alt.Scale(domain=["Estimé", "Réel"], range=["#3b82f6", "#8b5cf6"]),
                legend=alt.Legend(title=None),
            ),
            tooltip=[
                alt.Tooltip("display_date:N", title="Date"),
                alt.Tooltip("metric:N", title="Série"),
                alt.Tooltip("hours:Q", title="Heures", format=".1f"),
            ],
        )
        .properties(height=280)
    )


def _category_chart(rows: list[dict]) -> alt.Chart:
    cat_df = pd.DataFrame(rows)
    return (
        alt.Chart(cat_df)
        .mark_bar(cornerRadiusTopRight=4, cornerRadiusBottomRight=4)
        .encode(
            x=alt.X("performance:Q", scale=alt.Scale(domain=[0, 100]), title="Taux de réussite (%)"),
            y=alt.Y("name:N", sort=None, title=None),
            color=alt.Color("color:N", scale=None),
            tooltip=[
                alt.Tooltip("name:N", title="Catégorie"),
                alt.Tooltip("performance:Q", title="Taux de réussite (%)", format=".1f"),
                alt.Tooltip("volume:Q", title="Éléments"),
            ],
        )
        .properties(height=max(120, 40 * len(cat_df)))
    )


def render(con: sqlite3.Connection) -> None:
    st.header("Tableau de Bord")
    st.caption("Analyse de vos performances")

    range_key = st.radio(
        "Période",
        list(RANGE_OPTIONS),
        format_func=lambda key: RANGE_LABELS[key],
        horizontal=True,
        key="dashboard_range",
    )
    show_uncategorized = st.checkbox(
        "Inclure les tâches sans catégorie",
        value=False,
        key="dashboard_uncategorized",
    )

    days = DayRepository(con).get_all_days()
    categories = CategoryRepository(con).list_categories()
    dashboard = build_dashboard(
        days,
        categories,
        range_key,
        include_uncategorized=show_uncategorized,
    )
    summary = dashboard["summary"]

    m1, m2, m3, m4 = st.columns(4)
    m1.metric("Moyenne KPI", f"{summary['average_kpi']:.1f}%")
    m2.metric("Objectifs Atteints", f"{summary['success_rate']:.0f}%")
    m3.metric("Dépenses Totales", f"{summary['total_expense']:.2f}€")
    m4.metric("Jours Suivis", f"{summary['tracked_days']}")

    df = trend_frame(dashboard["trend"])
    if df.empty:
        st.info("Pas assez de données pour afficher les graphiques.")
        return

    c1, c2 = st.columns(2)
    with c1:
        st.subheader("Évolution du KPI")
        st.altair_chart(_kpi_chart(df), use_container_width=True)
    with c2:
        st.subheader("Évolution des Dépenses")
        st.altair_chart(_expense_chart(df), use_container_width=True)

    st.subheader("Temps estimé vs réel")
    st.caption(
        f"Total : {summary['total_time_estimated_hours']:.1f} h estimées / "
        f"{summary['total_time_actual_hours']:.1f} h réelles"
    )
    st.altair_chart(_time_chart(df), use_container_width=True)

    st.subheader("Performance par Catégorie")
    if dashboard["categories"]:
        st.altair_chart(_category_chart(dashboard["categories"]), use_container_width=True)
    else:
        st.info("Pas assez de données pour l'analyse par catégorie.")

#!/usr/bin/env python3
"""HabitLens TUI: terminal habit analytics dashboard powered by Textual."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.widgets import DataTable, Footer, Header, Label, Static

from habitlens import (
    Habit,
    Profile,
    calculate_habit_correlations,
    detect_productivity_patterns,
    export_report,
    generate_comparative_analytics,
    generate_habit_insights,
    generate_monthly_report,
    load_habits,
    load_profile,
    now_local,
    reports_dir,
    today_str,
    workspace_root,
    write_text_atomic,
)
from habitlens.models import ComparativeAnalytics, HabitCorrelation, HabitInsight, ProductivityPattern
from habitlens.stats import round_half_up


# ── Row formatting (kept free of widgets for testing) ──────────


def _pct(x: float) -> str:
    return f"{int(round_half_up(x * 100))}%"


def comparative_rows(comparative: ComparativeAnalytics) -> list[tuple[str, ...]]:
    rows = []
    for h in comparative.habits:
        flag = "!" if h.habit_id in comparative.needs_attention else ""
        if h.habit_id == comparative.top_performer:
            flag = "*"
        rows.append((
            flag,
            h.habit_name,
            str(h.score),
            _pct(h.completion_rate),
            f"{h.streak_average:g}",
            _pct(h.consistency),
            h.trend,
        ))
    return rows


def correlation_rows(correlations: list[HabitCorrelation]) -> list[tuple[str, ...]]:
    return [
        (
            c.habit1_name,
            c.habit2_name,
            f"{c.correlation_coefficient:+.3f}",
            c.significance,
            c.relationship,
            str(c.sample_size),
            _pct(c.confidence_level),
        )
        for c in correlations
    ]


def pattern_rows(patterns: list[ProductivityPattern]) -> list[tuple[str, ...]]:
    return [(p.type, p.description, p.impact, _pct(p.strength)) for p in patterns]


def insight_rows(insights: list[HabitInsight]) -> list[tuple[str, ...]]:
    return [
        (i.habit_name, i.type.replace("_", " "), i.insight, _pct(i.confidence))
        for i in insights
    ]


# ── Stylesheet ─────────────────────────────────────────────────

CSS = """
Screen {
    background: $surface;
}

#main-layout {
    height: 1fr;
}

.section-title {
    text-style: bold;
    color: $text;
    margin: 1 0 0 0;
    padding: 0 1;
}

.view {
    padding: 1 2;
}

#overview-info {
    height: auto;
    padding: 1 2;
    margin: 0 0 1 0;
    border: tall $primary-background-darken-2;
}

DataTable {
    height: 1fr;
}
"""


# ── Views ──────────────────────────────────────────────────────


class OverviewView(Vertical):
    """Comparative scores for the selected timeframe."""

    def __init__(self, habits: list[Habit], timeframe: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self._habits = habits
        self._timeframe = timeframe

    def compose(self) -> ComposeResult:
        yield Label(f"Overview ({self._timeframe})", classes="section-title")
        yield Static(id="overview-info")
        yield DataTable(id="overview-table")

    def on_mount(self) -> None:
        comparative = generate_comparative_analytics(self._habits, self._timeframe)
        info = [f"Overall score: {comparative.overall_score}/100"] + list(comparative.insights)
        self.query_one("#overview-info", Static).update("\n".join(info))

        table: DataTable = self.query_one("#overview-table", DataTable)
        table.add_columns("", "Habit", "Score", "Completion", "Avg streak", "Consistency", "Trend")
        for row in comparative_rows(comparative):
            table.add_row(*row)


class CorrelationsView(Vertical):
    def __init__(self, habits: list[Habit], days: int, **kwargs) -> None:
        super().__init__(**kwargs)
        self._habits = habits
        self._days = days

    def compose(self) -> ComposeResult:
        yield Label(f"Correlations (last {self._days} days)", classes="section-title")
        yield DataTable(id="correlations-table")

    def on_mount(self) -> None:
        table: DataTable = self.query_one("#correlations-table", DataTable)
        table.add_columns("Habit", "Habit", "r", "Significance", "Relationship", "Days", "Confidence")
        for row in correlation_rows(calculate_habit_correlations(self._habits, self._days)):
            table.add_row(*row)


class PatternsView(Vertical):
    def __init__(self, habits: list[Habit], days: int, **kwargs) -> None:
        super().__init__(**kwargs)
        self._habits = habits
        self._days = days

    def compose(self) -> ComposeResult:
        yield Label(f"Patterns (last {self._days} days)", classes="section-title")
        yield DataTable(id="patterns-table")

    def on_mount(self) -> None:
        table: DataTable = self.query_one("#patterns-table", DataTable)
        table.add_columns("Type", "Pattern", "Impact", "Strength")
        for row in pattern_rows(detect_productivity_patterns(self._habits, self._days)):
            table.add_row(*row)


class InsightsView(Vertical):
    def __init__(self, habits: list[Habit], days: int, **kwargs) -> None:
        super().__init__(**kwargs)
        self._habits = habits
        self._days = days

    def compose(self) -> ComposeResult:
        yield Label(f"Insights (last {self._days} days)", classes="section-title")
        yield DataTable(id="insights-table")

    def on_mount(self) -> None:
        table: DataTable = self.query_one("#insights-table", DataTable)
        table.add_columns("Habit", "Type", "Insight", "Confidence")
        for row in insight_rows(generate_habit_insights(self._habits, self._days)):
            table.add_row(*row)


# ── Main app ───────────────────────────────────────────────────


class HabitLensApp(App):
    """HabitLens terminal analytics dashboard."""

    TITLE = "HabitLens"
    CSS = CSS

    BINDINGS = [
        Binding("o", "show_view('overview')", "Overview"),
        Binding("c", "show_view('correlations')", "Correlations"),
        Binding("p", "show_view('patterns')", "Patterns"),
        Binding("i", "show_view('insights')", "Insights"),
        Binding("w", "set_timeframe('week')", "Week"),
        Binding("m", "set_timeframe('month')", "Month"),
        Binding("u", "set_timeframe('quarter')", "Quarter"),
        Binding("y", "set_timeframe('year')", "Year"),
        Binding("x", "export_report", "Export"),
        Binding("r", "reload", "Reload"),
        Binding("q", "quit", "Quit"),
    ]

    current_view: reactive[str] = reactive("overview")

    def __init__(self, root: Path | None = None) -> None:
        super().__init__()
        self._root = root or workspace_root()
        self._profile: Profile = load_profile(self._root)
        self._habits: list[Habit] = []
        self._timeframe = self._profile.default_timeframe

    def compose(self) -> ComposeResult:
        yield Header()
        yield Horizontal(id="main-layout")
        yield Footer()

    def on_mount(self) -> None:
        self.action_reload()

    def _update_subtitle(self) -> None:
        self.sub_title = f"{today_str(self._root)}  {len(self._habits)} habits  [{self._timeframe.upper()}]"

    def _render_view(self) -> None:
        main = self.query_one("#main-layout", Horizontal)
        main.remove_children()

        days = self._profile.lookback_days
        if self.current_view == "correlations":
            view = CorrelationsView(self._habits, days, classes="view")
        elif self.current_view == "patterns":
            view = PatternsView(self._habits, days, classes="view")
        elif self.current_view == "insights":
            view = InsightsView(self._habits, days, classes="view")
        else:
            view = OverviewView(self._habits, self._timeframe, classes="view")
        main.mount(view)
        self._update_subtitle()

    def action_show_view(self, view: str) -> None:
        self.current_view = view
        self._render_view()

    def action_set_timeframe(self, timeframe: str) -> None:
        self._timeframe = timeframe
        self._render_view()

    def action_reload(self) -> None:
        self._profile = load_profile(self._root)
        self._habits = load_habits(self._root)
        self._render_view()

    def action_export_report(self) -> None:
        self._do_export()

    @work(thread=True)
    def _do_export(self) -> None:
        """Write a Markdown monthly report in a worker thread."""
        try:
            report = generate_monthly_report(self._habits, now=now_local(self._root), profile=self._profile)
            path = reports_dir(self._root) / f"{report.id}.md"
            write_text_atomic(path, export_report(report, "md"))
            self.call_from_thread(self.notify,
                f"Saved {path.name}", title="Report Exported", severity="information")
        except OSError as e:
            self.call_from_thread(self.notify,
                f"Error: {e}", title="Export Failed", severity="error")


# ── Entry point ────────────────────────────────────────────────


def main() -> None:
    logging.basicConfig(level=os.environ.get("HABITLENS_LOG_LEVEL", "WARNING").upper())
    root = workspace_root()
    if not root.exists():
        print(f"Data root not found: {root}")
        print("Set HABITLENS_ROOT to the folder holding habits.json.")
        sys.exit(1)

    app = HabitLensApp(root)
    app.run()


if __name__ == "__main__":
    main()

"""HabitLens core library: habit analytics engine and its data layer.

Public API re-exports for convenient imports:
    from habitlens import load_habits, calculate_habit_correlations, ...
"""

# Workspace & paths
from habitlens.workspace import (
    workspace_root,
    load_profile,
    get_user_timezone,
    now_local,
    today_str,
    habits_path,
    profile_path,
    reports_dir,
    analytics_path,
)

# File I/O
from habitlens.storage import (
    read_json,
    parse_habits,
    load_habits,
    serialize_habits,
    write_text_atomic,
    write_json_atomic,
)

# Series & streaks
from habitlens.series import (
    completion_series,
    cutoff_for,
    group_by_week,
    window_completions,
)
from habitlens.streaks import (
    find_streaks,
    current_streak,
)

# Statistics
from habitlens.stats import (
    calculate_trend,
    pearson,
    population_variance,
)

# Analyses
from habitlens.correlation import calculate_habit_correlations
from habitlens.patterns import detect_productivity_patterns
from habitlens.insights import generate_habit_insights
from habitlens.comparative import generate_comparative_analytics

# Reports
from habitlens.report import (
    generate_report,
    generate_weekly_report,
    generate_monthly_report,
    generate_quarterly_report,
    generate_habit_specific_report,
    generate_report_of_kind,
    export_report,
    save_report,
    load_saved_report,
    list_saved_reports,
    refresh_analytics,
    load_analytics,
)

# Models
from habitlens.models import (
    TIMEFRAME_DAYS,
    timeframe_days,
    Completion,
    Habit,
    Profile,
    SeriesPoint,
    Streak,
    WeekBucket,
    HabitCorrelation,
    ProductivityPattern,
    HabitInsight,
    HabitScore,
    ComparativeAnalytics,
    AnalyticsReport,
    AnalyticsSnapshot,
)

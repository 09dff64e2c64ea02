"""Rich renderables for the dashboard."""

from collections.abc import Sequence

from rich.columns import Columns
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from cfwatch.aggregation import format_date, rank_color, verdict_label, verdict_style
from cfwatch.models import DEFAULT_CONFIG, Config, DerivedView, Problem, Profile, RatingPoint, Submission
from cfwatch.scheduler import DashboardSnapshot, RefreshState


SPARK_BLOCKS = "▁▂▃▄▅▆▇█"
SPARK_WIDTH = 48
RECENT_CONTESTS = 5


def sparkline(values: Sequence[int], width: int = SPARK_WIDTH) -> str:
    """Render the last ``width`` values as a block-character sparkline."""
    values = list(values)[-width:]
    if not values:
        return ""

    low, high = min(values), max(values)
    if high == low:
        return SPARK_BLOCKS[len(SPARK_BLOCKS) // 2] * len(values)

    scale = (len(SPARK_BLOCKS) - 1) / (high - low)
    return "".join(SPARK_BLOCKS[round((value - low) * scale)] for value in values)


def problem_text(problem: Problem) -> Text:
    text = Text(f"{problem.label} · {problem.name}")
    if problem.url:
        text.stylize(f"link {problem.url}")
    return text


def render_header(profile: Profile) -> Text:
    color = rank_color(profile.rank)
    header = Text()
    header.append(f"@{profile.handle}", style="bold")
    header.append("  ")
    header.append((profile.rank or "unrated").title(), style=f"bold {color}")
    return header


def stat_card(label: str, value: object, sub: str = "", accent: str = "") -> Panel:
    body = Text(str(value), style=f"bold {accent}".strip())
    if sub:
        body.append(f"\n{sub}", style="dim")
    return Panel(body, title=label.upper(), title_align="left", width=36)


def render_stats(profile: Profile, view: DerivedView) -> Columns:
    rating = profile.rating if profile.rating is not None else "unrated"
    peak = f"Peak: {profile.max_rating}" if profile.max_rating is not None else ""
    return Columns(
        [
            stat_card("Rating", rating, peak),
            stat_card(
                "Solved Total",
                view.total_unique_solved,
                f"unique problems (last {view.window_size} subs)",
            ),
            stat_card("Solved Today", view.solved_today, accent="green" if view.solved_today > 0 else ""),
        ]
    )


def render_rating_trend(points: Sequence[RatingPoint], last_delta: int | None) -> Panel:
    ratings = [point.rating for point in points]
    body = Text(sparkline(ratings), style="cyan")
    body.append(f"\n{min(ratings)} – {max(ratings)}", style="dim")
    if last_delta is not None:
        body.append(f"   last: {last_delta:+d}", style="green" if last_delta >= 0 else "red")

    for point in points[-RECENT_CONTESTS:][::-1]:
        body.append(f"\n{point.label:>12}  {point.rating:>5}  {point.contest_name}")

    return Panel(body, title="RATING HISTORY", title_align="left")


def render_solved(problems: Sequence[Problem]) -> Table:
    table = Table(title="Problems Solved", show_header=True, header_style="bold", expand=True)
    table.add_column("Problem", overflow="ellipsis", no_wrap=True)
    table.add_column("Rating", justify="right", style="dim")

    if not problems:
        table.add_row(Text("No solved problems found.", style="dim"), "")
        return table

    for problem in problems:
        table.add_row(problem_text(problem), f"★{problem.rating}" if problem.rating else "")
    return table


def render_recent(submissions: Sequence[Submission]) -> Table:
    table = Table(title="Recent Submissions", show_header=True, header_style="bold", expand=True)
    table.add_column("Problem", overflow="ellipsis", no_wrap=True)
    table.add_column("When / Lang", style="dim", no_wrap=True)
    table.add_column("Verdict", justify="center")

    if not submissions:
        table.add_row(Text("No submissions found.", style="dim"), "", "")
        return table

    for submission in submissions:
        details = f"{format_date(submission.creation_time)} · {submission.language}"
        if submission.problem.rating:
            details += f" · ★{submission.problem.rating}"
        table.add_row(
            problem_text(submission.problem),
            details,
            Text(verdict_label(submission.verdict), style=f"bold {verdict_style(submission.verdict)}"),
        )
    return table


def render_status(snapshot: DashboardSnapshot) -> Text:
    status = Text()
    if snapshot.state is RefreshState.LOADING:
        status.append("Refreshing…", style="dim")
    elif snapshot.updated_at is not None:
        status.append(f"Updated {snapshot.updated_at:%H:%M:%S}", style="dim")
    if snapshot.state is RefreshState.ERROR and snapshot.error:
        if status.plain:
            status.append("  ")
        status.append(f"⚠ {snapshot.error}", style="bold red")
    return status


def render_dashboard(snapshot: DashboardSnapshot, config: Config = DEFAULT_CONFIG) -> RenderableType:
    """Render the whole dashboard for one snapshot."""
    title = Text(f"{config.handle}'s Codeforces Progress", style="bold")
    parts: list[RenderableType] = [title, render_status(snapshot)]

    if snapshot.profile is None or snapshot.view is None:
        if snapshot.state is not RefreshState.ERROR:
            parts.append(Text("Connecting to Codeforces…", style="dim"))
        return Group(*parts)

    view = snapshot.view
    parts.append(render_header(snapshot.profile))
    parts.append(render_stats(snapshot.profile, view))
    if view.rating_trend:
        parts.append(render_rating_trend(view.rating_trend, view.last_rating_delta))
    parts.append(Columns([render_solved(view.solved_problems), render_recent(view.recent_submissions)], expand=True))
    return Group(*parts)

"""Rich renderables for each screen and the overlays drawn above them."""

from typing import Optional

from rich.align import Align
from rich.console import Group, RenderableType
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from lctui.app import App
from lctui.models import ProblemSummary, Verdict
from lctui.popups import AddToListPopup, LoginState
from lctui.scaffold import problem_markdown
from lctui.screens import (
    DIFFICULTIES,
    SETUP_LABELS,
    BrowseState,
    DetailState,
    ListsState,
    ResultState,
    SetupState,
)

SPINNER = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"
CHROME_LINES = 8

DIFFICULTY_COLORS = {
    "easy": "green",
    "medium": "yellow",
    "hard": "red",
}

HELP_TEXT = """\
Browse    j/k move  g/G top/bottom  enter open  o scaffold & edit
          / search  f filter  a add to list  L lists  S settings  q quit
Detail    j/k scroll  d/u half page  o scaffold & edit  r run  s submit
          a add to list  b/esc back
Result    j/k scroll  b/esc back
Lists     enter open  n new list  d delete  esc back
Anywhere  ? toggle help  ctrl+c quit"""


def spinner(frame: int) -> str:
    return SPINNER[frame % len(SPINNER)]


def difficulty_text(difficulty: str) -> Text:
    return Text(difficulty, style=DIFFICULTY_COLORS.get(difficulty.lower(), "white"))


def _window(count: int, selected: int, height: int) -> range:
    """Rows to show so the selection stays visible."""
    height = max(1, height)
    start = max(0, min(selected - height // 2, count - height))
    return range(start, min(count, start + height))


def _problem_table(problems: list[ProblemSummary], selected: int, height: int) -> Table:
    table = Table(show_header=True, header_style="bold", expand=True, box=None)
    table.add_column("#", justify="right", width=5)
    table.add_column("Title", ratio=1)
    table.add_column("Difficulty", width=10)
    table.add_column("Acceptance", justify="right", width=10)
    table.add_column("", width=2)

    for i in _window(len(problems), selected, height):
        problem = problems[i]
        table.add_row(
            problem.frontend_id,
            problem.title,
            difficulty_text(problem.difficulty),
            f"{problem.ac_rate:.1f}%",
            "$" if problem.paid_only else "",
            style="reverse" if i == selected else None,
        )
    return table


def render_browse(screen: BrowseState, height: int) -> RenderableType:
    header = Text("LeetCode", style="bold")
    if screen.user_stats is not None:
        stats = screen.user_stats
        solved = stats.solved
        header.append(
            f"   {stats.username}  solved {stats.total_solved} "
            f"(E {solved.get('Easy', 0)} / M {solved.get('Medium', 0)} / H {solved.get('Hard', 0)})",
            style="dim",
        )

    parts: list[RenderableType] = [header]
    if screen.search_mode or screen.search_query:
        cursor = "█" if screen.search_mode else ""
        parts.append(Text(f"/{screen.search_query}{cursor}", style="cyan"))
    if screen.filter.open:
        for i, difficulty in enumerate(DIFFICULTIES):
            mark = "x" if difficulty in screen.filter.selected else " "
            line = Text(f"  [{mark}] {difficulty.title()}")
            if i == screen.filter.cursor:
                line.stylize("reverse")
            parts.append(line)

    visible = screen.visible_problems()
    rows = height - CHROME_LINES - (len(DIFFICULTIES) if screen.filter.open else 0)
    parts.append(_problem_table(visible, screen.selected, rows))

    if screen.error_message:
        status = Text(screen.error_message, style="red")
    elif screen.loading:
        loaded = len(screen.loading_buffer)
        status = Text(f"{spinner(screen.spinner_frame)} Loading problems {loaded}/{screen.total_problems}")
    else:
        status = Text(f"{len(visible)} of {len(screen.problems)} problems", style="dim")
    parts.append(status)
    parts.append(Text("? help  / search  f filter  L lists  S settings  q quit", style="dim"))
    return Group(*parts)


def render_detail(screen: DetailState, height: int) -> RenderableType:
    detail = screen.detail
    title = Text(detail.display_title, style="bold")
    title.append("  ")
    title.append_text(difficulty_text(detail.difficulty))
    tags = ", ".join(tag.name for tag in detail.topic_tags)

    lines = problem_markdown(detail).splitlines()
    body = "\n".join(lines[screen.scroll : screen.scroll + max(1, height - CHROME_LINES)])
    return Group(
        title,
        Text(tags, style="dim"),
        Panel(Markdown(body), expand=True),
        Text("o scaffold & edit  r run  s submit  a add to list  b back", style="dim"),
    )


def _verdict_lines(verdict: Verdict, kind: str) -> list[RenderableType]:
    style = "bold green" if verdict.accepted else "bold red"
    label = verdict.status_msg
    if kind == "run" and verdict.run_success:
        label = "Accepted" if verdict.accepted else "Wrong Answer"
    lines: list[RenderableType] = [Text(label, style=style)]

    if verdict.compile_error:
        lines.append(Text(verdict.compile_error, style="red"))
    if verdict.runtime_error:
        lines.append(Text(verdict.runtime_error, style="red"))

    if verdict.test_cases_passed is not None and verdict.total_test_cases is not None:
        lines.append(Text(f"Test cases: {verdict.test_cases_passed}/{verdict.total_test_cases}"))
    if verdict.runtime:
        percentile = f" (beats {verdict.runtime_percentile:.0f}%)" if verdict.runtime_percentile else ""
        lines.append(Text(f"Runtime: {verdict.runtime}{percentile}"))
    if verdict.memory:
        percentile = f" (beats {verdict.memory_percentile:.0f}%)" if verdict.memory_percentile else ""
        lines.append(Text(f"Memory: {verdict.memory}{percentile}"))

    if verdict.last_testcase and not verdict.accepted:
        lines.append(Text(f"Input:    {verdict.last_testcase}"))
        if verdict.expected_output is not None:
            lines.append(Text(f"Expected: {verdict.expected_output}"))
        if verdict.code_output is not None:
            lines.append(Text(f"Output:   {verdict.code_output}"))

    if verdict.code_answer:
        lines.append(Text(""))
        for i, answer in enumerate(verdict.code_answer):
            expected = verdict.expected_code_answer[i] if i < len(verdict.expected_code_answer) else None
            ok = expected is None or answer == expected
            line = Text(f"Case {i + 1}: {answer}", style="green" if ok else "red")
            if expected is not None and not ok:
                line.append(f"  (expected {expected})", style="dim")
            lines.append(line)
    for output in verdict.std_output:
        if output:
            lines.append(Text(output, style="dim"))
    return lines


def render_result(screen: ResultState, height: int) -> RenderableType:
    verb = "Running" if screen.kind == "run" else "Submitting"
    if screen.running:
        lines: list[RenderableType] = [Text(f"{spinner(screen.spinner_frame)} {verb}...")]
    elif screen.error is not None:
        lines = [Text("Error", style="bold red"), Text(screen.error)]
    else:
        lines = _verdict_lines(screen.verdict, screen.kind)

    visible = lines[screen.scroll : screen.scroll + max(1, height - CHROME_LINES)]
    return Group(
        Panel(Group(*visible), title=screen.title, expand=True),
        Text("j/k scroll  b back", style="dim"),
    )


def render_lists(screen: ListsState, height: int) -> RenderableType:
    rows = height - CHROME_LINES
    if screen.loading and not screen.lists:
        body: RenderableType = Text(f"{spinner(screen.spinner_frame)} Loading lists...")
    elif screen.error_message:
        body = Text(screen.error_message, style="red")
    elif screen.viewing_list is not None and screen.current_list() is not None:
        current = screen.current_list()
        if current.questions:
            body = _problem_table(current.questions, screen.problem_selected, rows)
        else:
            body = Text("This list is empty.", style="dim")
        body = Panel(body, title=current.name, expand=True)
    elif not screen.lists:
        body = Text("No lists found. Press n to create one.", style="dim")
    else:
        table = Table(show_header=True, header_style="bold", expand=True, box=None)
        table.add_column("List", ratio=1)
        table.add_column("Problems", justify="right", width=10)
        for i in _window(len(screen.lists), screen.selected, rows):
            favorite = screen.lists[i]
            table.add_row(
                favorite.name,
                str(len(favorite.question_ids)),
                style="reverse" if i == screen.selected else None,
            )
        body = table

    parts: list[RenderableType] = [Text("Favorite lists", style="bold"), body]
    if screen.input_mode:
        parts.append(Text(f"New list name: {screen.input_buffer}█", style="cyan"))
    parts.append(Text("enter open  n new  d delete  esc back", style="dim"))
    return Group(*parts)


def render_setup(screen: SetupState) -> RenderableType:
    form = Table.grid(padding=(0, 2))
    form.add_column(justify="right", style="bold")
    form.add_column()
    for i, (label, value) in enumerate(zip(SETUP_LABELS, screen.fields)):
        shown = value
        if i >= 3 and value:
            shown = value[:6] + "..." if len(value) > 6 else value
        if i == screen.focus:
            form.add_row(label, Text(f"{value}█", style="reverse"))
        else:
            form.add_row(label, shown)

    status = Text("Authenticated", style="green") if screen.authenticated else Text("Not authenticated", style="yellow")
    parts: list[RenderableType] = [form, Text(""), status]
    if screen.error_message:
        parts.append(Text(screen.error_message, style="red"))
    parts.append(Text("tab next  enter save  ctrl+l login from browser  esc cancel", style="dim"))
    return Panel(Group(*parts), title="Settings", expand=True)


def render_popup(popup: AddToListPopup) -> RenderableType:
    if popup.loading:
        body: RenderableType = Text("Loading lists...")
    elif not popup.lists:
        body = Text("No lists found", style="dim")
    else:
        lines = []
        for i, favorite in enumerate(popup.lists):
            line = Text(f" {favorite.name} ")
            if i == popup.selected:
                line.stylize("reverse")
            lines.append(line)
        body = Group(*lines)
    return Panel(body, title="Add to list", subtitle="enter add  esc close", width=50)


def render_login(state: LoginState) -> Optional[RenderableType]:
    if state is LoginState.PROMPT_SHOWN:
        text = (
            "You are not logged in.\n\n"
            "Extract your session from the browser? (y/n)\n"
            "Press s to enter cookies manually in settings."
        )
        return Panel(Text(text), title="Login", width=60)
    if state is LoginState.WAITING_FOR_BROWSER:
        text = (
            "Log in to leetcode.com in the browser window that opened.\n\n"
            "Press Enter once you are logged in, or Esc to cancel."
        )
        return Panel(Text(text), title="Waiting for browser", width=60)
    return None


def render_screen(app: App, height: int) -> RenderableType:
    screen = app.screen
    if isinstance(screen, BrowseState):
        return render_browse(screen, height)
    if isinstance(screen, DetailState):
        return render_detail(screen, height)
    if isinstance(screen, ResultState):
        return render_result(screen, height)
    if isinstance(screen, ListsState):
        return render_lists(screen, height)
    return render_setup(screen)


def render_app(app: App, height: int) -> RenderableType:
    """The active screen, or the topmost modal centered in its place."""
    modal: Optional[RenderableType] = None
    if app.error_overlay is not None:
        modal = Panel(Text(app.error_overlay), title="Error", subtitle="esc close", border_style="red", width=70)
    elif app.login.active:
        modal = render_login(app.login.state)
    elif app.add_popup is not None:
        modal = render_popup(app.add_popup)
    elif app.help_overlay:
        modal = Panel(Text(HELP_TEXT), title="Help", width=80)

    body = Align.center(modal, vertical="middle", height=height - 1) if modal else render_screen(app, height)
    if app.toast is not None:
        return Group(body, Text(f" {app.toast[0]} ", style="black on green"))
    return body

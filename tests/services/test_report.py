from datetime import datetime

from autoupdater.models import RunContext, RunOutcome
from autoupdater.services.report import build_summary, format_list, format_problems


def _outcome(**overrides) -> RunOutcome:
    context = RunContext(host="web01", started_at=datetime(2026, 3, 1, 4, 0, 0))
    context.finish(datetime(2026, 3, 1, 4, 1, 5))
    values = {
        "updated": True,
        "reboot_required": False,
        "status": "success",
        "updated_packages": ("curl",),
        "not_updated_packages": ("linux-image-amd64",),
        "pending_before_run": ("curl", "linux-image-amd64"),
        "problems": (),
        "context": context,
    }
    values.update(overrides)
    return RunOutcome(**values)


def test_format_list_empty():
    assert format_list([]) == "(none)"


def test_format_list_within_limit_keeps_order():
    assert format_list(["b", "a", "c"], limit=3) == "b, a, c"


def test_format_list_truncates_with_single_suffix():
    items = [f"pkg{index}" for index in range(35)]

    rendered = format_list(items)

    assert rendered.startswith("pkg0, pkg1, ")
    assert rendered.endswith("pkg29 and 5 more")
    assert rendered.count("and 5 more") == 1
    assert "pkg30" not in rendered


def test_format_problems_caps_lines_and_defaults_to_none():
    problems = ["apt-get update failed", "apt upgrade: " + "\n".join(f"E{i}" for i in range(30))]

    rendered = format_problems(problems)

    assert format_problems([]) == "none"
    assert rendered.splitlines()[0] == "apt-get update failed"
    assert len(rendered.splitlines()) == 20


def test_build_summary_renders_fixed_layout():
    summary = build_summary(_outcome(), "/var/log/auto-update/last-run.log")

    assert summary == (
        "Auto-update on web01\n"
        "\n"
        "Updated: true\n"
        "Reboot required: false\n"
        "Duration: 65s\n"
        "\n"
        "Updated packages: curl\n"
        "Not updated (still pending): linux-image-amd64\n"
        "Pending before run: curl, linux-image-amd64\n"
        "\n"
        "Problems:\n"
        "none\n"
        "\n"
        "Log: /var/log/auto-update/last-run.log"
    )


def test_build_summary_includes_problems():
    outcome = _outcome(
        updated=False,
        updated_packages=(),
        status="problem",
        problems=("apt-get update failed",),
    )

    summary = build_summary(outcome, "/tmp/last-run.log")

    assert "Updated: false" in summary
    assert "Updated packages: (none)" in summary
    assert "Problems:\napt-get update failed\n" in summary

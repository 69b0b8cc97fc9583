"""보고서를 터미널(rich)과 Markdown으로 표시합니다."""

from __future__ import annotations

import re
from collections import Counter

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .models import EvaluationItem, Grade, ReportData

_BOLD = re.compile(r"\*\*(.*?)\*\*", re.DOTALL)

GRADE_STYLES: dict[Grade, str] = {
    Grade.EXCELLENT: "bold green",
    Grade.GOOD: "bold blue",
    Grade.POOR: "bold red",
    Grade.NOT_APPLICABLE: "dim",
    Grade.MISSING: "dim",
}


def grade_distribution(items: list[EvaluationItem]) -> dict[Grade, int]:
    """다섯 등급 모두에 대한 항목 수를 등급 순서대로 반환합니다."""
    counts = Counter(item.grade for item in items)
    return {grade: counts.get(grade, 0) for grade in Grade}


def sort_by_grade(items: list[EvaluationItem]) -> list[EvaluationItem]:
    """순위가 낮은(불량) 항목부터 정렬합니다. 순위가 없는 등급은 뒤로 갑니다."""
    return sorted(
        items,
        key=lambda item: (item.grade.rank is None, item.grade.rank or 0),
    )


def summary_to_markup(summary: str) -> str:
    """``**강조**`` 표기를 rich 마크업으로 바꾸고 나머지는 이스케이프합니다."""
    out: list[str] = []
    pos = 0
    for match in _BOLD.finditer(summary):
        out.append(escape(summary[pos : match.start()]))
        out.append(f"[bold blue]{escape(match.group(1))}[/bold blue]")
        pos = match.end()
    out.append(escape(summary[pos:]))
    return "".join(out)


def render_report(report: ReportData, console: Console, sort: bool = False) -> None:
    """보고서 전체를 *console*에 출력합니다. *sort*가 True면 평가 항목을 불량부터 정렬합니다."""
    info = report.basic_info

    basic = Table.grid(padding=(0, 2))
    basic.add_column(style="bold")
    basic.add_column()
    for label, value in [
        ("수급자", info.name),
        ("생년월일", info.dob),
        ("성별", info.gender),
        ("입소일", info.admission_date),
        ("퇴소일", info.discharge_date or "-"),
        ("평가 기간", info.evaluation_period),
        ("시설명", info.facility_name),
    ]:
        basic.add_row(label, escape(value))
    console.print(Panel(basic, title="기본 정보", expand=False))

    items = Table(title="평가지표별 결과", show_lines=True)
    items.add_column("평가지표", style="cyan")
    items.add_column("등급", justify="center")
    items.add_column("이유")
    items.add_column("근거")
    evaluation_items = sort_by_grade(report.evaluation_items) if sort else report.evaluation_items
    for item in evaluation_items:
        style = GRADE_STYLES[item.grade]
        items.add_row(
            escape(item.metric),
            f"[{style}]{item.grade.value}[/{style}]",
            escape(item.reason),
            escape(item.evidence),
        )
    console.print(items)

    dist = Table(title="등급 분포")
    for grade in Grade:
        dist.add_column(grade.value, justify="center", style=GRADE_STYLES[grade])
    dist.add_row(*(str(n) for n in grade_distribution(report.evaluation_items).values()))
    console.print(dist)

    checks = Table(title="교차 점검 결과", show_lines=True)
    checks.add_column("항목", style="cyan")
    checks.add_column("결과", justify="center")
    checks.add_column("권장 사항")
    for result in report.cross_check_results:
        checks.add_row(escape(result.item), escape(result.status), escape(result.recommendation))
    console.print(checks)

    console.print(Panel(summary_to_markup(report.ai_summary), title="AI 종합 분석"))


def _md_cell(value: str) -> str:
    return value.replace("|", "\\|").replace("\n", " ").strip()


def report_to_markdown(report: ReportData) -> str:
    """인쇄/공유용 Markdown 문서를 만듭니다."""
    info = report.basic_info
    lines = [
        f"# 장기요양 평가 보고서: {info.facility_name}",
        "",
        "## 기본 정보",
        "",
        f"- 수급자: {info.name}",
        f"- 생년월일: {info.dob}",
        f"- 성별: {info.gender}",
        f"- 입소일: {info.admission_date}",
        f"- 퇴소일: {info.discharge_date or '-'}",
        f"- 평가 기간: {info.evaluation_period}",
        "",
        "## 평가지표별 결과",
        "",
        "| 평가지표 | 등급 | 이유 | 근거 |",
        "| --- | --- | --- | --- |",
    ]
    lines.extend(
        f"| {_md_cell(i.metric)} | {i.grade.value} | {_md_cell(i.reason)} | {_md_cell(i.evidence)} |"
        for i in report.evaluation_items
    )

    lines += ["", "## 등급 분포", ""]
    lines.extend(
        f"- {grade.value}: {n}"
        for grade, n in grade_distribution(report.evaluation_items).items()
    )

    lines += ["", "## 교차 점검 결과", ""]
    lines.extend(
        f"- **{r.item}** ({r.status}): {r.recommendation}" for r in report.cross_check_results
    )

    lines += ["", "## AI 종합 분석", "", report.ai_summary, ""]
    return "\n".join(lines)

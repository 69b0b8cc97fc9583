"""ltc-report용 명령줄 인터페이스입니다."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import typer
from rich.console import Console

from . import __version__

if TYPE_CHECKING:
    from .pipeline import Pipeline

app = typer.Typer(
    name="ltc-report",
    help="AI report generator for long-term-care facility evaluations.",
    no_args_is_help=True,
)
guidelines_app = typer.Typer(help="평가 기준 지침 파일을 관리합니다.", no_args_is_help=True)
app.add_typer(guidelines_app, name="guidelines")

console = Console()

_EXIT_WORDS = {"exit", "quit", "종료"}


# ---------------------------------------------------------------------------
# 헬퍼
# ---------------------------------------------------------------------------


def _load_pipeline(config_path: str) -> Pipeline:
    """설정을 로드하고 Pipeline 인스턴스를 반환합니다."""
    from .config import load_config
    from .pipeline import Pipeline
    from .utils import setup_logging

    setup_logging()

    config = load_config(config_path)
    return Pipeline(config)


def _files_in(directory: Path) -> list[Path]:
    """디렉토리의 파일을 이름순으로 반환합니다 (재귀 없음)."""
    if not directory.is_dir():
        return []
    return sorted(f for f in directory.iterdir() if f.is_file() and not f.name.startswith("."))


def _print_read_failures(e: Exception) -> None:
    from .errors import ReadAggregationError

    console.print(f"\n[bold red]오류:[/bold red] {e}")
    if isinstance(e, ReadAggregationError):
        for name, reason in e.failures.items():
            console.print(f"  - [cyan]{name}[/cyan]: {reason}")


# ---------------------------------------------------------------------------
# 명령어
# ---------------------------------------------------------------------------


@app.command()
def init(
    name: str = typer.Option(..., "--name", help="Project name"),
    path: str = typer.Option(".", "--path", help="Parent directory for the project"),
) -> None:
    """새로운 ltc-report 프로젝트를 초기화합니다."""
    from .config import create_default_config

    project_dir = Path(path) / name
    guidelines_dir = project_dir / "documents" / "guidelines"
    evaluation_dir = project_dir / "documents" / "evaluation"
    output_dir = project_dir / "output"

    for d in (guidelines_dir, evaluation_dir, output_dir):
        d.mkdir(parents=True, exist_ok=True)

    template = create_default_config()
    config_content = template.replace('name: "my-evaluation"', f'name: "{name}"')

    config_path = project_dir / "project.yaml"
    config_path.write_text(config_content, encoding="utf-8")

    console.print(f"\n[bold green]Project '{name}' created at {project_dir}[/bold green]\n")
    console.print("\n[bold]다음 단계:[/bold]")
    console.print(f"  1. [cyan]{guidelines_dir}[/cyan]에 평가 기준 지침 파일 추가")
    console.print(f"  2. [cyan]ltc-report guidelines add --config {config_path}[/cyan]")
    console.print(f"  3. [cyan]{evaluation_dir}[/cyan]에 평가 자료 추가")
    console.print(f"  4. 실행: [cyan]ltc-report analyze --config {config_path}[/cyan]\n")


@guidelines_app.command("add")
def guidelines_add(
    files: Optional[list[Path]] = typer.Argument(
        None, help="추가할 지침 파일 (생략 시 paths.guidelines의 모든 파일)"
    ),
    config: str = typer.Option("project.yaml", "--config", help="Path to project.yaml"),
) -> None:
    """지침 파일을 추출하여 로컬 저장소에 추가합니다."""
    try:
        pipeline = _load_pipeline(config)
        targets = list(files) if files else _files_in(pipeline.config.paths.guidelines)
        if not targets:
            console.print("[yellow]추가할 지침 파일이 없습니다.[/yellow]")
            raise typer.Exit(code=1)

        stored = asyncio.run(pipeline.add_guidelines(targets))
        console.print(f"\n[bold green]저장된 지침 파일 {len(stored)}개[/bold green]")
        for f in stored:
            console.print(f"  - {f.name} ({len(f.content):,}자)")
    except typer.Exit:
        raise
    except Exception as e:
        _print_read_failures(e)
        raise typer.Exit(code=1)


@guidelines_app.command("list")
def guidelines_list(
    config: str = typer.Option("project.yaml", "--config", help="Path to project.yaml"),
) -> None:
    """저장된 지침 파일 목록을 표시합니다."""
    from rich.table import Table

    try:
        pipeline = _load_pipeline(config)
        files = asyncio.run(pipeline.load_guidelines())
    except Exception as e:
        console.print(f"\n[bold red]오류:[/bold red] {e}")
        raise typer.Exit(code=1)

    if not files:
        console.print("[yellow]저장된 지침 파일이 없습니다.[/yellow]")
        return

    table = Table(title="저장된 평가 기준 지침")
    table.add_column("파일명", style="cyan")
    table.add_column("글자 수", justify="right")
    for f in files:
        table.add_row(f.name, f"{len(f.content):,}")
    console.print(table)


@guidelines_app.command("remove")
def guidelines_remove(
    name: str = typer.Argument(..., help="제거할 지침 파일명"),
    config: str = typer.Option("project.yaml", "--config", help="Path to project.yaml"),
) -> None:
    """이름으로 지침 파일을 제거합니다."""
    try:
        pipeline = _load_pipeline(config)
        removed = asyncio.run(pipeline.remove_guideline(name))
    except Exception as e:
        console.print(f"\n[bold red]오류:[/bold red] {e}")
        raise typer.Exit(code=1)

    if not removed:
        console.print(f"[yellow]'{name}' 지침 파일을 찾을 수 없습니다.[/yellow]")
        raise typer.Exit(code=1)
    console.print(f"[green]'{name}' 제거됨[/green]")


@guidelines_app.command("clear")
def guidelines_clear(
    config: str = typer.Option("project.yaml", "--config", help="Path to project.yaml"),
    yes: bool = typer.Option(False, "--yes", "-y", help="확인 없이 삭제합니다"),
) -> None:
    """저장된 지침 파일을 모두 삭제합니다."""
    if not yes and not typer.confirm("저장된 지침 파일을 모두 삭제할까요?"):
        raise typer.Exit(code=0)
    try:
        pipeline = _load_pipeline(config)
        asyncio.run(pipeline.clear_guidelines())
    except Exception as e:
        console.print(f"\n[bold red]오류:[/bold red] {e}")
        raise typer.Exit(code=1)
    console.print("[green]지침 파일을 모두 삭제했습니다.[/green]")


@app.command()
def analyze(
    files: Optional[list[Path]] = typer.Argument(
        None, help="분석할 평가 자료 (생략 시 paths.evaluation의 모든 파일)"
    ),
    config: str = typer.Option("project.yaml", "--config", help="Path to project.yaml"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="보고서 JSON 경로"),
    summarize: Optional[bool] = typer.Option(
        None, "--summarize/--no-summarize", help="청크별 사전 요약 사용 여부 (설정 덮어쓰기)"
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="보고서를 화면에 출력하지 않습니다"),
) -> None:
    """저장된 지침으로 평가 자료를 분석하여 보고서를 생성합니다."""
    from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn

    from .errors import GenerationError, ReadAggregationError
    from .render import render_report

    try:
        pipeline = _load_pipeline(config)
        if summarize is not None:
            pipeline.config.summarize.enabled = summarize

        evaluations = pipeline.read_evaluation_files(list(files) if files else None)
        if not evaluations:
            console.print("[yellow]분석할 평가 자료가 없습니다.[/yellow]")
            raise typer.Exit(code=1)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("{task.percentage:>3.0f}%"),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task("준비 중", total=100)

            def _on_progress(pct: int, message: str) -> None:
                progress.update(task, completed=pct, description=message)

            report = asyncio.run(pipeline.step_generate(evaluations, _on_progress))

        report_path = pipeline.save_report(report, output)
    except typer.Exit:
        raise
    except ReadAggregationError as e:
        _print_read_failures(e)
        raise typer.Exit(code=1)
    except GenerationError as e:
        console.print(f"\n[bold red]보고서 생성 실패:[/bold red] {e.user_message}")
        console.print(f"[dim]{e}[/dim]")
        raise typer.Exit(code=1)
    except Exception as e:
        console.print(f"\n[bold red]분석 실패:[/bold red] {e}")
        raise typer.Exit(code=1)

    if not quiet:
        render_report(report, console)
    console.print(f"\n[bold green]보고서 저장 위치:[/bold green] [cyan]{report_path}[/cyan]\n")


@app.command()
def show(
    report: Path = typer.Argument(..., help="보고서 JSON 경로"),
    config: str = typer.Option("project.yaml", "--config", help="Path to project.yaml"),
    markdown: Optional[Path] = typer.Option(None, "--markdown", "-m", help="Markdown 내보내기 경로"),
    sort_by_grade: bool = typer.Option(
        False, "--sort-by-grade", help="평가 항목을 불량부터 등급순으로 표시합니다"
    ),
) -> None:
    """저장된 보고서를 표시하고 선택적으로 Markdown으로 내보냅니다."""
    from .render import render_report

    try:
        pipeline = _load_pipeline(config)
        data = pipeline.load_report(report)
    except Exception as e:
        console.print(f"\n[bold red]오류:[/bold red] {e}")
        raise typer.Exit(code=1)

    render_report(data, console, sort=sort_by_grade)
    if markdown is not None:
        path = pipeline.save_markdown(data, markdown)
        console.print(f"\n[green]Markdown 저장:[/green] [cyan]{path}[/cyan]")


@app.command()
def chat(
    report: Path = typer.Argument(..., help="보고서 JSON 경로"),
    config: str = typer.Option("project.yaml", "--config", help="Path to project.yaml"),
    question: Optional[list[str]] = typer.Option(
        None, "--question", "-q", help="대화형 입력 대신 보낼 질문 (여러 번 지정 가능)"
    ),
) -> None:
    """보고서에 대해 후속 질문을 합니다. exit/quit로 종료합니다."""
    try:
        pipeline = _load_pipeline(config)
        data = pipeline.load_report(report)
        session = pipeline.create_chat(data)
    except Exception as e:
        console.print(f"\n[bold red]오류:[/bold red] {e}")
        raise typer.Exit(code=1)

    def _answer(q: str) -> None:
        reply = asyncio.run(session.ask(q))
        style = "green" if reply.ok else "red"
        console.print(f"[bold {style}]AI>[/bold {style}] {reply.text}\n")

    if question:
        for q in question:
            console.print(f"[bold cyan]질문>[/bold cyan] {q}")
            _answer(q)
        return

    console.print(f"\n[bold green]AI>[/bold green] {pipeline.config.chat.greeting}\n")
    while True:
        try:
            q = console.input("[bold cyan]질문>[/bold cyan] ").strip()
        except (EOFError, KeyboardInterrupt):
            console.print()
            break
        if not q:
            continue
        if q.lower() in _EXIT_WORDS:
            break
        _answer(q)


@app.command()
def check(
    config: str = typer.Option("project.yaml", "--config", help="Path to project.yaml"),
) -> None:
    """프로젝트 설정과 환경을 사전 점검합니다."""
    from rich.table import Table

    table = Table(title="ltc-report 환경 점검")
    table.add_column("항목", style="cyan")
    table.add_column("상태", style="bold")
    table.add_column("상세", style="dim")

    all_ok = True

    try:
        from .config import load_config

        cfg = load_config(config)
        table.add_row("설정 파일", "[green]OK[/green]", str(config))
    except Exception as e:
        cfg = None
        table.add_row("설정 파일", "[red]FAIL[/red]", str(e))
        all_ok = False

    if cfg is None:
        console.print()
        console.print(table)
        raise typer.Exit(code=1)

    guideline_files = _files_in(Path(cfg.paths.guidelines))
    if guideline_files:
        table.add_row("지침 디렉토리", "[green]OK[/green]", f"{len(guideline_files)}개 파일")
    else:
        table.add_row(
            "지침 디렉토리", "[yellow]WARN[/yellow]", f"파일 없음 ({cfg.paths.guidelines})"
        )

    if cfg.llm.resolve_api_key():
        table.add_row("API 키", "[green]OK[/green]", "설정됨")
    elif cfg.llm.backend == "gemini":
        table.add_row("API 키", "[red]FAIL[/red]", f"{cfg.llm.api_key_env} 환경변수 없음")
        all_ok = False
    else:
        table.add_row("API 키", "[yellow]WARN[/yellow]", "없음 (인증 없는 서버만 가능)")

    from .llm import create_llm

    llm = create_llm(cfg.llm)
    if llm.health_check():
        table.add_row("LLM 연결", "[green]OK[/green]", f"{cfg.llm.backend} ({cfg.llm.model})")
    else:
        table.add_row("LLM 연결", "[red]FAIL[/red]", f"{cfg.llm.api_base}")
        all_ok = False

    console.print()
    console.print(table)
    if all_ok:
        console.print("\n[bold green]모든 점검 통과![/bold green]\n")
    else:
        console.print("\n[bold yellow]일부 항목에 주의가 필요합니다.[/bold yellow]\n")
        raise typer.Exit(code=1)


@app.command()
def version() -> None:
    """ltc-report 버전을 표시합니다."""
    console.print(f"ltc-report [bold]{__version__}[/bold]")


# ---------------------------------------------------------------------------
# 진입점
# ---------------------------------------------------------------------------


def main() -> None:
    """pyproject.toml에서 호출되는 진입점입니다."""
    app()

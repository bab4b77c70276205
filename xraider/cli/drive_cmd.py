"""
xraider drive - Google Drive 탐색 및 동기화 명령어
"""

from __future__ import annotations

import time

import click
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from xraider.core.models import format_file_size

console = Console()

_STATE_LABELS = {
    "idle": "대기",
    "traversing": "폴더 탐색 중...",
    "importing": "가져오는 중...",
    "done": "완료",
}


@click.group("drive")
def drive_group():
    """Google Drive 동기화 (ls/sync/deep-sync/import/watch)"""
    pass


@drive_group.command("ls")
@click.option("--folder", "-F", "folder_id", default=None, help="Drive 폴더 ID (기본: 전체)")
@click.pass_context
def drive_ls(ctx, folder_id):
    """폴더 항목 목록 (기본: 전체)"""
    xr = ctx.obj["xraider"]
    with console.status("Drive 조회 중..."):
        files = xr.drive.list_files(folder_id, xr.config.drive_page_size)

    if not files:
        console.print("[yellow]항목이 없습니다.[/yellow]")
        return

    table = Table(title=f"Google Drive ({folder_id or 'root'})", show_header=True, header_style="bold")
    table.add_column("ID", style="dim", max_width=34)
    table.add_column("이름", max_width=50)
    table.add_column("크기", justify="right", width=10)
    table.add_column("수정일", width=20)
    for f in files:
        name = f"[blue]{f.name}/[/blue]" if f.is_folder else f.name
        table.add_row(f.id, name, format_file_size(f.size) or "-", f.modified_time[:19])
    console.print(table)


@drive_group.command("sync")
@click.option("--folder", "-F", "folder_id", default=None, help="Drive 폴더 ID (기본: 전체)")
@click.pass_context
def drive_sync(ctx, folder_id):
    """폴더의 새 파일을 라이브러리에 추가 (하위 폴더 제외)"""
    engine = ctx.obj["xraider"].sync_engine()
    with console.status("동기화 중..."):
        imported = engine.shallow_sync(folder_id)
    console.print(f"[green]{imported}개 문서 추가[/green]")


@drive_group.command("deep-sync")
@click.option("--folder", "-F", "folder_id", default=None, help="Drive 폴더 ID (기본: 내 드라이브 최상위)")
@click.pass_context
def drive_deep_sync(ctx, folder_id):
    """하위 폴더까지 재귀 동기화"""
    xr = ctx.obj["xraider"]

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.percentage:>3.0f}%"),
        TimeElapsedColumn(),
        console=console,
    ) as progress:
        task = progress.add_task(_STATE_LABELS["traversing"], total=1.0)

        def on_progress(value, state):
            progress.update(task, completed=value, description=_STATE_LABELS.get(state.value, state.value))

        summary = xr.sync_engine(on_progress=on_progress).deep_sync(folder_id)

    console.print(f"[green]동기화 완료:[/green] {summary}")


@drive_group.command("import")
@click.argument("file_id")
@click.pass_context
def drive_import(ctx, file_id):
    """Drive 파일 하나를 라이브러리에 추가"""
    xr = ctx.obj["xraider"]
    file = xr.drive.get_file_metadata(file_id)
    doc = xr.sync_engine().import_file(file)
    console.print(f"[green]추가됨:[/green] {doc.title}")
    console.print(f"  [dim]ID: {doc.id} | {doc.category.value} | {doc.file_size or '-'}[/dim]")


@drive_group.command("watch")
@click.option("--folder", "-F", "folder_id", default=None, help="Drive 폴더 ID (기본: 전체)")
@click.option("--interval", "-i", type=float, default=None, help="동기화 간격(초), 기본: drive.auto_sync_interval")
@click.pass_context
def drive_watch(ctx, folder_id, interval):
    """일정 간격으로 자동 동기화 (Ctrl-C로 종료)"""
    from xraider.drive.sync import AutoSyncScheduler

    xr = ctx.obj["xraider"]
    scheduler = AutoSyncScheduler(
        xr.sync_engine(),
        folder_id=lambda: folder_id,
        interval=interval or xr.config.auto_sync_interval,
    )
    scheduler.enable()
    if not scheduler.enabled:
        console.print("[red]Drive에 연결되어 있지 않습니다.[/red]")
        raise SystemExit(1)

    console.print(f"[cyan]자동 동기화 시작[/cyan] ({scheduler.interval:.0f}초 간격, Ctrl-C로 종료)")
    try:
        while scheduler.enabled:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        scheduler.disable()
    console.print(f"[dim]자동 동기화 종료 ({scheduler.ticks}회 실행, 문서 {xr.store.total}개)[/dim]")

"""
xraider status - 시스템 상태 표시
"""

from __future__ import annotations

from rich.console import Console
from rich.table import Table
from rich.panel import Panel

console = Console()


def run_status(xr_ctx):
    """시스템 상태 및 통계"""
    from xraider.core.config import mask_secret

    config = xr_ctx.config
    token = config.drive_token

    lines = []
    lines.append(f"[bold]xraider v{_get_version()}[/bold]\n")
    lines.append(f"설정: {config.config_path or '(기본값)'}")
    lines.append(f"사용자: {xr_ctx.user} (namespace: {config.namespace})")
    lines.append(f"저장소: {config.sqlite_path}")
    lines.append(f"Google Drive: {'연결됨 (' + mask_secret(token) + ')' if token else '미연결'}")
    lines.append(f"자동 동기화 간격: {config.auto_sync_interval:.0f}초")

    console.print(Panel("\n".join(lines), title="시스템 정보", border_style="cyan"))

    try:
        stats = xr_ctx.store.get_stats()
    except Exception as e:
        console.print(f"[yellow]저장소 접근 불가: {e}[/yellow]")
        return

    table = Table(title="라이브러리 현황")
    table.add_column("항목", style="cyan")
    table.add_column("수량", justify="right")
    table.add_row("문서", str(stats["total"]))
    table.add_row("읽음", str(stats["read"]))
    table.add_row("즐겨찾기", str(stats["favorite"]))
    table.add_row("Drive 문서", str(stats["drive"]))
    for category, count in sorted(stats["by_category"].items()):
        table.add_row(f"  {category}", str(count))
    console.print(table)


def _get_version() -> str:
    try:
        from xraider import __version__
        return __version__
    except Exception:
        return "unknown"

"""
xraider add / upload / list / search / show / mark / remove / recent - 라이브러리 명령어
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from xraider.core.models import Category, DocumentFilters

console = Console()

CATEGORY_CHOICES = [c.value for c in Category]


def _documents_table(docs, title: str | None = None) -> Table:
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("제목", max_width=50)
    table.add_column("분야", style="cyan")
    table.add_column("출처", style="magenta", max_width=16)
    table.add_column("상태", width=4)

    for d in docs:
        marks = ("★" if d.is_favorite else "") + ("✓" if d.is_read else "")
        table.add_row(d.id, d.title, d.category.value, d.source, marks)
    return table


def _print_added(doc):
    console.print(f"[green]추가됨:[/green] {doc.title}")
    console.print(f"  [dim]ID: {doc.id} | {doc.source} | {doc.category.value}[/dim]")


@click.command("add")
@click.argument("locator")
@click.pass_context
def add(ctx, locator):
    """URL, DOI 또는 arXiv ID로 문서 추가

    \b
    예시:
      xraider add https://arxiv.org/abs/2301.00001
      xraider add 10.1038/nature14539
      xraider add 2301.00001
    """
    from xraider.extract import extract_from_locator

    xr = ctx.obj["xraider"]
    store = xr.store
    with console.status("메타데이터 추출 중..."):
        meta = extract_from_locator(locator, session=xr.session, timeout=xr.config.http_timeout)
    _print_added(store.add(meta))


@click.command("upload")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def upload(ctx, path):
    """로컬 파일을 라이브러리에 추가 (파일명/크기만 사용)"""
    from xraider.extract import extract_from_file

    store = ctx.obj["xraider"].store
    _print_added(store.add(extract_from_file(path)))


@click.command("list")
@click.option("--category", "-C", type=click.Choice(CATEGORY_CHOICES), default=None, help="분야 필터")
@click.option("--tag", "-t", "tags", multiple=True, help="태그 필터 (하나라도 일치)")
@click.option("--read/--unread", "is_read", default=None, help="읽음 상태 필터")
@click.option("--favorite", "-f", is_flag=True, default=None, help="즐겨찾기만")
@click.option("--days", "-d", type=int, default=None, help="최근 N일 내 추가된 문서만")
@click.pass_context
def list_cmd(ctx, category, tags, is_read, favorite, days):
    """라이브러리 문서 목록"""
    store = ctx.obj["xraider"].store

    date_range = None
    if days is not None:
        now = datetime.now(timezone.utc)
        date_range = (now - timedelta(days=days), now)

    docs = store.filter(DocumentFilters(
        category=Category(category) if category else None,
        tags=list(tags) or None,
        is_read=is_read,
        is_favorite=True if favorite else None,
        date_range=date_range,
    ))
    if not docs:
        console.print("[yellow]문서가 없습니다.[/yellow]")
        return
    console.print(_documents_table(docs, title=f"라이브러리 ({len(docs)}/{store.total})"))


@click.command("search")
@click.argument("query")
@click.pass_context
def search(ctx, query):
    """제목/저자/초록/태그 검색"""
    results = ctx.obj["xraider"].store.search(query)
    if not results:
        console.print("[yellow]검색 결과가 없습니다.[/yellow]")
        return
    console.print(f"\n[bold]'{query}' 검색 결과 ({len(results)}개):[/bold]\n")
    console.print(_documents_table(results))


@click.command("show")
@click.argument("doc_id")
@click.pass_context
def show(ctx, doc_id):
    """문서 상세 정보"""
    doc = ctx.obj["xraider"].store.get(doc_id)
    if doc is None:
        console.print(f"[red]문서를 찾을 수 없습니다: {doc_id}[/red]")
        raise SystemExit(1)

    lines = [
        f"[bold]{doc.title}[/bold]",
        f"저자: {', '.join(doc.authors) or '-'}",
        f"분야: {doc.category.value} | 출처: {doc.source}",
        f"URL: {doc.url or '-'}",
    ]
    if doc.pdf_url and doc.pdf_url != doc.url:
        lines.append(f"PDF: {doc.pdf_url}")
    if doc.doi:
        lines.append(f"DOI: {doc.doi}")
    if doc.date_published:
        lines.append(f"출판일: {doc.date_published}")
    if doc.pages:
        lines.append(f"페이지: {doc.pages}")
    if doc.file_size:
        lines.append(f"크기: {doc.file_size}")
    lines.append(f"태그: {', '.join(doc.tags) or '-'}")
    lines.append(f"추가: {doc.date_added} | 읽음: {'예' if doc.is_read else '아니오'} | 진행률: {doc.reading_progress}%")
    if doc.abstract:
        lines.append(f"\n{doc.abstract}")
    if doc.citation:
        lines.append(f"\n[dim]{doc.citation}[/dim]")
    if doc.notes:
        lines.append(f"\n[yellow]메모:[/yellow] {doc.notes}")

    console.print(Panel("\n".join(lines), title=doc.id, border_style="cyan"))


@click.command("mark")
@click.argument("doc_id")
@click.option("--read/--unread", "is_read", default=None, help="읽음 상태")
@click.option("--favorite/--unfavorite", "is_favorite", default=None, help="즐겨찾기")
@click.option("--progress", "-p", type=click.IntRange(0, 100), default=None, help="읽기 진행률 (0-100)")
@click.option("--notes", "-n", "note", default=None, help="메모")
@click.option("--category", "-C", type=click.Choice(CATEGORY_CHOICES), default=None, help="분야 변경")
@click.pass_context
def mark(ctx, doc_id, is_read, is_favorite, progress, note, category):
    """문서 상태 변경 (읽음/즐겨찾기/진행률/메모/분야)"""
    store = ctx.obj["xraider"].store
    if store.get(doc_id) is None:
        console.print(f"[red]문서를 찾을 수 없습니다: {doc_id}[/red]")
        raise SystemExit(1)

    changes = {}
    if is_read is not None:
        changes["is_read"] = is_read
    if is_favorite is not None:
        changes["is_favorite"] = is_favorite
    if progress is not None:
        changes["reading_progress"] = progress
    if note is not None:
        changes["notes"] = note
    if category is not None:
        changes["category"] = category
    if not changes:
        console.print("[yellow]변경할 항목이 없습니다.[/yellow]")
        return

    store.update(doc_id, changes)
    console.print(f"[green]업데이트됨:[/green] {doc_id} ({', '.join(changes)})")


@click.command("remove")
@click.argument("doc_id")
@click.option("--yes", "-y", is_flag=True, help="확인 없이 삭제")
@click.pass_context
def remove(ctx, doc_id, yes):
    """문서 삭제"""
    store = ctx.obj["xraider"].store
    doc = store.get(doc_id)
    if doc is None:
        console.print(f"[yellow]문서를 찾을 수 없습니다: {doc_id}[/yellow]")
        return
    if not yes:
        click.confirm(f"'{doc.title}' 삭제할까요?", abort=True)
    store.delete(doc_id)
    console.print(f"[green]삭제됨:[/green] {doc.title}")


@click.command("recent")
@click.pass_context
def recent(ctx):
    """최근 추가된 문서 5개"""
    docs = ctx.obj["xraider"].store.recent
    if not docs:
        console.print("[yellow]문서가 없습니다.[/yellow]")
        return
    console.print(_documents_table(docs, title="최근 추가"))

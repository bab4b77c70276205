"""
xraider CLI - 메인 진입점

Usage:
    xraider add <URL|DOI|arXiv ID>     # 메타데이터 추출 → 라이브러리 추가
    xraider upload <PATH>              # 로컬 파일 추가
    xraider list|search|show|mark|remove|recent
    xraider drive ls|sync|deep-sync|import|watch
    xraider config get|set|unset|list|path
    xraider status
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import click
from rich.console import Console

from xraider import __version__

console = Console()
log = logging.getLogger("xraider")


def _auto_load_dotenv():
    """cwd의 .env 파일에서 환경 변수 로드"""
    for candidate in [Path.cwd() / ".env", Path(__file__).resolve().parents[2] / ".env"]:
        if candidate.exists():
            for line in candidate.read_text().splitlines():
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, _, value = line.partition("=")
                    os.environ.setdefault(key.strip(), value.strip())
            break


def _setup_logging(verbose: bool = False):
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )


_auto_load_dotenv()


class XraiderContext:
    """CLI 컨텍스트 - Config와 핵심 객체를 지연 생성하여 보관"""

    def __init__(self, config_path: str | None = None, user: str | None = None):
        self._config = None
        self._config_path = config_path
        self._user = user
        self._store = None
        self._session = None
        self._drive = None

    @property
    def config(self):
        if self._config is None:
            from xraider.core.config import Config
            self._config = Config(self._config_path)
        return self._config

    @property
    def user(self) -> str:
        return self._user or self.config.user

    @property
    def session(self):
        if self._session is None:
            import requests
            self._session = requests.Session()
            self._session.headers.update({"User-Agent": self.config.user_agent})
        return self._session

    @property
    def store(self):
        if self._store is None:
            from xraider.core.blobstore import SQLiteBlobStore
            from xraider.library.store import DocumentStore

            self.config.validate()
            blobs = SQLiteBlobStore(self.config.sqlite_path)
            self._store = DocumentStore(blobs, user_id=self.user, namespace=self.config.namespace)
        return self._store

    @property
    def drive(self):
        if self._drive is None:
            from xraider.drive.client import GoogleDriveClient

            token = self.config.require_drive_token()
            self._drive = GoogleDriveClient(lambda: token, timeout=self.config.http_timeout)
        return self._drive

    def sync_engine(self, on_progress=None):
        from xraider.drive.sync import DriveSyncEngine

        config = self.config
        return DriveSyncEngine(
            self.drive,
            self.store,
            page_size=config.drive_page_size,
            deep_page_size=config.drive_deep_page_size,
            max_depth=config.drive_max_depth,
            progress_reset_delay=None,
            on_progress=on_progress,
        )


class _ErrorHandlingGroup(click.Group):
    """CLI 최상위 그룹에 공통 에러 핸들링 적용"""

    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except click.exceptions.Exit:
            raise
        except click.exceptions.Abort:
            raise
        except SystemExit:
            raise
        except Exception as e:
            from xraider.core.config import ConfigError
            from xraider.core.errors import DuplicateDocument, InvalidLocator, SyncFailure
            if isinstance(e, ConfigError):
                console.print(f"[bold red]설정 오류:[/bold red] {e}")
                console.print("[dim]config.yaml 또는 환경변수를 확인하세요.[/dim]")
                ctx.exit(1)
            elif isinstance(e, click.BadParameter):
                raise
            elif isinstance(e, DuplicateDocument):
                console.print(f"[yellow]{e}[/yellow]")
                if e.existing_id:
                    console.print(f"[dim]기존 문서 ID: {e.existing_id}[/dim]")
                ctx.exit(1)
            elif isinstance(e, (InvalidLocator, SyncFailure)):
                console.print(f"[bold red]오류:[/bold red] {e}")
                ctx.exit(1)
            else:
                log.exception("예상치 못한 오류")
                console.print(f"[bold red]오류:[/bold red] {e}")
                console.print("[dim]--verbose 플래그로 디버그 정보를 확인할 수 있습니다.[/dim]")
                ctx.exit(1)


@click.group(cls=_ErrorHandlingGroup)
@click.option("--config", "-c", "config_path", default=None, help="설정 파일 경로 (기본: ~/.xraider/config.yaml)")
@click.option("--user", "-u", default=None, help="라이브러리 사용자 ID (기본: library.user)")
@click.option("--verbose", "-v", is_flag=True, help="디버그 로그 출력")
@click.version_option(version=__version__, prog_name="xraider")
@click.pass_context
def cli(ctx, config_path, user, verbose):
    """xraider - 학술 문서 수집, 중복 제거, Google Drive 동기화"""
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["xraider"] = XraiderContext(config_path, user)


@cli.command()
@click.pass_context
def status(ctx):
    """시스템 상태 및 통계"""
    from xraider.cli.status_cmd import run_status
    run_status(ctx.obj["xraider"])


# --- Sub-commands are registered via imports ---
from xraider.cli.library_cmd import add, upload, list_cmd, search, show, mark, remove, recent
from xraider.cli.drive_cmd import drive_group
from xraider.cli.config_cmd import config_group

cli.add_command(add, "add")
cli.add_command(upload, "upload")
cli.add_command(list_cmd, "list")
cli.add_command(search, "search")
cli.add_command(show, "show")
cli.add_command(mark, "mark")
cli.add_command(remove, "remove")
cli.add_command(recent, "recent")
cli.add_command(drive_group, "drive")
cli.add_command(config_group, "config")


def main():
    cli()


if __name__ == "__main__":
    main()

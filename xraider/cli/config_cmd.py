"""
xraider config - 설정 관리 명령어

키는 DEFAULT_CONFIG에 정의된 `섹션.키` 형식만 허용합니다.
"""

from __future__ import annotations

import click
import yaml
from rich.console import Console
from rich.table import Table

from xraider.core.config import DEFAULT_CONFIG, DEFAULT_CONFIG_PATH, mask_secret

console = Console()

_SECRET_KEYS = {"access_token"}


def _split_key(key: str) -> tuple[str, str]:
    """'drive.page_size' → ('drive', 'page_size'). 정의되지 않은 키는 BadParameter"""
    section, _, name = key.partition(".")
    if section not in DEFAULT_CONFIG or name not in DEFAULT_CONFIG[section]:
        known = ", ".join(f"{s}.{k}" for s, keys in DEFAULT_CONFIG.items() for k in keys)
        raise click.BadParameter(f"알 수 없는 설정 키: {key} (가능: {known})", param_hint="KEY")
    return section, name


def _parse_value(raw: str):
    """YAML 스칼라로 해석 (10 → int, 0.5 → float, true → bool, null → None)"""
    try:
        value = yaml.safe_load(raw)
    except yaml.YAMLError:
        return raw
    if isinstance(value, (dict, list)):
        return raw
    return "" if value is None and raw.strip() == "" else value


def _display(name: str, value) -> str:
    if value is None:
        return "null"
    if value == "":
        return "(미설정)"
    if name in _SECRET_KEYS:
        return mask_secret(str(value))
    return str(value)


@click.group("config")
def config_group():
    """설정 관리 (get/set/unset/list/path)"""
    pass


@config_group.command("get")
@click.argument("key")
@click.pass_context
def config_get(ctx, key):
    """설정 값 조회 (예: drive.page_size)"""
    section, name = _split_key(key)
    value = ctx.obj["xraider"].config.get_nested(section, name)
    console.print(f"[cyan]{key}:[/cyan] {_display(name, value)}")


@config_group.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def config_set(ctx, key, value):
    """설정 값 변경 (예: http.timeout 10, drive.progress_reset_delay null)"""
    section, name = _split_key(key)
    config = ctx.obj["xraider"].config

    previous = config.data.get(section, {}).get(name)
    parsed = _parse_value(value)
    config.set_nested(section, name, parsed)
    try:
        config.validate()
    except Exception:
        config.set_nested(section, name, previous)
        raise
    config.save()
    console.print(f"[green]{key} = {_display(name, parsed)}[/green] (저장됨)")


@config_group.command("unset")
@click.argument("key")
@click.pass_context
def config_unset(ctx, key):
    """설정 값을 기본값으로 되돌림"""
    section, name = _split_key(key)
    config = ctx.obj["xraider"].config

    default = DEFAULT_CONFIG[section][name]
    config.set_nested(section, name, default)
    config.save()
    console.print(f"[green]{key} = {_display(name, default)}[/green] (기본값)")


@config_group.command("list")
@click.pass_context
def config_list(ctx):
    """전체 설정 표시 (기본값과 다른 항목은 굵게)"""
    config = ctx.obj["xraider"].config

    table = Table(title="xraider 설정")
    table.add_column("섹션", style="cyan", no_wrap=True)
    table.add_column("키", no_wrap=True)
    table.add_column("값", style="green")

    for section, defaults in DEFAULT_CONFIG.items():
        for i, (name, default) in enumerate(defaults.items()):
            raw = config.data.get(section, {}).get(name, default)
            text = _display(name, config.get_nested(section, name))
            if raw != default:
                text = f"[bold]{text}[/bold]"
            table.add_row(section if i == 0 else "", name, text)

    console.print(table)

    if config.config_path:
        console.print(f"\n[dim]설정 파일: {config.config_path}[/dim]")
    else:
        console.print("\n[dim]설정 파일: (기본값 사용 중 - xraider config set으로 생성)[/dim]")


@config_group.command("path")
@click.pass_context
def config_path(ctx):
    """설정 파일 경로 표시"""
    config = ctx.obj["xraider"].config
    if config.config_path:
        console.print(config.config_path)
    else:
        console.print(f"{DEFAULT_CONFIG_PATH} (아직 생성되지 않음)")

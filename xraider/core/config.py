"""
통합 설정 관리 모듈

~/.xraider/config.yaml 또는 --config로 지정한 YAML 파일을 지원합니다.
환경 변수 치환 (${VAR_NAME}) 및 라이브러리/Drive 설정을 관리합니다.
"""

from __future__ import annotations

import copy
import logging
import os
import re
from pathlib import Path
from typing import Any, Optional

import yaml

log = logging.getLogger("xraider.config")

DRIVE_TOKEN_ENV = "GOOGLE_DRIVE_TOKEN"


class ConfigError(Exception):
    """설정 관련 오류. 복구 불가, 즉시 종료 대상"""


def mask_secret(value: str, visible: int = 4) -> str:
    """토큰 등 민감 값을 마스킹하여 로그 안전하게 출력"""
    if not value or len(value) <= visible:
        return "***"
    return value[:visible] + "*" * (len(value) - visible)


def resolve_drive_token(config_value: str = "") -> str:
    """Drive 액세스 토큰을 환경변수 → config 순으로 해석"""
    token = os.environ.get(DRIVE_TOKEN_ENV, "") or config_value or ""
    token = token.strip()
    if token.startswith("${"):
        return ""
    return token


DEFAULT_CONFIG_DIR = Path.home() / ".xraider"
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "config.yaml"

DEFAULT_CONFIG = {
    "library": {
        "namespace": "xraider",
        "user": "${XRAIDER_USER}",
    },
    "storage": {
        "sqlite": str(DEFAULT_CONFIG_DIR / "library.db"),
    },
    "http": {
        "timeout": 30,
        "user_agent": "Mozilla/5.0 (xraider)",
    },
    "drive": {
        "access_token": "${GOOGLE_DRIVE_TOKEN}",
        "page_size": 200,
        "deep_page_size": 100,
        "max_depth": 32,
        "auto_sync_interval": 300,
        "progress_reset_delay": 3,
    },
}


def _expand_env_vars(value: Any) -> Any:
    """${VAR_NAME} 패턴을 환경 변수 값으로 치환"""
    if isinstance(value, str):
        def replacer(match):
            var_name = match.group(1)
            return os.environ.get(var_name, "")
        return re.sub(r"\$\{(\w+)\}", replacer, value)
    if isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env_vars(v) for v in value]
    return value


def _deep_merge(base: dict, override: dict) -> dict:
    """딥 머지: override 값이 base를 덮어씀"""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


class Config:
    """통합 설정 클래스 - ~/.xraider/config.yaml 기반"""

    _instance: Optional[Config] = None

    def __init__(self, config_path: Optional[str] = None):
        self._data: dict = {}
        self._path: Optional[Path] = None

        if config_path:
            self.load(config_path)
        elif DEFAULT_CONFIG_PATH.exists():
            self.load(str(DEFAULT_CONFIG_PATH))
        else:
            self._data = _deep_merge(DEFAULT_CONFIG, {})

    @classmethod
    def get(cls, config_path: Optional[str] = None) -> Config:
        """캐시된 인스턴스 반환"""
        if cls._instance is None:
            cls._instance = cls(config_path)
        return cls._instance

    @classmethod
    def reset(cls):
        """캐시 초기화 (테스트용)"""
        cls._instance = None

    def load(self, config_path: str):
        """YAML 설정 파일 로드 (기본값과 머지)"""
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"설정 파일을 찾을 수 없습니다: {config_path}")
        self._path = path
        with open(path, "r", encoding="utf-8") as f:
            user_data = yaml.safe_load(f) or {}
        if not isinstance(user_data, dict):
            raise ConfigError(f"설정 파일 형식이 잘못되었습니다 (매핑 필요): {config_path}")
        self._data = _deep_merge(DEFAULT_CONFIG, user_data)

    def save(self, config_path: Optional[str] = None):
        """현재 설정을 YAML 파일로 저장"""
        path = Path(config_path) if config_path else (self._path or DEFAULT_CONFIG_PATH)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(self._data, f, default_flow_style=False, allow_unicode=True, sort_keys=False)
        self._path = path

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def get_nested(self, *keys, default=None) -> Any:
        """중첩 키로 값 가져오기: config.get_nested('drive', 'page_size')"""
        d = self._data
        for k in keys:
            if isinstance(d, dict) and k in d:
                d = d[k]
            else:
                return default
        return _expand_env_vars(d)

    def set_nested(self, *keys_and_value):
        """중첩 키에 값 설정: config.set_nested('http', 'timeout', 10)"""
        if len(keys_and_value) < 2:
            raise ValueError("최소 키 1개와 값 1개가 필요합니다")
        keys = keys_and_value[:-1]
        value = keys_and_value[-1]

        d = self._data
        for k in keys[:-1]:
            if k not in d or not isinstance(d[k], dict):
                d[k] = {}
            d = d[k]
        d[keys[-1]] = value

    # --- 편의 프로퍼티 ---

    @property
    def namespace(self) -> str:
        return self.get_nested("library", "namespace", default="xraider") or "xraider"

    @property
    def user(self) -> str:
        return self.get_nested("library", "user", default="") or "default"

    @property
    def sqlite_path(self) -> str:
        return str(Path(self.get_nested("storage", "sqlite", default=str(DEFAULT_CONFIG_DIR / "library.db"))).expanduser())

    @property
    def http_timeout(self) -> float:
        return float(self.get_nested("http", "timeout", default=30))

    @property
    def user_agent(self) -> str:
        return self.get_nested("http", "user_agent", default="Mozilla/5.0 (xraider)")

    @property
    def drive_token(self) -> str:
        return resolve_drive_token(self.get_nested("drive", "access_token", default="") or "")

    @property
    def drive_page_size(self) -> int:
        return int(self.get_nested("drive", "page_size", default=200))

    @property
    def drive_deep_page_size(self) -> int:
        return int(self.get_nested("drive", "deep_page_size", default=100))

    @property
    def drive_max_depth(self) -> int:
        return int(self.get_nested("drive", "max_depth", default=32))

    @property
    def auto_sync_interval(self) -> float:
        return float(self.get_nested("drive", "auto_sync_interval", default=300))

    @property
    def progress_reset_delay(self) -> Optional[float]:
        value = self.get_nested("drive", "progress_reset_delay", default=3)
        return None if value is None else float(value)

    @property
    def config_path(self) -> Optional[str]:
        return str(self._path) if self._path else None

    @property
    def data(self) -> dict:
        return self._data

    # --- 검증 ---

    def validate(self, require_drive: bool = False):
        """설정 무결성 검증. 실패 시 ConfigError 발생."""
        errors: list[str] = []

        parent = Path(self.sqlite_path).parent
        if not parent.exists():
            try:
                parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                errors.append(f"storage.sqlite: 디렉토리 생성 불가 ({e})")

        for label, value in [
            ("http.timeout", self.get_nested("http", "timeout")),
            ("drive.page_size", self.get_nested("drive", "page_size")),
            ("drive.deep_page_size", self.get_nested("drive", "deep_page_size")),
            ("drive.max_depth", self.get_nested("drive", "max_depth")),
            ("drive.auto_sync_interval", self.get_nested("drive", "auto_sync_interval")),
        ]:
            try:
                if float(value) <= 0:
                    errors.append(f"{label}: 0보다 커야 합니다 (현재: {value})")
            except (TypeError, ValueError):
                errors.append(f"{label}: 숫자가 아닙니다 (현재: {value!r})")

        if require_drive:
            token = self.drive_token
            if not token:
                errors.append(
                    f"drive.access_token 누락: "
                    f"{DRIVE_TOKEN_ENV} 환경변수 또는 config.yaml에 설정하세요"
                )
            else:
                log.debug("Drive token: %s", mask_secret(token))

        if errors:
            msg = "설정 검증 실패:\n  " + "\n  ".join(errors)
            raise ConfigError(msg)

    def require_drive_token(self) -> str:
        """Drive 액세스 토큰 반환. 없으면 ConfigError."""
        token = self.drive_token
        if not token:
            raise ConfigError(
                f"Google Drive 토큰이 설정되지 않았습니다. "
                f"{DRIVE_TOKEN_ENV} 환경변수를 설정하세요."
            )
        return token

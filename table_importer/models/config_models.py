from __future__ import annotations

from dataclasses import dataclass, field

from .field_spec import FieldSpec

"""Config dataclasses for the Excel typed-row importer.

Built by table_importer.config.loader after YAML + JSON schema validation.
"""

DEFAULT_MAX_ROWS = 1000
DEFAULT_PAGE_SIZE = 1000


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for one import run."""
    source_file: str  # 取込対象ブック
    table: str  # 挿入先テーブル
    owner_uid: str  # 各行に付与する所有者 uid
    sheet: str | None = None  # None -> 先頭シート
    max_rows: int = DEFAULT_MAX_ROWS
    header_row: int = 1  # 1-based; それより上の行はタイトル扱いで無視
    language: str = "zh"  # フィールド定義テンプレートの言語
    fields: tuple[FieldSpec, ...] = ()
    fields_file: str | None = None
    page_size: int = DEFAULT_PAGE_SIZE
    database: DatabaseConfig = field(default_factory=DatabaseConfig)

    @property
    def effective_max_rows(self) -> int:
        return max(1, self.max_rows)

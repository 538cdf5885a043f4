from __future__ import annotations

import datetime as dt
import json
import tomllib
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from .errors import ConfigError

DEFAULT_PERMALINK = "/:year-:month-:day/:title"
DEFAULT_PAGINATE_PATH = "/page:num"
DEFAULT_ROBOTS = "User-agent: *\nAllow: /"
TEMPLATES_DIR = Path(__file__).parent / "templates"


@dataclass(frozen=True)
class Author:
    twitter: str = ""
    github: str = ""
    email: str = ""


@dataclass(frozen=True)
class SiteConfig:
    name: str = "blogsmith"
    domain: str = "http://localhost:8000"
    author: Author = field(default_factory=Author)
    copyright_year: str = ""
    copyright_name: str = ""
    timezone: str = "UTC"
    permalink: str = DEFAULT_PERMALINK
    paginate: int = 10
    paginate_path: str = DEFAULT_PAGINATE_PATH
    highlight_theme: str = "one-dark"
    output: Path = Path("dist")
    posts: Path = Path("_posts")
    assets: Path = Path("assets")
    templates: Path = TEMPLATES_DIR
    workers: int = 0
    minify: bool = True
    robots: str = DEFAULT_ROBOTS

    @property
    def tzinfo(self) -> dt.tzinfo:
        return ZoneInfo(self.timezone)

    @property
    def copyright(self) -> str:
        year = self.copyright_year or str(dt.date.today().year)
        name = self.copyright_name or self.name
        return f"{year} {name}"

    def url(self, path: str) -> str:
        return self.domain.rstrip("/") + "/" + path.lstrip("/")

    def with_overrides(self, **overrides: object) -> "SiteConfig":
        """Return a copy with every non-None override applied."""
        values = {key: value for key, value in overrides.items() if value is not None}
        for key in ("output", "posts", "assets", "templates"):
            if key in values:
                values[key] = Path(values[key])
        return replace(self, **values)

    @classmethod
    def from_mapping(cls, data: dict) -> "SiteConfig":
        data = dict(data)
        author = data.pop("author", None) or {}
        if not isinstance(author, dict):
            raise ConfigError("'author' must be a table of contact handles")
        copyright_value = data.pop("copyright", None)
        if isinstance(copyright_value, dict):
            data.setdefault("copyright_year", copyright_value.get("year", ""))
            data.setdefault("copyright_name", copyright_value.get("name", ""))
        elif copyright_value:
            data.setdefault("copyright_name", str(copyright_value))

        known = {f.name for f in fields(cls)} - {"author"}
        values: dict[str, object] = {}
        for key, value in data.items():
            if key not in known or value is None:
                continue
            values[key] = value

        for key in ("output", "posts", "assets", "templates"):
            if key in values:
                values[key] = Path(str(values[key]))
        for key in ("paginate", "workers"):
            if key in values:
                try:
                    values[key] = int(values[key])
                except (TypeError, ValueError):
                    raise ConfigError(f"'{key}' must be an integer, got {values[key]!r}") from None
        for key in ("name", "domain", "copyright_year", "copyright_name", "timezone",
                    "permalink", "paginate_path", "highlight_theme", "robots"):
            if key in values:
                values[key] = str(values[key])
        if "minify" in values:
            values["minify"] = parse_bool(values["minify"], "minify")

        config = cls(
            author=Author(**{k: str(v) for k, v in author.items() if k in {"twitter", "github", "email"}}),
            **values,
        )
        config.validate()
        return config

    def validate(self) -> None:
        if self.paginate < 1:
            raise ConfigError(f"'paginate' must be at least 1, got {self.paginate}")
        if ":title" not in self.permalink:
            raise ConfigError(f"Permalink pattern must contain ':title': {self.permalink}")
        if ":num" not in self.paginate_path:
            raise ConfigError(f"Pagination path must contain ':num': {self.paginate_path}")
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ConfigError(f"Unknown timezone: {self.timezone}") from None


TRUE_WORDS = {"1", "true", "yes", "on"}
FALSE_WORDS = {"0", "false", "no", "off"}


def parse_bool(value: object, key: str = "minify") -> bool:
    """Read a config flag; anything that is not clearly on or off is an error."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    word = str(value).strip().lower()
    if word in TRUE_WORDS:
        return True
    if word in FALSE_WORDS:
        return False
    raise ConfigError(f"'{key}' must be true or false, got {value!r}")


def load_config(path: Path) -> SiteConfig:
    if not path.exists():
        return SiteConfig()
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    if suffix == ".toml":
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML in config file {path}: {exc}") from exc
    elif suffix in {".yml", ".yaml"}:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in config file {path}: {exc}") from exc
        if data is None:
            data = {}
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config must be a mapping: {path}")

    config = SiteConfig.from_mapping(data)
    # Relative directories are resolved against the config file location.
    base = path.resolve().parent
    return replace(
        config,
        output=_anchor(config.output, base),
        posts=_anchor(config.posts, base),
        assets=_anchor(config.assets, base),
        templates=_anchor(config.templates, base),
    )


def _anchor(value: Path, base: Path) -> Path:
    return value if value.is_absolute() else base / value

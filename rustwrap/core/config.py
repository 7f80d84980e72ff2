"""Typed configuration loading and access.

This module provides dataclasses for the rustwrap.yaml structure with
validation at load time. Config objects are frozen once loaded.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigurationError
from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_bool, get_list, get_raw_str, get_str, get_table
from .target import VERSION_PLACEHOLDER, Arch, Platform, Target

__all__ = [
    "DEFAULT_CONFIG_FILE",
    "URL_PLACEHOLDER",
    "SHA_PLACEHOLDER",
    "Config",
    "PackageInfo",
    "NpmOpts",
    "BrewOpts",
    "Provider",
    "load_config",
]

DEFAULT_CONFIG_FILE = "rustwrap.yaml"

URL_PLACEHOLDER = "__URL__"
SHA_PLACEHOLDER = "__SHA__"


@dataclass(frozen=True, slots=True)
class PackageInfo:
    """One npm package: manifest template and optional readme.

    Attributes:
        manifest: Path to a package.json template
        name: Optional package name override
        readme: Optional readme copied next to the manifest
    """

    manifest: Path
    name: str | None = None
    readme: Path | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, object], section: str) -> PackageInfo:
        manifest = get_str(data, "manifest")
        if manifest is None:
            raise ValueError(f"{section}.manifest is required")
        readme = get_str(data, "readme")
        return cls(
            manifest=Path(manifest),
            name=get_str(data, "name"),
            readme=Path(readme) if readme else None,
        )


@dataclass(frozen=True, slots=True)
class NpmOpts:
    org: str
    name: str
    root: PackageInfo
    sub: PackageInfo
    publish: bool = False
    bin: str | None = None

    @property
    def shim_name(self) -> str:
        return self.bin or self.name

    @property
    def root_package_name(self) -> str:
        return self.root.name or self.name

    @property
    def sub_name(self) -> str:
        return self.sub.name or self.name

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> NpmOpts:
        org = get_str(data, "org")
        name = get_str(data, "name")
        root = get_table(data, "root")
        sub = get_table(data, "sub")
        if org is None:
            raise ValueError("npm.org is required")
        if name is None:
            raise ValueError("npm.name is required")
        if root is None:
            raise ValueError("npm.root is required")
        if sub is None:
            raise ValueError("npm.sub is required")
        return cls(
            org=org,
            name=name,
            root=PackageInfo.from_dict(root, "npm.root"),
            sub=PackageInfo.from_dict(sub, "npm.sub"),
            publish=get_bool(data, "publish"),
            bin=get_str(data, "bin"),
        )


@dataclass(frozen=True, slots=True)
class BrewOpts:
    """Homebrew formula options.

    The recipe template must contain __URL__, __SHA__ and __VERSION__;
    this is checked by ``validate()`` right before rendering.
    """

    name: str
    tap: str
    recipe_template: str
    publish: bool = False
    recipe_fname: str | None = None

    @property
    def recipe_file(self) -> str:
        return self.recipe_fname or f"{self.name}.rb"

    def validate(self) -> Result[None, ConfigurationError]:
        for placeholder, label in (
            (URL_PLACEHOLDER, "URL"),
            (SHA_PLACEHOLDER, "SHA"),
            (VERSION_PLACEHOLDER, "VERSION"),
        ):
            if placeholder not in self.recipe_template:
                return Err(
                    ConfigurationError(f"brew recipe template: missing {label} variable")
                )
        return Ok(None)

    def recipe(self, version: str, url: str, sha: str) -> str:
        return (
            self.recipe_template.replace(VERSION_PLACEHOLDER, version)
            .replace(URL_PLACEHOLDER, url)
            .replace(SHA_PLACEHOLDER, sha)
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> BrewOpts:
        name = get_str(data, "name")
        tap = get_str(data, "tap")
        template = get_raw_str(data, "recipe_template")
        if name is None:
            raise ValueError("brew.name is required")
        if tap is None:
            raise ValueError("brew.tap is required")
        if template is None:
            raise ValueError("brew.recipe_template is required")
        return cls(
            name=name,
            tap=tap,
            recipe_template=template,
            publish=get_bool(data, "publish"),
            recipe_fname=get_str(data, "recipe_fname"),
        )


type Provider = NpmOpts | BrewOpts


def _parse_target(data: Mapping[str, object], index: int) -> Target:
    where = f"targets[{index}]"
    platform_raw = get_str(data, "platform") or Platform.UNKNOWN.value
    arch_raw = get_str(data, "arch") or Arch.X64.value
    try:
        platform = Platform(platform_raw)
    except ValueError:
        allowed = ", ".join(p.value for p in Platform)
        raise ValueError(f"{where}.platform: '{platform_raw}' is not one of {allowed}") from None
    try:
        arch = Arch(arch_raw)
    except ValueError:
        allowed = ", ".join(a.value for a in Arch)
        raise ValueError(f"{where}.arch: '{arch_raw}' is not one of {allowed}") from None

    url_template = get_str(data, "url_template")
    if url_template is None:
        raise ValueError(f"{where}.url_template is required")
    if VERSION_PLACEHOLDER not in url_template:
        raise ValueError(f"{where}.url_template must contain {VERSION_PLACEHOLDER}")

    archive = get_str(data, "archive")
    return Target(
        platform=platform,
        arch=arch,
        url_template=url_template,
        bin_name=get_str(data, "bin_name"),
        archive=Path(archive) if archive else None,
    )


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    targets: tuple[Target, ...] = ()
    npm: NpmOpts | None = None
    brew: BrewOpts | None = None
    repo: str | None = None

    def providers(self) -> tuple[Provider, ...]:
        """Configured providers in publish order (npm first, then brew)."""
        found: list[Provider] = []
        if self.npm is not None:
            found.append(self.npm)
        if self.brew is not None:
            found.append(self.brew)
        return tuple(found)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed YAML)."""
        raw_targets = get_list(data, "targets")
        if raw_targets is None:
            raise ValueError("'targets' must be a list")

        targets: list[Target] = []
        for index, item in enumerate(raw_targets):
            table = as_str_dict(item)
            if table is None:
                raise ValueError(f"targets[{index}] must be a mapping")
            targets.append(_parse_target(table, index))

        npm = get_table(data, "npm")
        brew = get_table(data, "brew")
        if data.get("npm") is not None and npm is None:
            raise ValueError("'npm' must be a mapping")
        if data.get("brew") is not None and brew is None:
            raise ValueError("'brew' must be a mapping")

        return cls(
            targets=tuple(targets),
            npm=NpmOpts.from_dict(npm) if npm is not None else None,
            brew=BrewOpts.from_dict(brew) if brew is not None else None,
            repo=get_str(data, "repo"),
        )


def _parse_yaml(path: Path) -> Result[StrDict, ConfigurationError]:
    """Parse a YAML file, handling read and parse errors."""
    import yaml

    try:
        with path.open(encoding="utf-8") as f:
            data_obj: object = yaml.safe_load(f)
    except FileNotFoundError:
        return Err(ConfigurationError("config file not found", path=path))
    except PermissionError:
        return Err(ConfigurationError("permission denied reading config", path=path))
    except yaml.YAMLError as e:
        return Err(ConfigurationError(f"invalid YAML: {e}", path=path))
    except (OSError, UnicodeDecodeError) as e:
        return Err(ConfigurationError(f"error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigurationError("config root must be a mapping", path=path))
    return Ok(data)


def load_config(path: Path) -> Result[Config, ConfigurationError]:
    """Load and validate configuration from a YAML file.

    Args:
        path: Path to rustwrap.yaml

    Returns:
        Ok(Config) on success, Err(ConfigurationError) on failure
    """
    result = _parse_yaml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigurationError(f"invalid config: {e}", path=path))

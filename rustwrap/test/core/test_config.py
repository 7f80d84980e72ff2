"""Tests for rustwrap.core.config module."""

from __future__ import annotations

from pathlib import Path

import pytest

from rustwrap.core.config import BrewOpts, Config, NpmOpts, PackageInfo, load_config
from rustwrap.core.errors import ConfigurationError
from rustwrap.core.result import Err, Ok
from rustwrap.core.target import Arch, Platform

FULL_CONFIG = """\
repo: recontools/recon
targets:
  - platform: darwin
    arch: arm64
    url_template: https://example.com/v__VERSION__/recon-aarch64-apple-darwin.tar.gz
  - platform: win32
    arch: x64
    url_template: https://example.com/v__VERSION__/recon-x86_64-pc-windows-msvc.zip
    archive: recon-win.zip
npm:
  org: "@recontools"
  name: recon
  publish: true
  root:
    manifest: npm/root.json
    readme: README.md
  sub:
    manifest: npm/sub.json
brew:
  name: recon
  tap: recontools/homebrew-tap
  recipe_template: |
    class Recon < Formula
      url "__URL__"
      version "__VERSION__"
      sha256 "__SHA__"
    end
"""


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "rustwrap.yaml"
    path.write_text(content, encoding="utf-8")
    return path


class TestLoadConfig:
    """Test load_config()."""

    def test_full_config(self, tmp_path: Path) -> None:
        result = load_config(_write(tmp_path, FULL_CONFIG))
        assert isinstance(result, Ok)
        config = result.value

        assert config.repo == "recontools/recon"
        assert len(config.targets) == 2
        first, second = config.targets
        assert first.platform == Platform.DARWIN
        assert first.arch == Arch.ARM64
        assert first.archive is None
        assert second.platform == Platform.WIN32
        assert second.archive == Path("recon-win.zip")

        assert config.npm is not None
        assert config.npm.org == "@recontools"
        assert config.npm.publish is True
        assert config.npm.root.manifest == Path("npm/root.json")
        assert config.npm.root.readme == Path("README.md")
        assert config.npm.sub.readme is None

        assert config.brew is not None
        assert config.brew.publish is False
        assert config.brew.recipe_file == "recon.rb"
        assert 'url "__URL__"' in config.brew.recipe_template

    def test_providers_order(self, tmp_path: Path) -> None:
        config = load_config(_write(tmp_path, FULL_CONFIG)).unwrap()
        providers = config.providers()
        assert isinstance(providers[0], NpmOpts)
        assert isinstance(providers[1], BrewOpts)

    def test_minimal_config(self, tmp_path: Path) -> None:
        content = "targets:\n  - url_template: https://x/__VERSION__.tgz\n"
        config = load_config(_write(tmp_path, content)).unwrap()
        assert config.providers() == ()
        assert config.repo is None
        assert config.targets[0].platform == Platform.UNKNOWN
        assert config.targets[0].arch == Arch.X64

    def test_missing_file(self, tmp_path: Path) -> None:
        result = load_config(tmp_path / "nope.yaml")
        assert isinstance(result, Err)
        assert isinstance(result.error, ConfigurationError)
        assert "not found" in result.error.message

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        result = load_config(_write(tmp_path, "targets: [\n"))
        assert isinstance(result, Err)
        assert "invalid YAML" in result.error.message

    def test_root_not_mapping(self, tmp_path: Path) -> None:
        result = load_config(_write(tmp_path, "- a\n- b\n"))
        assert isinstance(result, Err)
        assert "mapping" in result.error.message

    def test_missing_targets(self, tmp_path: Path) -> None:
        result = load_config(_write(tmp_path, "repo: a/b\n"))
        assert isinstance(result, Err)
        assert "targets" in result.error.message

    def test_unknown_platform(self, tmp_path: Path) -> None:
        content = "targets:\n  - platform: beos\n    url_template: https://x/__VERSION__\n"
        result = load_config(_write(tmp_path, content))
        assert isinstance(result, Err)
        assert "beos" in result.error.message

    def test_unknown_arch(self, tmp_path: Path) -> None:
        content = "targets:\n  - arch: mips\n    url_template: https://x/__VERSION__\n"
        result = load_config(_write(tmp_path, content))
        assert isinstance(result, Err)
        assert "mips" in result.error.message

    def test_url_template_needs_version(self, tmp_path: Path) -> None:
        content = "targets:\n  - url_template: https://x/latest.tgz\n"
        result = load_config(_write(tmp_path, content))
        assert isinstance(result, Err)
        assert "__VERSION__" in result.error.message

    def test_npm_requires_org(self, tmp_path: Path) -> None:
        content = (
            "targets: []\n"
            "npm:\n  name: recon\n  root: {manifest: a.json}\n  sub: {manifest: b.json}\n"
        )
        result = load_config(_write(tmp_path, content))
        assert isinstance(result, Err)
        assert "npm.org" in result.error.message


class TestNpmOpts:
    def _opts(self, **kwargs: object) -> NpmOpts:
        base: dict[str, object] = {
            "org": "@recontools",
            "name": "recon",
            "root": PackageInfo(manifest=Path("root.json")),
            "sub": PackageInfo(manifest=Path("sub.json")),
        }
        base.update(kwargs)
        return NpmOpts(**base)  # type: ignore[arg-type]

    def test_defaults_to_name(self) -> None:
        opts = self._opts()
        assert opts.shim_name == "recon"
        assert opts.root_package_name == "recon"
        assert opts.sub_name == "recon"

    def test_overrides(self) -> None:
        opts = self._opts(
            bin="rc",
            root=PackageInfo(manifest=Path("root.json"), name="@recontools/recon"),
            sub=PackageInfo(manifest=Path("sub.json"), name="recon-native"),
        )
        assert opts.shim_name == "rc"
        assert opts.root_package_name == "@recontools/recon"
        assert opts.sub_name == "recon-native"


class TestBrewOpts:
    TEMPLATE = 'url "__URL__"\nversion "__VERSION__"\nsha256 "__SHA__"\n'

    def test_validate_ok(self) -> None:
        opts = BrewOpts(name="recon", tap="a/b", recipe_template=self.TEMPLATE)
        assert opts.validate() == Ok(None)

    @pytest.mark.parametrize(
        ("placeholder", "label"),
        [("__URL__", "URL"), ("__SHA__", "SHA"), ("__VERSION__", "VERSION")],
    )
    def test_validate_missing(self, placeholder: str, label: str) -> None:
        opts = BrewOpts(
            name="recon", tap="a/b", recipe_template=self.TEMPLATE.replace(placeholder, "x")
        )
        result = opts.validate()
        assert isinstance(result, Err)
        assert result.error.message == f"brew recipe template: missing {label} variable"

    def test_recipe_renders_all(self) -> None:
        opts = BrewOpts(name="recon", tap="a/b", recipe_template=self.TEMPLATE)
        rendered = opts.recipe("1.0.1", "https://x/recon.tgz", "abc123")
        assert rendered == 'url "https://x/recon.tgz"\nversion "1.0.1"\nsha256 "abc123"\n'

    def test_recipe_fname_override(self) -> None:
        opts = BrewOpts(name="recon", tap="a/b", recipe_template="", recipe_fname="Formula/r.rb")
        assert opts.recipe_file == "Formula/r.rb"


class TestConfigFromDict:
    def test_npm_not_mapping(self) -> None:
        with pytest.raises(ValueError, match="npm"):
            Config.from_dict({"targets": [], "npm": "yes"})

    def test_target_not_mapping(self) -> None:
        with pytest.raises(ValueError, match=r"targets\[0\]"):
            Config.from_dict({"targets": ["darwin"]})

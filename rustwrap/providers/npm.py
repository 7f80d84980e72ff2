"""npm provider: a root meta-package plus one binary sub-package per target.

Layout under ``<out>/<name>-<version>/npm``::

    <org>/<sub>-bin-<platform>-<arch>/package.json   (+ extracted binary)
    <name>/package.json
    <name>/postinstall.js
    <name>/info.json
    <name>/bin/<shim>

The root package lists every sub-package in ``optionalDependencies``; npm
only installs the one whose ``os``/``cpu`` match the user's machine, and the
shim reads ``info.json`` to find it at run time.
"""

from __future__ import annotations

import json
import shutil
from collections.abc import Iterable, Sequence
from importlib import resources
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rustwrap.artifacts.download import resolve_archive
from rustwrap.artifacts.extract import extract_archive
from rustwrap.core.errors import (
    ConfigurationError,
    IoError,
    PublishFailed,
    ToolNotFound,
    WrapError,
)
from rustwrap.core.result import Err, Ok, Result
from rustwrap.core.structured import as_str_dict
from rustwrap.core.version import SemVer, parse_version
from rustwrap.platform.files import atomic_write_text, make_executable, write_json
from rustwrap.platform.process import npm_executable, run

if TYPE_CHECKING:
    from rustwrap.core.config import NpmOpts, PackageInfo
    from rustwrap.core.session import Session
    from rustwrap.core.target import Target
    from rustwrap.platform.process import CommandRunner

__all__ = [
    "PACKAGE_JSON",
    "POSTINSTALL_JS",
    "INFO_JSON",
    "edit_files",
    "edit_rootpkg",
    "edit_subpkg",
    "info_manifest",
    "latest",
    "npm_out_dir",
    "publish",
    "subpkg_name",
]

PACKAGE_JSON = "package.json"
POSTINSTALL_JS = "postinstall.js"
INFO_JSON = "info.json"
POSTINSTALL_SCRIPT = f"node {POSTINSTALL_JS}"


def _static(name: str) -> str:
    return (resources.files("rustwrap.providers") / "static" / "npm" / name).read_text(
        encoding="utf-8"
    )


def npm_out_dir(out_dir: Path, version: str, opts: NpmOpts) -> Path:
    return out_dir / f"{opts.name}-{version}" / "npm"


def subpkg_name(target: Target, opts: NpmOpts) -> str:
    """Sub-package name, e.g. "@recontools/recon-bin-darwin-arm64"."""
    return f"{opts.org}/{opts.sub_name}-bin-{target.tuple_slug()}"


def edit_files(manifest: dict[str, Any], entries: Iterable[str]) -> None:
    """Append entries to the manifest's ``files`` list, dropping duplicates."""
    current = manifest.get("files")
    files: list[str] = (
        [f for f in current if isinstance(f, str)] if isinstance(current, list) else []
    )
    files.extend(entries)
    manifest["files"] = list(dict.fromkeys(files))


def edit_subpkg(
    template: dict[str, Any],
    version: str,
    target: Target,
    opts: NpmOpts,
) -> dict[str, Any]:
    pkg = json.loads(json.dumps(template))
    pkg["name"] = subpkg_name(target, opts)
    pkg["version"] = version
    pkg["os"] = [str(target.platform)]
    pkg["cpu"] = [str(target.arch)]
    edit_files(pkg, [target.exe_name(opts.shim_name)])
    return pkg


def edit_rootpkg(
    template: dict[str, Any],
    version: str,
    targets: Sequence[Target],
    opts: NpmOpts,
) -> dict[str, Any]:
    pkg = json.loads(json.dumps(template))
    pkg["name"] = opts.root_package_name
    pkg["version"] = version
    pkg["optionalDependencies"] = {subpkg_name(t, opts): version for t in targets}

    scripts = pkg.get("scripts")
    if isinstance(scripts, dict):
        scripts["postinstall"] = POSTINSTALL_SCRIPT
    else:
        pkg["scripts"] = {"postinstall": POSTINSTALL_SCRIPT}

    bin_entry = f"bin/{opts.shim_name}"
    pkg["bin"] = bin_entry
    edit_files(pkg, [POSTINSTALL_JS, INFO_JSON, bin_entry])
    return pkg


def info_manifest(targets: Sequence[Target], opts: NpmOpts) -> dict[str, Any]:
    """Content of info.json, read back by the shim and postinstall script."""
    return {
        "platforms": [
            {
                "platform": str(t.platform),
                "arch": str(t.arch),
                "bin": f"{subpkg_name(t, opts)}/{t.exe_name(opts.shim_name)}",
            }
            for t in targets
        ],
        "name": opts.name,
    }


def _load_manifest(path: Path) -> Result[dict[str, Any], WrapError]:
    try:
        data_obj: object = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return Err(ConfigurationError("npm manifest template not found", path=path))
    except json.JSONDecodeError as e:
        return Err(ConfigurationError(f"could not read npm manifest template ({e})", path=path))
    except (OSError, UnicodeDecodeError) as e:
        return Err(IoError(path=path, message=f"could not read npm manifest template ({e})"))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigurationError("npm manifest template must be a JSON object", path=path))
    return Ok(dict(data))


def _copy_readme(pkg_path: Path, info: PackageInfo) -> None:
    if info.readme is None:
        return
    shutil.copyfile(info.readme, pkg_path / (info.readme.name or "README.md"))


def _npm_publish(
    pkg_path: Path,
    package: str,
    run_command: CommandRunner,
) -> Result[str, PublishFailed | ToolNotFound]:
    result = run_command([npm_executable(), "publish"], pkg_path)
    if isinstance(result, Err):
        error = result.error
        if not error.started:
            return Err(ToolNotFound(tool=error.command[0], message=error.stderr))
        output = (error.stderr or error.stdout).strip()
        return Err(
            PublishFailed(
                package=package,
                message=output or str(error),
                returncode=error.returncode,
            )
        )
    return Ok(result.value)


def latest(opts: NpmOpts, run_command: CommandRunner = run) -> Result[SemVer, WrapError]:
    """Currently published version of the root package (``npm view``)."""
    package = opts.root_package_name
    result = run_command([npm_executable(), "view", package, "version"], Path.cwd())
    if isinstance(result, Err):
        error = result.error
        if not error.started:
            return Err(ToolNotFound(tool=error.command[0], message=error.stderr))
        return Err(
            PublishFailed(
                package=package,
                message=f"cannot look up published version ({error.stderr.strip() or error})",
                returncode=error.returncode,
            )
        )
    return parse_version(result.value.strip())


def _write_subpackage(
    session: Session,
    out_dir: Path,
    npm_dir: Path,
    template: dict[str, Any],
    version: str,
    target: Target,
    opts: NpmOpts,
) -> Result[Path, WrapError]:
    pkg_name = subpkg_name(target, opts)
    pkg_path = npm_dir / pkg_name
    session.console.detail(f"npm: creating subpackage in {pkg_path}")
    try:
        pkg_path.mkdir(parents=True, exist_ok=True)
        write_json(pkg_path / PACKAGE_JSON, edit_subpkg(template, version, target, opts))
        _copy_readme(pkg_path, opts.sub)
    except OSError as e:
        return Err(IoError(path=pkg_path, message=f"cannot write subpackage {pkg_name} ({e})"))

    archive = resolve_archive(out_dir, target)
    if archive is not None:
        session.console.detail(f"npm: decompressing {archive} into {pkg_path}")
        extracted = extract_archive(archive, pkg_path, strip_components=1)
        if isinstance(extracted, Err):
            return extracted
        if extracted.value == 0:
            session.console.warning(
                f"npm: {archive.name} has no files below its top-level directory; "
                f"{pkg_name} has no binary"
            )

    session.console.print(f"   subpackage {pkg_name}")
    return Ok(pkg_path)


def _write_rootpackage(
    session: Session,
    npm_dir: Path,
    template: dict[str, Any],
    version: str,
    targets: Sequence[Target],
    opts: NpmOpts,
) -> Result[Path, WrapError]:
    pkg_path = npm_dir / opts.name
    session.console.detail(f"npm: creating root package in {pkg_path}")
    try:
        pkg_path.mkdir(parents=True, exist_ok=True)
        write_json(pkg_path / PACKAGE_JSON, edit_rootpkg(template, version, targets, opts))
        _copy_readme(pkg_path, opts.root)

        shim = pkg_path / "bin" / opts.shim_name
        atomic_write_text(shim, _static("bin-shim"))
        make_executable(shim)

        atomic_write_text(pkg_path / POSTINSTALL_JS, _static(POSTINSTALL_JS))
        write_json(pkg_path / INFO_JSON, info_manifest(targets, opts))
    except OSError as e:
        return Err(IoError(path=pkg_path, message=f"cannot write package {opts.name} ({e})"))

    session.console.print(f"   package    {opts.name}")
    return Ok(pkg_path)


def publish(
    session: Session,
    out_dir: Path,
    version: str,
    targets: Sequence[Target],
    opts: NpmOpts,
    *,
    run_command: CommandRunner = run,
) -> Result[Path, WrapError]:
    """Generate (and, with ``opts.publish``, push) the npm packages.

    Args:
        session: Run session (console output)
        out_dir: Root output directory (``dist``)
        version: Version being packaged
        targets: Fetched targets, in config order
        opts: npm options
        run_command: Subprocess runner used for ``npm publish``

    Returns:
        Ok with the root package directory
    """
    npm_dir = npm_out_dir(out_dir, version, opts)
    session.console.header(f"npm: generating into {npm_dir}")

    sub_template = _load_manifest(opts.sub.manifest)
    if isinstance(sub_template, Err):
        return sub_template

    for target in targets:
        written = _write_subpackage(
            session, out_dir, npm_dir, sub_template.value, version, target, opts
        )
        if isinstance(written, Err):
            return written
        if opts.publish:
            pkg_name = subpkg_name(target, opts)
            pushed = _npm_publish(written.value, pkg_name, run_command)
            if isinstance(pushed, Err):
                return pushed
            session.console.print(f"   subpackage {pkg_name} published:\n{pushed.value}")

    root_template = _load_manifest(opts.root.manifest)
    if isinstance(root_template, Err):
        return root_template

    root = _write_rootpackage(session, npm_dir, root_template.value, version, targets, opts)
    if isinstance(root, Err):
        return root

    if opts.publish:
        pushed = _npm_publish(root.value, opts.root_package_name, run_command)
        if isinstance(pushed, Err):
            return pushed
        session.console.print(f"   package    {opts.name} published:\n{pushed.value}")

    session.console.success("npm done.")
    return Ok(root.value)

# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Package identity: the pure part of naming a package.

Given name, version, revision and architecture, everything else (the .deb
filename, the control-file Version field, the "version arch" query string,
the tarball name) is derived and never stored separately.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional

from rattopkg.config.schema import PackagingConfig


@dataclass(frozen=True)
class PackageIdentity:
    """Name, version, revision and Debian architecture of one build."""

    name: str
    version: str
    revision: str
    architecture: str

    @property
    def debian_version(self) -> str:
        """Upstream version plus Debian revision, as written into the control file."""
        return f"{self.version}-{self.revision}"

    @property
    def deb_filename(self) -> str:
        return f"{self.name}-{self.debian_version}-{self.architecture}.deb"

    @property
    def ver_arch(self) -> str:
        return f"{self.version} {self.architecture}"

    @property
    def tarball_filename(self) -> str:
        return f"{self.name}-{self.version}-linux-{self.architecture}.tgz"


def resolve_revision(
    config: PackagingConfig,
    environ: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Package revision: the override environment variable if set, else the default.

    An empty value counts as unset; an empty revision would produce a
    filename like rattomail-0.1.0--amd64.deb.
    """
    env = os.environ if environ is None else environ
    value = env.get(config.revision_env_var, "").strip()
    return value or config.default_revision


def build_identity(
    config: PackagingConfig,
    version: str,
    architecture: str,
    environ: Optional[Mapping[str, str]] = None,
) -> PackageIdentity:
    """Combine resolved version and architecture with the configured name and revision."""
    return PackageIdentity(
        name=config.package_name,
        version=version,
        revision=resolve_revision(config, environ),
        architecture=architecture,
    )

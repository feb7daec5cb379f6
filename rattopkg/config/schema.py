# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Type-safe configuration schemas for rattopkg.

Every constant the packaging pipeline and the container harness rely on
(package name, template paths, mount points, the test message) lives here
instead of being hard-coded in the components. Each component receives the
section it needs at construction, so tests can vary any value in isolation.

The models use pydantic v2's ConfigDict with:
  - frozen=True: immutability after construction
  - extra="forbid": unknown fields cause immediate failure
  - validate_default=True: even defaults get type-checked

Unlike a lot of config systems, every field has a default. Running without a
config file means "build rattomail the way the project always has".
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class GlobalConfig(BaseModel):
    """Cross-cutting settings: logging only, for now."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    log_level: str = Field(
        default="INFO",
        description="One of DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional path for an additional JSON log file",
    )

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        if value.upper() not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}, got {value!r}")
        return value.upper()


class PackagingConfig(BaseModel):
    """
    Everything the .deb build needs to know that isn't the binary itself.

    Paths are relative to the working directory the tool is run from (the
    rattomail checkout), matching how the Makefile drives the build.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    package_name: str = Field(default="rattomail", min_length=1)
    manifest_path: str = Field(
        default="Cargo.toml",
        description="Build manifest holding the `version = \"...\"` line",
    )
    control_template: str = Field(default="debian/control.in")
    man_source: str = Field(default="doc/rattomail.8.md")
    man_section: int = Field(default=8, ge=1, le=9)
    install_dir: str = Field(
        default="/usr/sbin",
        description="Absolute directory the binary is installed into on the target",
    )
    sendmail_link: str = Field(
        default="sendmail",
        description="Name of the sendmail-compatibility symlink next to the binary",
    )
    revision_env_var: str = Field(default="RATTOMAIL_REVISION")
    default_revision: str = Field(default="1", min_length=1)
    version_flag: str = Field(default="--version")
    static_link_pattern: str = Field(
        default=r"static.*linked",
        description="Regex the `file` probe output must match",
    )
    directory_mode: int = Field(default=0o755, ge=0, le=0o7777)
    binary_mode: int = Field(
        default=0o4755,
        ge=0,
        le=0o7777,
        description="Setuid: the MDA must start as its owner to switch to the delivery user",
    )
    compression: str = Field(default="gzip")
    compression_level: int = Field(default=9, ge=0, le=9)
    output_dir: str = Field(default=".", description="Where the finished .deb / .tgz is written")
    scratch_prefix: str = Field(default="tmp_ratto_build_")
    example_files: list[str] = Field(
        default_factory=list,
        description="Files copied into usr/share/doc/<name>/examples",
    )

    @field_validator("install_dir")
    @classmethod
    def _check_install_dir(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError(f"install_dir must be absolute, got {value!r}")
        return value.rstrip("/") or "/"


class HarnessConfig(BaseModel):
    """
    Fixed inputs of the container acceptance test.

    The defaults reproduce the original end-to-end check: a focal image with
    bsd-mailx, the package mounted into /tmp, one message from `user` to
    foo@bar.com with subject "test" and body "wobble".
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    runtime: str = Field(default="docker", description="Container runtime CLI")
    image_dir: str = Field(default="docker-tests/image")
    image_tag: str = Field(default="phlummox/test-rattomail:0.1")
    config_file: str = Field(
        default="docker-tests/data/attomail.conf",
        description="Delivery-agent config on the host, mounted read-only in meaning",
    )
    config_mount: str = Field(
        default="/etc/attomail.conf",
        description="Where the MDA looks for its config inside the container",
    )
    work_mount: str = Field(default="/work")
    package_mount_dir: str = Field(default="/tmp")
    maildir: str = Field(default="/home/user/Maildir")
    keepalive_command: list[str] = Field(
        default_factory=lambda: ["tail", "-f", "/dev/null"],
    )
    install_command: list[str] = Field(
        default_factory=lambda: ["sudo", "apt-get", "install", "-y"],
    )
    submit_client: str = Field(default="mailx")
    recipient: str = Field(default="foo@bar.com")
    subject: str = Field(default="test")
    body: str = Field(default="wobble")
    expected_sender: str = Field(
        default="user",
        description="Unprivileged account in the image; the default envelope sender",
    )
    received_pattern: str = Field(default=r"rattomail.*?;")
    settle_seconds: float = Field(default=0.5, ge=0.0, le=60.0)
    scratch_prefix: str = Field(default="tmp_ratto_test_")


class RattopkgConfig(BaseModel):
    """
    Top-level config container.

    A YAML file may contain any subset of `global:`, `packaging:` and
    `harness:`; missing sections take their defaults.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
        populate_by_name=True,
    )

    global_config: GlobalConfig = Field(default_factory=GlobalConfig, alias="global")
    packaging: PackagingConfig = Field(default_factory=PackagingConfig)
    harness: HarnessConfig = Field(default_factory=HarnessConfig)

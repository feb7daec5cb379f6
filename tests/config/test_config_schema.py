# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Schema-level validation tests.

These focus on the pydantic models themselves: defaults, boundary values and
constraint enforcement.
"""

import pytest
from pydantic import ValidationError

from rattopkg.config.schema import GlobalConfig, HarnessConfig, PackagingConfig, RattopkgConfig


class TestGlobalConfigSchema:
    def test_default_log_level_is_info(self) -> None:
        assert GlobalConfig().log_level == "INFO"

    def test_log_level_is_normalised(self) -> None:
        assert GlobalConfig(log_level="warning").log_level == "WARNING"

    def test_bad_log_level_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            GlobalConfig(log_level="LOUD")


class TestPackagingConfigSchema:
    def test_defaults(self) -> None:
        config = PackagingConfig()
        assert config.directory_mode == 0o755
        assert config.binary_mode == 0o4755
        assert config.install_dir == "/usr/sbin"
        assert config.revision_env_var == "RATTOMAIL_REVISION"
        assert config.static_link_pattern == "static.*linked"

    def test_trailing_slash_on_install_dir_is_dropped(self) -> None:
        assert PackagingConfig(install_dir="/usr/local/sbin/").install_dir == "/usr/local/sbin"

    def test_empty_package_name_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PackagingConfig(package_name="")

    def test_mode_above_07777_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PackagingConfig(binary_mode=0o17777)


class TestHarnessConfigSchema:
    def test_defaults_describe_the_test_message(self) -> None:
        config = HarnessConfig()
        assert (config.recipient, config.subject, config.body) == ("foo@bar.com", "test", "wobble")
        assert config.expected_sender == "user"
        assert config.keepalive_command == ["tail", "-f", "/dev/null"]

    def test_negative_settle_delay_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            HarnessConfig(settle_seconds=-1)


class TestRootConfig:
    def test_global_alias(self) -> None:
        config = RattopkgConfig.model_validate({"global": {"log_level": "ERROR"}})
        assert config.global_config.log_level == "ERROR"

    def test_populate_by_field_name(self) -> None:
        config = RattopkgConfig(global_config=GlobalConfig(log_level="DEBUG"))
        assert config.global_config.log_level == "DEBUG"

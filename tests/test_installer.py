"""
Tests for the retrying installer — retry policy, repository bootstrap,
dependency rollback, post-install, shell config and verification.
"""

import os
from pathlib import Path

import pytest

from devboot.adapters.mock import MockPackageManager
from devboot.core.config.settings import InstallerSettings
from devboot.core.models.tool import ConfigFile, PostInstallCommand, ShellConfigFragment, Tool
from devboot.core.services.tool_install.domain.errors import InstallError, InstallErrorKind
from devboot.core.services.tool_install.orchestration.installer import (
    RetryingInstaller,
    install_tools,
)
from devboot.core.session import InstallSession


class FakeRunner:
    """Records shell commands; commands in ``failing`` exit non-zero."""

    def __init__(self, failing=()):
        self.commands: list[str] = []
        self.failing = set(failing)

    def __call__(self, command: str) -> dict:
        self.commands.append(command)
        if command in self.failing:
            return {"ok": False, "error": "Command failed (exit 1)", "stderr": "boom", "stdout": ""}
        return {"ok": True, "stdout": "", "stderr": ""}


def _installer(pm, settings=None, **kwargs) -> RetryingInstaller:
    kwargs.setdefault("sleep", lambda seconds: None)
    kwargs.setdefault("command_runner", FakeRunner())
    return RetryingInstaller(pm, settings or InstallerSettings(retry_delay=0), **kwargs)


# ── install_with_retry ───────────────────────────────────────────────


class TestInstallWithRetry:
    @pytest.mark.parametrize("failures", [0, 1, 2])
    def test_fails_k_times_then_succeeds(self, failures):
        pm = MockPackageManager()
        pm.fail_times("pkg", failures)
        installer = _installer(pm, InstallerSettings(max_retries=3, retry_delay=0))

        assert installer.install_with_retry("pkg") is True
        assert len(pm.install_calls("pkg")) == failures + 1
        assert "pkg" in pm.installed

    def test_delay_between_attempts(self):
        pm = MockPackageManager()
        pm.fail_times("pkg", 2)
        sleeps: list[float] = []
        installer = _installer(pm, InstallerSettings(max_retries=3, retry_delay=1.5), sleep=sleeps.append)

        installer.install_with_retry("pkg")
        assert sleeps == [1.5, 1.5]

    def test_not_found_is_not_retried(self):
        pm = MockPackageManager()
        pm.always_fail("pkg", "E: Unable to locate package pkg")
        installer = _installer(pm)

        with pytest.raises(InstallError) as exc:
            installer.install_with_retry("pkg")

        assert exc.value.kind is InstallErrorKind.NOT_FOUND
        assert len(pm.install_calls("pkg")) == 1
        assert pm.calls("setup_special_package") == []

    def test_transient_exhausts_retries(self):
        pm = MockPackageManager()
        pm.always_fail("pkg", "Connection timed out")
        installer = _installer(pm, InstallerSettings(max_retries=3, retry_delay=0))

        with pytest.raises(InstallError) as exc:
            installer.install_with_retry("pkg")

        assert exc.value.kind is InstallErrorKind.TRANSIENT
        assert len(pm.install_calls("pkg")) == 3
        assert "Connection timed out" in str(exc.value)

    def test_bootstrap_attempted_once(self):
        pm = MockPackageManager()
        pm.always_fail("pkg", "Connection timed out")
        installer = _installer(pm, InstallerSettings(max_retries=3, retry_delay=0))

        with pytest.raises(InstallError):
            installer.install_with_retry("pkg")
        assert pm.calls("setup_special_package") == ["pkg"]

    def test_bootstrap_adds_repo_and_refreshes(self):
        pm = MockPackageManager(special_packages=["lsd"])
        pm.fail_times("lsd", 1)
        installer = _installer(pm)

        assert installer.install_with_retry("lsd") is True
        assert pm.update_count == 1
        assert len(pm.install_calls("lsd")) == 2

    def test_bootstrap_failure_aborts(self):
        pm = MockPackageManager(special_packages=["lsd"])
        pm.always_fail("lsd", "Connection timed out")
        pm.fail_special_setup("add-apt-repository: command not found")
        installer = _installer(pm)

        with pytest.raises(InstallError) as exc:
            installer.install_with_retry("lsd")

        assert exc.value.kind is InstallErrorKind.REPOSITORY_BOOTSTRAP
        assert len(pm.install_calls("lsd")) == 1

    def test_bootstrap_on_last_attempt_gets_one_more(self):
        pm = MockPackageManager(special_packages=["lsd"])
        pm.fail_times("lsd", 1)
        installer = _installer(pm, InstallerSettings(max_retries=1, retry_delay=0))

        assert installer.install_with_retry("lsd") is True
        assert len(pm.install_calls("lsd")) == 2
        assert pm.update_count == 1

    def test_no_extra_attempt_without_new_repository(self):
        pm = MockPackageManager()
        pm.fail_times("pkg", 1)
        installer = _installer(pm, InstallerSettings(max_retries=1, retry_delay=0))

        with pytest.raises(InstallError) as exc:
            installer.install_with_retry("pkg")
        assert exc.value.kind is InstallErrorKind.TRANSIENT
        assert len(pm.install_calls("pkg")) == 1

    def test_already_installed_short_circuits(self):
        pm = MockPackageManager(installed=["pkg"])
        installer = _installer(pm)

        assert installer.install_with_retry("pkg") is False
        assert pm.install_calls() == []


# ── Full pipeline ────────────────────────────────────────────────────


class TestInstallPipeline:
    def test_dependency_then_main(self, mock_pm):
        tool = Tool(name="foo", package_name="foo", dependencies=["bar"])
        _installer(mock_pm).install(tool)

        assert mock_pm.install_calls() == ["bar", "foo"]

    def test_not_found_keeps_dependencies(self, mock_pm):
        mock_pm.always_fail("foo", "Unable to locate package foo")
        tool = Tool(name="foo", package_name="foo", dependencies=["bar"])

        with pytest.raises(InstallError) as exc:
            _installer(mock_pm).install(tool)

        assert exc.value.kind is InstallErrorKind.NOT_FOUND
        assert len(mock_pm.install_calls("foo")) == 1
        assert "bar" in mock_pm.installed
        assert mock_pm.uninstalled == []

    def test_system_dependencies_first(self, mock_pm):
        tool = Tool(name="foo", package_name="foo", dependencies=["bar"], system_dependencies=["curl", "unzip"])
        _installer(mock_pm).install(tool)

        assert mock_pm.install_calls() == ["curl", "unzip", "bar", "foo"]

    def test_dependency_names_resolved_from_catalog(self, mock_pm):
        catalog = {"bar": Tool(name="bar", package_name="bar", package_names={"apt": "bar-apt"})}
        tool = Tool(name="foo", package_name="foo", dependencies=["bar"])
        _installer(mock_pm, catalog=catalog).install(tool)

        assert mock_pm.install_calls() == ["bar-apt", "foo"]

    def test_versioned_package(self, mock_pm):
        tool = Tool(name="foo", package_name="foo", version="1.2")
        _installer(mock_pm).install(tool)

        assert mock_pm.install_calls() == ["foo=1.2"]

    def test_empty_package_name_is_configuration_error(self, mock_pm):
        with pytest.raises(InstallError) as exc:
            _installer(mock_pm).install(Tool(name="ghost"))

        assert exc.value.kind is InstallErrorKind.CONFIGURATION
        assert exc.value.phase == "resolve"
        assert mock_pm.call_log == []

    def test_dependency_failure_rolls_back(self, mock_pm):
        mock_pm.always_fail("b", "Connection timed out")
        tool = Tool(name="foo", package_name="foo", dependencies=["a", "b"])

        with pytest.raises(InstallError) as exc:
            _installer(mock_pm).install(tool)

        assert exc.value.kind is InstallErrorKind.DEPENDENCY
        assert exc.value.cause.kind is InstallErrorKind.TRANSIENT
        assert mock_pm.uninstalled == ["a"]
        assert mock_pm.install_calls("foo") == []

    def test_dependency_not_found_still_rolls_back(self, mock_pm):
        mock_pm.always_fail("b", "E: Unable to locate package b")
        tool = Tool(name="foo", package_name="foo", dependencies=["a", "b"])

        with pytest.raises(InstallError) as exc:
            _installer(mock_pm).install(tool)

        assert exc.value.kind is InstallErrorKind.DEPENDENCY
        assert mock_pm.uninstalled == ["a"]

    def test_rollback_reverse_order_only_new_packages(self):
        pm = MockPackageManager(installed=["a"])
        pm.always_fail("foo", "Connection timed out")
        tool = Tool(name="foo", package_name="foo", dependencies=["a", "b", "c"])

        with pytest.raises(InstallError) as exc:
            _installer(pm).install(tool)

        assert exc.value.kind is InstallErrorKind.TRANSIENT
        assert pm.uninstalled == ["c", "b"]

    def test_rollback_failure_is_a_warning(self, mock_pm):
        mock_pm.always_fail("foo", "Connection timed out")
        mock_pm.fail_uninstall("bar")
        events: list[tuple[str, str, str]] = []
        tool = Tool(name="foo", package_name="foo", dependencies=["bar"])

        with pytest.raises(InstallError) as exc:
            _installer(mock_pm, on_event=lambda *e: events.append(e)).install(tool)

        assert exc.value.kind is InstallErrorKind.TRANSIENT
        assert ("warning", "foo", "rollback of bar failed") in events

    def test_post_install_runs_in_order(self, mock_pm):
        runner = FakeRunner()
        tool = Tool(
            name="foo",
            package_name="foo",
            post_install=[
                PostInstallCommand(command="mkdir -p ~/.foo", description="config dir"),
                PostInstallCommand(command="foo --init"),
            ],
        )
        _installer(mock_pm, command_runner=runner).install(tool)

        assert runner.commands == ["mkdir -p ~/.foo", "foo --init"]

    def test_post_install_failure_keeps_main_package(self, mock_pm):
        runner = FakeRunner(failing=["foo --init"])
        tool = Tool(
            name="foo",
            package_name="foo",
            dependencies=["bar"],
            post_install=[
                PostInstallCommand(command="foo --init"),
                PostInstallCommand(command="never runs"),
            ],
        )

        with pytest.raises(InstallError) as exc:
            _installer(mock_pm, command_runner=runner).install(tool)

        assert exc.value.kind is InstallErrorKind.POST_INSTALL
        assert runner.commands == ["foo --init"]
        assert "foo" in mock_pm.installed
        assert mock_pm.uninstalled == ["bar"]


class TestConfigFilesStage:
    def test_files_placed_after_post_install(self, mock_pm, tmp_path: Path):
        source = tmp_path / "dotfiles" / "gitconfig"
        source.parent.mkdir()
        source.write_text("[user]\n  name = dev\n")
        tool = Tool(
            name="git",
            package_name="git",
            config_files=[
                ConfigFile(source=str(source), destination=str(tmp_path / "home" / ".gitconfig")),
                ConfigFile(source="set -g mouse on\n", destination=str(tmp_path / "home" / ".tmux.conf"), type="content"),
            ],
        )
        _installer(mock_pm).install(tool)

        assert (tmp_path / "home" / ".gitconfig").read_text() == "[user]\n  name = dev\n"
        assert (tmp_path / "home" / ".tmux.conf").read_text() == "set -g mouse on\n"

    def test_failure_rolls_back_dependencies(self, mock_pm, tmp_path: Path):
        tool = Tool(
            name="git",
            package_name="git",
            dependencies=["dep"],
            config_files=[ConfigFile(source=str(tmp_path / "missing"), destination=str(tmp_path / "out"))],
        )

        with pytest.raises(InstallError) as exc:
            _installer(mock_pm).install(tool)

        assert exc.value.kind is InstallErrorKind.CONFIG_FILES
        assert exc.value.phase == "config_files"
        assert "git" in mock_pm.installed
        assert mock_pm.uninstalled == ["dep"]

    def test_runs_before_shell_config(self, mock_pm, bash_writer, tmp_path: Path):
        tool = Tool(
            name="lsd",
            package_name="lsd",
            config_files=[ConfigFile(source=str(tmp_path / "missing"), destination=str(tmp_path / "out"))],
            shell_config=ShellConfigFragment(aliases={"ll": "lsd -l"}),
        )

        with pytest.raises(InstallError):
            _installer(mock_pm, shell_writer=bash_writer).install(tool)
        assert not bash_writer.rc_path.exists()


class TestShellConfigStage:
    def test_fragment_written(self, mock_pm, bash_writer):
        tool = Tool(
            name="lsd",
            package_name="lsd",
            shell_config=ShellConfigFragment(aliases={"ll": "lsd -l"}),
        )
        _installer(mock_pm, shell_writer=bash_writer).install(tool)

        assert "alias ll='lsd -l'" in bash_writer.rc_path.read_text()

    def test_no_writer_skips_with_warning(self, mock_pm):
        events: list[tuple[str, str, str]] = []
        tool = Tool(
            name="lsd",
            package_name="lsd",
            shell_config=ShellConfigFragment(aliases={"ll": "lsd -l"}),
        )
        _installer(mock_pm, on_event=lambda *e: events.append(e)).install(tool)

        assert any(e[0] == "warning" for e in events)
        assert events[-1][0] == "installed"

    def test_unwritable_rc_is_shell_config_error(self, mock_pm, bash_writer):
        # A directory where the rc file should be cannot be written
        bash_writer.rc_path.mkdir(parents=True)
        tool = Tool(
            name="lsd",
            package_name="lsd",
            dependencies=["dep"],
            shell_config=ShellConfigFragment(env={"A": "1"}),
        )

        with pytest.raises(InstallError) as exc:
            _installer(mock_pm, shell_writer=bash_writer).install(tool)

        assert exc.value.kind is InstallErrorKind.SHELL_CONFIG
        assert "lsd" in mock_pm.installed
        assert mock_pm.uninstalled == ["dep"]


class TestVerificationStage:
    TOOL_NAME = "devboot-test-tool-zz9"

    def test_verify_command_success(self, mock_pm):
        runner = FakeRunner()
        tool = Tool(name="foo", package_name="foo", verify_command="foo --version")
        _installer(mock_pm, command_runner=runner).install(tool)

        assert runner.commands == ["foo --version"]

    def test_verify_failure(self, mock_pm):
        cmd = f"{self.TOOL_NAME} --version"
        tool = Tool(name=self.TOOL_NAME, package_name="foo", verify_command=cmd, dependencies=["bar"])

        with pytest.raises(InstallError) as exc:
            _installer(mock_pm, command_runner=FakeRunner(failing=[cmd])).install(tool)

        assert exc.value.kind is InstallErrorKind.VERIFICATION
        assert "foo" in mock_pm.installed
        assert mock_pm.uninstalled == ["bar"]

    def test_binary_probe_in_extra_paths(self, mock_pm, tmp_path: Path):
        binary = tmp_path / self.TOOL_NAME
        binary.write_text("#!/bin/sh\n")
        os.chmod(binary, 0o755)
        cmd = f"{self.TOOL_NAME} --version"
        settings = InstallerSettings(retry_delay=0, extra_bin_paths=[str(tmp_path)])
        tool = Tool(name=self.TOOL_NAME, package_name="foo", verify_command=cmd)

        _installer(mock_pm, settings, command_runner=FakeRunner(failing=[cmd])).install(tool)

    def test_no_verify_command_skips(self, mock_pm):
        runner = FakeRunner()
        _installer(mock_pm, command_runner=runner).install(Tool(name="foo", package_name="foo"))
        assert runner.commands == []


class TestEvents:
    def test_success_sequence(self, mock_pm):
        events: list[tuple[str, str, str]] = []
        _installer(mock_pm, on_event=lambda *e: events.append(e)).install(
            Tool(name="foo", package_name="foo"),
        )

        assert [e[0] for e in events] == ["started", "command_start", "command_success", "installed"]

    def test_failure_ends_with_failed(self, mock_pm):
        mock_pm.always_fail("foo", "Unable to locate package foo")
        events: list[tuple[str, str, str]] = []
        with pytest.raises(InstallError):
            _installer(mock_pm, on_event=lambda *e: events.append(e)).install(
                Tool(name="foo", package_name="foo"),
            )

        assert events[-1][0] == "failed"
        assert ("command_error", "foo", "Unable to locate package foo") in events


# ── attempt / install_tools ──────────────────────────────────────────


class TestAttempt:
    def test_success_result(self, mock_pm):
        result = _installer(mock_pm).attempt(Tool(name="foo", package_name="foo"))
        assert result.success
        assert result.package == "foo"
        assert result.error is None

    def test_failure_result(self, mock_pm):
        mock_pm.always_fail("foo", "Unable to locate package foo")
        result = _installer(mock_pm).attempt(Tool(name="foo", package_name="foo"))

        assert not result.success
        assert result.error.kind is InstallErrorKind.NOT_FOUND
        assert result.to_dict()["kind"] == "not_found"


class TestInstallTools:
    def test_continues_past_failures(self, mock_pm, fast_settings):
        mock_pm.always_fail("bad", "Unable to locate package bad")
        session = InstallSession(
            package_manager=mock_pm,
            tools=[
                Tool(name="bad", package_name="bad"),
                Tool(name="good", package_name="good"),
            ],
            settings=fast_settings,
        )

        results = install_tools(session)

        assert [r.success for r in results] == [False, True]
        assert [r.tool for r in session.failed] == ["bad"]
        assert [r.tool for r in session.succeeded] == ["good"]

    def test_configuration_error_aborts(self, mock_pm, fast_settings):
        session = InstallSession(
            package_manager=mock_pm,
            tools=[
                Tool(name="good", package_name="good"),
                Tool(name="ghost"),
                Tool(name="never", package_name="never"),
            ],
            settings=fast_settings,
        )

        with pytest.raises(InstallError) as exc:
            install_tools(session)

        assert exc.value.is_configuration
        assert [r.tool for r in session.results] == ["good", "ghost"]
        assert mock_pm.install_calls("never") == []

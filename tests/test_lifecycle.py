"""
Tests for the lifecycle controller — install, uninstall, repair, configure.

The locator is stubbed; archives are real and served from ``file://``.
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from rootless.core.models.profile import ExportLine
from rootless.core.services.provision.errors import (
    ArtifactNotFound,
    DownloadFailed,
    InvalidInput,
    ProvisionError,
    RepairIncomplete,
)
from rootless.core.services.provision.execution.fetch import Fetcher
from rootless.core.services.provision.orchestration import LifecycleController, Operation
from tests.helpers import StubLocator

_LIFECYCLE = "rootless.core.services.provision.orchestration.lifecycle"


@pytest.fixture
def bashrc(home: Path) -> Path:
    path = home / ".bashrc"
    path.write_text("alias ll='ls -l'\n")
    return path


@pytest.fixture
def controller_for(tmp_path, home, linux_x86):
    def _make(locator, environ=None):
        return LifecycleController(
            home,
            locator=locator,
            fetcher=Fetcher(workdir=tmp_path / "work"),
            platform=linux_x86,
            environ=environ if environ is not None else {"PATH": "/usr/bin", "SHELL": "/bin/bash"},
        )
    return _make


@pytest.fixture
def demo(make_tool, make_ref, tree_tarball):
    tool = make_tool()
    return tool, StubLocator(make_ref(tree_tarball, tool.artifacts[0]))


class TestInstall:
    def test_install_writes_root_and_profile(self, demo, controller_for, home, bashrc):
        tool, locator = demo
        report = controller_for(locator).install(tool)

        assert report.status == "ok"
        assert report.install_root == str(home / ".local" / "demo")
        assert (home / ".local" / "demo" / "bin" / "demo").is_file()
        assert "# Demo Environment (Rootless)" in bashrc.read_text()
        assert report.message == "Demo 1.2.3 installed"
        assert [o.status for o in report.profiles.outcomes] == ["updated", "skipped"]

    def test_install_twice_is_idempotent(self, demo, controller_for, bashrc):
        tool, locator = demo
        controller = controller_for(locator)
        controller.install(tool)
        after_first = bashrc.read_text()

        second = controller.install(tool)
        assert bashrc.read_text() == after_first
        assert bashrc.read_text().count("# Demo Environment (Rootless)") == 1
        assert second.profiles.already_configured

    def test_second_install_root_is_identical(self, demo, controller_for, home, bashrc):
        tool, locator = demo
        controller = controller_for(locator)
        root = home / ".local" / "demo"

        def snapshot():
            return {
                p.relative_to(root): (p.stat().st_mode, p.read_bytes())
                for p in root.rglob("*") if p.is_file()
            }

        controller.install(tool)
        first = snapshot()
        controller.install(tool)

        assert first
        assert snapshot() == first

    def test_workspace_cleaned(self, demo, controller_for, tmp_path, bashrc):
        tool, locator = demo
        controller_for(locator).install(tool)
        assert list((tmp_path / "work").iterdir()) == []

    def test_version_is_passed_to_locator(self, demo, controller_for, bashrc):
        tool, locator = demo
        controller_for(locator).run(tool, "install", version="1.2.3")
        assert locator.calls == [("demo", "linux/x86_64", "1.2.3")]

    def test_not_found_propagates(self, make_tool, controller_for, home):
        locator = StubLocator(error=ArtifactNotFound("nothing"))
        with pytest.raises(ArtifactNotFound):
            controller_for(locator).install(make_tool())
        assert not (home / ".local" / "demo").exists()

    def test_extra_exports_of_selected_kind(self, make_tool, make_ref, tree_tarball, controller_for, bashrc):
        tool = make_tool()
        spec = tool.artifacts[0].model_copy(update={
            "extra_exports": [ExportLine(name="LD_LIBRARY_PATH", value="$DEMO_HOME/lib")],
        })
        controller_for(StubLocator(make_ref(tree_tarball, spec))).install(tool)
        assert 'export LD_LIBRARY_PATH="$DEMO_HOME/lib"' in bashrc.read_text()

    def test_skip_policy(self, make_tool, controller_for, home):
        tool = make_tool(
            name="docker", delivery="vendor", artifacts=[], install_root="",
            presence_command="docker", if_installed="skip", profile=None,
            vendor={"install": {"linux": ["sh", "-c", "true"]}},
        )
        bin_dir = home / "bin"
        bin_dir.mkdir()
        docker = bin_dir / "docker"
        docker.write_text("#!/bin/sh\n")
        docker.chmod(0o755)

        controller = controller_for(StubLocator(), environ={"PATH": str(bin_dir)})
        with patch(f"{_LIFECYCLE}.run_vendor") as vendor:
            report = controller.install(tool)
        assert report.status == "skipped"
        vendor.assert_not_called()

        with patch(f"{_LIFECYCLE}.run_vendor") as vendor:
            report = controller.install(tool, reinstall=True)
        assert report.status == "ok"
        vendor.assert_called_once()


class TestUninstall:
    def test_round_trip_restores_profile(self, demo, controller_for, home, bashrc):
        tool, locator = demo
        controller = controller_for(locator)
        original = bashrc.read_text()
        controller.install(tool)

        report = controller.uninstall(tool)
        assert report.message == "Demo uninstalled"
        assert not (home / ".local" / "demo").exists()
        assert bashrc.read_text() == original
        assert report.metadata["removed_paths"] == [str(home / ".local" / "demo")]
        assert report.profiles.removed[0].backup

    def test_uninstall_absent_tool(self, demo, controller_for, bashrc):
        tool, locator = demo
        report = controller_for(locator).uninstall(tool)
        assert report.status == "ok"
        assert report.message == "Demo was not installed"
        assert report.profiles.removed == []

    def test_vendor_uninstall_line_filter(self, make_tool, controller_for, home, bashrc):
        tool = make_tool(
            name="claude-code", label="Claude Code", delivery="vendor", artifacts=[],
            install_root="{home}/.claude",
            vendor={"install": {"linux": ["bash", "-c", "true"]}},
            profile={
                "marker": "# claude-code",
                "removal": {"strategy": "line_filter", "match": ["{home}/.claude"]},
            },
        )
        (home / ".claude").mkdir()
        bashrc.write_text(f'alias ll=ls\nexport PATH="{home}/.claude/bin:$PATH"\n')

        with patch(f"{_LIFECYCLE}.run_vendor", return_value=None) as vendor:
            report = controller_for(StubLocator()).uninstall(tool)

        vendor.assert_called_once()
        assert vendor.call_args[0][2] == "uninstall"
        assert not (home / ".claude").exists()
        assert bashrc.read_text() == "alias ll=ls\n"
        assert report.profiles.removed[0].lines_removed == 1


class TestRepair:
    def test_repair_reinstalls(self, demo, controller_for, home, bashrc):
        tool, locator = demo
        controller = controller_for(locator)
        controller.install(tool)
        (home / ".local" / "demo" / "bin" / "demo").unlink()

        report = controller.repair(tool)
        assert report.operation == "repair"
        assert [s.operation for s in report.steps] == ["uninstall", "install"]
        assert (home / ".local" / "demo" / "bin" / "demo").is_file()
        assert bashrc.read_text().count("# Demo Environment (Rootless)") == 1

    def test_failed_reinstall_reports_absent(self, make_tool, make_ref, tmp_path, controller_for, home, bashrc):
        tool = make_tool()
        missing = make_ref(tmp_path / "gone.tar.gz", tool.artifacts[0])
        (home / ".local" / "demo").mkdir(parents=True)

        with pytest.raises(RepairIncomplete) as exc:
            controller_for(StubLocator(missing)).repair(tool)

        assert isinstance(exc.value.__cause__, DownloadFailed)
        assert exc.value.state == "absent"
        assert "install demo" in str(exc.value)
        assert not (home / ".local" / "demo").exists()

    def test_uninstall_failure_stops_before_install(self, demo, controller_for, home, bashrc):
        tool, locator = demo
        controller = controller_for(locator)
        denied = ProvisionError("Cannot remove demo: denied", phase="uninstall")

        with patch.object(controller.installer, "remove", side_effect=denied):
            with pytest.raises(ProvisionError) as exc:
                controller.repair(tool)

        assert exc.value is denied
        assert not isinstance(exc.value, RepairIncomplete)
        assert locator.calls == []

    """User-supplied exports under their own marker."""

    @pytest.fixture
    def router(self, make_tool):
        return make_tool(
            name="claude-code",
            label="Claude Code",
            configure={
                "label": "claude-code-router",
                "marker": "# Claude Code",
                "variables": [
                    {"name": "ANTHROPIC_BASE_URL"},
                    {"name": "ANTHROPIC_AUTH_TOKEN", "secret": True},
                ],
            },
        )

    def test_writes_and_masks(self, router, controller_for, bashrc):
        values = {"ANTHROPIC_BASE_URL": " http://127.0.0.1:3456 ", "ANTHROPIC_AUTH_TOKEN": "s3cr$t"}
        report = controller_for(StubLocator()).run(router, Operation.CONFIGURE, values=values)

        text = bashrc.read_text()
        assert 'export ANTHROPIC_BASE_URL="http://127.0.0.1:3456"' in text
        assert 'export ANTHROPIC_AUTH_TOKEN="s3cr\\$t"' in text
        added = report.profiles.outcomes[0].lines_added
        assert 'export ANTHROPIC_AUTH_TOKEN="********"' in added
        assert all("s3cr" not in line for line in added)
        assert report.message == "Claude Code claude-code-router written"

    def test_second_configure_keeps_existing_values(self, router, controller_for, bashrc):
        controller = controller_for(StubLocator())
        controller.configure(router, {"ANTHROPIC_BASE_URL": "a", "ANTHROPIC_AUTH_TOKEN": "b"})
        report = controller.configure(router, {"ANTHROPIC_BASE_URL": "c", "ANTHROPIC_AUTH_TOKEN": "d"})
        assert report.profiles.outcomes[0].status == "already_configured"
        assert 'export ANTHROPIC_BASE_URL="a"' in bashrc.read_text()

    def test_empty_value(self, router, controller_for, bashrc):
        with pytest.raises(InvalidInput, match="ANTHROPIC_AUTH_TOKEN cannot be empty"):
            controller_for(StubLocator()).configure(
                router, {"ANTHROPIC_BASE_URL": "a", "ANTHROPIC_AUTH_TOKEN": "   "},
            )
        assert "ANTHROPIC" not in bashrc.read_text()

    def test_unknown_variable(self, router, controller_for):
        with pytest.raises(InvalidInput, match="Unknown variable"):
            controller_for(StubLocator()).configure(router, {"NOPE": "x"})

    def test_nothing_to_configure(self, make_tool, controller_for):
        with pytest.raises(InvalidInput):
            controller_for(StubLocator()).configure(make_tool(), {})

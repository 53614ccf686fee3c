from unittest.mock import patch

from preflight.probes import LinuxSystemProbe, normalize_module, normalize_mountpoint
from preflight.util.shell import CmdResult


def test_normalizers():
    assert normalize_module("snd-hda-intel") == "snd_hda_intel"
    assert normalize_mountpoint("/mnt/data/") == "/mnt/data"
    assert normalize_mountpoint("/") == "/"
    assert normalize_mountpoint("//") == "/"


def test_kernel_modules_from_proc_listing(tmp_path):
    modules = tmp_path / "modules"
    modules.write_text(
        "loop 40960 0 - Live 0x0000000000000000\n"
        "snd_hda_intel 57344 3 - Live 0x0000000000000000\n",
        encoding="utf-8",
    )
    probe = LinuxSystemProbe(modules_path=modules)
    assert probe.kernel_modules() == {"loop", "snd_hda_intel"}


def test_mountpoints_unescape(tmp_path):
    mounts = tmp_path / "mounts"
    mounts.write_text(
        "/dev/sda1 / ext4 rw,relatime 0 0\n"
        "/dev/sdb1 /mnt/my\\040disk ext4 rw 0 0\n"
        "tmpfs /run/ tmpfs rw 0 0\n",
        encoding="utf-8",
    )
    probe = LinuxSystemProbe(mounts_path=mounts)
    assert probe.mountpoints() == {"/", "/mnt/my disk", "/run"}


def test_missing_listings_are_empty(tmp_path):
    probe = LinuxSystemProbe(modules_path=tmp_path / "no", mounts_path=tmp_path / "no")
    assert probe.kernel_modules() == set()
    assert probe.mountpoints() == set()


def test_host_reachable_runs_one_ping():
    ok = CmdResult(cmd="ping", returncode=0, stdout="", stderr="", elapsed_s=0.1)
    with patch("preflight.probes.which", return_value="/bin/ping"), \
         patch("preflight.probes.run_cmd", return_value=ok) as mock_run:
        assert LinuxSystemProbe().host_reachable("example.org", 3)
    args, kwargs = mock_run.call_args
    assert args[0] == ["/bin/ping", "-c", "1", "-W", "3", "example.org"]
    assert kwargs["timeout_s"] == 4


def test_host_unreachable_when_ping_fails():
    bad = CmdResult(cmd="ping", returncode=1, stdout="", stderr="", elapsed_s=0.1)
    with patch("preflight.probes.which", return_value="/bin/ping"), \
         patch("preflight.probes.run_cmd", return_value=bad):
        assert not LinuxSystemProbe().host_reachable("example.invalid", 1)


def test_host_unreachable_without_ping():
    with patch("preflight.probes.which", return_value=None):
        assert not LinuxSystemProbe().host_reachable("example.org", 1)

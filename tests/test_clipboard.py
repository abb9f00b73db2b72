"""
Unit tests for clipboard backend detection and copy.
"""

from sshkey_setup.clipboard import (
    DEFAULT_BACKENDS,
    ClipboardBackend,
    copy_text,
    detect_backend,
)


class TestDetectBackend:
    """Tests for detect_backend()."""

    def test_default_order(self):
        assert [b.name for b in DEFAULT_BACKENDS] == ["pbcopy", "xclip"]

    def test_first_match_wins(self):
        found = detect_backend(which=lambda name: f"/usr/bin/{name}")
        assert found.name == "pbcopy"

    def test_falls_through_to_xclip(self, only_xclip):
        found = detect_backend(which=only_xclip)
        assert found.name == "xclip"
        assert found.command == ("xclip", "-selection", "clipboard")

    def test_none_found(self, no_clipboard):
        assert detect_backend(which=no_clipboard) is None

    def test_custom_backends(self):
        """New backends are added by passing a different backend list."""
        wl = ClipboardBackend("wl-copy", ("wl-copy",))
        found = detect_backend(
            [wl] + DEFAULT_BACKENDS,
            which=lambda name: "/usr/bin/wl-copy" if name == "wl-copy" else None,
        )
        assert found is wl

    def test_looks_up_executable_names(self):
        looked_up = []
        detect_backend(which=lambda name: looked_up.append(name))
        assert looked_up == ["pbcopy", "xclip"]


class TestCopyText:
    """Tests for copy_text()."""

    def test_feeds_stdin(self, fake_runner):
        result = copy_text(DEFAULT_BACKENDS[1], "ssh-rsa AAAA dev@example.com\n", fake_runner)

        assert result.ok
        assert fake_runner.clipboard == "ssh-rsa AAAA dev@example.com\n"
        assert fake_runner.commands() == [["xclip", "-selection", "clipboard"]]
        assert fake_runner.captured == [False]

    def test_failure_is_returned(self, fake_runner):
        fake_runner.clipboard_status = 1
        result = copy_text(DEFAULT_BACKENDS[0], "text", fake_runner)
        assert not result.ok

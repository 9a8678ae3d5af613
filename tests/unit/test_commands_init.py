"""Tests for filededup.commands.__init__ — machine id resolution and config hint."""
from unittest.mock import patch


class TestEffectiveMachineId:
    """_effective_machine_id resolves: FILEDEDUP_MACHINE_ID env > config > hostname."""

    def test_hostname_when_nothing_set(self):
        from filededup.commands import _effective_machine_id

        with patch.dict("os.environ", {}, clear=True), \
             patch("filededup.commands.get_agent_config", return_value={"machine_id": ""}), \
             patch("filededup.commands.local_hostname", return_value="mypc"):
            assert _effective_machine_id() == "mypc"

    def test_config_overrides_hostname(self):
        from filededup.commands import _effective_machine_id

        with patch.dict("os.environ", {}, clear=True), \
             patch("filededup.commands.get_agent_config", return_value={"machine_id": "cfg-id"}), \
             patch("filededup.commands.local_hostname", return_value="mypc"):
            assert _effective_machine_id() == "cfg-id"

    def test_env_overrides_config(self):
        from filededup.commands import _effective_machine_id

        with patch.dict("os.environ", {"FILEDEDUP_MACHINE_ID": "env-id"}), \
             patch("filededup.commands.get_agent_config", return_value={"machine_id": "cfg-id"}), \
             patch("filededup.commands.local_hostname", return_value="mypc"):
            assert _effective_machine_id() == "env-id"


class TestLocalHostname:
    def test_strips_domain(self):
        from filededup.commands import local_hostname

        with patch("socket.gethostname", return_value="nas.example.com"):
            assert local_hostname() == "nas"


class TestPrintConfigHint:
    def test_no_hint_when_config_exists(self, capsys, tmp_path, monkeypatch):
        from filededup.commands import print_config_hint

        config_file = tmp_path / "filededup.config"
        config_file.write_text("")
        monkeypatch.setenv("FILEDEDUP_CONFIG_PATH", str(config_file))
        print_config_hint()
        assert capsys.readouterr().err == ""

    def test_hint_when_no_config(self, capsys, tmp_path, monkeypatch):
        from filededup.commands import print_config_hint

        monkeypatch.setenv("FILEDEDUP_CONFIG_PATH", str(tmp_path / "absent.config"))
        print_config_hint()
        assert "filededup config" in capsys.readouterr().err

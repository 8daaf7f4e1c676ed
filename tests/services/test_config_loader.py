import pytest

from autoupdater.errors import AutoUpdateError
from autoupdater.services.config_loader import ConfigLoader, merge_layers, to_bool


class DummyLogger:
    def __init__(self):
        self.warnings = []

    def debug(self, *_args, **_kwargs):
        return None

    def warning(self, message, *args):
        self.warnings.append(message % args)


def test_defaults_apply_without_config_or_environment(tmp_path):
    loader = ConfigLoader(search_path=[str(tmp_path / "missing.conf")], environ={}, logger=DummyLogger())

    settings = loader.load()

    assert settings.signal_number == ""
    assert settings.signal_recipients == ()
    assert settings.dry_run is False
    assert settings.reboot_if_required is True
    assert settings.dist_upgrade is False
    assert settings.log_dir == "/var/log/auto-update"
    assert settings.log_file == "/var/log/auto-update/last-run.log"
    assert settings.lock_file == "/var/lock/auto-update.lock"


def test_shell_style_config_file_is_parsed(tmp_path):
    config_file = tmp_path / "auto-update.conf"
    config_file.write_text(
        "# Signal settings\n"
        'SIGNAL_NUMBER="+15550001"\n'
        "export SIGNAL_RECIPIENTS='+15550002, +15550003,'\n"
        "DRY_RUN=true  # simulate only\n"
        "\n"
        "LOG_DIR=/tmp/auto-update\n",
        encoding="utf-8",
    )
    loader = ConfigLoader(search_path=[str(config_file)], environ={}, logger=DummyLogger())

    settings = loader.load()

    assert settings.signal_number == "+15550001"
    assert settings.signal_recipients == ("+15550002", "+15550003")
    assert settings.dry_run is True
    assert settings.log_dir == "/tmp/auto-update"


def test_first_found_file_wins_and_environment_overrides_it(tmp_path):
    system_config = tmp_path / "config"
    system_config.write_text("SIGNAL_NUMBER=+1000\nDIST_UPGRADE=true\n", encoding="utf-8")
    local_config = tmp_path / "local.conf"
    local_config.write_text("SIGNAL_NUMBER=+2000\nREBOOT_IF_REQUIRED=false\n", encoding="utf-8")

    loader = ConfigLoader(
        search_path=[str(tmp_path / "missing.conf"), str(system_config), str(local_config)],
        environ={"DIST_UPGRADE": "false", "UNRELATED": "x"},
        logger=DummyLogger(),
    )

    settings = loader.load()

    assert settings.signal_number == "+1000"
    assert settings.reboot_if_required is True
    assert settings.dist_upgrade is False


def test_explicit_config_is_layered_over_first_found_file(tmp_path):
    system_config = tmp_path / "config"
    system_config.write_text("SIGNAL_NUMBER=+1000\nDIST_UPGRADE=true\n", encoding="utf-8")
    explicit_config = tmp_path / "explicit.conf"
    explicit_config.write_text("SIGNAL_NUMBER=+3000\n", encoding="utf-8")

    loader = ConfigLoader(search_path=[str(system_config)], environ={}, logger=DummyLogger())

    settings = loader.load(str(explicit_config))

    assert settings.signal_number == "+3000"
    assert settings.dist_upgrade is True


def test_overrides_win_over_environment(tmp_path):
    loader = ConfigLoader(search_path=[], environ={"DRY_RUN": "false"}, logger=DummyLogger())

    settings = loader.load(overrides={"DRY_RUN": "true", "LOG_DIR": None})

    assert settings.dry_run is True
    assert settings.log_dir == "/var/log/auto-update"


def test_yaml_config_file_is_parsed(tmp_path):
    config_file = tmp_path / "auto-update.yml"
    config_file.write_text(
        "SIGNAL_NUMBER: '+15550001'\n"
        "SIGNAL_RECIPIENTS:\n"
        "  - '+15550002'\n"
        "  - '+15550003'\n"
        "DRY_RUN: true\n",
        encoding="utf-8",
    )
    loader = ConfigLoader(search_path=[], environ={}, logger=DummyLogger())

    settings = loader.load(str(config_file))

    assert settings.signal_number == "+15550001"
    assert settings.signal_recipients == ("+15550002", "+15550003")
    assert settings.dry_run is True


def test_explicit_missing_config_file_raises(tmp_path):
    loader = ConfigLoader(search_path=[], environ={}, logger=DummyLogger())

    with pytest.raises(AutoUpdateError, match="Config file not found"):
        loader.load(str(tmp_path / "nope.yml"))


def test_yaml_config_must_be_mapping(tmp_path):
    config_file = tmp_path / "auto-update.yaml"
    config_file.write_text("- a\n- b\n", encoding="utf-8")
    loader = ConfigLoader(search_path=[], environ={}, logger=DummyLogger())

    with pytest.raises(AutoUpdateError, match="YAML mapping"):
        loader.load(str(config_file))


def test_unknown_keys_are_ignored_with_warning(tmp_path):
    config_file = tmp_path / "auto-update.conf"
    config_file.write_text("SIGNAL_NUMBER=+1\nCOLOR=blue\nnot a line\n", encoding="utf-8")
    logger = DummyLogger()
    loader = ConfigLoader(search_path=[str(config_file)], environ={}, logger=logger)

    settings = loader.load()

    assert settings.signal_number == "+1"
    assert any("COLOR" in warning for warning in logger.warnings)
    assert any("unparsable" in warning for warning in logger.warnings)


def test_merge_layers_last_write_wins_and_skips_none():
    merged = merge_layers({"A": "1", "B": "1"}, None, {"B": "2", "C": None}, {"C": "3"})

    assert merged == {"A": "1", "B": "2", "C": "3"}


def test_only_literal_true_is_true():
    assert to_bool("true") is True
    assert to_bool(True) is True
    assert to_bool("yes") is False
    assert to_bool("1") is False
    assert to_bool("") is False

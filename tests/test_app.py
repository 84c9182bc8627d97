"""
End-to-end tests for the command line entry point.
"""

import pytest

from conftest import write_damaged_source
from roster_dashboard.app import main, parse_filter_args
from roster_dashboard.config import QUESTION_FALLBACK_MESSAGE
from roster_dashboard.config_manager import ConfigManager


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    path = tmp_path / "config" / "RosterDashboard.config"
    monkeypatch.setattr(ConfigManager, "config_path", classmethod(lambda cls: path))
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    return path


@pytest.fixture
def cli(tmp_path):
    data_dir = str(tmp_path / "data")

    def run(*args):
        return main(["--data-dir", data_dir, *args])

    return run


@pytest.fixture
def roster_file(tmp_path, sample_text):
    path = tmp_path / "roster.csv"
    path.write_text(sample_text, encoding="utf-8")
    return path


@pytest.fixture
def loaded_cli(cli, roster_file, photo_dir, capsys):
    assert cli("load", str(roster_file), "--images", str(photo_dir)) == 0
    capsys.readouterr()
    return cli


def test_parse_filter_args():
    assert parse_filter_args(["Расход=налицо", " Расход = отпуск", "Регион проживания="]) == {
        "Расход": {"налицо", "отпуск"},
        "Регион проживания": {""},
    }
    assert parse_filter_args(None) == {}


def test_load_reports_rows_and_photos(cli, roster_file, photo_dir, capsys):
    assert cli("load", str(roster_file), "--images", str(photo_dir)) == 0
    assert "Loaded roster.csv: 8 rows, 3 photos stored" in capsys.readouterr().out


def test_commands_need_a_loaded_roster(cli, capsys):
    assert cli("show") == 1
    assert "No roster loaded" in capsys.readouterr().err


def test_show_with_filter_and_search(loaded_cli, capsys):
    assert loaded_cli("show", "--filter", "Регион проживания=Москва") == 0
    out = capsys.readouterr().out
    assert "Иванов" in out and "Сидоров" in out
    assert "Петров" not in out
    assert "2 of 8 rows" in out

    assert loaded_cli("show", "--search", "сокол") == 0
    out = capsys.readouterr().out
    assert "Петров" in out
    assert "1 of 8 rows" in out


def test_show_without_matches(loaded_cli, capsys):
    assert loaded_cli("show", "--search", "nobody") == 0
    out = capsys.readouterr().out
    assert "(no rows)" in out
    assert "0 of 8 rows" in out


def test_bad_filter_exits_with_usage_error(loaded_cli):
    with pytest.raises(SystemExit) as excinfo:
        loaded_cli("show", "--filter", "no-equals-sign")
    assert excinfo.value.code == 2


def test_groups(loaded_cli, capsys):
    assert loaded_cli("groups") == 0
    out = capsys.readouterr().out
    assert "== Управление роты (6)" in out
    assert "== 1 штурмовой взвод (2)" in out
    assert "взвод БПЛА" not in out


def test_stats(loaded_cli, capsys):
    assert loaded_cli("stats") == 0
    out = capsys.readouterr().out
    assert "По штату" in out
    assert "На задаче" in out
    assert "Counted as on task (unrecognized): командировка" in out


def test_columns(loaded_cli, capsys):
    assert loaded_cli("columns") == 0
    out = capsys.readouterr().out
    assert "Регион проживания: (Empty), Курск, Москва, Тверь" in out


def test_photo(loaded_cli, capsys):
    assert loaded_cli("photo", "1") == 0
    assert "Иванов Иван Иванович: ИвановИванИванович.jpg" in capsys.readouterr().out

    assert loaded_cli("photo", "3") == 0
    assert "Вакант.jpg" in capsys.readouterr().out

    assert loaded_cli("photo", "99") == 1
    assert "out of range" in capsys.readouterr().err


def test_ask_without_key_prints_apology(loaded_cli, capsys):
    assert loaded_cli("ask", "Кто в отпуске?") == 0
    assert QUESTION_FALLBACK_MESSAGE in capsys.readouterr().out


def test_reset_clears_snapshot(loaded_cli, capsys):
    assert loaded_cli("reset") == 0
    assert "Snapshot cleared" in capsys.readouterr().out
    assert loaded_cli("stats") == 1


def test_load_rejects_non_csv(cli, tmp_path):
    path = tmp_path / "roster.txt"
    path.write_text("a;b\n", encoding="utf-8")
    assert cli("load", str(path)) == 1


def test_load_missing_image_folder(cli, roster_file, tmp_path):
    assert cli("load", str(roster_file), "--images", str(tmp_path / "nope")) == 1


def test_reload_without_images_keeps_stored_photos(loaded_cli, roster_file, capsys):
    assert loaded_cli("load", str(roster_file)) == 0
    assert "8 rows, 3 photos stored" in capsys.readouterr().out

    assert loaded_cli("photo", "1") == 0
    assert "ИвановИванИванович.jpg" in capsys.readouterr().out


def test_damaged_snapshot_reports_nothing_loaded(cli, tmp_path, capsys):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    write_damaged_source(data_dir / "snapshot.zip")
    assert cli("show") == 1
    assert "No roster loaded" in capsys.readouterr().err


def test_first_run_writes_default_config(cli, isolated_config):
    cli("show")
    assert isolated_config.is_file()

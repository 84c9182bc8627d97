"""
Shared pytest fixtures for the roster_dashboard test suite.
"""

import io
import struct
import zipfile

import pytest
from PIL import Image

from roster_dashboard.snapshot_store import SnapshotStore

ROSTER_HEADERS = [
    "№ п/п",
    "Фамилия",
    "Имя",
    "Отчество",
    "Должность",
    "Воинское звание",
    "Личный номер",
    "Возраст",
    "Позывной",
    "Регион проживания",
    "Расход",
    "ШДК категория в/сл.",
    "ШДК подразделение",
]

ROSTER_LINES = [
    "1;Иванов;Иван;Иванович;Командир роты;капитан;А-001;35;Гром;Москва;налицо;офицер;управление",
    "2;Петров;Пётр;Петрович;Заместитель;старший лейтенант;А-002;28;Сокол;Тверь;отпуск;офицер;управление",
    "3;Вакант;;;Старшина роты;;;;;;;прапорщик;управление",
    "4;Сидоров;Семён;Семёнович;Командир взвода;лейтенант;А-004;24;Волк;Москва;госпиталь;офицер;1 взвод",
    "5;Кузнецов;Константин;Олегович;Стрелок;рядовой;А-005;21;Кузя;Курск;Налицо ;солдат;1 взвод",
    "6;Смирнов;Сергей;Андреевич;Пулемётчик;ефрейтор;А-006;41;Смир;Тверь;СОЧ;солдат;1 взвод",
    "7;Попов;Павел;Павлович;Снайпер;сержант;А-007;19;Поп;;реабилитация;сержант;1 взвод",
    "8;Васильев;Василий;Ильич;Гранатомётчик;рядовой;А-008;22;Вась;Курск;командировка;солдат;1 взвод",
]


def roster_text(lines=None, newline="\n"):
    body = [";".join(ROSTER_HEADERS)] + list(ROSTER_LINES if lines is None else lines)
    return newline.join(body) + newline


def numbered_text(count, columns=("№ п/п", "Фамилия", "Расход")):
    """Build a roster of ``count`` rows with surnames ``S1``..``Sn``."""
    lines = [";".join(columns)]
    for index in range(1, count + 1):
        lines.append(f"{index};S{index};налицо")
    return "\n".join(lines) + "\n"


def png_bytes(color="red", size=(8, 6)):
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def write_damaged_source(path, text="a;b\n1;2\n" * 200):
    """Write an archive whose deflated source member has an invalid block header."""

    with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as archive:
        archive.writestr("source.txt", text)
        offset = archive.getinfo("source.txt").header_offset

    raw = bytearray(path.read_bytes())
    name_length, extra_length = struct.unpack_from("<HH", raw, offset + 26)
    raw[offset + 30 + name_length + extra_length] = 0xFF
    path.write_bytes(bytes(raw))


@pytest.fixture
def sample_text():
    return roster_text()


@pytest.fixture
def photo_dir(tmp_path):
    """Folder with two personnel photos, a fallback photo and a non-image file."""
    folder = tmp_path / "photos"
    folder.mkdir()
    (folder / "ИвановИванИванович.jpg").write_bytes(png_bytes("blue"))
    (folder / "nophoto.jpg").write_bytes(png_bytes("gray"))
    (folder / "Вакант.jpg").write_bytes(png_bytes("purple"))
    (folder / "notes.txt").write_text("not an image", encoding="utf-8")
    return folder


@pytest.fixture
def store(tmp_path):
    with SnapshotStore(tmp_path / "data") as snapshot_store:
        yield snapshot_store

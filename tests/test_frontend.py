"""Tests for the command line frontend that do not open a window."""

import io

import numpy as np
import pytest
from chipax.frontend import (
    KEY_MAP, build_parser, main, read_rom, run_headless, snapshot_path, square_wave,
    save_snapshot_file, load_snapshot_file,
)
from chipax import Session
from chipax.logging import SessionLogger
from conftest import program


def test_key_map_covers_keypad():
    assert sorted(KEY_MAP.values()) == list(range(16))


def test_square_wave():
    samples = square_wave(frequency=441.0, volume=0.5, sample_rate=44100)

    assert samples.dtype == np.int16
    assert len(samples) == 100
    assert samples[0] > 0 and samples[-1] < 0
    assert samples.max() == -samples.min()


def test_snapshot_path(tmp_path):
    assert snapshot_path(str(tmp_path / "pong.ch8")) == tmp_path / "pong.c8s"


def test_parser_defaults():
    args = build_parser().parse_args(["game.ch8"])
    assert args.rom == "game.ch8"
    assert args.cycles == 10
    assert args.headless is None
    assert not args.cosmac


def test_run_headless(session):
    session.load_rom(program(0x7001, 0x1200))
    run_headless(session, 4, show_progress=False)
    assert session.state.V[0] == 20


@pytest.fixture
def rom_file(tmp_path):
    def write(*words):
        path = tmp_path / "test.ch8"
        path.write_bytes(program(*words))
        return str(path)
    return write


def test_main_headless(rom_file, capsys):
    path = rom_file(0x6A05, 0x1202)
    assert read_rom(path) == program(0x6A05, 0x1202)

    assert main([path, "--headless", "3", "--log-level", "INFO"]) == 0
    assert "VA=05" in capsys.readouterr().out


def test_main_headless_fault(rom_file):
    assert main([rom_file(0x0000), "--headless", "3", "--log-level", "CRITICAL"]) == 1


def test_main_missing_rom(tmp_path):
    assert main([str(tmp_path / "missing.ch8"), "--headless", "1", "--log-level", "CRITICAL"]) == 1


def test_main_rom_too_large(tmp_path):
    path = tmp_path / "big.ch8"
    path.write_bytes(bytes(4000))
    assert main([str(path), "--headless", "1", "--log-level", "CRITICAL"]) == 1


class TestSnapshotFiles:
    """F5/F9 save and load never take the window down."""

    @pytest.fixture
    def logged_session(self):
        stream = io.StringIO()
        session = Session(logger=SessionLogger(log_level="INFO", stream=stream))
        session.load_rom(program(0x6A05, 0x1202))
        session.run_frame()
        return session, stream

    def test_save_and_load(self, logged_session, tmp_path):
        session, _ = logged_session
        rom_path = str(tmp_path / "game.ch8")

        assert save_snapshot_file(session, rom_path)
        assert (tmp_path / "game.c8s").stat().st_size == 4426

        session.load_rom(program(0x6A07, 0x1202))
        session.run_frame()
        assert load_snapshot_file(session, rom_path)
        assert session.state.V[0xA] == 5

    def test_unwritable_location_is_logged(self, logged_session, tmp_path):
        session, stream = logged_session
        rom_path = str(tmp_path / "missing-dir" / "game.ch8")

        assert not save_snapshot_file(session, rom_path)

        assert "Could not write snapshot" in stream.getvalue()
        assert session.state.V[0xA] == 5

    def test_missing_snapshot_is_logged(self, logged_session, tmp_path):
        session, stream = logged_session

        assert not load_snapshot_file(session, str(tmp_path / "game.ch8"))

        assert "Could not load snapshot" in stream.getvalue()
        assert session.state.V[0xA] == 5

    def test_malformed_snapshot_is_logged(self, logged_session, tmp_path):
        session, stream = logged_session
        (tmp_path / "game.c8s").write_bytes(b"C8SN\x01")

        assert not load_snapshot_file(session, str(tmp_path / "game.ch8"))

        assert "Could not load snapshot" in stream.getvalue()
        assert session.state.V[0xA] == 5

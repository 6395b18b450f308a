"""pygame frontend and command line entry point.

Owns everything the emulation core leaves to the host: reading ROM and
snapshot files, the window, the buzzer tone, keyboard translation and
frame pacing.
"""

import argparse
import os
import sys
from pathlib import Path

import numpy as np

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")
import pygame

from chipax.session import Session
from chipax.state import Quirks
from chipax.errors import ExecutionFault, FormatError
from chipax.rendering import display_to_rgb, create_color_scheme
from chipax.logging import SessionLogger, progress
from chipax.constants import SCREEN_WIDTH, SCREEN_HEIGHT, TIMER_HZ, DEFAULT_CYCLES_PER_FRAME

# COSMAC VIP keypad layout on the left of a QWERTY keyboard:
#   1 2 3 C      1 2 3 4
#   4 5 6 D  ->  Q W E R
#   7 8 9 E      A S D F
#   A 0 B F      Z X C V
KEY_MAP = {
    pygame.K_1: 0x1, pygame.K_2: 0x2, pygame.K_3: 0x3, pygame.K_4: 0xC,
    pygame.K_q: 0x4, pygame.K_w: 0x5, pygame.K_e: 0x6, pygame.K_r: 0xD,
    pygame.K_a: 0x7, pygame.K_s: 0x8, pygame.K_d: 0x9, pygame.K_f: 0xE,
    pygame.K_z: 0xA, pygame.K_x: 0x0, pygame.K_c: 0xB, pygame.K_v: 0xF,
}

SPEED_UP_KEYS = (pygame.K_EQUALS, pygame.K_PLUS, pygame.K_KP_PLUS)
SPEED_DOWN_KEYS = (pygame.K_MINUS, pygame.K_KP_MINUS)

SAMPLE_RATE = 44100


def read_rom(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def snapshot_path(rom_path: str) -> Path:
    """Save-state file kept next to the ROM."""
    return Path(rom_path).with_suffix(".c8s")


def square_wave(frequency: float = 440.0, volume: float = 0.25, sample_rate: int = SAMPLE_RATE) -> np.ndarray:
    """One period of a square wave as signed 16-bit samples."""
    period = max(2, int(round(sample_rate / frequency)))
    phase = np.arange(period) / period
    amplitude = int(volume * np.iinfo(np.int16).max)
    return np.where(phase < 0.5, amplitude, -amplitude).astype(np.int16)


def save_snapshot_file(session: Session, rom_path: str) -> bool:
    """Write the session snapshot next to the ROM. Returns False if the file could not be written."""
    path = snapshot_path(rom_path)
    try:
        path.write_bytes(session.save_snapshot())
    except OSError as e:
        session.logger.error(f"Could not write snapshot {path}: {e}")
        return False
    session.logger.info(f"Snapshot written to {path}")
    return True


def load_snapshot_file(session: Session, rom_path: str) -> bool:
    """Restore the snapshot kept next to the ROM. Returns False if it is missing or malformed."""
    path = snapshot_path(rom_path)
    try:
        session.load_snapshot(path.read_bytes())
    except (OSError, FormatError) as e:
        session.logger.error(f"Could not load snapshot {path}: {e}")
        return False
    return True


def run_headless(session: Session, frames: int, show_progress: bool = True) -> Session:
    """Run ``frames`` frames without a window."""
    iterator = range(frames)
    if show_progress:
        iterator = progress(iterator, total=frames)
    for _ in iterator:
        session.run_frame()
    return session


class Buzzer:
    """Looping square-wave tone switched by the sound timer."""

    def __init__(self):
        self.sound = None
        self.playing = False
        try:
            pygame.mixer.init(frequency=SAMPLE_RATE, size=-16, channels=1)
            self.sound = pygame.sndarray.make_sound(square_wave())
        except pygame.error:
            self.sound = None

    def update(self, active: bool):
        if self.sound is None or active == self.playing:
            return
        if active:
            self.sound.play(loops=-1)
        else:
            self.sound.stop()
        self.playing = active


def run_window(session: Session, rom_path: str, scale: int = 10, color_scheme: str = "classic"):
    """Main emulator loop: one session frame per 60 Hz display frame."""
    on_color, off_color = create_color_scheme(color_scheme)
    logger = session.logger

    pygame.init()
    screen = pygame.display.set_mode((SCREEN_WIDTH * scale, SCREEN_HEIGHT * scale))
    pygame.display.set_caption(f"chipax - {Path(rom_path).name}")
    clock = pygame.time.Clock()
    buzzer = Buzzer()

    logger.info("Controls: ESC=Quit, P=Pause, F1=Reset, +/-=Speed, F5=Save, F9=Load")

    running = True
    paused = False
    try:
        while running:
            clock.tick(TIMER_HZ)

            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE:
                        running = False
                    elif event.key == pygame.K_p:
                        paused = not paused
                    elif event.key == pygame.K_F1:
                        session.reset()
                        paused = False
                    elif event.key in SPEED_UP_KEYS:
                        session.increase_speed()
                    elif event.key in SPEED_DOWN_KEYS:
                        session.decrease_speed()
                    elif event.key == pygame.K_F5:
                        save_snapshot_file(session, rom_path)
                    elif event.key == pygame.K_F9:
                        if load_snapshot_file(session, rom_path):
                            paused = False
                    elif event.key in KEY_MAP:
                        session.press_key(KEY_MAP[event.key])
                elif event.type == pygame.KEYUP:
                    if event.key in KEY_MAP:
                        session.release_key(KEY_MAP[event.key])

            if not paused:
                try:
                    session.run_frame()
                except ExecutionFault:
                    paused = True

            buzzer.update(session.sound_active and not paused)

            frame = display_to_rgb(session.framebuffer, scale, on_color, off_color)
            pygame.surfarray.blit_array(screen, frame.transpose(1, 0, 2))
            pygame.display.flip()
    finally:
        pygame.quit()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chipax", description="CHIP-8 virtual machine")
    parser.add_argument("rom", help="path to a CHIP-8 ROM file")
    parser.add_argument("--scale", type=int, default=10, help="window pixels per CHIP-8 pixel")
    parser.add_argument("--cycles", type=int, default=DEFAULT_CYCLES_PER_FRAME,
                        help="instructions executed per 60 Hz frame")
    parser.add_argument("--seed", type=int, default=0, help="seed for the random opcode")
    parser.add_argument("--cosmac", action="store_true",
                        help="use original COSMAC VIP behaviour for ambiguous opcodes")
    parser.add_argument("--color-scheme", default="classic", help="display palette")
    parser.add_argument("--headless", type=int, metavar="FRAMES",
                        help="run FRAMES frames without a window and exit")
    parser.add_argument("--log-level", default="INFO", help="DEBUG, INFO, WARNING or ERROR")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logger = SessionLogger(log_level=args.log_level)

    try:
        rom_data = read_rom(args.rom)
    except OSError as e:
        logger.error(f"ROM not readable: {e}")
        return 1

    session = Session(
        quirks=Quirks.cosmac() if args.cosmac else Quirks.modern(),
        seed=args.seed,
        cycles_per_frame=args.cycles,
        logger=logger,
    )
    try:
        session.load_rom(rom_data)
    except FormatError as e:
        logger.error(str(e))
        return 1

    if args.headless is not None:
        try:
            run_headless(session, args.headless)
        except ExecutionFault:
            return 1
        logger.log_registers(session.state, level="INFO")
        return 0

    run_window(session, args.rom, scale=args.scale, color_scheme=args.color_scheme)
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Pygame UI shell for the Typing Trainer.

Screens:
- Tester entry (name used as the opaque tester id)
- Typing test (live diff colouring, countdown, WPM board)
- Records (best WPM per tester)

Deterministic timing/scoring/RNG/state lives in typing_trainer/* (core modules).
"""

from __future__ import annotations

import random
from collections.abc import Callable
from typing import Protocol

import pygame

from .clock import RealClock
from .config import TrainerConfig, load_config, load_passage_catalog
from .diff import CharState
from .notifications import Notification, NotificationBus, ScoringUpdate, TestCompleted
from .records import RecordStore, format_records
from .session import DURATION_CHOICES, TypingSession, build_typing_session
from .typing_core import FinishReason, Phase

WINDOW_SIZE = (960, 540)
TARGET_FPS = 60

BG = (3, 9, 78)
PANEL_BG = (8, 18, 104)
BORDER = (226, 236, 255)
TEXT_MAIN = (238, 245, 255)
TEXT_MUTED = (186, 200, 224)

CHAR_COLOURS = {
    CharState.CORRECT: (96, 214, 120),
    CharState.INCORRECT: (236, 88, 88),
    CharState.PENDING: (160, 176, 206),
}


class Screen(Protocol):
    def handle_event(self, event: pygame.event.Event) -> None: ...
    def render(self, surface: pygame.Surface) -> None: ...


class App:
    def __init__(self, surface: pygame.Surface, font: pygame.font.Font) -> None:
        self._surface = surface
        self._font = font
        self._screens: list[Screen] = []
        self._running = True

    @property
    def running(self) -> bool:
        return self._running

    @property
    def font(self) -> pygame.font.Font:
        return self._font

    def push(self, screen: Screen) -> None:
        self._screens.append(screen)

    def pop(self) -> None:
        # Never pop the last/root screen; root handles its own quit/back behavior.
        if len(self._screens) > 1:
            self._screens.pop()

    def quit(self) -> None:
        self._running = False

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.quit()
            return
        if not self._screens:
            return
        self._screens[-1].handle_event(event)

    def render(self) -> None:
        if not self._screens:
            return
        self._screens[-1].render(self._surface)


def _draw_frame(surface: pygame.Surface, title: str, font: pygame.font.Font) -> pygame.Rect:
    w, h = surface.get_size()
    surface.fill(BG)
    margin = max(10, min(26, w // 34))
    frame = pygame.Rect(margin, margin, max(260, w - margin * 2), max(220, h - margin * 2))
    pygame.draw.rect(surface, PANEL_BG, frame)
    pygame.draw.rect(surface, BORDER, frame, 2)
    label = font.render(title, True, TEXT_MAIN)
    surface.blit(label, label.get_rect(midtop=(frame.centerx, frame.y + 12)))
    return frame


class TesterEntryScreen:
    """Asks for the tester's name and opens a session for it."""

    def __init__(self, app: App, *, on_submit: Callable[[str], None], initial: str = "") -> None:
        self._app = app
        self._on_submit = on_submit
        self._buffer = initial
        self._small_font = pygame.font.Font(None, 28)

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type != pygame.KEYDOWN:
            return
        if event.key == pygame.K_ESCAPE:
            self._app.quit()
            return
        if event.key == pygame.K_BACKSPACE:
            self._buffer = self._buffer[:-1]
            return
        if event.key in (pygame.K_RETURN, pygame.K_KP_ENTER):
            name = self._buffer.strip()
            if name:
                self._on_submit(name)
            return
        ch = event.unicode
        if ch and ch.isprintable() and len(self._buffer) < 24:
            self._buffer += ch

    def render(self, surface: pygame.Surface) -> None:
        frame = _draw_frame(surface, "Typing Trainer", self._app.font)
        prompt = self._small_font.render("Tester name:", True, TEXT_MUTED)
        surface.blit(prompt, (frame.x + 40, frame.y + 100))
        entry = self._app.font.render(self._buffer + "_", True, TEXT_MAIN)
        surface.blit(entry, (frame.x + 40, frame.y + 140))
        hint = self._small_font.render("Enter: Start  |  Esc: Quit", True, TEXT_MUTED)
        surface.blit(hint, hint.get_rect(midbottom=(frame.centerx, frame.bottom - 10)))


class RecordsScreen:
    def __init__(self, app: App, *, records: RecordStore) -> None:
        self._app = app
        self._records = records
        self._small_font = pygame.font.Font(None, 28)

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.KEYDOWN and event.key in (pygame.K_ESCAPE, pygame.K_BACKSPACE, pygame.K_F5):
            self._app.pop()

    def render(self, surface: pygame.Surface) -> None:
        frame = _draw_frame(surface, "Records", self._app.font)
        lines = format_records(self._records.all()) or ["No records yet."]
        y = frame.y + 70
        for line in lines[:14]:
            txt = self._small_font.render(line, True, TEXT_MAIN)
            surface.blit(txt, (frame.x + 40, y))
            y += 28
        hint = self._small_font.render("Esc: Back", True, TEXT_MUTED)
        surface.blit(hint, hint.get_rect(midbottom=(frame.centerx, frame.bottom - 10)))


class ScoreBoard:
    """Bus listener holding the text shown in the WPM board."""

    def __init__(self) -> None:
        self.wpm_text = "Your current WPM: 0.00"
        self.result_text: str | None = None

    def __call__(self, event: Notification) -> None:
        if isinstance(event, ScoringUpdate):
            self.wpm_text = f"Your current WPM: {event.wpm:.2f}"
        elif isinstance(event, TestCompleted):
            r = event.result
            head = "Test completed" if event.reason is FinishReason.COMPLETED else "Time is up"
            best = "  New record!" if event.new_record else ""
            self.result_text = (
                f"{head}. WPM: {r.wpm:.2f}  Errors: {r.error_count} ({r.error_percentage:.2f}% errors){best}"
            )

    def clear(self) -> None:
        self.result_text = None


class TypingTestScreen:
    def __init__(
        self,
        app: App,
        *,
        session: TypingSession,
        bus: NotificationBus,
        records: RecordStore,
        languages: list[str],
    ) -> None:
        self._app = app
        self._session = session
        self._bus = bus
        self._records = records
        self._languages = list(languages) or [session.language]
        self._buffer = ""
        self._cursor = 0
        self._board = ScoreBoard()
        self._bus.subscribe(self._board)

        self._small_font = pygame.font.Font(None, 26)
        self._passage_font = pygame.font.Font(None, 34)

    @property
    def buffer(self) -> str:
        return self._buffer

    @property
    def cursor(self) -> int:
        return self._cursor

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type != pygame.KEYDOWN:
            return
        key = event.key
        if key == pygame.K_ESCAPE:
            self._logout()
            return
        if key == pygame.K_F1:
            self._restart(self._session.new_text())
            return
        if key == pygame.K_F2:
            self._restart(self._session.retry())
            return
        if key == pygame.K_F3:
            self._restart(self._session.change_duration(self._next_duration()))
            return
        if key == pygame.K_F4:
            self._restart(self._session.change_language(self._next_language()))
            return
        if key == pygame.K_F5:
            self._app.push(RecordsScreen(self._app, records=self._records))
            return

        # Seconds that fell due before this keystroke are applied first.
        self._session.update()
        if self._session.phase is Phase.FINISHED:
            return
        if key == pygame.K_BACKSPACE:
            # The engine never shortens its buffer; backspace moves the cursor
            # so the next keystroke overwrites in place.
            self._cursor = max(0, self._cursor - 1)
            return
        ch = event.unicode
        if ch and ch.isprintable():
            typed = self._session.typed
            candidate = typed[: self._cursor] + ch + typed[self._cursor + 1 :]
            if self._session.submit_input(candidate):
                self._cursor += 1
            self._buffer = self._session.typed

    def _restart(self, accepted: bool) -> None:
        if accepted:
            self._buffer = ""
            self._cursor = 0
            self._board.clear()

    def _next_duration(self) -> int:
        current = self._session.duration_s
        later = [d for d in DURATION_CHOICES if d > current]
        return later[0] if later else DURATION_CHOICES[0]

    def _next_language(self) -> str:
        languages = self._languages
        if self._session.language not in languages:
            return languages[0]
        idx = languages.index(self._session.language)
        return languages[(idx + 1) % len(languages)]

    def _logout(self) -> None:
        self._session.end_session()
        self._bus.unsubscribe(self._board)
        self._app.pop()

    def render(self, surface: pygame.Surface) -> None:
        self._session.update()
        snap = self._session.snapshot()
        diff = self._session.diff()

        frame = _draw_frame(surface, f"Typing Trainer - {snap.tester_id or ''}", self._app.font)

        info = (
            f"Time: {snap.time_remaining_s}s   Duration: {snap.duration_s}s   "
            f"Language: {snap.language}   Best: {self._session.best():.2f} WPM"
        )
        surface.blit(self._small_font.render(info, True, TEXT_MUTED), (frame.x + 24, frame.y + 56))
        surface.blit(self._small_font.render(self._board.wpm_text, True, TEXT_MAIN), (frame.x + 24, frame.y + 84))

        x0 = frame.x + 24
        x, y = x0, frame.y + 130
        line_h = self._passage_font.get_linesize()
        states = () if diff is None else diff.states
        for i, ch in enumerate(snap.passage):
            state = states[i] if i < len(states) else CharState.PENDING
            glyph = self._passage_font.render(ch, True, CHAR_COLOURS[state])
            if x + glyph.get_width() > frame.right - 24:
                x = x0
                y += line_h
            surface.blit(glyph, (x, y))
            x += glyph.get_width()

        shown = self._buffer[: self._cursor] + "_" + self._buffer[self._cursor :]
        typed = self._small_font.render(shown[-80:], True, TEXT_MAIN)
        surface.blit(typed, (x0, y + line_h + 24))

        if self._board.result_text is not None and snap.phase is Phase.FINISHED:
            res = self._small_font.render(self._board.result_text, True, TEXT_MAIN)
            surface.blit(res, (x0, y + line_h + 60))

        footer = "F1: New text  F2: Retry  F3: Duration  F4: Language  F5: Records  Esc: Logout"
        foot = self._small_font.render(footer, True, TEXT_MUTED)
        surface.blit(foot, foot.get_rect(midbottom=(frame.centerx, frame.bottom - 10)))


def _new_seed() -> int:
    return random.SystemRandom().randint(1, 2**31 - 1)


def run(
    *,
    max_frames: int | None = None,
    event_injector: Callable[[int], None] | None = None,
    config: TrainerConfig | None = None,
    records: RecordStore | None = None,
) -> int:
    cfg = load_config() if config is None else config
    catalog = load_passage_catalog(cfg.passages_path)
    records = RecordStore() if records is None else records
    bus = NotificationBus()

    pygame.init()
    pygame.display.set_caption("Typing Trainer")
    surface = pygame.display.set_mode(WINDOW_SIZE, pygame.RESIZABLE)

    font = pygame.font.Font(None, 36)
    clock = pygame.time.Clock()

    app = App(surface=surface, font=font)
    session = build_typing_session(
        clock=RealClock(),
        seed=_new_seed(),
        records=records,
        bus=bus,
        passages=catalog.languages,
        default_language=catalog.default_language,
        live_updates=cfg.live_updates,
    )

    def open_typing_test(tester_id: str) -> None:
        records.register(tester_id)
        session.start_session(language=cfg.language, duration_s=cfg.duration_s, tester_id=tester_id)
        app.push(
            TypingTestScreen(app, session=session, bus=bus, records=records, languages=list(catalog.languages))
        )

    app.push(TesterEntryScreen(app, on_submit=open_typing_test, initial=cfg.tester_id or ""))

    frame = 0
    try:
        while app.running:
            if event_injector is not None:
                event_injector(frame)

            for event in pygame.event.get():
                app.handle_event(event)

            app.render()

            pygame.display.flip()

            frame += 1
            if max_frames is not None and frame >= max_frames:
                break

            clock.tick(TARGET_FPS)
    finally:
        session.end_session()
        pygame.quit()

    return 0

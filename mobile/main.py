"""Calmly mobile app -- Kivy-based Android interface.

Reuses the core calmly modules (models, storage, records, scheduler) with
a touch-friendly UI designed for phones.
"""

from __future__ import annotations

import logging
import sys
import threading
from datetime import date
from pathlib import Path

# Ensure the parent package is importable when running standalone on desktop
_project_root = Path(__file__).resolve().parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from kivy.app import App
from kivy.clock import Clock
from kivy.lang import Builder
from kivy.metrics import dp, sp
from kivy.properties import ListProperty, NumericProperty, StringProperty
from kivy.uix.boxlayout import BoxLayout
from kivy.uix.button import Button
from kivy.uix.label import Label
from kivy.uix.popup import Popup
from kivy.uix.screenmanager import Screen, ScreenManager, SlideTransition
from kivy.uix.textinput import TextInput
from kivy.uix.widget import Widget

from calmly import auth, chatbot, records
from calmly import config as cfg
from calmly.breathing import EXERCISES, format_remaining, get_exercise, session_spec
from calmly.epoch import DailyGate
from calmly.errors import InvalidStateError
from calmly.models import ChatRole, Mood, ProgramTask
from calmly.scheduler import PhaseScheduler, SessionSnapshot, SessionStatus
from calmly.storage import open_store

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_ACCENT = (0.0, 0.722, 0.580, 1)         # #00b894
_TEXT = (0.910, 0.965, 0.937, 1)         # #e8f6ef
_MUTED = (0.494, 0.659, 0.600, 1)        # #7ea899
_DONE = (0.153, 0.682, 0.376, 1)         # #27ae60

_PHASE_COLOURS = {
    "Inhale": (0.0, 0.816, 0.518, 1),    # #00d084
    "Hold": (0.953, 0.612, 0.071, 1),    # #f39c12
    "Exhale": (1.0, 0.388, 0.278, 1),    # #FF6347
}

_PROGRAM_ITEMS = [
    (ProgramTask.JOURNAL, "Reflect on your day", "Write about how you feel today.", "journal"),
    (ProgramTask.BREATHING, "Deep Breathing Exercise", "Take a breathing session.", "breathing"),
    (ProgramTask.CHALLENGE, "Daily Challenge", "Complete today's small challenge.", "challenge"),
]

_TOOLS = [
    ("Breathing", "breathing"),
    ("Journal", "journal"),
    ("Mood Tracker", "mood"),
    ("Notes", "notes"),
    ("Sober Tracker", "sober"),
    ("Chat", "chat"),
    ("Challenges", "challenge"),
    ("History", "history"),
]


def _make_label(text, **kw):
    """Create a self-sizing Label with text wrapping."""
    defaults = dict(
        font_size=sp(14), color=_TEXT,
        size_hint_y=None, text_size=(None, None), halign="left", valign="top",
    )
    defaults.update(kw)
    lbl = Label(text=text, **defaults)
    lbl.bind(width=lambda i, w: setattr(i, "text_size", (w - dp(8), None)))
    lbl.bind(texture_size=lambda i, ts: setattr(i, "height", ts[1] + dp(8)))
    return lbl


def _make_button(text, on_release, colour=_ACCENT, **kw):
    btn = Button(
        text=text, size_hint_y=None, height=dp(44), background_color=colour,
        font_size=sp(14), **kw,
    )
    btn.bind(on_release=lambda _: on_release())
    return btn


def _make_input(hint, **kw):
    return TextInput(
        hint_text=hint, multiline=kw.pop("multiline", False),
        size_hint_y=None, height=kw.pop("height", dp(44)), **kw,
    )


def _spacer(height=8):
    return Widget(size_hint_y=None, height=dp(height))


def _confirm(title, message, on_yes):
    """Small yes/cancel popup."""
    content = BoxLayout(orientation="vertical", spacing=10, padding=10)
    content.add_widget(Label(text=message, font_size=sp(14)))
    btn_row = BoxLayout(size_hint_y=None, height=dp(44), spacing=8)
    popup = Popup(title=title, content=content, size_hint=(0.9, 0.3))

    def yes(_):
        popup.dismiss()
        on_yes()

    yes_btn = Button(text="Yes")
    yes_btn.bind(on_release=yes)
    cancel_btn = Button(text="Cancel")
    cancel_btn.bind(on_release=lambda _: popup.dismiss())
    btn_row.add_widget(yes_btn)
    btn_row.add_widget(cancel_btn)
    content.add_widget(btn_row)
    popup.open()


def _go(screen_name, direction="left"):
    sm = App.get_running_app().root
    sm.transition = SlideTransition(direction=direction)
    sm.current = screen_name


# ---------------------------------------------------------------------------
# Kivy UI definition (KV language)
# ---------------------------------------------------------------------------

KV = """
#:import get_color_from_hex kivy.utils.get_color_from_hex
#:import dp kivy.metrics.dp
#:import sp kivy.metrics.sp

<DarkButton@Button>:
    background_color: get_color_from_hex('#00b894')
    font_size: sp(14)
    size_hint_y: None
    height: dp(44)
    bold: True

<Toolbar>:
    size_hint_y: None
    height: dp(44)
    spacing: dp(2)
    padding: [dp(2), dp(2)]
    canvas.before:
        Color:
            rgba: get_color_from_hex('#181d1b')
        Rectangle:
            pos: self.pos
            size: self.size

    Button:
        text: 'Today'
        font_size: sp(12)
        bold: True
        background_color: get_color_from_hex('#00b894')
        on_release: root.go('program', 'right')
    Button:
        text: 'Explore'
        font_size: sp(12)
        background_color: get_color_from_hex('#2c4037')
        on_release: root.go('explore', 'left')
    Button:
        text: 'Profile'
        font_size: sp(12)
        background_color: get_color_from_hex('#2c4037')
        on_release: root.go('profile', 'left')

<ScrollScreen>:
    BoxLayout:
        orientation: 'vertical'
        canvas.before:
            Color:
                rgba: get_color_from_hex('#181d1b')
            Rectangle:
                pos: self.pos
                size: self.size
        Toolbar:
        ScrollView:
            do_scroll_x: False
            BoxLayout:
                id: content
                orientation: 'vertical'
                size_hint_y: None
                height: self.minimum_height
                padding: [dp(16), dp(12)]
                spacing: dp(6)

<LoginScreen>:
    BoxLayout:
        orientation: 'vertical'
        padding: [dp(24), dp(48)]
        spacing: dp(12)
        canvas.before:
            Color:
                rgba: get_color_from_hex('#181d1b')
            Rectangle:
                pos: self.pos
                size: self.size
        Label:
            text: 'Calmly'
            font_size: sp(32)
            bold: True
            color: get_color_from_hex('#00b894')
            size_hint_y: None
            height: dp(60)
        TextInput:
            id: username
            hint_text: 'Username'
            multiline: False
            size_hint_y: None
            height: dp(44)
        TextInput:
            id: password
            hint_text: 'Password'
            password: True
            multiline: False
            size_hint_y: None
            height: dp(44)
        TextInput:
            id: dob
            hint_text: 'Date of Birth (YYYY-MM-DD), register only'
            multiline: False
            size_hint_y: None
            height: dp(44)
        Label:
            text: root.error_text
            color: get_color_from_hex('#e74c3c')
            size_hint_y: None
            height: dp(28)
        DarkButton:
            text: 'Login'
            on_release: root.submit(register=False)
        DarkButton:
            text: 'Register'
            background_color: get_color_from_hex('#2c4037')
            on_release: root.submit(register=True)
        Widget:

<BreathingSessionScreen>:
    BoxLayout:
        orientation: 'vertical'
        padding: [dp(24), dp(24)]
        spacing: dp(16)
        canvas.before:
            Color:
                rgba: get_color_from_hex('#121212')
            Rectangle:
                pos: self.pos
                size: self.size
        BoxLayout:
            size_hint_y: None
            height: dp(44)
            Button:
                text: 'Back'
                size_hint_x: 0.3
                background_color: get_color_from_hex('#2c4037')
                on_release: root.leave()
            Widget:
            Label:
                text: root.remaining_text
                size_hint_x: 0.3
                font_size: sp(18)
                color: get_color_from_hex('#00d084')
        Label:
            text: root.title_text
            font_size: sp(28)
            color: 1, 1, 1, 1
            size_hint_y: None
            height: dp(48)
        Label:
            text: root.phase_text
            font_size: sp(26)
            color: root.phase_colour
            size_hint_y: None
            height: dp(48)
        ProgressBar:
            value: root.phase_progress
            max: 100
            size_hint_y: None
            height: dp(20)
        DarkButton:
            text: root.pause_text
            on_release: root.toggle_pause()
        Widget:
"""


# ---------------------------------------------------------------------------
# Custom widgets
# ---------------------------------------------------------------------------


class Toolbar(BoxLayout):
    """Top navigation bar present on every screen."""

    def go(self, screen_name, direction):
        _go(screen_name, direction)


# ---------------------------------------------------------------------------
# Screens
# ---------------------------------------------------------------------------


class ScrollScreen(Screen):
    """A screen with a toolbar and a scrollable content area (#content)."""

    @property
    def app(self):
        return App.get_running_app()

    def on_enter(self):
        if self.app.username is None:
            Clock.schedule_once(lambda dt: _go("login", "right"), 0)
            return
        self.ids.content.clear_widgets()
        self.build_content(self.ids.content)

    def refresh(self):
        self.ids.content.clear_widgets()
        self.build_content(self.ids.content)

    def build_content(self, c):
        raise NotImplementedError


class LoginScreen(Screen):
    error_text = StringProperty("")

    def submit(self, register):
        username = self.ids.username.text.strip()
        password = self.ids.password.text
        dob = self.ids.dob.text.strip()
        if not username or not password or (register and not dob):
            self.error_text = "Please fill in every field."
            return
        self.error_text = "..."
        api_url = cfg.load_config().api_url
        threading.Thread(
            target=self._call, args=(api_url, username, password, dob, register), daemon=True
        ).start()

    def _call(self, api_url, username, password, dob, register):
        """Talk to the auth server in a background thread."""
        if register:
            result = auth.register(api_url, username, password, dob)
        else:
            result = auth.login(api_url, username, password)
        Clock.schedule_once(lambda dt: self._done(result), 0)

    def _done(self, result):
        if not result.ok or result.user is None:
            self.error_text = result.message or "Something went wrong."
            return
        self.error_text = ""
        app = App.get_running_app()
        records.save_current_user(app.store, result.user)
        _go("program")


class ProgramScreen(ScrollScreen):
    """Today's program. Stale completions are cleared before display."""

    def build_content(self, c):
        program = records.get_program(self.app.gate, self.app.username)
        c.add_widget(_make_label("Today's Program", font_size=sp(22), bold=True, color=_ACCENT))
        for task, heading, text, target in _PROGRAM_ITEMS:
            c.add_widget(_spacer())
            c.add_widget(_make_label(heading, font_size=sp(16), bold=True))
            c.add_widget(_make_label(text, font_size=sp(13), color=_MUTED))
            if program[task]:
                c.add_widget(_make_label("Completed", color=_DONE, bold=True))
            else:
                c.add_widget(_make_button("Start", lambda t=target: _go(t)))
        c.add_widget(_spacer(24))
        c.add_widget(_make_button(
            "Clear today's data", self._clear, colour=(0.6, 0.3, 0.3, 1),
        ))

    def _clear(self):
        def do_clear():
            records.clear_today(self.app.gate, self.app.username)
            self.refresh()

        _confirm("Clear today", "Clear all of today's progress?", do_clear)


class ChallengeScreen(ScrollScreen):

    def build_content(self, c):
        done = records.is_challenge_completed(self.app.gate, self.app.username)
        c.add_widget(_make_label("Today's Challenge", font_size=sp(22), bold=True, color=_ACCENT))
        c.add_widget(_make_label("Meditate for 20 minutes", font_size=sp(16)))
        c.add_widget(_make_label("24 hours left", font_size=sp(13), color=_MUTED))
        if done:
            c.add_widget(_make_label("Challenge Completed!", color=_DONE, bold=True))
        else:
            c.add_widget(_make_button("Mark as complete", self._complete))

    def _complete(self):
        if not records.complete_challenge(self.app.store, self.app.gate, self.app.username):
            log.warning("Challenge completion was not saved")
        _go("program", "right")


class BreathingScreen(ScrollScreen):

    def build_content(self, c):
        completed = set(records.list_completed_exercises(self.app.store, self.app.username))
        c.add_widget(_make_label("Breathing", font_size=sp(22), bold=True, color=_ACCENT))
        for ex in EXERCISES.values():
            c.add_widget(_spacer())
            mark = "  (done)" if ex.id in completed else ""
            c.add_widget(_make_label(f"{ex.name}{mark}", font_size=sp(16), bold=True))
            c.add_widget(_make_label(
                f"Inhale {ex.inhale}s, hold {ex.hold}s, exhale {ex.exhale}s  |  "
                f"{ex.duration // 60} min",
                font_size=sp(13), color=_MUTED,
            ))
            c.add_widget(_make_button("Start", lambda e=ex.id: self._start(e)))

    def _start(self, exercise_id):
        session = self.manager.get_screen("breathing_session")
        session.exercise_id = exercise_id
        _go("breathing_session")


class BreathingSessionScreen(Screen):
    """Drives a PhaseScheduler from a Kivy Clock interval.

    The interval is acquired in ``on_enter`` and released on pause, on
    completion and in ``on_leave``, so no tick outlives the screen.
    """

    exercise_id = StringProperty("1")
    title_text = StringProperty("")
    phase_text = StringProperty("Get Ready")
    remaining_text = StringProperty("")
    pause_text = StringProperty("Pause")
    phase_progress = NumericProperty(0)
    phase_colour = ListProperty([1, 1, 1, 1])

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._scheduler = None
        self._event = None
        self._countdown = 0
        self._interval = 0.1

    def on_enter(self):
        app = App.get_running_app()
        settings = cfg.load_config()
        self._interval = settings.tick_interval
        self._exercise = get_exercise(self.exercise_id)
        self._scheduler = PhaseScheduler(
            session_spec(self._exercise), on_tick=self._show, on_complete=self._on_complete
        )
        self._user = app.username
        self.title_text = self._exercise.name
        self.remaining_text = ""
        self.phase_progress = 0
        self.pause_text = "Pause"
        self._countdown = settings.countdown_seconds
        self.phase_text = f"Get Ready  {self._countdown}" if self._countdown else "Get Ready"
        self._release()
        if self._countdown:
            self._event = Clock.schedule_interval(self._count_down, 1)
        else:
            self._begin()

    def on_leave(self):
        self._release()

    def leave(self):
        _go("breathing", "right")

    def _release(self):
        if self._event is not None:
            self._event.cancel()
            self._event = None

    def _count_down(self, dt):
        self._countdown -= 1
        if self._countdown > 0:
            self.phase_text = f"Get Ready  {self._countdown}"
            return
        self._release()
        self._begin()

    def _begin(self):
        self._show(self._scheduler.start())
        self._event = Clock.schedule_interval(self._tick, self._interval)

    def _tick(self, dt):
        # Fixed delta per tick; Kivy's dt jitters
        self._scheduler.tick(self._interval)

    def _show(self, snap: SessionSnapshot):
        self.phase_text = snap.phase_name
        self.phase_colour = list(_PHASE_COLOURS.get(snap.phase_name, _TEXT))
        self.phase_progress = snap.phase_progress * 100
        self.remaining_text = format_remaining(snap.remaining_seconds)

    def toggle_pause(self):
        if self._scheduler is None:
            return
        try:
            snap = self._scheduler.toggle()
        except InvalidStateError:
            # Still counting down, or already finished
            return
        if snap.status is SessionStatus.PAUSED:
            self._release()
            self.pause_text = "Resume"
        else:
            self._event = Clock.schedule_interval(self._tick, self._interval)
            self.pause_text = "Pause"

    def _on_complete(self, snap: SessionSnapshot):
        self._release()
        self.phase_text = "Exercise Complete!"
        self.remaining_text = ""
        app = App.get_running_app()
        ok = records.mark_exercise_completed(
            app.store, app.gate, self._user, self._exercise.id, self._exercise.name
        )
        if not ok:
            log.warning("Exercise completion was not saved")
        Clock.schedule_once(lambda dt: self.leave(), 1)


class JournalScreen(ScrollScreen):

    def build_content(self, c):
        c.add_widget(_make_label("Journal", font_size=sp(22), bold=True, color=_ACCENT))
        ti = _make_input("How are you feeling today?", multiline=True, height=dp(120))
        c.add_widget(ti)
        error = _make_label("", color=(0.906, 0.298, 0.235, 1), font_size=sp(12))
        c.add_widget(error)

        def save():
            try:
                records.add_journal_entry(
                    self.app.store, self.app.gate, self.app.username, ti.text
                )
            except ValueError as exc:
                error.text = str(exc)
                return
            self.refresh()

        c.add_widget(_make_button("Save entry", save))
        entries = records.list_journal(self.app.store, self.app.username)
        c.add_widget(_spacer(12))
        if not entries:
            c.add_widget(_make_label("No entries yet.", color=_MUTED))
        for e in reversed(entries):
            c.add_widget(_make_label(f"{e.date:%Y-%m-%d %H:%M}", font_size=sp(12), color=_MUTED))
            c.add_widget(_make_label(e.entry))
        if entries:
            c.add_widget(_make_button(
                "Clear all entries", self._clear, colour=(0.6, 0.3, 0.3, 1),
            ))

    def _clear(self):
        def do_clear():
            records.clear_journal(self.app.store, self.app.username)
            self.refresh()

        _confirm("Clear All Entries", "Clear all journal entries?", do_clear)


class MoodScreen(ScrollScreen):

    def build_content(self, c):
        current = records.get_mood(self.app.store, self.app.username)
        c.add_widget(_make_label("How do you feel?", font_size=sp(22), bold=True, color=_ACCENT))
        if current is not None:
            c.add_widget(_make_label(
                f"Last saved: {current.mood.display_name} ({current.date:%Y-%m-%d %H:%M})",
                font_size=sp(13), color=_MUTED,
            ))
        for m in Mood:
            selected = current is not None and current.mood is m
            c.add_widget(_make_button(
                m.display_name,
                lambda m=m: self._save(m),
                colour=_DONE if selected else (0.173, 0.251, 0.216, 1),
            ))

    def _save(self, mood):
        records.save_mood(self.app.store, self.app.username, mood)
        self.refresh()


class NotesScreen(ScrollScreen):

    def build_content(self, c):
        c.add_widget(_make_label("Notes", font_size=sp(22), bold=True, color=_ACCENT))
        ti = _make_input("Write a note")
        c.add_widget(ti)

        def add():
            try:
                records.add_note(self.app.store, self.app.username, ti.text)
            except ValueError:
                return
            self.refresh()

        c.add_widget(_make_button("Add note", add))
        for note in records.list_notes(self.app.store, self.app.username):
            row = BoxLayout(size_hint_y=None, height=dp(44), spacing=dp(8))
            row.add_widget(Label(text=note.content, color=_TEXT, size_hint_x=0.75))
            delete = Button(text="Delete", size_hint_x=0.25, background_color=(0.6, 0.3, 0.3, 1))
            delete.bind(on_release=lambda _, nid=note.id: self._delete(nid))
            row.add_widget(delete)
            c.add_widget(row)

    def _delete(self, note_id):
        records.delete_note(self.app.store, self.app.username, note_id)
        self.refresh()


class SoberScreen(ScrollScreen):

    def build_content(self, c):
        c.add_widget(_make_label("Sober Tracker", font_size=sp(22), bold=True, color=_ACCENT))
        name_in = _make_input("Category")
        date_in = _make_input("Start Date (YYYY-MM-DD)")
        error = _make_label("", color=(0.906, 0.298, 0.235, 1), font_size=sp(12))
        c.add_widget(name_in)
        c.add_widget(date_in)
        c.add_widget(error)

        def add():
            try:
                records.add_sober_category(
                    self.app.store, self.app.username, name_in.text, date_in.text
                )
            except ValueError as exc:
                error.text = str(exc)
                return
            self.refresh()

        c.add_widget(_make_button("Add category", add))
        today = date.today()
        categories = records.list_sober_categories(self.app.store, self.app.username)
        if not categories:
            c.add_widget(_make_label("Nothing tracked yet.", color=_MUTED))
        for cat in categories:
            days = records.sober_days(cat.start_date, today)
            c.add_widget(_spacer())
            c.add_widget(_make_label(f"{cat.name}: {days} day{'s' if days != 1 else ''}",
                                     font_size=sp(16), bold=True))
            c.add_widget(_make_button(
                "Reset", lambda n=cat.name: self._reset(n), colour=(0.6, 0.3, 0.3, 1),
            ))

    def _reset(self, name):
        def do_reset():
            records.reset_sober_category(self.app.store, self.app.username, name)
            self.refresh()

        _confirm("Reset Progress", f'Reset progress for "{name}"?', do_reset)


class ChatScreen(ScrollScreen):

    def build_content(self, c):
        messages = records.load_chat(self.app.store, self.app.username)
        for msg in messages:
            who = "You" if msg.role is ChatRole.USER else "Calmly"
            c.add_widget(_make_label(
                f"{who}: {msg.content}",
                color=_TEXT if who == "You" else _ACCENT,
                halign="right" if who == "You" else "left",
            ))
        ti = _make_input("Type a message")
        c.add_widget(ti)

        def send():
            updated = chatbot.respond(messages, ti.text)
            records.save_chat(self.app.store, self.app.username, updated)
            self.refresh()

        ti.bind(on_text_validate=lambda _: send())
        c.add_widget(_make_button("Send", send))
        c.add_widget(_make_button(
            "Clear conversation",
            lambda: (records.clear_chat(self.app.store, self.app.username), self.refresh()),
            colour=(0.173, 0.251, 0.216, 1),
        ))


class HistoryScreen(ScrollScreen):

    def build_content(self, c):
        c.add_widget(_make_label("History", font_size=sp(22), bold=True, color=_ACCENT))
        history = records.list_history(self.app.store, self.app.username)
        if not history:
            c.add_widget(_make_label("No activity yet.", color=_MUTED))
        for entry in reversed(history):
            c.add_widget(_make_label(f"{entry.tool}: {entry.action}", font_size=sp(14)))
            c.add_widget(_make_label(
                f"{entry.timestamp:%Y-%m-%d %H:%M}", font_size=sp(11), color=_MUTED,
            ))


class ExploreScreen(ScrollScreen):

    def build_content(self, c):
        c.add_widget(_make_label("Explore", font_size=sp(22), bold=True, color=_ACCENT))
        for title, target in _TOOLS:
            c.add_widget(_make_button(title, lambda t=target: _go(t)))


class ProfileScreen(ScrollScreen):

    def build_content(self, c):
        stats = records.get_profile_stats(self.app.store, self.app.gate, self.app.username)
        c.add_widget(_make_label(self.app.username, font_size=sp(22), bold=True, color=_ACCENT))
        for line in (
            f"Challenges Completed: {stats.challenges}",
            f"Breathing Exercises Completed: {stats.breathing_exercises}",
            f"Sobriety Categories Tracked: {stats.sobriety_categories}",
            f"Mood Entries: {stats.mood_entries}",
        ):
            c.add_widget(_make_label(line, font_size=sp(15)))
        c.add_widget(_spacer(24))
        c.add_widget(_make_button("Log out", self._logout, colour=(0.6, 0.3, 0.3, 1)))

    def _logout(self):
        records.clear_current_user(self.app.store)
        _go("login", "right")


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------


class CalmlyApp(App):
    """Kivy application entry point."""

    title = "Calmly"

    def build(self):
        self.store = open_store()
        self.gate = DailyGate(self.store)
        Builder.load_string(KV)
        sm = ScreenManager()
        sm.add_widget(LoginScreen(name="login"))
        sm.add_widget(ProgramScreen(name="program"))
        sm.add_widget(ChallengeScreen(name="challenge"))
        sm.add_widget(BreathingScreen(name="breathing"))
        sm.add_widget(BreathingSessionScreen(name="breathing_session"))
        sm.add_widget(JournalScreen(name="journal"))
        sm.add_widget(MoodScreen(name="mood"))
        sm.add_widget(NotesScreen(name="notes"))
        sm.add_widget(SoberScreen(name="sober"))
        sm.add_widget(ChatScreen(name="chat"))
        sm.add_widget(HistoryScreen(name="history"))
        sm.add_widget(ExploreScreen(name="explore"))
        sm.add_widget(ProfileScreen(name="profile"))
        sm.current = "program" if self.username else "login"
        return sm

    @property
    def username(self):
        user = records.get_current_user(self.store)
        return user.username if user else None

    def on_stop(self):
        self.store.close()


if __name__ == "__main__":
    CalmlyApp().run()

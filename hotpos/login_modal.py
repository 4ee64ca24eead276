"""Sign-in modal screen."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static

from hotpos.models import Credentials

FIELDS = (
    ("url", "Server URL"),
    ("db", "Database"),
    ("username", "Username"),
    ("password", "Password"),
)


class LoginModal(ModalScreen[Credentials | None]):
    """Collect ERP server, database, and user credentials.

    Tab/Down and Shift+Tab/Up move between fields, Enter signs in, Esc
    cancels. The cursor starts on the first empty field, or on the password
    when everything else is already filled in.
    """

    CSS = """
    LoginModal {
        align: center middle;
        background: $background 60%;
    }

    #login-dialog {
        width: 64;
        height: auto;
        border: round $primary;
        background: $panel;
        padding: 1 2;
    }

    #login-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #login-fields {
        border: heavy $secondary;
        padding: 0 1;
        color: white;
        margin-bottom: 1;
    }

    #login-error {
        color: #ffb3b3;
        margin-bottom: 1;
    }

    #login-help {
        color: #dddddd;
    }
    """

    def __init__(self, credentials: Credentials, error: str = "") -> None:
        super().__init__()
        self.values = {name: getattr(credentials, name) for name, _ in FIELDS}
        self.values["password"] = ""
        self.error = error
        self.field_index = next(
            (idx for idx, (name, _) in enumerate(FIELDS) if not self.values[name]),
            len(FIELDS) - 1,
        )

    def compose(self) -> ComposeResult:
        with Container(id="login-dialog"):
            yield Static("Sign in to the POS server", id="login-title")
            yield Static(id="login-fields")
            yield Static(id="login-error")
            yield Static("Tab/↑/↓ switch field. Enter sign in. Esc cancel.", id="login-help")

    def on_mount(self) -> None:
        self._refresh_content()

    @property
    def current_field(self) -> str:
        return FIELDS[self.field_index][0]

    def on_key(self, event: Key) -> None:
        if event.key in {"escape", "ctrl+c"}:
            self.dismiss(None)
            event.stop()
            return

        if event.key == "enter":
            self._submit()
            event.stop()
            return

        if event.key in {"tab", "down", "shift+tab", "up"}:
            step = 1 if event.key in {"tab", "down"} else -1
            self.field_index = (self.field_index + step) % len(FIELDS)
            self._refresh_content()
            event.stop()
            return

        if event.key == "backspace":
            value = self.values[self.current_field]
            if value:
                self.values[self.current_field] = value[:-1]
                self._refresh_content()
            event.stop()
            return

        if event.is_printable and event.character:
            self.values[self.current_field] += event.character
            self.error = ""
            self._refresh_content()
            event.stop()

    def _submit(self) -> None:
        missing = [label for name, label in FIELDS[:3] if not self.values[name].strip()]
        if missing:
            self.error = f"{', '.join(missing)} required."
            self._refresh_content()
            return
        self.dismiss(
            Credentials(
                url=self.values["url"].strip(),
                db=self.values["db"].strip(),
                username=self.values["username"].strip(),
                password=self.values["password"],
            )
        )

    def _refresh_content(self) -> None:
        text = Text()
        for idx, (name, label) in enumerate(FIELDS):
            if idx > 0:
                text.append("\n")
            active = idx == self.field_index
            value = "•" * len(self.values[name]) if name == "password" else self.values[name]
            text.append("➤ " if active else "  ")
            text.append(f"{label:<12}", style="bold" if active else "")
            text.append(value + ("▏" if active else ""))
        self.query_one("#login-fields", Static).update(text)
        self.query_one("#login-error", Static).update(f"⚠ {self.error}" if self.error else "")

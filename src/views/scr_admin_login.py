from textual import on
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, Input, Label

from utils.messages import AdminLockChangedMessage
from views.base_screen import BaseScreen


class AdminLoginScreen(BaseScreen):
    """
    Shared-secret prompt in front of the dashboard.
    No lockout or backoff, a wrong password can simply be retried.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-admin-login"):
            yield Label("Admin Password")
            yield Input(placeholder="*********", password=True, id="input-admin-pwd")
            with Horizontal(id="div-login-btns"):
                yield Button("Unlock", id="btn-unlock", variant="primary")

    def on_mount(self):
        self.query_one("#input-admin-pwd").focus()

    @on(Input.Submitted, "#input-admin-pwd")
    @on(Button.Pressed, "#btn-unlock")
    def handle_unlock(self) -> None:
        pwd_input = self.query_one("#input-admin-pwd", Input)
        if not pwd_input.value:
            self.notify("Password cannot be empty!", severity="error")
            return

        if self.app.state.unlock_admin(pwd_input.value):
            pwd_input.value = ""
            pwd_input.remove_class("-invalid")
            self.notify("Admin dashboard unlocked.")
            self.post_message(AdminLockChangedMessage(True))
        else:
            self.notify("Wrong password.", severity="error")
            pwd_input.value = ""
            pwd_input.add_class("-invalid")
            pwd_input.focus()

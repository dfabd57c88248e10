from typing import List

from textual.app import ComposeResult
from textual.containers import Container
from textual.screen import Screen
from textual.widgets import Footer, Label, Markdown

from views.modal_dialog import QuitDialogModal


class ConfigMissingScreen(Screen):
    """
    Persistent notice shown instead of the store when connection settings are
    absent. There is no retry, the app has to be restarted with the variables set.
    """

    BINDINGS = [("ctrl+q", "quit", "Quit App")]

    def __init__(self, missing: List[str]):
        super().__init__()
        self._missing = missing

    def compose(self) -> ComposeResult:
        required = "\n".join(f"- `{name}`" for name in self._missing)
        with Container(id="div-config-missing"):
            yield Label("Configuration Required", id="label-config-title")
            yield Markdown(
                "The store cannot start because its connection settings are "
                "missing or invalid.\n\n"
                f"{required}\n\n"
                "Set these environment variables and start the app again."
            )
        yield Footer(show_command_palette=False)

    def action_quit(self) -> None:
        self.app.push_screen(QuitDialogModal())

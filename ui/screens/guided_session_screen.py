from kivymd.uix.screen import MDScreen
from kivymd.uix.dialog import MDDialog
from kivymd.uix.button import MDFlatButton
from kivy.properties import BooleanProperty, NumericProperty, ObjectProperty, StringProperty
from kivy.clock import Clock
from kivy.lang import Builder

from guided_session.steps import Phase


KV = """
<GuidedSessionScreen>:
    BoxLayout:
        orientation: "vertical"
        spacing: "12dp"
        padding: "20dp"
        MDLabel:
            text: root.progress_text
            halign: "center"
            size_hint_y: None
            height: "32dp"
        MDLabel:
            text: root.phase_text
            halign: "center"
            theme_text_color: "Custom"
            text_color: (0.2, 0.6, 0.86, 1) if root.is_rest else (0.1, 0.7, 0.3, 1)
            size_hint_y: None
            height: "32dp"
        MDLabel:
            text: root.step_name
            halign: "center"
            font_style: "H5"
        MDLabel:
            text: root.display
            halign: "center"
            font_style: "H2"
        MDLabel:
            text: root.location_text
            halign: "center"
            opacity: 1 if root.location_text else 0
            size_hint_y: None
            height: "24dp"
        BoxLayout:
            size_hint_y: None
            height: "48dp"
            spacing: "8dp"
            MDIconButton:
                icon: "skip-previous"
                disabled: not root.can_go_back
                on_release: root.previous()
            MDIconButton:
                icon: "pause" if root.running else "play"
                on_release: root.toggle_pause()
            MDIconButton:
                icon: "restart"
                on_release: root.reset_phase()
            MDRaisedButton:
                text: root.next_label
                on_release: root.next()
        BoxLayout:
            size_hint_y: None
            height: "48dp"
            spacing: "8dp"
            MDFlatButton:
                text: "Pausar y salir"
                on_release: root.pause_and_exit()
            MDFlatButton:
                text: "Reiniciar día"
                on_release: root.confirm_restart()
            MDFlatButton:
                text: "Cerrar"
                on_release: root.confirm_close()
"""

Builder.load_string(KV)

LOCATION_TEXT = {
    "requesting": "Buscando señal GPS...",
    "active": "Registrando recorrido",
    "stopped": "GPS en pausa",
}


class GuidedSessionScreen(MDScreen):
    """Render a running :class:`SessionController` and forward user commands."""

    controller = ObjectProperty(None, allownone=True)
    step_name = StringProperty("")
    phase_text = StringProperty("")
    progress_text = StringProperty("")
    display = StringProperty("00:00")
    location_text = StringProperty("")
    next_label = StringProperty("")
    running = BooleanProperty(False)
    is_rest = BooleanProperty(False)
    can_go_back = BooleanProperty(False)
    refresh_interval = NumericProperty(0.25)
    _event = None
    _dialog = None

    def on_pre_enter(self, *args):
        self.refresh()
        self._ensure_clock_event()
        return super().on_pre_enter(*args)

    def on_leave(self, *args):
        self._cancel_clock_event()
        return super().on_leave(*args)

    def _ensure_clock_event(self):
        if not self._event:
            self._event = Clock.schedule_interval(self.refresh, self.refresh_interval)

    def _cancel_clock_event(self):
        if self._event:
            self._event.cancel()
            self._event = None

    def refresh(self, *_args):
        controller = self.controller
        if controller is None or controller.state == "idle":
            return
        if controller.finished:
            self._cancel_clock_event()
            return
        view = controller.view()
        self.step_name = view.step_name
        self.is_rest = view.phase is Phase.REST
        self.phase_text = "Descanso" if self.is_rest else "Ejercicio"
        self.progress_text = f"Ejercicio {view.position} de {view.total}"
        self.display = view.display
        self.running = view.running
        self.next_label = view.next_label
        self.can_go_back = self.is_rest or view.position > 1
        if view.location_status is None:
            self.location_text = ""
        elif view.location_status.startswith("error:"):
            self.location_text = "GPS no disponible"
        else:
            self.location_text = LOCATION_TEXT.get(view.location_status, "")

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def _run(self, command):
        if self.controller is not None:
            command(self.controller)
            self.refresh()

    def next(self):
        self._run(lambda c: c.next())

    def previous(self):
        self._run(lambda c: c.previous())

    def toggle_pause(self):
        self._run(lambda c: c.toggle_pause())

    def reset_phase(self):
        self._run(lambda c: c.reset_phase())

    def pause_and_exit(self):
        self._run(lambda c: c.pause_and_exit())

    def confirm_restart(self):
        self._confirm(
            "¿Empezar el día desde el primer ejercicio? Se perderá el progreso.",
            lambda: self._run(lambda c: c.restart()),
        )

    def confirm_close(self):
        self._confirm(
            "¿Cerrar la sesión? El ejercicio en curso no se guardará.",
            lambda: self._run(lambda c: c.close()),
        )

    def _confirm(self, text, action):
        if self._dialog:
            self._dialog.dismiss()

        def _accept(*_):
            self._dialog.dismiss()
            action()

        self._dialog = MDDialog(
            text=text,
            buttons=[
                MDFlatButton(text="Cancelar", on_release=lambda *_: self._dialog.dismiss()),
                MDFlatButton(text="Aceptar", on_release=_accept),
            ],
        )
        self._dialog.open()

# expense_tracker/notify.py

from dataclasses import dataclass

KINDS = ("success", "error", "info", "warning")

ICONS = {"success": "✅", "error": "❌", "info": "ℹ️", "warning": "⚠️"}


@dataclass(frozen=True)
class Toast:
    message: str
    kind: str = "info"


class Notifier:
    """Queues transient messages; ``render`` hands them to Streamlit, which
    controls how long each toast stays on screen"""

    def __init__(self):
        self.toasts = []

    def add(self, message, kind="info"):
        if kind not in KINDS:
            raise ValueError(f"Unknown notification kind: {kind!r}")
        toast = Toast(message, kind)
        self.toasts.append(toast)
        return toast

    def success(self, message):
        return self.add(message, "success")

    def error(self, message):
        return self.add(message, "error")

    def info(self, message):
        return self.add(message, "info")

    def warning(self, message):
        return self.add(message, "warning")

    def drain(self):
        toasts, self.toasts = self.toasts, []
        return toasts

    def render(self):
        import streamlit as st

        for toast in self.drain():
            st.toast(toast.message, icon=ICONS[toast.kind])

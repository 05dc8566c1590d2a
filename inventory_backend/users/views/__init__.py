from .auth import LoginView, RegisterView
from .me import CapabilitiesView, MeView

__all__ = [
    "RegisterView",
    "LoginView",
    "MeView",
    "CapabilitiesView",
]

from pydantic import BaseModel


class Preferences(BaseModel):
    """Alert toggles the user can flip at runtime from the settings screen."""

    sound_enabled: bool = True
    notifications_enabled: bool = True

from TextSnip.util.platform.hotkey import *  # noqa: F401,F403

import platform
import threading
import time
from typing import Callable, Dict, Optional, Protocol

from TextSnip.util.logging_config import logger

# keyboard is used on Windows, pynput everywhere else
try:
    import keyboard
    KEYBOARD_AVAILABLE = True
except ImportError:
    KEYBOARD_AVAILABLE = False

try:
    from pynput import keyboard as pynput_kb
    PYNPUT_AVAILABLE = True
except ImportError:
    PYNPUT_AVAILABLE = False


class CancellationSource(Protocol):
    """Anything that can tell a selection session to cancel, however it hears about it."""

    def connect(self, callback: Callable[[], None]) -> None:
        ...

    def disconnect(self) -> None:
        ...


class HotkeyManager:
    def __init__(self, system: Optional[str] = None):
        self._registered_hotkeys: Dict[str, object] = {}
        self._pynput_mapping: Dict[str, Callable] = {}
        self._pynput_listener = None
        self._lock = threading.Lock()

        # Max time between OS key-repeat signals for the key to count as held down
        self._holding_gap = 0.15

        # Minimum time between two triggers; must exceed the OS initial repeat delay
        self._execution_cooldown = 0.6

        self._last_signal_time: Dict[str, float] = {}
        self._last_execution_time: Dict[str, float] = {}

        current_os = system or platform.system()
        if current_os == "Windows" and KEYBOARD_AVAILABLE:
            self.mode = "keyboard"
        elif current_os != "Windows" and PYNPUT_AVAILABLE:
            self.mode = "pynput"
        else:
            self.mode = "disabled"
            logger.warning(f"HotkeyManager: no global hotkey backend available on {current_os}.")

    def clear(self):
        self._last_signal_time.clear()
        self._last_execution_time.clear()

        if self.mode == "keyboard":
            for hook in self._registered_hotkeys.values():
                try:
                    keyboard.remove_hotkey(hook)
                except (KeyError, ValueError):
                    pass
            self._registered_hotkeys.clear()

        elif self.mode == "pynput":
            self._stop_pynput_listener()
            self._pynput_mapping.clear()

    def _debounced(self, hotkey_str: str, callback: Callable[[], None]) -> Callable[[], None]:
        def debounced_wrapper():
            now = time.time()
            last_sig = self._last_signal_time.get(hotkey_str, 0)
            last_exec = self._last_execution_time.get(hotkey_str, 0)

            # Always refresh the signal time so a held key keeps resetting the holding timer
            self._last_signal_time[hotkey_str] = now

            if (now - last_sig) < self._holding_gap:
                return
            if (now - last_exec) < self._execution_cooldown:
                return

            if self._lock.acquire(blocking=False):
                try:
                    self._last_execution_time[hotkey_str] = time.time()
                    callback()
                except Exception as e:
                    logger.error(f"Error in hotkey callback for {hotkey_str}: {e}")
                finally:
                    self._lock.release()

        return debounced_wrapper

    def register(self, hotkey_getter, callback) -> Optional[str]:
        """Register a global hotkey. Returns the resolved hotkey string, or None if nothing was registered."""
        if self.mode == "disabled":
            return None

        try:
            hotkey_str = hotkey_getter() if callable(hotkey_getter) else hotkey_getter
        except Exception as e:
            logger.error(f"Failed to resolve hotkey: {e}")
            return None

        if not hotkey_str:
            return None

        wrapper = self._debounced(hotkey_str, callback)

        if self.mode == "keyboard":
            try:
                self._registered_hotkeys[hotkey_str] = keyboard.add_hotkey(hotkey_str, wrapper)
            except ValueError as e:
                logger.error(f"Failed to register Windows hotkey '{hotkey_str}': {e}")
                return None

        elif self.mode == "pynput":
            self._pynput_mapping[self._translate_to_pynput(hotkey_str)] = wrapper
            self._restart_pynput_listener()

        logger.debug(f"Registered hotkey '{hotkey_str}'")
        return hotkey_str

    def unregister(self, hotkey_str: Optional[str]):
        if not hotkey_str:
            return

        if self.mode == "keyboard":
            hook = self._registered_hotkeys.pop(hotkey_str, None)
            if hook is not None:
                try:
                    keyboard.remove_hotkey(hook)
                except (KeyError, ValueError):
                    pass

        elif self.mode == "pynput":
            if self._pynput_mapping.pop(self._translate_to_pynput(hotkey_str), None) is not None:
                self._restart_pynput_listener()

        self._last_signal_time.pop(hotkey_str, None)
        self._last_execution_time.pop(hotkey_str, None)

    def _stop_pynput_listener(self):
        if self._pynput_listener:
            self._pynput_listener.stop()
            self._pynput_listener = None

    def _restart_pynput_listener(self):
        self._stop_pynput_listener()
        if not self._pynput_mapping:
            return
        try:
            self._pynput_listener = pynput_kb.GlobalHotKeys(dict(self._pynput_mapping))
            self._pynput_listener.start()
        except Exception as e:
            logger.error(f"Failed to start pynput hotkey listener: {e}")

    def _translate_to_pynput(self, hotkey_str):
        parts = hotkey_str.lower().split('+')
        translated_parts = []
        for part in parts:
            part = part.strip()
            if part == 'windows': part = 'cmd'
            if part == 'escape': part = 'esc'
            if part == 'print screen': part = 'print_screen'
            if part == 'page up': part = 'page_up'
            if part == 'page down': part = 'page_down'
            if len(part) > 1:
                translated_parts.append(f'<{part}>')
            else:
                translated_parts.append(part)
        return '+'.join(translated_parts)


class HotkeyCancellationSource:
    """Delivers a global key press as a cancellation signal while a selection is open."""

    def __init__(self, manager: HotkeyManager, hotkey: str = 'esc'):
        self.manager = manager
        self.hotkey = hotkey
        self._registered: Optional[str] = None

    @property
    def connected(self) -> bool:
        return self._registered is not None

    def connect(self, callback: Callable[[], None]) -> None:
        self.disconnect()
        self._registered = self.manager.register(self.hotkey, callback)

    def disconnect(self) -> None:
        if self._registered is not None:
            self.manager.unregister(self._registered)
            self._registered = None

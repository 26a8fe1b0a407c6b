import pyperclip

from TextSnip.util.logging_config import logger


def copy_text(text: str) -> bool:
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        logger.error(f"Failed to copy text to clipboard: {e}")
        return False
    logger.debug(f"Copied {len(text)} characters to clipboard")
    return True

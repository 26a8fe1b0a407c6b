from plyer import notification

from TextSnip.util.logging_config import logger

APP_NAME = "TextSnip"
PREVIEW_LENGTH = 100


def send_notification(title, message, timeout=5):
    try:
        notification.notify(
            title=title,
            message=message,
            app_name=APP_NAME,
            timeout=timeout
        )
    except Exception as e:
        logger.error(f"Failed to send notification: {e}")


def preview_text(text: str, limit: int = PREVIEW_LENGTH) -> str:
    return text[:limit] + "..." if len(text) > limit else text


def send_text_copied_notification(text):
    send_notification(title="Text Copied", message=preview_text(text))


def send_no_text_found_notification():
    send_notification(title="No Text Found", message="No text was detected in the selected area")


def send_error_notification(message):
    send_notification(title="Screenshot Error", message=message)

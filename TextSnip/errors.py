class CollaboratorError(Exception):
    """Raised by the capture and OCR adapters; handled by the host, never by the core."""


class CaptureError(CollaboratorError):
    pass


class NoDisplayError(CaptureError):
    def __init__(self, surface_id=None):
        self.surface_id = surface_id
        super().__init__("No display found" if surface_id is None else f"No display found for surface {surface_id}")


class CropFailedError(CaptureError):
    def __init__(self, crop_box, image_size):
        self.crop_box = crop_box
        self.image_size = image_size
        super().__init__(f"Failed to crop image: {crop_box} is outside {image_size[0]}x{image_size[1]}")


class CapturePermissionError(CaptureError):
    def __init__(self, detail: str = ""):
        super().__init__("Screen recording permission required" + (f": {detail}" if detail else ""))


class OcrError(CollaboratorError):
    pass

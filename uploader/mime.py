"""Content-Type detection by file extension."""

import mimetypes

OVERRIDES = {
    "html": "text/html; charset=utf-8",
    "htm": "text/html",
    "js": "application/javascript",
    "json": "application/json",
    "ts": "application/typescript",
    "txt": "text/plain",
    "xlsx": "application/vnd.ms-excel",
    "ics": "",
    "woff": "font/woff",
    "woff2": "font/woff2",
    "otf": "font/otf",
    "ttf": "font/ttf",
    "webp": "image/webp",
    "7z": "application/x-7z-compressed",
}


def detect_mime(filename: str) -> str:
    """
    Guess the Content-Type for a filename.

    Args:
        filename: File name (only the extension is used)

    Returns:
        MIME type string, or '' when unknown
    """
    _, dot, extension = filename.rpartition(".")
    if not dot:
        return ""
    extension = extension.lower()
    if extension in OVERRIDES:
        return OVERRIDES[extension]
    guessed, _ = mimetypes.guess_type(f"file.{extension}", strict=False)
    return guessed or ""

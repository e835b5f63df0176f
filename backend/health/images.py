import base64
import binascii
import mimetypes
import re
from dataclasses import dataclass

DATA_URI_PATTERN = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.*)$", re.DOTALL)
DEFAULT_MIME_TYPE = "image/jpeg"


class ImageInputError(ValueError):
    pass


@dataclass(frozen=True)
class InlineImage:
    mime_type: str
    data: str

    def raw_bytes(self) -> bytes:
        try:
            return base64.b64decode(self.data, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ImageInputError("Image payload is not valid base64.") from exc

    def to_part(self) -> dict:
        return {"inline_data": {"mime_type": self.mime_type, "data": self.raw_bytes()}}


def from_data_uri(value: str) -> InlineImage:
    match = DATA_URI_PATTERN.match((value or "").strip())
    if not match:
        raise ImageInputError("Image must be a base64 data URI.")
    return InlineImage(mime_type=match.group("mime").lower(), data=match.group("data").strip())


def from_upload(uploaded_file) -> InlineImage:
    mime_type = getattr(uploaded_file, "content_type", "") or ""
    if not mime_type or mime_type == "application/octet-stream":
        guessed, _ = mimetypes.guess_type(getattr(uploaded_file, "name", "") or "")
        mime_type = guessed or DEFAULT_MIME_TYPE
    encoded = base64.b64encode(uploaded_file.read()).decode("utf-8")
    return InlineImage(mime_type=mime_type.lower(), data=encoded)

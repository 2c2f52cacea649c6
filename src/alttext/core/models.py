from __future__ import annotations
import base64
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from alttext.core.errors import InferenceError, NoDescriptionProduced

MSG_SUCCESS = "Alt text generated successfully!"
MSG_NO_DESCRIPTION = "Could not generate alt text. Please try a different image."
MSG_FAILURE = "An error occurred. Please check the console for details."
MSG_INVALID_IMAGE = "Please drop a valid image file."


@dataclass(frozen=True)
class ImagePayload:
    """
    Base64 image data plus its MIME type, exactly as sent to the endpoint.
    Nothing is validated here: bad data is the endpoint's to reject.
    """
    data: str
    mime_type: str

    @classmethod
    def from_bytes(cls, raw: bytes, mime_type: str) -> "ImagePayload":
        return cls(data=base64.b64encode(raw).decode("ascii"), mime_type=mime_type)

    @classmethod
    def from_data_url(cls, url: str) -> "ImagePayload":
        # data:<mime>;base64,<data>  (what a browser FileReader hands back)
        header, sep, data = url.partition(",")
        if not sep or not header.startswith("data:"):
            raise ValueError("Not a data URL")
        mime_type = header[len("data:"):].split(";", 1)[0]
        return cls(data=data, mime_type=mime_type)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ImagePayload":
        path = Path(path)
        mime_type, _ = mimetypes.guess_type(path.name)
        return cls.from_bytes(path.read_bytes(), mime_type or "application/octet-stream")

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")


@dataclass(frozen=True)
class InferenceRequest:
    prompt: str
    payload: ImagePayload

    def to_json(self) -> Dict[str, Any]:
        return {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"text": self.prompt},
                        {
                            "inlineData": {
                                "mimeType": self.payload.mime_type,
                                "data": self.payload.data,
                            }
                        },
                    ],
                }
            ],
        }


def extract_description(body: Any) -> str:
    """Pull candidates[0].content.parts[0].text out of a generateContent reply."""
    try:
        text = body["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        raise NoDescriptionProduced("Reply holds no generated text")
    if not isinstance(text, str) or not text.strip():
        raise NoDescriptionProduced("Generated text is empty")
    return text.strip()


@dataclass(frozen=True)
class InferenceResult:
    description: Optional[str] = None
    error: Optional[InferenceError] = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.description)

    @property
    def status_message(self) -> str:
        if self.ok:
            return MSG_SUCCESS
        if isinstance(self.error, NoDescriptionProduced):
            return MSG_NO_DESCRIPTION
        return MSG_FAILURE

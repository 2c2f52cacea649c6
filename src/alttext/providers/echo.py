from __future__ import annotations
from typing import List, Optional

import httpx

_LOREM_50 = (
    "Lorem ipsum dolor sit amet consectetur adipiscing elit sed do eiusmod tempor "
    "incididunt ut labore et dolore magna aliqua Curabitur non nulla sit amet nisl "
    "tempor convallis quis ac lectus Phasellus viverra nulla ut metus varius laoreet "
    "Quisque rutrum Aenean imperdiet Etiam ultricies nisi vel augue Curabitur ullamcorper ultricies nisi"
).split()


class EchoEndpoint:
    """
    Offline stand-in for the generateContent endpoint. Answers every POST with
    a Gemini-shaped reply whose text is a fixed lorem ipsum, so the whole
    client path (envelope, status handling, parsing) runs without a network.
    """
    model = "echo-lorem"

    def __init__(self, words: Optional[List[str]] = None):
        self.words = list(words) if words is not None else list(_LOREM_50)
        self.calls = 0

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        if request.method != "POST":
            return httpx.Response(405)
        body = {
            "candidates": [
                {"content": {"role": "model", "parts": [{"text": " ".join(self.words)}]}}
            ]
        }
        return httpx.Response(200, json=body)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

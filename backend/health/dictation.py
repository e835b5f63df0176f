from dataclasses import dataclass

UNSUPPORTED_MESSAGE = "Voice input is not supported in this browser."


@dataclass(frozen=True)
class DictationCapability:
    """What the hosting browser reported about speech recognition."""

    supported: bool
    lang: str = "en-US"
    continuous: bool = False
    interim_results: bool = False

    def session_config(self) -> dict:
        if not self.supported:
            return {"supported": False, "message": UNSUPPORTED_MESSAGE}
        return {
            "supported": True,
            "lang": self.lang,
            "continuous": self.continuous,
            "interimResults": self.interim_results,
        }


def append_transcript(draft: str, transcript: str) -> str:
    transcript = (transcript or "").strip()
    if not transcript:
        return draft or ""
    return f"{draft or ''} {transcript}"

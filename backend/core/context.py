import json
from dataclasses import asdict, dataclass
from functools import wraps

from django.conf import settings
from django.http import JsonResponse


@dataclass(frozen=True)
class Profile:
    name: str
    email: str

    @property
    def first_name(self) -> str:
        return (self.name.split() or ["User"])[0]

    @property
    def initial(self) -> str:
        return self.name[:1].upper() or "U"

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class AppContext:
    profile: Profile | None = None

    @property
    def signed_in(self) -> bool:
        return self.profile is not None


def _session_key() -> str:
    return getattr(settings, "PROFILE_SESSION_KEY", "lifepulse_profile")


def load_context(session) -> AppContext:
    raw = session.get(_session_key())
    if not raw:
        return AppContext()
    try:
        data = json.loads(raw)
        profile = Profile(name=str(data["name"]), email=str(data["email"]))
    except (TypeError, ValueError, KeyError):
        # A blob we cannot read is treated as signed out.
        session.pop(_session_key(), None)
        return AppContext()
    return AppContext(profile=profile)


def save_profile(session, profile: Profile) -> None:
    session[_session_key()] = json.dumps(profile.to_dict())


def clear_profile(session) -> None:
    session.pop(_session_key(), None)


def profile_required(view_func):
    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        context = getattr(request, "app_context", None)
        if context is None or not context.signed_in:
            return JsonResponse({"error": "Sign in required."}, status=401)
        return view_func(request, *args, **kwargs)

    return _wrapped

import google.generativeai as genai
from django.core.management.base import BaseCommand, CommandError

from health.exceptions import AIServiceError
from health.gateway import HealthGateway

FALLBACK_MODELS = (
    "gemini-2.5-flash",
    "gemini-2.0-flash",
    "gemini-2.0-flash-lite",
)


class Command(BaseCommand):
    help = "Checks that GEMINI_API_KEY is set and the configured Gemini model answers."

    def add_arguments(self, parser):
        parser.add_argument(
            "--model",
            default="",
            help="Model to probe instead of GEMINI_MODEL.",
        )

    def handle(self, *args, **options):
        gateway = HealthGateway.from_settings()
        if not gateway.is_configured:
            raise CommandError("GEMINI_API_KEY not set.")

        genai.configure(api_key=gateway.api_key)
        gateway.model_name = self._pick_model(options["model"] or gateway.model_name)
        self.stdout.write(f"Probing {gateway.model_name}...")

        try:
            text = gateway.chat_reply("Reply with exactly: OK")
        except AIServiceError as exc:
            raise CommandError(f"Gemini API check failed: {exc}") from exc

        if "OK" in text.upper():
            self.stdout.write(self.style.SUCCESS(f"Gemini API is working with {gateway.model_name}."))
        else:
            self.stdout.write(self.style.WARNING(f"Unexpected response: {text}"))

    def _pick_model(self, wanted: str) -> str:
        """Keep ``wanted`` if the key can use it, else a usable fallback, flash models first."""
        try:
            available = {
                model.name.removeprefix("models/")
                for model in genai.list_models()
                if "generateContent" in (getattr(model, "supported_generation_methods", None) or [])
            }
        except Exception as exc:
            self.stdout.write(self.style.WARNING(f"Could not list models ({exc}); using {wanted}."))
            return wanted

        for name in (wanted, *FALLBACK_MODELS):
            if name.removeprefix("models/") in available:
                return name.removeprefix("models/")
        if available:
            flash = sorted(name for name in available if "flash" in name)
            chosen = flash[0] if flash else sorted(available)[0]
            self.stdout.write(self.style.WARNING(f"{wanted} is not available; using {chosen}."))
            return chosen
        return wanted
